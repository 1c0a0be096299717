# backend/baggo/agents/tool_dispatcher.py

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from baggo.agents.dialogue_state import (
    DEFAULT_VOCABULARY,
    YES_RE,
    SlotVocabulary,
    with_defaults,
)
from baggo.agents.itinerary_parser import DEFAULT_PARSER_CONFIG, ParserConfig, parse_itinerary
from baggo.core.logger import logger
from baggo.db.conversation_repository import ConversationRepository
from baggo.models.conversation_models import TripSlots
from baggo.models.itinerary_models import Coordinates, TripDay
from baggo.services.place_service import PlaceHit, PlaceService
from baggo.utils.time_utils import local_now_str


GENERAL_TIP = "Check pet import rules and pack comfort items."
FILLER_ACTIVITY = "Free time to explore with your pet"
SKELETON_DAYS = 5


# ---------------------------------------------------------------------------
# CAPABILITIES EXPOSED TO THE LANGUAGE MODEL
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ToolCapability:
    name: str
    description: str
    parameters: Dict[str, Any]
    label: str
    icon: str
    invoke: Callable[[PlaceService, Dict[str, Any], TripSlots], List[str]]

    def schema(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def format(self, names: List[str]) -> str:
        return f"\n\n**{self.label}:** {self.icon} {', '.join(names)}"


def _destination(args: Dict[str, Any], slots: TripSlots) -> str:
    value = args.get("destination")
    return value.strip() if isinstance(value, str) and value.strip() else slots.destination


def _tags(args: Dict[str, Any], slots: TripSlots) -> List[str]:
    value = args.get("tags")
    if isinstance(value, list) and value:
        return [str(t) for t in value]
    return list(slots.activity_tags)


_DESTINATION_ONLY = {
    "type": "object",
    "properties": {
        "destination": {"type": "string", "description": "City or area of the trip, e.g. 'Rome'."},
    },
    "required": ["destination"],
}

PLACE_SEARCH = ToolCapability(
    name="placeSearch",
    description="Find pet-friendly places to visit at the destination matching the traveler's interests.",
    parameters={
        "type": "object",
        "properties": {
            "destination": {"type": "string", "description": "City or area of the trip, e.g. 'Rome'."},
            "tags": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Activity interests, e.g. ['adventure', 'family'].",
            },
        },
        "required": ["destination"],
    },
    label="Pet-friendly places",
    icon="🐾",
    invoke=lambda places, args, slots: places.search_pet_places(_destination(args, slots), _tags(args, slots)),
)

VET_SEARCH = ToolCapability(
    name="vetSearch",
    description="Find veterinary clinics near the destination.",
    parameters=_DESTINATION_ONLY,
    label="Nearby vets",
    icon="🏥",
    invoke=lambda places, args, slots: places.search_vets(_destination(args, slots)),
)

HOTEL_SEARCH = ToolCapability(
    name="hotelSearch",
    description="Find pet-friendly hotels near the destination.",
    parameters=_DESTINATION_ONLY,
    label="Pet-friendly hotels",
    icon="🏨",
    invoke=lambda places, args, slots: places.search_hotels(_destination(args, slots)),
)

TOOL_CAPABILITIES: Tuple[ToolCapability, ...] = (PLACE_SEARCH, VET_SEARCH, HOTEL_SEARCH)


@dataclass
class DispatchResult:
    name: str
    names: List[str] = field(default_factory=list)
    text: str = ""


@dataclass
class ItineraryConfirmation:
    text: str
    days: List[TripDay]
    trip: Dict[str, Any]
    trip_id: Optional[str]
    activities: List[str]


@dataclass(frozen=True)
class SkeletonStep:
    day: int
    period: str
    title: str
    location: str
    description: str
    activity_type: str
    place_id: Optional[str] = None
    coordinates: Optional[Coordinates] = None


def _title_safe(text: str) -> str:
    # an ASCII '-' in a title ends the title in the heading grammar
    return " ".join(text.split()).replace("-", "‑")


class ToolDispatcher:
    """
    Runs the function call chosen by the language model and builds the
    5-day itinerary skeleton when the user confirms a trip.
    """

    def __init__(
        self,
        places: Optional[PlaceService] = None,
        repository: Optional[ConversationRepository] = None,
        capabilities: Tuple[ToolCapability, ...] = TOOL_CAPABILITIES,
        vocab: SlotVocabulary = DEFAULT_VOCABULARY,
        parser_config: ParserConfig = DEFAULT_PARSER_CONFIG,
    ):
        self.places = places or PlaceService()
        self.repository = repository
        self.capabilities = {c.name: c for c in capabilities}
        self.vocab = vocab
        self.parser_config = parser_config

    def tool_schemas(self) -> List[Dict[str, Any]]:
        return [c.schema() for c in self.capabilities.values()]

    # ----------------------------------------------------------------------
    # FUNCTION CALL DISPATCH
    # ----------------------------------------------------------------------
    def dispatch(self, name: str, arguments: Any, slots: TripSlots) -> DispatchResult:
        """Never raises. Unknown tools produce an empty fragment."""
        capability = self.capabilities.get(name)
        if capability is None:
            logger.warning(f"Unknown function call requested: {name}")
            return DispatchResult(name=name)

        args = self._parse_arguments(arguments)
        logger.info(f"Executing tool {name} with {args}")

        try:
            names = capability.invoke(self.places, args, slots)
        except Exception as e:
            # PlaceService already falls back; this guards custom capabilities
            logger.error(f"Tool {name} failed: {e}")
            names = []

        if not names:
            return DispatchResult(name=name)
        return DispatchResult(name=name, names=names, text=capability.format(names))

    @staticmethod
    def _parse_arguments(arguments: Any) -> Dict[str, Any]:
        if isinstance(arguments, dict):
            return arguments
        if not arguments:
            return {}
        try:
            parsed = json.loads(arguments)
        except (TypeError, ValueError) as e:
            logger.warning(f"Malformed tool arguments {arguments!r}: {e}")
            return {}
        return parsed if isinstance(parsed, dict) else {}

    # ----------------------------------------------------------------------
    # ITINERARY CONFIRMATION
    # ----------------------------------------------------------------------
    @staticmethod
    def is_confirmation(utterance: str, slots: TripSlots) -> bool:
        folded = (utterance or "").lower()
        if not YES_RE.search(folded):
            return False
        return "itinerary" in folded or bool(slots.departure and slots.destination)

    def build_skeleton(self, slots: TripSlots, places: Sequence[PlaceHit], vets: List[str]) -> List[SkeletonStep]:
        pet = slots.pet_type
        destination = slots.destination
        vet_list = ", ".join(vets)

        steps = [
            SkeletonStep(1, "MORNING", f"Arrive in {destination}", destination,
                         f"Travel from {slots.departure} with your {pet}. Keep water and comfort items close.",
                         "transfer"),
            SkeletonStep(1, "EVENING", "Check in to pet-friendly lodging", destination,
                         f"Settle in and let your {pet} get used to the new space.",
                         "accommodation"),
        ]

        for offset in range(3):
            day = offset + 2
            if offset < len(places):
                hit = places[offset]
                steps.append(SkeletonStep(day, "MORNING", hit.name, destination,
                                          f"Spend time at {hit.name} with your {pet}.",
                                          "activity", hit.place_id, hit.coordinates))
            else:
                steps.append(SkeletonStep(day, "MORNING", FILLER_ACTIVITY, destination,
                                          f"Wander around {destination} at your {pet}'s pace.",
                                          "placeholder"))

        steps.extend([
            SkeletonStep(SKELETON_DAYS, "MORNING", "Vet check before departure", vet_list,
                         f"Vets near {destination}: {vet_list}.",
                         "preparation"),
            SkeletonStep(SKELETON_DAYS, "AFTERNOON", f"Depart {destination}", destination,
                         f"Head back to {slots.departure} with your {pet}.",
                         "transfer"),
        ])
        return steps

    @staticmethod
    def render_skeleton(steps: List[SkeletonStep], slots: TripSlots) -> str:
        themes = {1: f"{slots.travel_date} - Arrival", SKELETON_DAYS: "Departure"}
        lines: List[str] = []
        current_day = None
        index = 0
        for step in steps:
            if step.day != current_day:
                if lines:
                    lines.append("")
                lines.append(f"DAY {step.day}: {themes.get(step.day, f'Exploring {slots.destination}')}")
                current_day = step.day
                index = 0
            index += 1
            lines.extend([
                f"{step.period}:",
                f"- Activity {index}: {_title_safe(step.title)}",
                f"  Location: {step.location}",
                f"  Description: {step.description}",
                "  Pet-friendly: Yes",
            ])
        return "\n".join(lines)

    def confirm_itinerary(self, slots: TripSlots, user_key: str) -> ItineraryConfirmation:
        effective = with_defaults(slots, self.vocab)

        places = self.places.search_pet_place_hits(effective.destination, effective.activity_tags)
        vets = self.places.search_vets(effective.destination)

        steps = self.build_skeleton(effective, places, vets)
        text = self.render_skeleton(steps, effective)

        blank_days = [
            TripDay(day=n, date=effective.travel_date if n == 1 else None, city=effective.destination)
            for n in range(1, SKELETON_DAYS + 1)
        ]
        days = parse_itinerary(text, blank_days, self.parser_config)

        for number in range(1, SKELETON_DAYS + 1):
            day_steps = [s for s in steps if s.day == number]
            activities = days[number - 1].activities
            if len(day_steps) == len(activities):
                for step, activity in zip(day_steps, activities):
                    activity.type = step.activity_type
                    activity.place_id = step.place_id
                    activity.coordinates = step.coordinates

        trip = {
            "id": str(uuid4()),
            "user_id": user_key,
            "departure": effective.departure,
            "destination": effective.destination,
            "dates": {"start": effective.travel_date},
            "travelers": {"pet": {"type": effective.pet_type}},
            "method": "flight",
            "status": "planned",
            "itinerary": {"steps": [d.model_dump(by_alias=True) for d in days]},
            "tips": {"general": GENERAL_TIP},
            "created_at": local_now_str(),
        }

        trip_id = self.repository.insert_trip(trip) if self.repository else None
        logger.info(f"Itinerary confirmed for {user_key}: {effective.departure} -> {effective.destination}")

        return ItineraryConfirmation(text=text, days=days, trip=trip, trip_id=trip_id,
                                     activities=[p.name for p in places])
