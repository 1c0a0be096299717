# backend/baggo/agents/dialogue_state.py

import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from baggo.core.logger import logger
from baggo.models.conversation_models import ChatMessage, TripSlots


# ---------------------------------------------------------------------------
# VOCABULARY + DEFAULTS
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SlotVocabulary:
    activity_tags: Tuple[str, ...] = (
        "relaxing", "adventure", "cultural", "romantic", "family", "luxury",
        "budget", "solo", "historical", "culinary", "wellness", "eco",
    )
    months: Tuple[str, ...] = (
        "january", "february", "march", "april", "may", "june",
        "july", "august", "september", "october", "november", "december",
    )
    default_pet_type: str = "dog"
    default_travel_date: str = "next month"
    default_activity_tags: Tuple[str, ...] = ("family", "adventure")


DEFAULT_VOCABULARY = SlotVocabulary()


# ---------------------------------------------------------------------------
# PER-FIELD MUTATION POLICY
# ---------------------------------------------------------------------------
class SlotPolicy(str, Enum):
    FIRST_WINS = "first_wins"              # written once, later matches ignored
    REPLACE_ON_MATCH = "replace_on_match"  # every matching utterance overwrites


SLOT_POLICIES: Mapping[str, SlotPolicy] = MappingProxyType({
    "departure": SlotPolicy.FIRST_WINS,
    "destination": SlotPolicy.FIRST_WINS,
    "pet_type": SlotPolicy.FIRST_WINS,
    "travel_date": SlotPolicy.FIRST_WINS,
    "activity_tags": SlotPolicy.REPLACE_ON_MATCH,
})


ROUTE_SPLIT_RE = re.compile(r" to ", re.IGNORECASE)
WITH_SPLIT_RE = re.compile(r" with ", re.IGNORECASE)
FROM_RE = re.compile(r"\bfrom\s+", re.IGNORECASE)
WITH_RE = re.compile(r"\bwith\b")
ON_RE = re.compile(r"\bon\b")
YES_RE = re.compile(r"\byes\b")
TAG_SPLIT_RE = re.compile(r"[, ]+")


# ---------------------------------------------------------------------------
# EXTRACTORS: (raw utterance, case-folded utterance, vocabulary) -> update
# ---------------------------------------------------------------------------
def extract_route(raw: str, folded: str, vocab: SlotVocabulary) -> Optional[Dict[str, Any]]:
    """
    "Paris to Rome with my dog" -> departure "Paris", destination "Rome".
    A leading "... from" is dropped: "I want to go from Paris to Rome" -> Paris / Rome.
    """
    if " to " not in folded:
        return None

    text = raw
    from_match = FROM_RE.search(raw)
    if from_match and " to " in raw[from_match.end():].lower():
        text = raw[from_match.end():]

    parts = ROUTE_SPLIT_RE.split(text, maxsplit=1)
    if len(parts) < 2:
        return None

    departure = parts[0].strip()
    destination = WITH_SPLIT_RE.split(parts[1], maxsplit=1)[0].strip()
    return {"departure": departure, "destination": destination}


def extract_pet_type(raw: str, folded: str, vocab: SlotVocabulary) -> Optional[Dict[str, Any]]:
    """Text between "with" and the next "on": "with my dog on june 5" -> "my dog"."""
    with_match = WITH_RE.search(folded)
    if not with_match:
        return None

    rest = folded[with_match.end():]
    on_match = ON_RE.search(rest)
    pet_type = (rest[:on_match.start()] if on_match else rest).strip()
    return {"pet_type": pet_type} if pet_type else None


def extract_travel_date(raw: str, folded: str, vocab: SlotVocabulary) -> Optional[Dict[str, Any]]:
    on_match = ON_RE.search(folded)
    if on_match:
        travel_date = folded[on_match.end():].strip()
        if travel_date:
            return {"travel_date": travel_date}

    if any(re.search(rf"\b{month}\b", folded) for month in vocab.months):
        return {"travel_date": folded.strip()}

    return None


def extract_activity_tags(raw: str, folded: str, vocab: SlotVocabulary) -> Optional[Dict[str, Any]]:
    tokens = [t for t in TAG_SPLIT_RE.split(folded) if t]
    matches = []
    for token in tokens:
        if token in vocab.activity_tags and token not in matches:
            matches.append(token)

    if not matches and not YES_RE.search(folded):
        return None
    return {"activity_tags": matches}


@dataclass(frozen=True)
class SlotRule:
    # field whose policy and current value decide whether the rule may write
    gate: str
    extract: Callable[[str, str, SlotVocabulary], Optional[Dict[str, Any]]]


SLOT_RULES: Tuple[SlotRule, ...] = (
    SlotRule("departure", extract_route),
    SlotRule("pet_type", extract_pet_type),
    SlotRule("travel_date", extract_travel_date),
    SlotRule("activity_tags", extract_activity_tags),
)


# ---------------------------------------------------------------------------
# TRACKER
# ---------------------------------------------------------------------------
def _role_and_content(message: Any) -> Tuple[str, Any]:
    if isinstance(message, ChatMessage):
        return message.role, message.content
    if isinstance(message, dict):
        return message.get("role", ""), message.get("content")
    return "", None


def latest_user_utterance(history: Iterable[Any]) -> str:
    latest = ""
    for message in history or []:
        role, content = _role_and_content(message)
        if role == "user" and isinstance(content, str):
            latest = content
    return latest


def apply_utterance(
    data: Dict[str, Any],
    utterance: str,
    vocab: SlotVocabulary = DEFAULT_VOCABULARY,
    policies: Mapping[str, SlotPolicy] = SLOT_POLICIES,
) -> None:
    folded = utterance.lower()
    for rule in SLOT_RULES:
        if policies[rule.gate] is SlotPolicy.FIRST_WINS and data.get(rule.gate):
            continue
        update = rule.extract(utterance, folded, vocab)
        if update:
            data.update(update)


def update_slots(
    history: Iterable[Any],
    current: Optional[TripSlots] = None,
    vocab: SlotVocabulary = DEFAULT_VOCABULARY,
    policies: Mapping[str, SlotPolicy] = SLOT_POLICIES,
) -> TripSlots:
    """
    Replays every user message of `history` over `current` and returns the
    resulting slots. `current` is not modified. Never raises: an utterance
    that breaks a rule is logged and skipped.
    """
    data = (current or TripSlots()).model_dump()

    for message in history or []:
        role, content = _role_and_content(message)
        if role != "user" or not isinstance(content, str) or not content.strip():
            continue
        try:
            apply_utterance(data, content, vocab, policies)
        except Exception as e:
            logger.warning(f"Slot extraction skipped an utterance: {e}")

    return TripSlots(**data)


def with_defaults(slots: TripSlots, vocab: SlotVocabulary = DEFAULT_VOCABULARY) -> TripSlots:
    """Copy of `slots` with confirmation-time defaults filled in."""
    return slots.model_copy(update={
        "pet_type": slots.pet_type or vocab.default_pet_type,
        "travel_date": slots.travel_date or vocab.default_travel_date,
        "activity_tags": list(slots.activity_tags) or list(vocab.default_activity_tags),
    })
