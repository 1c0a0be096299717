# backend/baggo/agents/llm_agent.py

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from baggo.core import llm
from baggo.core.config_loader import settings
from baggo.core.logger import logger
from baggo.models.conversation_models import TripSlots
from baggo.models.itinerary_models import TripIn
from baggo.utils.time_utils import trip_length_days


FALLBACK_REPLY = "Sorry, I didn't quite catch that. Could you tell me more about your trip?"
FALLBACK_ITINERARY = "Sorry, I could not generate an itinerary."
FALLBACK_ASSISTANT = "Sorry, I could not generate a response."
MAX_HISTORY = 100


@dataclass
class LLMReply:
    content: str
    tool_name: Optional[str] = None
    tool_arguments: str = ""


CHAT_SYSTEM_PROMPT = """You are Baggo, a friendly assistant planning pet-friendly trips anywhere in the world.

Collect, one question at a time:
- where the traveler starts and where they are headed (e.g. "Paris to Tokyo")
- which pet travels with them
- when they travel
- what kind of trip they like. Offer these options: Relaxing Beach, Adventure,
  Cultural Immersion, Romantic Getaway, Family-Friendly, Luxury Stay,
  Budget-Friendly, Solo Travel, Historical Tour, Culinary Experience,
  Wellness Retreat, Eco-Tourism.

Use placeSearch, vetSearch or hotelSearch when the traveler asks for places,
vets or hotels. Once departure and destination are known, ask whether you
should put together the itinerary; the traveler answers "yes" to confirm.

Keep answers short and warm."""


class LLMAgent:
    """
    Language-model calls of the planner:
    - one chat turn with the trip tools available (generate_chat_turn)
    - a full day-by-day itinerary for a trip (generate_itinerary_text)
    """

    # -----------------------------
    # 1. Chat turn (may request a tool)
    # -----------------------------
    async def generate_chat_turn(
        self,
        history: List[Dict[str, str]],
        slots: TripSlots,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> LLMReply:
        context = json.dumps(slots.model_dump(by_alias=True), ensure_ascii=False)
        messages = [
            {"role": "system", "content": CHAT_SYSTEM_PROMPT},
            {"role": "system", "content": f"Trip details collected so far: {context}"},
        ]
        for msg in history[-MAX_HISTORY:]:
            messages.append({"role": msg.get("role", "user"), "content": msg.get("content", "")})

        message = llm.chat_completion(
            messages,
            model=settings.gpt_model_chat,
            tools=tools,
            temperature=0.7,
            max_tokens=500,
        )

        reply = LLMReply(content=(message.content or "").strip())

        tool_calls = getattr(message, "tool_calls", None) or []
        if tool_calls:
            # one tool per turn
            call = tool_calls[0]
            reply.tool_name = call.function.name
            reply.tool_arguments = call.function.arguments or ""
            if len(tool_calls) > 1:
                logger.info(f"Ignoring {len(tool_calls) - 1} extra tool call(s)")

        return reply

    # -----------------------------
    # 2. Single-shot itinerary text
    # -----------------------------
    async def generate_itinerary_text(self, trip: TripIn) -> str:
        message = llm.chat_completion(
            [
                {"role": "system", "content": build_itinerary_prompt(trip)},
                {
                    "role": "user",
                    "content": f"Please generate a detailed itinerary for my trip to "
                               f"{trip.destination} with my {trip.pet_details.type}.",
                },
            ],
            model=settings.gpt_model_itinerary,
            temperature=0.7,
            max_tokens=2500,
        )
        return message.content or FALLBACK_ITINERARY

    # -----------------------------
    # 3. Trip assistant (free chat about a known trip)
    # -----------------------------
    async def generate_trip_assistant_reply(self, history: List[Dict[str, str]], trip: TripIn) -> str:
        messages = [{"role": "system", "content": build_assistant_prompt(trip)}]
        for msg in history[-MAX_HISTORY:]:
            messages.append({"role": msg.get("role", "user"), "content": msg.get("content", "")})

        message = llm.chat_completion(
            messages,
            model=settings.gpt_model_itinerary,
            temperature=0.7,
            max_tokens=500,
        )
        return message.content or FALLBACK_ASSISTANT


# ---------------------------------------------------------------------------
# ITINERARY PROMPT
# ---------------------------------------------------------------------------
ITINERARY_FORMAT = """For each day, provide a structured itinerary with morning, afternoon, and evening activities. Each activity should be specifically pet-friendly or should note any pet accommodations needed.

For each day, include:
- At least one pet-specific activity (park, pet-friendly beach, etc.)
- Meal recommendations at pet-friendly restaurants
- Logistics for moving between activities with a pet

On Day 1, include arrival information and settling in recommendations.
On the final day, include departure logistics.

Use this structured format for each day:

DAY X: [DATE] - [SHORT THEME FOR THE DAY]

MORNING:
- Activity 1: [Title] - [Time, e.g. 9:00 AM]
  Location: [Specific place]
  Description: [2-3 sentences]
  Pet-friendly: [Yes/No/Partial, with explanation]

AFTERNOON:
- Lunch: [Restaurant] - [Time]
  Location: [Specific place]
  Description: [2-3 sentences]
  Pet-friendly: [Yes/No/Partial, with explanation]

EVENING:
- Activity 3: [Title] - [Time]
  Location: [Specific place]
  Description: [2-3 sentences]
  Pet-friendly: [Yes/No/Partial, with explanation]

Do not use dashes inside titles."""


def preferences_text(trip: TripIn) -> str:
    prefs = trip.preferences
    if not prefs:
        return ""

    text = "Trip preferences:\n"
    if prefs.budget:
        text += f"- Budget: {prefs.budget}\n"
    if prefs.accommodation_type:
        text += f"- Accommodation types: {', '.join(prefs.accommodation_type)}\n"
    if prefs.interests:
        text += f"- Interests: {', '.join(prefs.interests)}\n"
    return text + "\n"


def build_itinerary_prompt(trip: TripIn) -> str:
    num_days = trip_length_days(trip.start_date, trip.end_date) or len(trip.days) or 1
    pet = trip.pet_details

    prompt = (
        "You are an expert travel planner specializing in pet-friendly travel. "
        f"Create a detailed day-by-day itinerary for a {num_days}-day trip to {trip.destination}"
    )
    if trip.start_date and trip.end_date:
        prompt += f" from {trip.start_date} to {trip.end_date}"
    prompt += f".\n\nThis trip includes a {pet.size} {pet.type}"
    if pet.breed:
        prompt += f" ({pet.breed})"
    prompt += ".\n\n"

    travelers = []
    if trip.num_people:
        travelers.append(f"{trip.num_people} adult(s)")
    if trip.num_children:
        travelers.append(f"{trip.num_children} child(ren)")
    if travelers:
        prompt += f"Travelers: {', '.join(travelers)}\n"

    prompt += preferences_text(trip)

    if trip.additional_cities:
        prompt += f"This trip will also include visits to: {', '.join(trip.additional_cities)}\n\n"

    return prompt + ITINERARY_FORMAT


# ---------------------------------------------------------------------------
# TRIP ASSISTANT PROMPT
# ---------------------------------------------------------------------------
SUGGESTION_FORMAT = """When suggesting specific activities, hotels, or restaurants, identify them clearly by saying "SUGGESTION: [type]" where type is one of: activity, hotel, restaurant. Include location, description, and whether it's pet-friendly.

Example:
SUGGESTION: hotel
Name: Pet Paradise Hotel
Location: Downtown
Description: Luxury hotel with pet amenities
Pet-friendly: Yes"""


def build_assistant_prompt(trip: TripIn) -> str:
    pet = trip.pet_details
    pet_text = f"{pet.size} {pet.type}"

    prompt = (
        "You are an expert travel assistant specializing in pet-friendly travel. "
        f"The user is planning a trip to {trip.destination}"
    )
    if trip.start_date and trip.end_date:
        prompt += f" from {trip.start_date} to {trip.end_date}"
    prompt += f" with their {pet_text}"
    if pet.breed:
        prompt += f" ({pet.breed})"
    prompt += ".\n\n"

    prompt += preferences_text(trip)

    return (
        prompt + SUGGESTION_FORMAT + "\n\n"
        f"Provide helpful, specific advice for traveling with pets to {trip.destination}. "
        "Focus on pet-friendly accommodations, activities, restaurants, and transportation options. "
        f"Consider the specific needs of a {pet_text} when making suggestions."
    )
