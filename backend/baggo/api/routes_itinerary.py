# backend/baggo/api/routes_itinerary.py

from fastapi import APIRouter, Header, HTTPException
from typing import Optional

from baggo.agents.itinerary_parser import parse_itinerary
from baggo.agents.llm_agent import LLMAgent
from baggo.agents.suggestion_parser import parse_suggestions
from baggo.core.errors import UpstreamError
from baggo.core.logger import logger
from baggo.core.security import user_key_from_header
from baggo.db.conversation_repository import ConversationRepository
from baggo.db.sqlite_memory import SQLiteMemory
from baggo.models.itinerary_models import GenerateItineraryIn, TripAssistantIn, TripRecord

router = APIRouter(tags=["itineraries"])
db = SQLiteMemory()
repository = ConversationRepository(db)
llm = LLMAgent()


@router.post("/ai/generate-itinerary")
async def generate_itinerary(body: GenerateItineraryIn):
    """Asks the model for a full itinerary and fills the trip's days from its text."""
    trip = body.trip
    if not trip or not trip.destination:
        raise HTTPException(status_code=400, detail="Trip details are required")

    try:
        text = await llm.generate_itinerary_text(trip)
    except UpstreamError as e:
        logger.error(f"Itinerary generation failed for {trip.destination}: {e.message}")
        raise HTTPException(status_code=e.status_code or 500, detail=e.message)

    days = parse_itinerary(text, trip.days)
    return {
        "days": [d.model_dump(by_alias=True) for d in days],
        "rawResponse": text,
    }


@router.post("/ai/trip-assistant")
async def trip_assistant(body: TripAssistantIn):
    """Free chat about a planned trip; SUGGESTION blocks in the reply come back as typed suggestions."""
    if not body.messages:
        raise HTTPException(status_code=400, detail="Messages array is required")
    trip = body.trip
    if not trip or not trip.destination:
        raise HTTPException(status_code=400, detail="Trip details are required")

    history = [{"role": m.role, "content": m.content} for m in body.messages]
    try:
        text = await llm.generate_trip_assistant_reply(history, trip)
    except UpstreamError as e:
        logger.error(f"Trip assistant failed for {trip.destination}: {e.message}")
        raise HTTPException(status_code=e.status_code or 500, detail=e.message)

    return {
        "text": text,
        "suggestedActivities": [s.model_dump(by_alias=True) for s in parse_suggestions(text)],
    }


@router.get("/trips")
def list_trips(authorization: Optional[str] = Header(None)):
    user_key = user_key_from_header(authorization)
    return {"items": repository.list_trips(user_key)}


@router.get("/trips/{trip_id}", response_model=TripRecord)
def get_trip(trip_id: str, authorization: Optional[str] = Header(None)):
    user_key = user_key_from_header(authorization)
    trip = repository.get_trip(trip_id)
    if not trip or trip["user_id"] != user_key:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip
