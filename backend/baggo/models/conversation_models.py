# backend/baggo/models/conversation_models.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"] = "user"
    content: str = ""


class TripSlots(BaseModel):
    """
    Trip details collected so far in a conversation.
    Empty strings / lists mean "not known yet".
    """
    model_config = ConfigDict(populate_by_name=True)

    departure: str = ""
    destination: str = ""
    pet_type: str = Field("", alias="petType")
    travel_date: str = Field("", alias="travelDate")
    activity_tags: List[str] = Field([], alias="activityTags")
    activities: List[str] = []


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = []


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    role: Literal["assistant"] = "assistant"
    content: str
    trip_id: Optional[str] = Field(None, alias="tripId")
    trip_data: TripSlots = Field(alias="tripData")


class ConversationOut(BaseModel):
    id: str
    user_id: str
    history: List[Dict[str, Any]]
    trip_data: Dict[str, Any]
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
