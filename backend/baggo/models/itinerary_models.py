# backend/baggo/models/itinerary_models.py

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional

from baggo.models.conversation_models import ChatMessage


ActivityType = Literal[
    "activity",
    "restaurant",
    "flight",
    "transfer",
    "accommodation",
    "meal",
    "placeholder",
    "preparation",
]


class Coordinates(BaseModel):
    lat: float
    lng: float


class TripActivity(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: ActivityType = "activity"
    title: str
    description: str = ""
    location: str = ""
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    is_pet_friendly: bool = Field(False, alias="isPetFriendly")
    coordinates: Optional[Coordinates] = None
    place_id: Optional[str] = Field(None, alias="placeId")


class TripDay(BaseModel):
    day: int
    date: Optional[str] = None
    city: Optional[str] = None
    activities: List[TripActivity] = []


# ---------------------------------------------------------------------------
# SINGLE-SHOT ITINERARY GENERATION
# ---------------------------------------------------------------------------
class PetDetails(BaseModel):
    type: str = "dog"
    size: str = "small"
    breed: Optional[str] = None


class TripPreferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    budget: Optional[str] = None
    accommodation_type: List[str] = Field([], alias="accommodationType")
    interests: List[str] = []


class TripIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    destination: Optional[str] = None
    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")
    pet_details: PetDetails = Field(default_factory=PetDetails, alias="petDetails")
    num_people: Optional[int] = Field(None, alias="numPeople")
    num_children: Optional[int] = Field(None, alias="numChildren")
    preferences: Optional[TripPreferences] = None
    additional_cities: List[str] = Field([], alias="additionalCities")
    days: List[TripDay] = []


class GenerateItineraryIn(BaseModel):
    trip: Optional[TripIn] = None


# ---------------------------------------------------------------------------
# TRIP ASSISTANT
# ---------------------------------------------------------------------------
SuggestionType = Literal["activity", "hotel", "restaurant"]


class SuggestedActivity(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: SuggestionType
    title: str
    description: str = ""
    location: Optional[str] = None
    is_pet_friendly: bool = Field(False, alias="isPetFriendly")


class TripAssistantIn(BaseModel):
    messages: List[ChatMessage] = []
    trip: Optional[TripIn] = None


# ---------------------------------------------------------------------------
# CONFIRMED TRIP RECORD
# ---------------------------------------------------------------------------
class TripDates(BaseModel):
    start: str


class PetInfo(BaseModel):
    type: str


class Travelers(BaseModel):
    pet: PetInfo


class ItineraryPlan(BaseModel):
    steps: List[TripDay] = []


class TripTips(BaseModel):
    general: str = ""


class TripRecord(BaseModel):
    id: str
    user_id: str
    departure: str = ""
    destination: str = ""
    dates: TripDates
    travelers: Travelers
    method: str = "flight"
    status: str = "planned"
    itinerary: ItineraryPlan
    tips: TripTips
    created_at: Optional[str] = None
