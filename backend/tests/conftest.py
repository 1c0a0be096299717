import os
import tempfile

# Settings are read at import time: point the app at a throwaway database first.
_TMP_DIR = tempfile.mkdtemp(prefix="baggo-tests-")
os.environ["DB_PATH"] = os.path.join(_TMP_DIR, "app.sqlite3")
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "test-key")

import pytest

from baggo.agents.llm_agent import LLMReply
from baggo.agents.tool_dispatcher import ToolDispatcher
from baggo.core.errors import UpstreamError
from baggo.db.conversation_repository import ConversationRepository
from baggo.db.sqlite_memory import SQLiteMemory
from baggo.services.google_maps_service import GoogleMapsService
from baggo.services.place_service import PlaceService


class FakeMaps(GoogleMapsService):
    """Places provider double: canned names per query keyword, or an error."""

    def __init__(self, results=None, error=None):
        super().__init__(api_key="fake")
        self.results = results or {}
        self.error = error
        self.queries = []

    def search_places(self, query, limit=20):
        self.queries.append(query)
        if self.error:
            raise self.error
        for keyword, names in self.results.items():
            if keyword in query:
                return [self.place(n) for n in names][:limit]
        return []

    @staticmethod
    def place(name):
        return {
            "id": "id-" + name.lower().replace(" ", "-"),
            "displayName": {"text": name},
            "location": {"latitude": 41.9, "longitude": 12.5},
        }


class FakeLLMAgent:
    def __init__(self, replies=None, itinerary_text="", error=None):
        self.replies = list(replies or [])
        self.itinerary_text = itinerary_text
        self.error = error
        self.calls = []

    async def generate_chat_turn(self, history, slots, tools=None):
        self.calls.append({"history": list(history), "slots": slots, "tools": tools})
        if self.error:
            raise self.error
        return self.replies.pop(0) if self.replies else LLMReply(content="Sounds great!")

    async def generate_itinerary_text(self, trip):
        if self.error:
            raise self.error
        return self.itinerary_text

    async def generate_trip_assistant_reply(self, history, trip):
        self.calls.append({"history": list(history), "trip": trip})
        if self.error:
            raise self.error
        return self.itinerary_text


@pytest.fixture
def memory(tmp_path):
    mem = SQLiteMemory(db_path=str(tmp_path / "memory.sqlite3"))
    yield mem
    mem.conn.close()


@pytest.fixture
def repository(memory):
    return ConversationRepository(memory)


@pytest.fixture
def fake_maps():
    # first matching keyword wins, so "hotels" must come before "pet-friendly"
    return FakeMaps(results={
        "hotels": ["Hotel Artemide", "Rome Dog Inn", "Palazzo Pets"],
        "vet clinic": ["Clinica Veterinaria Roma", "VetCare Trastevere", "Ambulatorio Prati"],
        "pet-friendly": ["Villa Borghese", "Bau Beach", "Parco degli Acquedotti", "Pincio"],
    })


@pytest.fixture
def place_service(fake_maps):
    return PlaceService(maps=fake_maps)


@pytest.fixture
def dispatcher(place_service, repository):
    return ToolDispatcher(place_service, repository)


@pytest.fixture
def upstream_error():
    return UpstreamError("model overloaded", 503)


@pytest.fixture
def fake_llm_factory():
    return FakeLLMAgent


@pytest.fixture
def fake_maps_factory():
    return FakeMaps
