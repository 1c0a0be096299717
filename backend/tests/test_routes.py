import jwt
import pytest
from fastapi.testclient import TestClient

import main
from baggo.agents.llm_agent import LLMReply
from baggo.api import routes_chat, routes_itinerary
from baggo.core.errors import UpstreamError


def bearer(sub):
    token = jwt.encode({"sub": sub}, "test-secret", algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client():
    return TestClient(main.app)


@pytest.fixture
def chat_llm(monkeypatch, fake_llm_factory, fake_maps):
    monkeypatch.setattr(routes_chat.orchestrator.dispatcher.places, "maps", fake_maps)

    def _install(*replies, error=None):
        llm = fake_llm_factory(replies=replies, error=error)
        monkeypatch.setattr(routes_chat.orchestrator, "llm_agent", llm)
        return llm
    return _install


def test_root(client):
    body = client.get("/").json()
    assert body["status"] == "ok"
    assert body["tools"] == ["placeSearch", "vetSearch", "hotelSearch"]


@pytest.mark.parametrize("payload", [
    {"messages": []},
    {"messages": [{"role": "assistant", "content": "Hi!"}]},
    {"messages": [{"role": "user", "content": "   "}]},
])
def test_chat_requires_a_user_message(client, chat_llm, payload):
    chat_llm()
    assert client.post("/chat", json=payload).status_code == 400


def test_chat_turn_returns_camel_case_trip_data(client, chat_llm):
    chat_llm(LLMReply(content="Rome it is!"))

    resp = client.post(
        "/chat",
        json={"messages": [{"role": "user", "content": "Paris to Rome"}]},
        headers=bearer("route-user-1"),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["role"] == "assistant"
    assert body["content"] == "Rome it is!"
    assert body["tripData"]["departure"] == "Paris"
    assert body["tripData"]["destination"] == "Rome"
    assert "tripId" not in body


def test_chat_upstream_status_is_passed_through(client, chat_llm):
    chat_llm(error=UpstreamError("model overloaded", 503))

    resp = client.post("/chat", json={"messages": [{"role": "user", "content": "hello"}]})

    assert resp.status_code == 503
    assert resp.json()["detail"] == "Chat error: model overloaded"


def test_bearer_token_scopes_conversations_and_trips(client, chat_llm):
    chat_llm(LLMReply(content="Building it now."))
    headers = bearer("route-user-2")

    resp = client.post(
        "/chat",
        json={"messages": [
            {"role": "user", "content": "Lisbon to Porto"},
            {"role": "assistant", "content": "Shall I plan it?"},
            {"role": "user", "content": "yes"},
        ]},
        headers=headers,
    )
    trip_id = resp.json()["tripId"]

    latest = client.get("/conversations/latest", headers=headers).json()
    assert latest["user_id"] == "route-user-2"
    assert latest["history"][-1]["role"] == "assistant"
    assert latest["trip_data"]["destination"] == "Porto"

    trip = client.get(f"/trips/{trip_id}", headers=headers).json()
    assert trip["destination"] == "Porto"
    assert len(trip["itinerary"]["steps"]) == 5

    items = client.get("/trips", headers=headers).json()["items"]
    assert [t["id"] for t in items] == [trip_id]

    # someone else's trip stays hidden
    assert client.get(f"/trips/{trip_id}", headers=bearer("intruder")).status_code == 404


def test_unknown_trip_is_404(client):
    assert client.get("/trips/does-not-exist").status_code == 404


def test_latest_conversation_404_for_new_user(client):
    assert client.get("/conversations/latest", headers=bearer("brand-new")).status_code == 404


def test_bad_token_falls_back_to_anonymous():
    from baggo.core.security import user_key_from_header

    assert user_key_from_header("Bearer not-a-token") == "anonymous"
    assert user_key_from_header(None) == "anonymous"
    assert user_key_from_header(bearer("someone")["Authorization"]) == "someone"


# ---------------------------------------------------------------------------
# ONE-SHOT ITINERARY GENERATION
# ---------------------------------------------------------------------------
def test_generate_itinerary_requires_trip(client):
    assert client.post("/ai/generate-itinerary", json={}).status_code == 400
    assert client.post("/ai/generate-itinerary", json={"trip": {"destination": ""}}).status_code == 400


def test_generate_itinerary_parses_days(client, monkeypatch, fake_llm_factory):
    text = (
        "DAY 1: Arrival\n"
        "MORNING:\n"
        "- Activity 1: Harbour walk - 10:15 AM\n"
        "  Location: Ribeira\n"
        "  Description: Easy riverside stroll.\n"
        "  Pet-friendly: Yes\n"
    )
    monkeypatch.setattr(routes_itinerary, "llm", fake_llm_factory(itinerary_text=text))

    resp = client.post("/ai/generate-itinerary", json={"trip": {
        "destination": "Porto",
        "startDate": "2026-06-05",
        "endDate": "2026-06-06",
        "days": [{"day": 1, "city": "Porto"}, {"day": 2, "city": "Porto"}],
    }})

    assert resp.status_code == 200
    body = resp.json()
    assert body["rawResponse"] == text
    first = body["days"][0]["activities"][0]
    assert first["title"] == "Harbour walk"
    assert first["startTime"] == "10:15"
    assert first["isPetFriendly"] is True
    assert body["days"][1]["activities"] == []


def test_generate_itinerary_upstream_failure(client, monkeypatch, fake_llm_factory):
    monkeypatch.setattr(routes_itinerary, "llm", fake_llm_factory(error=UpstreamError("quota exceeded", 429)))

    resp = client.post("/ai/generate-itinerary", json={"trip": {"destination": "Porto"}})

    assert resp.status_code == 429
    assert resp.json()["detail"] == "quota exceeded"


# ---------------------------------------------------------------------------
# TRIP ASSISTANT
# ---------------------------------------------------------------------------
def test_trip_assistant_returns_suggestions(client, monkeypatch, fake_llm_factory):
    reply = (
        "Try this one:\n"
        "SUGGESTION: hotel\n"
        "Name: Pet Paradise Hotel\n"
        "Location: Downtown\n"
        "Description: Luxury hotel with pet amenities\n"
        "Pet-friendly: Yes\n"
    )
    llm = fake_llm_factory(itinerary_text=reply)
    monkeypatch.setattr(routes_itinerary, "llm", llm)

    resp = client.post("/ai/trip-assistant", json={
        "messages": [{"role": "user", "content": "Any hotels?"}],
        "trip": {"destination": "Lisbon", "petDetails": {"type": "cat", "size": "small"}},
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["text"] == reply
    assert body["suggestedActivities"] == [{
        "type": "hotel",
        "title": "Pet Paradise Hotel",
        "description": "Luxury hotel with pet amenities",
        "location": "Downtown",
        "isPetFriendly": True,
    }]
    assert llm.calls[0]["trip"].pet_details.type == "cat"


@pytest.mark.parametrize("payload", [
    {"messages": [], "trip": {"destination": "Lisbon"}},
    {"messages": [{"role": "user", "content": "hi"}]},
    {"messages": [{"role": "user", "content": "hi"}], "trip": {"destination": ""}},
])
def test_trip_assistant_validation(client, payload):
    assert client.post("/ai/trip-assistant", json=payload).status_code == 400


def test_trip_assistant_upstream_failure(client, monkeypatch, fake_llm_factory):
    monkeypatch.setattr(routes_itinerary, "llm", fake_llm_factory(error=UpstreamError("overloaded", 503)))

    resp = client.post("/ai/trip-assistant", json={
        "messages": [{"role": "user", "content": "hi"}],
        "trip": {"destination": "Lisbon"},
    })
    assert resp.status_code == 503
