import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest

from baggo.agents.llm_agent import FALLBACK_ASSISTANT, FALLBACK_ITINERARY, LLMAgent, build_itinerary_prompt
from baggo.core import llm
from baggo.core.errors import UpstreamError
from baggo.models.conversation_models import TripSlots
from baggo.models.itinerary_models import TripIn
from baggo.utils.time_utils import trip_length_days


def tool_call(name, arguments):
    return SimpleNamespace(function=SimpleNamespace(name=name, arguments=arguments))


@pytest.fixture
def fake_completion(monkeypatch):
    sent = []

    def _install(content=None, tool_calls=None):
        def completion(messages, model, tools=None, temperature=0.7, max_tokens=500):
            sent.append({"messages": messages, "model": model, "tools": tools, "max_tokens": max_tokens})
            return SimpleNamespace(content=content, tool_calls=tool_calls)

        monkeypatch.setattr(llm, "chat_completion", completion)
        return sent
    return _install


def test_chat_turn_honours_first_tool_call_only(fake_completion):
    sent = fake_completion(content=None, tool_calls=[
        tool_call("vetSearch", '{"destination": "Rome"}'),
        tool_call("hotelSearch", '{"destination": "Rome"}'),
    ])

    reply = asyncio.run(LLMAgent().generate_chat_turn(
        [{"role": "user", "content": "any vets in Rome?"}],
        TripSlots(destination="Rome"),
        tools=[{"type": "function"}],
    ))

    assert reply.content == ""
    assert reply.tool_name == "vetSearch"
    assert reply.tool_arguments == '{"destination": "Rome"}'

    messages = sent[0]["messages"]
    assert messages[0]["role"] == "system"
    assert '"destination": "Rome"' in messages[1]["content"]
    assert messages[-1] == {"role": "user", "content": "any vets in Rome?"}
    assert sent[0]["tools"] == [{"type": "function"}]


def test_chat_turn_plain_text(fake_completion):
    fake_completion(content="  Where to?  ")
    reply = asyncio.run(LLMAgent().generate_chat_turn([], TripSlots()))
    assert reply.content == "Where to?"
    assert reply.tool_name is None


def test_itinerary_text_falls_back_on_empty_content(fake_completion):
    sent = fake_completion(content=None)
    text = asyncio.run(LLMAgent().generate_itinerary_text(TripIn(destination="Rome")))

    assert text == FALLBACK_ITINERARY
    assert sent[0]["max_tokens"] == 2500


def test_itinerary_prompt_carries_trip_details():
    trip = TripIn.model_validate({
        "destination": "Lisbon",
        "startDate": "2026-05-01T00:00:00Z",
        "endDate": "2026-05-04",
        "petDetails": {"type": "cat", "size": "medium", "breed": "Siamese"},
        "numPeople": 2,
        "numChildren": 1,
        "preferences": {"budget": "moderate", "accommodationType": ["hotel"], "interests": ["food"]},
        "additionalCities": ["Sintra"],
    })
    prompt = build_itinerary_prompt(trip)

    assert "4-day trip to Lisbon" in prompt
    assert "medium cat (Siamese)" in prompt
    assert "2 adult(s), 1 child(ren)" in prompt
    assert "- Interests: food" in prompt
    assert "visits to: Sintra" in prompt
    assert "DAY X: [DATE]" in prompt


@pytest.mark.parametrize("start, end, expected", [
    ("2026-05-01", "2026-05-01", 1),
    ("2026-05-01", "2026-05-05", 5),
    ("2026-05-05", "2026-05-01", None),
    ("soon", "2026-05-01", None),
    (None, None, None),
])
def test_trip_length_days(start, end, expected):
    assert trip_length_days(start, end) == expected


# ---------------------------------------------------------------------------
# OPENAI ERROR MAPPING
# ---------------------------------------------------------------------------
class RaisingClient:
    def __init__(self, error):
        def create(**params):
            raise error
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=create))


def test_provider_status_is_kept(monkeypatch):
    response = httpx.Response(503, request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    error = openai.APIStatusError("overloaded", response=response, body=None)
    monkeypatch.setattr(llm, "get_client", lambda: RaisingClient(error))

    with pytest.raises(UpstreamError) as excinfo:
        llm.chat_completion([{"role": "user", "content": "hi"}], model="gpt-4o-mini")

    assert excinfo.value.status_code == 503
    assert excinfo.value.message == "overloaded"


def test_other_openai_errors_have_no_status(monkeypatch):
    monkeypatch.setattr(llm, "get_client", lambda: RaisingClient(openai.OpenAIError("no route")))

    with pytest.raises(UpstreamError) as excinfo:
        llm.chat_completion([{"role": "user", "content": "hi"}], model="gpt-4o-mini")

    assert excinfo.value.status_code is None


def test_missing_api_key(monkeypatch):
    monkeypatch.setattr(llm, "_client", None)
    monkeypatch.setattr(llm.settings, "OPENAI_API_KEY", "")

    with pytest.raises(UpstreamError):
        llm.get_client()


def test_trip_assistant_prompt_and_history(fake_completion):
    sent = fake_completion(content=None)
    trip = TripIn.model_validate({
        "destination": "Lisbon",
        "petDetails": {"type": "dog", "size": "large"},
        "preferences": {"budget": "luxury"},
    })

    text = asyncio.run(LLMAgent().generate_trip_assistant_reply(
        [{"role": "user", "content": "Where can we stay?"}], trip,
    ))

    assert text == FALLBACK_ASSISTANT
    system = sent[0]["messages"][0]["content"]
    assert "trip to Lisbon with their large dog." in system
    assert "- Budget: luxury" in system
    assert "SUGGESTION: [type]" in system
    assert sent[0]["messages"][-1] == {"role": "user", "content": "Where can we stay?"}
