# backend/baggo/core/llm.py

from typing import Any, Dict, List, Optional

import openai
from dotenv import load_dotenv
from openai import OpenAI

from baggo.core.config_loader import settings
from baggo.core.errors import UpstreamError
from baggo.core.logger import logger

load_dotenv()

_client: Optional[OpenAI] = None


def get_client() -> OpenAI:
    global _client
    if _client is None:
        if not settings.OPENAI_API_KEY:
            raise UpstreamError("OPENAI_API_KEY missing in environment variables.", 500)
        _client = OpenAI(api_key=settings.OPENAI_API_KEY)
    return _client


# ---------------------------------------------------------------------------
# CHAT COMPLETION (single blocking call, no streaming)
# ---------------------------------------------------------------------------
def chat_completion(
    messages: List[Dict[str, str]],
    model: str,
    tools: Optional[List[Dict[str, Any]]] = None,
    temperature: float = 0.7,
    max_tokens: int = 500,
):
    """
    Returns the first choice's message (content and/or tool_calls).
    Any OpenAI failure is raised as UpstreamError with the provider status.
    """
    params: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if tools:
        params["tools"] = tools
        params["tool_choice"] = "auto"

    try:
        completion = get_client().chat.completions.create(**params)
    except openai.APIStatusError as e:
        logger.error(f"OpenAI returned status {e.status_code}: {e.message}")
        raise UpstreamError(e.message, e.status_code) from e
    except openai.OpenAIError as e:
        logger.error(f"OpenAI request failed: {e}")
        raise UpstreamError(str(e)) from e

    if not completion.choices:
        raise UpstreamError("Language model returned no choices")

    return completion.choices[0].message
