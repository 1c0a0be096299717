# backend/baggo/api/routes_chat.py

from fastapi import APIRouter, HTTPException, Header
from typing import Optional

from baggo.agents.chat_orchestrator import ChatOrchestrator
from baggo.agents.llm_agent import LLMAgent
from baggo.agents.tool_dispatcher import ToolDispatcher
from baggo.core.errors import UpstreamError
from baggo.core.logger import logger
from baggo.core.security import user_key_from_header
from baggo.db.conversation_repository import ConversationRepository
from baggo.db.sqlite_memory import SQLiteMemory
from baggo.models.conversation_models import ChatRequest, ChatResponse
from baggo.services.place_service import PlaceService

router = APIRouter(prefix="/chat", tags=["chat"])
db = SQLiteMemory()
repository = ConversationRepository(db)
orchestrator = ChatOrchestrator(
    llm_agent=LLMAgent(),
    dispatcher=ToolDispatcher(PlaceService(), repository),
    repository=repository,
)


@router.post("", response_model=ChatResponse, response_model_exclude_none=True, summary="Chat with the trip planner")
async def chat(req: ChatRequest, authorization: Optional[str] = Header(None)):
    """
    One conversational turn. The body carries the full message history;
    trip details are rebuilt from it and the caller's latest conversation.
    """
    if not req.messages:
        raise HTTPException(status_code=400, detail="messages are required")
    if not any(m.role == "user" and m.content.strip() for m in req.messages):
        raise HTTPException(status_code=400, detail="a user message is required")

    user_key = user_key_from_header(authorization)

    try:
        return await orchestrator.handle_turn(req.messages, user_key)
    except UpstreamError as e:
        logger.error(f"Chat turn failed for {user_key}: {e.message}")
        raise HTTPException(status_code=e.status_code or 500, detail=f"Chat error: {e.message}")
