# backend/baggo/api/routes_conversation.py

from fastapi import APIRouter, HTTPException, Header
from typing import Optional

from baggo.core.security import user_key_from_header
from baggo.db.conversation_repository import ConversationRepository
from baggo.db.sqlite_memory import SQLiteMemory
from baggo.models.conversation_models import ConversationOut

router = APIRouter(prefix="/conversations", tags=["conversations"])
db = SQLiteMemory()
repository = ConversationRepository(db)


@router.get("/latest", response_model=ConversationOut)
def latest_conversation(authorization: Optional[str] = Header(None)):
    user_key = user_key_from_header(authorization)
    conversation = repository.load_latest_conversation(user_key)
    if not conversation:
        raise HTTPException(status_code=404, detail="No conversation yet")
    return conversation
