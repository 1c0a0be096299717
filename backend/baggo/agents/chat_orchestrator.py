# backend/baggo/agents/chat_orchestrator.py

from typing import List, Optional
from uuid import uuid4

from baggo.agents.dialogue_state import DEFAULT_VOCABULARY, SlotVocabulary, latest_user_utterance, update_slots
from baggo.agents.llm_agent import FALLBACK_REPLY, LLMAgent
from baggo.agents.tool_dispatcher import ToolDispatcher
from baggo.core.logger import logger
from baggo.db.conversation_repository import ConversationRepository
from baggo.models.conversation_models import ChatMessage, ChatResponse


class ChatOrchestrator:
    """
    One chat turn: reload state -> update slots -> language model ->
    tool / itinerary confirmation -> persist -> reply.

    Nothing is kept in memory between turns. Only language-model failures
    (UpstreamError) escape; enrichment and persistence failures are absorbed
    by the dispatcher and the repository.
    """

    def __init__(
        self,
        llm_agent: LLMAgent,
        dispatcher: ToolDispatcher,
        repository: ConversationRepository,
        vocab: SlotVocabulary = DEFAULT_VOCABULARY,
    ):
        self.llm_agent = llm_agent
        self.dispatcher = dispatcher
        self.repository = repository
        self.vocab = vocab

    async def handle_turn(self, messages: List[ChatMessage], user_key: str) -> ChatResponse:
        history = [{"role": m.role, "content": m.content} for m in messages]

        previous = self.repository.load_latest(user_key)
        conversation_id = previous["id"] if previous else str(uuid4())
        slots = update_slots(history, previous["slots"] if previous else None, self.vocab)

        reply = await self.llm_agent.generate_chat_turn(history, slots, self.dispatcher.tool_schemas())
        content = reply.content

        if reply.tool_name:
            result = self.dispatcher.dispatch(reply.tool_name, reply.tool_arguments, slots)
            content += result.text
            if result.name == "placeSearch" and result.names:
                slots = slots.model_copy(update={"activities": result.names})

        trip_id: Optional[str] = None
        if self.dispatcher.is_confirmation(latest_user_utterance(history), slots):
            confirmation = self.dispatcher.confirm_itinerary(slots, user_key)
            content += "\n\n" + confirmation.text
            slots = slots.model_copy(update={"activities": confirmation.activities})
            trip_id = confirmation.trip_id

        content = content.strip() or FALLBACK_REPLY

        history.append({"role": "assistant", "content": content})
        self.repository.upsert(conversation_id, user_key, history, slots)
        logger.info(f"Turn handled for {user_key} in conversation {conversation_id}")

        return ChatResponse(id=str(uuid4()), content=content, trip_id=trip_id, trip_data=slots)
