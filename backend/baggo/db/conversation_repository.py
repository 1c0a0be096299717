# backend/baggo/db/conversation_repository.py

from typing import Any, Dict, List, Optional

from baggo.core.errors import PersistenceError
from baggo.core.logger import logger
from baggo.db.sqlite_memory import SQLiteMemory
from baggo.models.conversation_models import TripSlots


class ConversationRepository:
    """
    Read/write contract the chat pipeline uses against the datastore.

    Failures are logged and swallowed: a broken datastore degrades to
    "no previous conversation" on read and to a lost write, never to a
    failed reply.
    """

    def __init__(self, memory: SQLiteMemory):
        self.memory = memory

    def load_latest(self, user_key: str) -> Optional[Dict[str, Any]]:
        try:
            conversation = self.memory.get_latest_conversation(user_key)
        except PersistenceError as e:
            logger.error(f"Could not load conversation for {user_key}: {e}")
            return None

        if not conversation:
            return None

        try:
            slots = TripSlots.model_validate(conversation.get("trip_data") or {})
        except ValueError as e:
            logger.warning(f"Discarding unreadable slots of conversation {conversation['id']}: {e}")
            slots = TripSlots()

        return {"id": conversation["id"], "slots": slots}

    def load_latest_conversation(self, user_key: str) -> Optional[Dict[str, Any]]:
        try:
            return self.memory.get_latest_conversation(user_key)
        except PersistenceError as e:
            logger.error(f"Could not load conversation for {user_key}: {e}")
            return None

    def upsert(
        self, conversation_id: str, user_key: str,
        history: List[Dict[str, Any]], slots: TripSlots
    ) -> bool:
        try:
            self.memory.upsert_conversation(
                conversation_id, user_key, history, slots.model_dump(by_alias=True)
            )
            return True
        except PersistenceError as e:
            logger.error(f"Could not save conversation {conversation_id}: {e}")
            return False

    def insert_trip(self, trip: Dict[str, Any]) -> Optional[str]:
        try:
            trip_id = self.memory.insert_trip(trip)
            logger.info(f"Trip {trip_id} saved for {trip.get('user_id')}")
            return trip_id
        except (PersistenceError, KeyError) as e:
            logger.error(f"Could not save trip {trip.get('id')}: {e}")
            return None

    def get_trip(self, trip_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.memory.get_trip(trip_id)
        except PersistenceError as e:
            logger.error(f"Could not load trip {trip_id}: {e}")
            return None

    def list_trips(self, user_key: str) -> List[Dict[str, Any]]:
        try:
            return self.memory.list_trips(user_key)
        except PersistenceError as e:
            logger.error(f"Could not list trips for {user_key}: {e}")
            return []
