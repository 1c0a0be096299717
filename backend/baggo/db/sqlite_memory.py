# backend/baggo/db/sqlite_memory.py

import sqlite3
import json
import time
from pathlib import Path
from typing import Optional, Dict, Any, List

from baggo.core.config_loader import settings
from baggo.core.errors import PersistenceError
from baggo.utils.time_utils import local_now_str


# Retry configuration
MAX_RETRIES = 5
RETRY_DELAY = 0.1  # 100ms


class SQLiteMemory:
    def __init__(self, db_path: Optional[str] = None):
        path = Path(db_path or settings.DB_PATH)
        path.parent.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(
            str(path),
            check_same_thread=False,
            timeout=30.0
        )
        self.conn.row_factory = sqlite3.Row
        # WAL lets readers proceed while a turn is being upserted
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA synchronous=NORMAL")
        self.conn.execute("PRAGMA busy_timeout=30000")
        self._init_tables()

    def _execute_with_retry(self, operation, *args, **kwargs):
        """
        Run a read or write, retrying while the database is locked.
        Other errors, including stored rows that do not decode, become PersistenceError.
        """
        for attempt in range(MAX_RETRIES):
            try:
                return operation(*args, **kwargs)
            except sqlite3.OperationalError as e:
                if "locked" in str(e).lower() and attempt < MAX_RETRIES - 1:
                    time.sleep(RETRY_DELAY * (attempt + 1))
                    continue
                raise PersistenceError(str(e)) from e
            except sqlite3.Error as e:
                raise PersistenceError(str(e)) from e
            except (ValueError, TypeError) as e:
                # stored JSON columns that no longer decode
                raise PersistenceError(f"Unreadable stored row: {e}") from e

    # ----------------------------------------------------------------------
    # CREATE TABLES
    # ----------------------------------------------------------------------
    def _init_tables(self):
        cur = self.conn.cursor()

        # CONVERSATIONS (history + slot snapshot, one row per conversation)
        cur.execute("""
        CREATE TABLE IF NOT EXISTS conversations (
            id TEXT PRIMARY KEY,
            user_id TEXT,
            history_json TEXT,
            trip_data_json TEXT,
            created_at TIMESTAMP,
            updated_at TIMESTAMP
        );
        """)

        # CONFIRMED TRIPS
        cur.execute("""
        CREATE TABLE IF NOT EXISTS trips (
            id TEXT PRIMARY KEY,
            user_id TEXT,
            departure TEXT,
            destination TEXT,
            start_date TEXT,
            pet_type TEXT,
            method TEXT,
            status TEXT,
            itinerary_json TEXT,
            tips_json TEXT,
            created_at TIMESTAMP
        );
        """)

        cur.execute("CREATE INDEX IF NOT EXISTS idx_conv_user ON conversations(user_id, updated_at);")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_trip_user ON trips(user_id);")

        self.conn.commit()

    # ----------------------------------------------------------------------
    # CONVERSATIONS
    # ----------------------------------------------------------------------
    def get_latest_conversation(self, user_id: str) -> Optional[Dict[str, Any]]:
        def _get_latest():
            cur = self.conn.cursor()
            cur.execute("""
            SELECT * FROM conversations
            WHERE user_id = ?
            ORDER BY updated_at DESC, rowid DESC
            LIMIT 1
            """, (user_id,))
            row = cur.fetchone()
            return self._conversation_from_row(row) if row else None

        return self._execute_with_retry(_get_latest)

    def upsert_conversation(
        self, conversation_id: str, user_id: str,
        history: List[Dict[str, Any]], trip_data: Dict[str, Any]
    ):
        def _upsert():
            now = local_now_str()
            cur = self.conn.cursor()
            cur.execute("""
            INSERT INTO conversations (id, user_id, history_json, trip_data_json, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                history_json = excluded.history_json,
                trip_data_json = excluded.trip_data_json,
                updated_at = excluded.updated_at
            """, (
                conversation_id, user_id,
                json.dumps(history), json.dumps(trip_data),
                now, now,
            ))
            self.conn.commit()

        self._execute_with_retry(_upsert)

    @staticmethod
    def _conversation_from_row(row: sqlite3.Row) -> Dict[str, Any]:
        return {
            "id": row["id"],
            "user_id": row["user_id"],
            "history": json.loads(row["history_json"] or "[]"),
            "trip_data": json.loads(row["trip_data_json"] or "{}"),
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }

    # ----------------------------------------------------------------------
    # TRIPS
    # ----------------------------------------------------------------------
    def insert_trip(self, trip: Dict[str, Any]) -> str:
        def _insert():
            cur = self.conn.cursor()
            cur.execute("""
            INSERT INTO trips (id, user_id, departure, destination, start_date, pet_type,
                               method, status, itinerary_json, tips_json, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                trip["id"],
                trip["user_id"],
                trip.get("departure", ""),
                trip.get("destination", ""),
                trip["dates"]["start"],
                trip["travelers"]["pet"]["type"],
                trip.get("method", "flight"),
                trip.get("status", "planned"),
                json.dumps(trip.get("itinerary", {"steps": []})),
                json.dumps(trip.get("tips", {"general": ""})),
                trip.get("created_at") or local_now_str(),
            ))
            self.conn.commit()
            return trip["id"]

        return self._execute_with_retry(_insert)

    def get_trip(self, trip_id: str) -> Optional[Dict[str, Any]]:
        def _get():
            cur = self.conn.cursor()
            cur.execute("SELECT * FROM trips WHERE id = ?", (trip_id,))
            row = cur.fetchone()
            return self._trip_from_row(row) if row else None

        return self._execute_with_retry(_get)

    def list_trips(self, user_id: str) -> List[Dict[str, Any]]:
        def _list():
            cur = self.conn.cursor()
            cur.execute("""
            SELECT * FROM trips
            WHERE user_id = ?
            ORDER BY created_at DESC, rowid DESC
            """, (user_id,))
            return [self._trip_from_row(r) for r in cur.fetchall()]

        return self._execute_with_retry(_list)

    @staticmethod
    def _trip_from_row(row: sqlite3.Row) -> Dict[str, Any]:
        return {
            "id": row["id"],
            "user_id": row["user_id"],
            "departure": row["departure"],
            "destination": row["destination"],
            "dates": {"start": row["start_date"]},
            "travelers": {"pet": {"type": row["pet_type"]}},
            "method": row["method"],
            "status": row["status"],
            "itinerary": json.loads(row["itinerary_json"] or '{"steps": []}'),
            "tips": json.loads(row["tips_json"] or '{"general": ""}'),
            "created_at": row["created_at"],
        }
