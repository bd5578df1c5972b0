"""Conversation memory stores for multi-turn support."""
import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from supabase import create_client, Client

from models.conversation import ConversationTurn, USER, ASSISTANT, normalize_role
from config import SUPABASE_URL, SUPABASE_KEY

logger = logging.getLogger(__name__)


class ConversationMemoryStore:
    """
    Keyed store of conversation transcripts.

    Subclasses implement ``_read`` and ``_write``. Appends for the same
    conversation id are serialized through a per-id lock; reads always
    return a fresh list so callers never hold a live reference.
    """

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def load(self, conversation_id: str) -> List[ConversationTurn]:
        """
        Return a point-in-time snapshot of a conversation's turns.

        Args:
            conversation_id: ID of the conversation

        Returns:
            Turns in recording order (empty for an unknown conversation)
        """
        return list(self._read(conversation_id))

    def append(self, conversation_id: str, input_text: str, output_text: str) -> None:
        """
        Record one exchange as a user turn followed by an assistant turn.

        Args:
            conversation_id: ID of the conversation
            input_text: The caller's original query
            output_text: The answer returned for it
        """
        timestamp = datetime.now(timezone.utc)
        turns = [
            ConversationTurn(role=USER, content=input_text, timestamp=timestamp),
            ConversationTurn(role=ASSISTANT, content=output_text, timestamp=timestamp),
        ]
        with self._lock_for(conversation_id):
            self._write(conversation_id, turns)
        logger.info(f"Added turn to conversation {conversation_id}")

    def _lock_for(self, conversation_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(conversation_id)
            if lock is None:
                lock = self._locks[conversation_id] = threading.Lock()
            return lock

    def _read(self, conversation_id: str) -> List[ConversationTurn]:
        raise NotImplementedError

    def _write(self, conversation_id: str, turns: List[ConversationTurn]) -> None:
        raise NotImplementedError


class InMemoryConversationStore(ConversationMemoryStore):
    """Process-lifetime store. Conversations are created on first access."""

    def __init__(self):
        super().__init__()
        self._conversations: Dict[str, List[ConversationTurn]] = {}
        logger.info("InMemoryConversationStore initialized")

    def _read(self, conversation_id: str) -> List[ConversationTurn]:
        return self._conversations.setdefault(conversation_id, [])

    def _write(self, conversation_id: str, turns: List[ConversationTurn]) -> None:
        self._conversations.setdefault(conversation_id, []).extend(turns)


class SupabaseConversationStore(ConversationMemoryStore):
    """Stores conversation turns in a Supabase PostgreSQL table."""

    def __init__(
        self,
        supabase_url: Optional[str] = SUPABASE_URL,
        supabase_key: Optional[str] = SUPABASE_KEY,
        table_name: str = "conversation_turns"
    ):
        super().__init__()
        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")

        self.table_name = table_name
        self.client: Client = create_client(supabase_url, supabase_key)
        logger.info(f"SupabaseConversationStore initialized with table: {table_name}")

    def _read(self, conversation_id: str) -> List[ConversationTurn]:
        result = (
            self.client.table(self.table_name)
            .select("*")
            .eq("conversation_id", conversation_id)
            .order("position", desc=False)
            .execute()
        )
        rows = result.data or []
        logger.debug(f"Loaded {len(rows)} turns for conversation {conversation_id}")
        return [
            ConversationTurn(
                role=normalize_role(row["role"]),
                content=row["content"],
                timestamp=_parse_timestamp(row["timestamp"]),
            )
            for row in rows
        ]

    def _write(self, conversation_id: str, turns: List[ConversationTurn]) -> None:
        count = (
            self.client.table(self.table_name)
            .select("position", count="exact")
            .eq("conversation_id", conversation_id)
            .execute()
        ).count or 0

        records = [
            {
                "conversation_id": conversation_id,
                "position": count + offset,
                "role": turn.role,
                "content": turn.content,
                "timestamp": turn.timestamp.isoformat(),
            }
            for offset, turn in enumerate(turns)
        ]
        try:
            self.client.table(self.table_name).insert(records).execute()
        except Exception as e:
            logger.error(f"Error adding turns to conversation {conversation_id}: {e}")
            raise


def create_conversation_store(backend: str = "memory") -> ConversationMemoryStore:
    """Build the memory backend named by MEMORY_BACKEND."""
    if backend == "supabase":
        return SupabaseConversationStore()
    if backend == "memory":
        return InMemoryConversationStore()
    raise ValueError(f"Unknown memory backend: {backend}")


def format_history(turns: List[ConversationTurn], max_turns: Optional[int] = None) -> str:
    """
    Render turns as "Previous Q/A" lines for prompts.

    ``max_turns`` counts exchanges, so the last ``2 * max_turns`` messages are kept.
    """
    if max_turns:
        turns = turns[-2 * max_turns:]

    lines = []
    for turn in turns:
        if turn.role == USER:
            lines.append(f"Previous Q: {turn.content}")
        elif turn.role == ASSISTANT:
            lines.append(f"Previous A: {turn.content}")
        else:
            lines.append(f"Note: {turn.content}")
    return "\n".join(lines)


def _parse_timestamp(timestamp_str: str) -> datetime:
    """
    Parse a Supabase timestamp string.

    Supabase can return more than six fractional digits, which
    ``datetime.fromisoformat`` rejects on older interpreters.
    """
    timestamp_str = timestamp_str.replace("Z", "+00:00")

    if "." in timestamp_str:
        head, tail = timestamp_str.split(".", 1)
        for sign in ("+", "-"):
            if sign in tail:
                fraction, tz = tail.split(sign, 1)
                fraction = fraction[:6].ljust(6, "0")
                timestamp_str = f"{head}.{fraction}{sign}{tz}"
                break

    return datetime.fromisoformat(timestamp_str)
