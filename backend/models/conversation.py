"""Conversation data models."""
from dataclasses import dataclass, field
from datetime import datetime, timezone

USER = "user"
ASSISTANT = "assistant"
SYSTEM = "system"

ROLES = (USER, ASSISTANT, SYSTEM)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ConversationTurn:
    """A single recorded message in a conversation. Immutable once recorded."""
    role: str
    content: str
    timestamp: datetime = field(default_factory=_utcnow)


def normalize_role(role: str) -> str:
    """Map any stored role label onto user, assistant or system."""
    value = (role or "").strip().lower()
    if value in (USER, "human"):
        return USER
    if value in (ASSISTANT, "ai"):
        return ASSISTANT
    return SYSTEM
