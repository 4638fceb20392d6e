"""Event entity for event-driven architecture."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class EventType(Enum):
    """Event types for the event-driven system."""

    RESPONSE_COMPLETED = "response_completed"
    CONVERSATION_CLOSED = "conversation_closed"
    PRESENCE_CHECK = "presence_check"


@dataclass(frozen=True)
class Event:
    """Domain event.

    Attributes:
        type: Event type.
        payload: Event-specific data.
        created_at: Event creation time.
    """

    type: EventType
    payload: dict[str, Any]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get_identity_key(self) -> str:
        """Get identity key for duplicate detection.

        Boundary decisions are keyed per session so that at most one
        decision per session is pending or running at a time.

        Returns:
            Unique key based on event type and payload.
        """
        if self.type == EventType.RESPONSE_COMPLETED:
            session_id = self.payload.get("session_id", "")
            return f"response_completed:{session_id}"
        elif self.type == EventType.CONVERSATION_CLOSED:
            conversation_id = self.payload.get("conversation_id", "")
            return f"conversation_closed:{conversation_id}"
        elif self.type == EventType.PRESENCE_CHECK:
            return "presence_check:all"
        return f"{self.type.value}:unknown"
