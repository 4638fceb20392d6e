"""Event handlers package."""

from continuum.application.handlers.conversation_closed_handler import (
    ConversationClosedEventHandler,
)
from continuum.application.handlers.presence_check_handler import (
    PresenceCheckEventHandler,
)
from continuum.application.handlers.response_completed_handler import (
    ResponseCompletedEventHandler,
)

__all__ = [
    "ConversationClosedEventHandler",
    "PresenceCheckEventHandler",
    "ResponseCompletedEventHandler",
]
