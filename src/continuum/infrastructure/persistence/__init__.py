"""Persistence infrastructure."""

from continuum.infrastructure.persistence.conversation_repository import (
    SQLiteConversationRepository,
)
from continuum.infrastructure.persistence.database import DatabaseManager
from continuum.infrastructure.persistence.exceptions import (
    DatabaseError,
    PersistenceError,
)
from continuum.infrastructure.persistence.models import (
    ConversationModel,
    MessageModel,
    PresenceStateModel,
    SessionModel,
    TopicModel,
)
from continuum.infrastructure.persistence.presence_repository import (
    SQLitePresenceRepository,
)
from continuum.infrastructure.persistence.session_repository import (
    SQLiteSessionRepository,
)
from continuum.infrastructure.persistence.topic_repository import (
    SQLiteTopicRepository,
)

__all__ = [
    "ConversationModel",
    "DatabaseError",
    "DatabaseManager",
    "MessageModel",
    "PersistenceError",
    "PresenceStateModel",
    "SQLiteConversationRepository",
    "SQLitePresenceRepository",
    "SQLiteSessionRepository",
    "SQLiteTopicRepository",
    "SessionModel",
    "TopicModel",
]
