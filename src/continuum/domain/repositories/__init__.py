"""Domain repositories."""

from continuum.domain.repositories.conversation_repository import (
    ConversationRepository,
)
from continuum.domain.repositories.presence_repository import PresenceRepository
from continuum.domain.repositories.session_repository import SessionRepository
from continuum.domain.repositories.topic_repository import TopicRepository

__all__ = [
    "ConversationRepository",
    "PresenceRepository",
    "SessionRepository",
    "TopicRepository",
]
