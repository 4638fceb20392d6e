"""Domain entities."""

from continuum.domain.entities.boundary import BoundaryAction, BoundaryDecision
from continuum.domain.entities.classification import (
    ClassificationResult,
    ConversationMetadata,
    ConversationSummary,
)
from continuum.domain.entities.conversation import (
    Conversation,
    ConversationClosure,
    ConversationRelation,
    ConversationStatus,
    Decision,
    RelationType,
)
from continuum.domain.entities.event import Event, EventType
from continuum.domain.entities.presence import PendingMessage, PresenceState
from continuum.domain.entities.session import Message, MessageRole, Session
from continuum.domain.entities.topic import Topic

__all__ = [
    "BoundaryAction",
    "BoundaryDecision",
    "ClassificationResult",
    "Conversation",
    "ConversationClosure",
    "ConversationMetadata",
    "ConversationRelation",
    "ConversationStatus",
    "ConversationSummary",
    "Decision",
    "Event",
    "EventType",
    "Message",
    "MessageRole",
    "PendingMessage",
    "PresenceState",
    "RelationType",
    "Session",
    "Topic",
]
