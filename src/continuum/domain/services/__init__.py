"""Domain services."""

from continuum.domain.services.intent import (
    NEW_CONVERSATION_PATTERNS,
    detect_new_conversation_intent,
)
from continuum.domain.services.presence import (
    INITIATION_TEMPLATES,
    format_initiation,
    has_active_topics,
    is_in_quiet_hours,
    select_topic,
    should_initiate,
)
from continuum.domain.services.protocols import (
    ConversationSummarizer,
    ProactiveMessageSink,
    RelatedConversationSearch,
    TopicClassifier,
)

__all__ = [
    "INITIATION_TEMPLATES",
    "NEW_CONVERSATION_PATTERNS",
    "ConversationSummarizer",
    "ProactiveMessageSink",
    "RelatedConversationSearch",
    "TopicClassifier",
    "detect_new_conversation_intent",
    "format_initiation",
    "has_active_topics",
    "is_in_quiet_hours",
    "select_topic",
    "should_initiate",
]
