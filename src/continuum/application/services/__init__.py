"""Application services."""

from continuum.application.services.conversation_graph import ConversationGraph
from continuum.application.services.topic_weights import TopicWeightMaintenance

__all__ = ["ConversationGraph", "TopicWeightMaintenance"]
