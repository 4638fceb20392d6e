"""Use cases."""

from continuum.application.use_cases.boundary_decision import BoundaryDecisionUseCase
from continuum.application.use_cases.chain_context import ChainContextUseCase
from continuum.application.use_cases.engagement import EngagementUseCase
from continuum.application.use_cases.summarize_conversation import (
    SummarizeConversationUseCase,
)
from continuum.application.use_cases.topic_context import TopicContextUseCase

__all__ = [
    "BoundaryDecisionUseCase",
    "ChainContextUseCase",
    "EngagementUseCase",
    "SummarizeConversationUseCase",
    "TopicContextUseCase",
]
