"""LLM integration."""

from continuum.infrastructure.llm.client import LLMClient
from continuum.infrastructure.llm.conversation_summarizer import (
    LLMConversationSummarizer,
)
from continuum.infrastructure.llm.exceptions import (
    ClassificationError,
    LLMAuthenticationError,
    LLMError,
    LLMRateLimitError,
    SummarizationError,
)
from continuum.infrastructure.llm.topic_classifier import LLMTopicClassifier

__all__ = [
    "ClassificationError",
    "LLMAuthenticationError",
    "LLMClient",
    "LLMConversationSummarizer",
    "LLMError",
    "LLMRateLimitError",
    "LLMTopicClassifier",
    "SummarizationError",
]
