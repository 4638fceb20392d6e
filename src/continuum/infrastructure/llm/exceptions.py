"""LLM-related exceptions."""


class LLMError(Exception):
    """Base exception for LLM-related errors."""


class LLMRateLimitError(LLMError):
    """Rate limit exceeded error."""


class LLMAuthenticationError(LLMError):
    """Authentication error (invalid API key, etc.)."""


class ClassificationError(LLMError):
    """Topic classification response could not be interpreted."""


class SummarizationError(LLMError):
    """Conversation summary response could not be interpreted."""
