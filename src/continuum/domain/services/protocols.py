"""Domain service protocols."""

from typing import Protocol

from continuum.domain.entities import (
    ClassificationResult,
    Conversation,
    ConversationMetadata,
    ConversationSummary,
    Message,
    PendingMessage,
)


class TopicClassifier(Protocol):
    """Topic classification abstraction.

    Judges whether a window of recent messages continues the topic of
    the active conversation.
    """

    async def classify(
        self,
        messages: list[Message],
        metadata: ConversationMetadata,
    ) -> ClassificationResult:
        """Classify messages against the active conversation.

        Args:
            messages: Recent messages (oldest first).
            metadata: Title, tags and summary of the active conversation.

        Returns:
            Classification result.

        Raises:
            Exception: Any failure; callers treat it as "no decision".
        """
        ...


class RelatedConversationSearch(Protocol):
    """Relevance search over closed conversations."""

    async def find_related(
        self,
        tenant_id: str,
        query_text: str,
        limit: int = 5,
    ) -> list[Conversation]:
        """Find closed conversations relevant to the query.

        Args:
            tenant_id: Tenant to search in.
            query_text: Free text (usually the new user message).
            limit: Maximum number of results.

        Returns:
            Conversations ranked best match first.
        """
        ...


class ConversationSummarizer(Protocol):
    """Summarizes a finished conversation."""

    async def summarize(self, messages: list[Message]) -> ConversationSummary:
        """Summarize messages of one conversation.

        Args:
            messages: Messages of the conversation (oldest first).

        Returns:
            Title, summary, tags and decisions.
        """
        ...


class ProactiveMessageSink(Protocol):
    """Delivery target for proactive messages (channel-specific, external)."""

    async def deliver(self, tenant_id: str, pending: PendingMessage) -> None:
        """Deliver one proactive message.

        Args:
            tenant_id: Tenant the message belongs to.
            pending: The message to deliver.
        """
        ...
