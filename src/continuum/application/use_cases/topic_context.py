"""Topic context (recall block) use case."""

import asyncio
import logging
import math

from continuum.config import TopicContextConfig
from continuum.domain.entities import Conversation
from continuum.domain.services import RelatedConversationSearch

logger = logging.getLogger(__name__)

RECALL_HEADER = "\n\n## Related past conversations:\n"


def estimate_tokens(text: str) -> int:
    """Rough token estimate: one token per four characters."""
    return math.ceil(len(text) / 4)


def format_recall_line(conversation: Conversation) -> str | None:
    """Format one closed conversation as a recall line.

    Returns:
        "- {title}: {summary}" (or only one of them) followed by its
        decisions, or None when the conversation has neither title nor summary.
    """
    title = (conversation.title or "").strip()
    summary = (conversation.summary or "").strip()
    if title and summary:
        line = f"- {title}: {summary}"
    elif summary:
        line = f"- {summary}"
    elif title:
        line = f"- {title}"
    else:
        return None

    if conversation.decisions:
        line += " Decisions: " + "; ".join(d.what for d in conversation.decisions) + "."
    return line


class TopicContextUseCase:
    """Builds the recall block of related past conversations for a prompt."""

    def __init__(
        self,
        related_search: RelatedConversationSearch,
        config: TopicContextConfig,
    ) -> None:
        """Initialize the use case.

        Args:
            related_search: Relevance search over closed conversations.
            config: Result limit, default budget and search timeout.
        """
        self._search = related_search
        self._config = config

    async def build(
        self,
        tenant_id: str,
        user_message: str,
        token_budget: int | None = None,
    ) -> str:
        """Build the recall block for a user message.

        Args:
            tenant_id: Tenant to search in.
            user_message: The incoming user message.
            token_budget: Maximum estimated tokens including the header.

        Returns:
            The recall block, or "" when nothing relevant fits. Never raises.
        """
        if not user_message or not user_message.strip():
            return ""
        budget = self._config.token_budget if token_budget is None else token_budget

        try:
            related = await asyncio.wait_for(
                self._search.find_related(
                    tenant_id, user_message, limit=self._config.limit
                ),
                timeout=self._config.search_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Related conversation search timed out for %s", tenant_id)
            return ""
        except Exception:
            logger.exception("Related conversation search failed for %s", tenant_id)
            return ""

        if not related:
            return ""

        tokens = estimate_tokens(RECALL_HEADER)
        entries: list[str] = []
        for conversation in related:
            line = format_recall_line(conversation)
            if line is None:
                continue
            entry = line + "\n"
            entry_tokens = estimate_tokens(entry)
            if tokens + entry_tokens > budget:
                break
            entries.append(entry)
            tokens += entry_tokens

        if not entries:
            return ""

        logger.debug(
            "Topic context for %s: %d entries, %d tokens", tenant_id, len(entries), tokens
        )
        return RECALL_HEADER + "".join(entries)
