"""Conversation chain context use case."""

import logging

from continuum.application.services.conversation_graph import (
    DEFAULT_CHAIN_DEPTH,
    ConversationGraph,
)
from continuum.domain.entities import Conversation

logger = logging.getLogger(__name__)

CHAIN_HEADER = "\n\n## Previous related conversations:\n"
UNTITLED_CONVERSATION = "Untitled conversation"


def format_chain_entry(conversation: Conversation) -> str | None:
    """Format one ancestor of the chain.

    Returns:
        A "### title" section with summary, decisions and topics, or None
        when the conversation has neither title nor summary.
    """
    if not conversation.title and not conversation.summary:
        return None

    entry = f"\n### {conversation.title or UNTITLED_CONVERSATION}\n"
    if conversation.summary:
        entry += f"{conversation.summary}\n"
    if conversation.decisions:
        entry += "Decisions made:\n"
        for decision in conversation.decisions:
            reasoning = f" ({decision.reasoning})" if decision.reasoning else ""
            entry += f"- {decision.what}{reasoning}\n"
    if conversation.tags:
        entry += f"Topics: {', '.join(conversation.tags)}\n"
    return entry


class ChainContextUseCase:
    """Renders the conversations a conversation continues from.

    Complements the recall block: recall finds related conversations by
    content, the chain follows explicit previous links.
    """

    def __init__(
        self,
        conversation_graph: ConversationGraph,
        max_depth: int = DEFAULT_CHAIN_DEPTH,
    ) -> None:
        self._graph = conversation_graph
        self._max_depth = max_depth

    async def build(self, conversation_id: str) -> str:
        """Build the chain block for a conversation.

        The conversation itself is not rendered, only its ancestors.

        Returns:
            The chain block, or "" when there is nothing to show. Never raises.
        """
        try:
            chain = await self._graph.get_chain(conversation_id, self._max_depth)
        except Exception:
            logger.exception("Failed to build chain context for %s", conversation_id)
            return ""

        entries = [
            entry
            for entry in (format_chain_entry(c) for c in chain[1:])
            if entry is not None
        ]
        if not entries:
            return ""

        logger.debug(
            "Chain context for %s: %d ancestors", conversation_id, len(entries)
        )
        return CHAIN_HEADER + "".join(entries)
