"""CONVERSATION_CLOSED event handler."""

import logging

from continuum.application.use_cases.summarize_conversation import (
    SummarizeConversationUseCase,
)
from continuum.domain.entities import Event, EventType
from continuum.infrastructure.events.dispatcher import event_handler

logger = logging.getLogger(__name__)


class ConversationClosedEventHandler:
    """Handler for CONVERSATION_CLOSED events.

    Summarizes the closed conversation.
    """

    def __init__(self, summarize_use_case: SummarizeConversationUseCase) -> None:
        """Initialize the handler.

        Args:
            summarize_use_case: Use case for conversation summaries.
        """
        self._summarize_use_case = summarize_use_case

    @event_handler(EventType.CONVERSATION_CLOSED)
    async def handle(self, event: Event) -> None:
        """Handle CONVERSATION_CLOSED event.

        Args:
            event: Event with "conversation_id" in its payload.
        """
        conversation_id = event.payload.get("conversation_id")
        if not conversation_id:
            logger.warning("CONVERSATION_CLOSED without conversation_id")
            return

        try:
            await self._summarize_use_case.execute(conversation_id)
        except Exception:
            logger.exception("Error summarizing conversation %s", conversation_id)
