"""PRESENCE_CHECK event handler."""

import logging

from continuum.application.use_cases.engagement import EngagementUseCase
from continuum.domain.entities import Event, EventType
from continuum.infrastructure.events.dispatcher import event_handler

logger = logging.getLogger(__name__)


class PresenceCheckEventHandler:
    """Handler for PRESENCE_CHECK events.

    Triggers the engagement sweep over all tenants.
    """

    def __init__(self, engagement_use_case: EngagementUseCase) -> None:
        """Initialize the handler.

        Args:
            engagement_use_case: Use case for proactive engagement.
        """
        self._engagement_use_case = engagement_use_case

    @event_handler(EventType.PRESENCE_CHECK)
    async def handle(self, event: Event) -> None:
        """Handle PRESENCE_CHECK event.

        Args:
            event: The PRESENCE_CHECK event.
        """
        logger.debug("Handling PRESENCE_CHECK event")

        try:
            await self._engagement_use_case.execute(event.created_at)
        except Exception:
            logger.exception("Error in presence check")
