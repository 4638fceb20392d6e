"""Proactive message sink that only logs."""

import logging

from continuum.domain.entities import PendingMessage

logger = logging.getLogger(__name__)


class LoggingMessageSink:
    """ProactiveMessageSink that writes messages to the log.

    Used when no channel adapter is wired in.
    """

    async def deliver(self, tenant_id: str, pending: PendingMessage) -> None:
        logger.info(
            "Proactive message for %s (priority=%.2f): %s",
            tenant_id,
            pending.priority,
            pending.message,
        )
