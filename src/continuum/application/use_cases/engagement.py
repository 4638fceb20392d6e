"""Proactive engagement use case."""

import logging
import random
from datetime import datetime, timedelta, timezone

from continuum.application.services.topic_weights import TopicWeightMaintenance
from continuum.config import PresenceConfig
from continuum.domain.entities import PendingMessage
from continuum.domain.repositories import PresenceRepository
from continuum.domain.services import (
    ProactiveMessageSink,
    format_initiation,
    select_topic,
    should_initiate,
)

logger = logging.getLogger(__name__)


class EngagementUseCase:
    """Use case for proactive engagement.

    Decides per tenant whether to reach out unprompted, queues the
    outreach message and hands due messages to the delivery sink.
    """

    def __init__(
        self,
        presence_repository: PresenceRepository,
        topic_weights: TopicWeightMaintenance,
        message_sink: ProactiveMessageSink,
        config: PresenceConfig,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the use case.

        Args:
            presence_repository: Repository for presence state.
            topic_weights: Service that refreshes topic weights.
            message_sink: Delivery target for proactive messages.
            config: Idle and salience thresholds.
            rng: Random source for topic and template choice.
        """
        self._presence = presence_repository
        self._topic_weights = topic_weights
        self._sink = message_sink
        self._config = config
        self._rng = rng or random.Random()

    async def execute(self, now: datetime | None = None) -> None:
        """Evaluate every tenant with presence state and deliver due messages.

        A failing tenant is logged and skipped.
        """
        now = now or datetime.now(timezone.utc)
        tenant_ids = await self._presence.list_tenant_ids()
        logger.debug("Presence check for %d tenants", len(tenant_ids))

        for tenant_id in tenant_ids:
            try:
                await self.evaluate_tenant(tenant_id, now)
                await self.deliver_due(tenant_id, now)
            except Exception:
                logger.exception("Presence check failed for tenant %s", tenant_id)

    async def evaluate_tenant(
        self,
        tenant_id: str,
        now: datetime | None = None,
    ) -> PendingMessage | None:
        """Queue an outreach message if the tenant should be contacted.

        Args:
            tenant_id: Tenant to evaluate.
            now: Reference time.

        Returns:
            The queued message, or None.
        """
        now = now or datetime.now(timezone.utc)
        state = await self._presence.find_by_tenant(tenant_id)
        if state is None:
            return None

        topics = await self._topic_weights.refresh(tenant_id, now)
        if not should_initiate(
            state,
            topics,
            now=now,
            idle_threshold=timedelta(seconds=self._config.idle_threshold_seconds),
            salience_threshold=self._config.salience_threshold,
        ):
            return None

        topic = select_topic(topics, self._rng)
        if topic is None:
            return None

        pending = PendingMessage(
            message=format_initiation(topic, self._rng),
            priority=topic.salience,
            scheduled_for=now,
        )
        if not await self._presence.queue_message(tenant_id, pending):
            return None
        # Outreach counts as activity so the next tick does not re-initiate
        await self._presence.record_activity(tenant_id, now)

        logger.info(
            "Queued proactive message for %s about %r (priority=%.2f)",
            tenant_id,
            topic.name,
            pending.priority,
        )
        return pending

    async def deliver_due(
        self,
        tenant_id: str,
        now: datetime | None = None,
    ) -> list[PendingMessage]:
        """Deliver queued messages whose time has come.

        Only delivered messages leave the queue. When the sink fails, the
        failing message and everything after it stay queued for the next
        tick and the error propagates.

        Returns:
            Delivered messages, highest priority first.
        """
        now = now or datetime.now(timezone.utc)
        due = await self._presence.find_due(tenant_id, now)
        delivered: list[PendingMessage] = []
        try:
            for pending in due:
                await self._sink.deliver(tenant_id, pending)
                delivered.append(pending)
        finally:
            await self._presence.remove_pending(tenant_id, delivered)
        if delivered:
            logger.info(
                "Delivered %d proactive messages to %s", len(delivered), tenant_id
            )
        return delivered
