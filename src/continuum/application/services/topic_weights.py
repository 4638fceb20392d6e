"""Frequency weight maintenance for topics."""

import logging
import math
from datetime import datetime, timezone

from continuum.config import TopicConfig
from continuum.domain.entities import Topic
from continuum.domain.entities.topic import compute_frequency_weight
from continuum.domain.repositories import TopicRepository

logger = logging.getLogger(__name__)


class TopicWeightMaintenance:
    """Recomputes and stores topic frequency weights.

    upsert only records mentions; this service turns mention count and
    recency into frequency_weight. Topics whose frequency weight was set
    explicitly keep it until their next mention.
    """

    def __init__(self, topic_repository: TopicRepository, config: TopicConfig) -> None:
        """Initialize the service.

        Args:
            topic_repository: Repository for topics.
            config: Half-life and saturation settings.
        """
        self._topics = topic_repository
        self._config = config

    async def refresh(
        self,
        tenant_id: str,
        now: datetime | None = None,
    ) -> list[Topic]:
        """Recompute frequency weights for all topics of a tenant.

        Args:
            tenant_id: Tenant whose topics are refreshed.
            now: Reference time (defaults to now).

        Returns:
            The tenant's topics with current weights.
        """
        now = now or datetime.now(timezone.utc)
        refreshed: list[Topic] = []
        for topic in await self._topics.find_by_tenant(tenant_id):
            if topic.frequency_pinned:
                refreshed.append(topic)
                continue
            weight = compute_frequency_weight(
                mention_count=topic.mention_count,
                last_mentioned_at=topic.last_mentioned_at,
                now=now,
                half_life_seconds=self._config.frequency_half_life_seconds,
                mention_saturation=self._config.mention_saturation,
            )
            if math.isclose(weight, topic.frequency_weight, abs_tol=1e-9):
                refreshed.append(topic)
                continue
            updated = await self._topics.store_frequency_weight(topic.id, weight)
            refreshed.append(updated or topic)

        logger.debug("Refreshed %d topic weights for %s", len(refreshed), tenant_id)
        return refreshed
