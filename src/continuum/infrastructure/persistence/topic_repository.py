"""SQLite implementation of TopicRepository."""

import json
import logging
import uuid
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from continuum.domain.entities import Topic
from continuum.domain.entities.topic import (
    DEFAULT_PERSONAL_WEIGHT,
    FREQUENCY_ACTIVATION_SHARE,
    INITIAL_FREQUENCY_WEIGHT,
    PERSONAL_ACTIVATION_SHARE,
    clamp_weight,
)
from continuum.infrastructure.persistence.datetime_utils import normalize_to_utc
from continuum.infrastructure.persistence.models import TopicModel

logger = logging.getLogger(__name__)


class SQLiteTopicRepository:
    """SQLite 版 TopicRepository 実装

    (tenant_id, name) のユニーク制約でトピックの重複を防ぐ。
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
        """
        self._session_factory = session_factory

    async def upsert(
        self,
        name: str,
        category: str,
        tenant_id: str,
        personal_weight: float | None = None,
        metadata: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> Topic:
        """トピックを登録または言及を記録する

        frequency_weight は変更しない（TopicWeightMaintenance が更新する）。
        category は初回登録時の値を維持し、明示的な頻度重みの固定は解除する。
        同時挿入でユニーク制約に違反した場合は既存レコードの更新として再試行する。
        """
        now = now or datetime.now(timezone.utc)
        try:
            return await self._upsert_once(
                name, category, tenant_id, personal_weight, metadata, now
            )
        except IntegrityError:
            logger.debug("Concurrent insert of topic %r, retrying as update", name)
            return await self._upsert_once(
                name, category, tenant_id, personal_weight, metadata, now
            )

    async def _upsert_once(
        self,
        name: str,
        category: str,
        tenant_id: str,
        personal_weight: float | None,
        metadata: dict[str, Any] | None,
        now: datetime,
    ) -> Topic:
        async with self._session_factory() as session:
            model = await self._get_by_name(session, tenant_id, name)
            if model is not None:
                model.mention_count += 1
                model.last_mentioned_at = now
                model.frequency_pinned = False
                if personal_weight is not None:
                    model.personal_weight = clamp_weight(personal_weight)
                if metadata is not None:
                    model.extra = json.dumps(metadata, ensure_ascii=False)
            else:
                model = TopicModel(
                    topic_id=str(uuid.uuid4()),
                    tenant_id=tenant_id,
                    name=name,
                    category=category,
                    personal_weight=clamp_weight(
                        personal_weight
                        if personal_weight is not None
                        else DEFAULT_PERSONAL_WEIGHT
                    ),
                    frequency_weight=INITIAL_FREQUENCY_WEIGHT,
                    mention_count=1,
                    last_mentioned_at=now,
                    extra=json.dumps(metadata or {}, ensure_ascii=False),
                )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return self._to_entity(model)

    async def get_active(self, tenant_id: str, threshold: float = 0.3) -> list[Topic]:
        """personal*0.6 + frequency*0.4 が閾値を超えるトピックを取得する

        スコアの高い順に返す。
        """
        score = (
            TopicModel.personal_weight * PERSONAL_ACTIVATION_SHARE
            + TopicModel.frequency_weight * FREQUENCY_ACTIVATION_SHARE
        )
        async with self._session_factory() as session:
            statement = (
                select(TopicModel)
                .where(TopicModel.tenant_id == tenant_id, score > threshold)
                .order_by(score.desc())
            )
            result = await session.exec(statement)
            return [self._to_entity(model) for model in result.all()]

    async def find_by_name(self, tenant_id: str, name: str) -> Topic | None:
        """名前でトピックを検索する"""
        async with self._session_factory() as session:
            model = await self._get_by_name(session, tenant_id, name)
            if model is None:
                return None
            return self._to_entity(model)

    async def find_by_tenant(self, tenant_id: str) -> list[Topic]:
        """テナントの全トピックを取得する（名前順）"""
        async with self._session_factory() as session:
            result = await session.exec(
                select(TopicModel)
                .where(TopicModel.tenant_id == tenant_id)
                .order_by(TopicModel.name)  # type: ignore[arg-type]
            )
            return [self._to_entity(model) for model in result.all()]

    async def update_weights(
        self,
        topic_id: str,
        personal_weight: float | None = None,
        frequency_weight: float | None = None,
    ) -> Topic | None:
        """重みを更新する（指定されたもののみ）

        frequency_weight を指定した場合は次の言及まで固定され、
        TopicWeightMaintenance による再計算の対象外になる。
        """
        async with self._session_factory() as session:
            result = await session.exec(
                select(TopicModel).where(TopicModel.topic_id == topic_id)
            )
            model = result.first()
            if model is None:
                return None
            if personal_weight is not None:
                model.personal_weight = clamp_weight(personal_weight)
            if frequency_weight is not None:
                model.frequency_weight = clamp_weight(frequency_weight)
                model.frequency_pinned = True
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return self._to_entity(model)

    async def store_frequency_weight(
        self, topic_id: str, weight: float
    ) -> Topic | None:
        """再計算した頻度重みを保存する（固定状態は変更しない）"""
        async with self._session_factory() as session:
            result = await session.exec(
                select(TopicModel).where(TopicModel.topic_id == topic_id)
            )
            model = result.first()
            if model is None:
                return None
            model.frequency_weight = clamp_weight(weight)
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return self._to_entity(model)

    async def _get_by_name(
        self, session: AsyncSession, tenant_id: str, name: str
    ) -> TopicModel | None:
        result = await session.exec(
            select(TopicModel).where(
                TopicModel.tenant_id == tenant_id,
                TopicModel.name == name,
            )
        )
        return result.first()

    def _to_entity(self, model: TopicModel) -> Topic:
        """モデルをエンティティに変換する"""
        return Topic(
            id=model.topic_id,
            tenant_id=model.tenant_id,
            name=model.name,
            category=model.category,
            personal_weight=model.personal_weight,
            frequency_weight=model.frequency_weight,
            mention_count=model.mention_count,
            last_mentioned_at=normalize_to_utc(model.last_mentioned_at),
            metadata=json.loads(model.extra),
            frequency_pinned=model.frequency_pinned,
        )
