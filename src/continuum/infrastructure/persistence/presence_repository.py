"""SQLite implementation of PresenceRepository."""

import json
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from continuum.domain.entities import PendingMessage, PresenceState
from continuum.infrastructure.persistence.datetime_utils import (
    normalize_to_utc,
    parse_stored_datetime,
)
from continuum.infrastructure.persistence.models import PresenceStateModel

logger = logging.getLogger(__name__)


class SQLitePresenceRepository:
    """SQLite 版 PresenceRepository 実装

    送信待ちキューは JSON 配列として1カラムに保存する。
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

    async def find_by_tenant(self, tenant_id: str) -> PresenceState | None:
        """テナントのプレゼンス状態を取得する"""
        async with self._session_factory() as session:
            model = await self._get_model(session, tenant_id)
            if model is None:
                return None
            return self._to_entity(model)

    async def record_activity(
        self,
        tenant_id: str,
        at: datetime | None = None,
    ) -> PresenceState:
        """アクティビティを記録する（状態がなければ作成）"""
        at = at or datetime.now(timezone.utc)

        def apply(model: PresenceStateModel) -> None:
            model.last_activity_at = at

        return await self._write(tenant_id, apply, at)

    async def set_quiet_hours(
        self,
        tenant_id: str,
        start: str,
        end: str,
        timezone: str,
    ) -> PresenceState:
        """クワイエットアワーを設定する（状態がなければ作成）"""

        def apply(model: PresenceStateModel) -> None:
            model.quiet_hours_start = start
            model.quiet_hours_end = end
            model.timezone = timezone

        return await self._write(tenant_id, apply, None)

    async def queue_message(self, tenant_id: str, pending: PendingMessage) -> bool:
        """送信待ちメッセージを追加する

        Returns:
            追加できた場合 True（状態が存在しない場合は False）
        """
        async with self._session_factory() as session:
            model = await self._get_model(session, tenant_id)
            if model is None:
                return False
            queue = json.loads(model.pending_queue)
            queue.append(self._pending_to_dict(pending))
            model.pending_queue = json.dumps(queue, ensure_ascii=False)
            model.updated_at = datetime.now(timezone.utc)
            session.add(model)
            await session.commit()
            return True

    async def find_due(self, tenant_id: str, now: datetime) -> list[PendingMessage]:
        """送信予定日時を過ぎたメッセージを取得する（優先度の高い順、キューは変更しない）"""
        state = await self.find_by_tenant(tenant_id)
        if state is None:
            return []
        due = [pending for pending in state.pending_queue if pending.is_due(now)]
        return sorted(due, key=lambda pending: pending.priority, reverse=True)

    async def remove_pending(
        self, tenant_id: str, delivered: list[PendingMessage]
    ) -> None:
        """送信済みメッセージをキューから取り除く

        同一内容のメッセージが複数ある場合は指定された件数だけ取り除く。
        """
        if not delivered:
            return
        async with self._session_factory() as session:
            model = await self._get_model(session, tenant_id)
            if model is None:
                return
            queue = [
                self._pending_from_dict(item) for item in json.loads(model.pending_queue)
            ]
            for pending in delivered:
                if pending in queue:
                    queue.remove(pending)
            model.pending_queue = json.dumps(
                [self._pending_to_dict(pending) for pending in queue],
                ensure_ascii=False,
            )
            model.updated_at = datetime.now(timezone.utc)
            session.add(model)
            await session.commit()

    async def list_tenant_ids(self) -> list[str]:
        """プレゼンス状態を持つテナント ID を取得する"""
        async with self._session_factory() as session:
            result = await session.exec(
                select(PresenceStateModel.tenant_id).order_by(PresenceStateModel.tenant_id)  # type: ignore[arg-type]
            )
            return list(result.all())

    async def _write(
        self,
        tenant_id: str,
        apply: Callable[[PresenceStateModel], None],
        created_at: datetime | None,
    ) -> PresenceState:
        """状態を取得または作成して更新する

        同時作成でユニーク制約に違反した場合は一度だけ再試行する。
        """
        try:
            return await self._write_once(tenant_id, apply, created_at)
        except IntegrityError:
            logger.debug("Concurrent creation of presence state for %s", tenant_id)
            return await self._write_once(tenant_id, apply, created_at)

    async def _write_once(
        self,
        tenant_id: str,
        apply: Callable[[PresenceStateModel], None],
        created_at: datetime | None,
    ) -> PresenceState:
        now = datetime.now(timezone.utc)
        async with self._session_factory() as session:
            model = await self._get_model(session, tenant_id)
            if model is None:
                model = PresenceStateModel(
                    tenant_id=tenant_id,
                    last_activity_at=created_at or now,
                )
            apply(model)
            model.updated_at = now
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return self._to_entity(model)

    async def _get_model(
        self, session: AsyncSession, tenant_id: str
    ) -> PresenceStateModel | None:
        result = await session.exec(
            select(PresenceStateModel).where(PresenceStateModel.tenant_id == tenant_id)
        )
        return result.first()

    @staticmethod
    def _pending_to_dict(pending: PendingMessage) -> dict:
        return {
            "message": pending.message,
            "priority": pending.priority,
            "scheduled_for": pending.scheduled_for.isoformat(),
        }

    @staticmethod
    def _pending_from_dict(data: dict) -> PendingMessage:
        return PendingMessage(
            message=data["message"],
            priority=float(data["priority"]),
            scheduled_for=parse_stored_datetime(data["scheduled_for"]),
        )

    def _to_entity(self, model: PresenceStateModel) -> PresenceState:
        """モデルをエンティティに変換する"""
        return PresenceState(
            tenant_id=model.tenant_id,
            last_activity_at=normalize_to_utc(model.last_activity_at),
            quiet_hours_start=model.quiet_hours_start,
            quiet_hours_end=model.quiet_hours_end,
            timezone=model.timezone,
            pending_queue=[
                self._pending_from_dict(item) for item in json.loads(model.pending_queue)
            ],
        )
