"""SQLite implementation of SessionRepository."""

import logging
import uuid
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from continuum.domain.entities import Message, MessageRole, Session
from continuum.domain.exceptions import SessionNotFoundError
from continuum.infrastructure.persistence.datetime_utils import normalize_to_utc
from continuum.infrastructure.persistence.models import MessageModel, SessionModel

logger = logging.getLogger(__name__)


class SQLiteSessionRepository:
    """SQLite 版 SessionRepository 実装

    セッションとメッセージを SQLite データベースに保存する。
    seq の採番は sessions.last_seq のアトミックな加算で行う。
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

    async def create(
        self,
        tenant_id: str,
        channel: str,
        external_user_id: str,
        title: str | None = None,
    ) -> Session:
        """セッションを作成する"""
        model = SessionModel(
            session_id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            channel=channel,
            external_user_id=external_user_id,
            title=title,
            last_seq=0,
            created_at=datetime.now(timezone.utc),
        )
        async with self._session_factory() as session:
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.debug(
                "Created session %s (tenant=%s, channel=%s)",
                model.session_id,
                tenant_id,
                channel,
            )
            return self._to_entity(model)

    async def find_by_id(self, session_id: str) -> Session | None:
        """ID でセッションを検索する"""
        async with self._session_factory() as session:
            model = await self._get_model(session, session_id)
            if model is None:
                return None
            return self._to_entity(model)

    async def find_by_external_user(
        self,
        tenant_id: str,
        channel: str,
        external_user_id: str,
    ) -> Session | None:
        """(tenant, channel, external_user) でセッションを検索する"""
        async with self._session_factory() as session:
            statement = (
                select(SessionModel)
                .where(
                    SessionModel.tenant_id == tenant_id,
                    SessionModel.channel == channel,
                    SessionModel.external_user_id == external_user_id,
                    SessionModel.branched_from_session_id.is_(None),  # type: ignore[union-attr]
                )
                .order_by(SessionModel.created_at)  # type: ignore[arg-type]
            )
            result = await session.exec(statement)
            model = result.first()
            if model is None:
                return None
            return self._to_entity(model)

    async def append_message(
        self,
        session_id: str,
        role: MessageRole,
        content: str,
    ) -> Message:
        """メッセージを追加する

        Raises:
            SessionNotFoundError: セッションが存在しない
        """
        async with self._session_factory() as session:
            statement = (
                update(SessionModel)
                .where(SessionModel.session_id == session_id)  # type: ignore[arg-type]
                .values(last_seq=SessionModel.last_seq + 1)
                .returning(SessionModel.last_seq, SessionModel.tenant_id)  # type: ignore[arg-type]
            )
            result = await session.execute(statement)
            row = result.first()
            if row is None:
                await session.rollback()
                raise SessionNotFoundError(session_id)
            seq, tenant_id = row

            model = MessageModel(
                message_id=str(uuid.uuid4()),
                session_id=session_id,
                tenant_id=tenant_id,
                seq=seq,
                role=role.value,
                content=content,
                created_at=datetime.now(timezone.utc),
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return self._to_message(model)

    async def get_recent_messages(self, session_id: str, limit: int) -> list[Message]:
        """直近のメッセージを取得する（古い順）"""
        if limit <= 0:
            return []
        async with self._session_factory() as session:
            statement = (
                select(MessageModel)
                .where(MessageModel.session_id == session_id)
                .order_by(MessageModel.seq.desc())  # type: ignore[attr-defined]
                .limit(limit)
            )
            result = await session.exec(statement)
            messages = [self._to_message(model) for model in result.all()]
            return list(reversed(messages))

    async def find_message(self, message_id: str) -> Message | None:
        """ID でメッセージを検索する"""
        async with self._session_factory() as session:
            result = await session.exec(
                select(MessageModel).where(MessageModel.message_id == message_id)
            )
            model = result.first()
            if model is None:
                return None
            return self._to_message(model)

    async def find_messages_in_range(
        self,
        session_id: str,
        start_seq: int,
        end_seq: int,
    ) -> list[Message]:
        """seq 範囲 [start_seq, end_seq] のメッセージを取得する（古い順）"""
        async with self._session_factory() as session:
            statement = (
                select(MessageModel)
                .where(
                    MessageModel.session_id == session_id,
                    MessageModel.seq >= start_seq,
                    MessageModel.seq <= end_seq,
                )
                .order_by(MessageModel.seq)  # type: ignore[arg-type]
            )
            result = await session.exec(statement)
            return [self._to_message(model) for model in result.all()]

    async def create_branch(
        self,
        source: Session,
        branch_message: Message,
    ) -> Session:
        """分岐セッションを作成する

        分岐点までのメッセージを seq 1 から振り直してコピーする。
        セッション作成とコピーは1トランザクションで行う。
        """
        now = datetime.now(timezone.utc)
        async with self._session_factory() as session:
            result = await session.exec(
                select(MessageModel)
                .where(
                    MessageModel.session_id == source.id,
                    MessageModel.seq <= branch_message.seq,
                )
                .order_by(MessageModel.seq)  # type: ignore[arg-type]
            )
            prefix = list(result.all())

            branch = SessionModel(
                session_id=str(uuid.uuid4()),
                tenant_id=source.tenant_id,
                channel=source.channel,
                external_user_id=source.external_user_id,
                title=source.title,
                last_seq=len(prefix),
                branched_from_session_id=source.id,
                branched_from_message_id=branch_message.id,
                created_at=now,
            )
            session.add(branch)

            for seq, original in enumerate(prefix, start=1):
                session.add(
                    MessageModel(
                        message_id=str(uuid.uuid4()),
                        session_id=branch.session_id,
                        tenant_id=original.tenant_id,
                        seq=seq,
                        role=original.role,
                        content=original.content,
                        created_at=original.created_at,
                    )
                )

            await session.commit()
            await session.refresh(branch)
            logger.info(
                "Branched session %s from %s at message %s (%d messages copied)",
                branch.session_id,
                source.id,
                branch_message.id,
                len(prefix),
            )
            return self._to_entity(branch)

    async def _get_model(
        self, session: AsyncSession, session_id: str
    ) -> SessionModel | None:
        result = await session.exec(
            select(SessionModel).where(SessionModel.session_id == session_id)
        )
        return result.first()

    def _to_entity(self, model: SessionModel) -> Session:
        """モデルをエンティティに変換する"""
        return Session(
            id=model.session_id,
            tenant_id=model.tenant_id,
            channel=model.channel,
            external_user_id=model.external_user_id,
            last_seq=model.last_seq,
            created_at=normalize_to_utc(model.created_at),
            title=model.title,
            branched_from_session_id=model.branched_from_session_id,
            branched_from_message_id=model.branched_from_message_id,
        )

    def _to_message(self, model: MessageModel) -> Message:
        """モデルをメッセージエンティティに変換する"""
        return Message(
            id=model.message_id,
            session_id=model.session_id,
            tenant_id=model.tenant_id,
            seq=model.seq,
            role=MessageRole(model.role),
            content=model.content,
            created_at=normalize_to_utc(model.created_at),
        )
