"""SQLite implementation of ConversationRepository."""

import json
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from continuum.domain.entities import (
    Conversation,
    ConversationClosure,
    ConversationRelation,
    ConversationStatus,
    ConversationSummary,
    Decision,
    RelationType,
)
from continuum.domain.exceptions import (
    ActiveConversationConflictError,
    ConversationNotActiveError,
    ConversationNotFoundError,
)
from continuum.infrastructure.persistence.datetime_utils import normalize_to_utc
from continuum.infrastructure.persistence.models import ConversationModel

logger = logging.getLogger(__name__)

# find_related が走査する直近のクローズ済み会話の件数
RELATED_SEARCH_CANDIDATES = 100
MIN_QUERY_WORD_LENGTH = 4


class SQLiteConversationRepository:
    """SQLite 版 ConversationRepository 実装

    会話の作成・延長・クローズを行う。セッションごとのアクティブな会話は
    部分ユニークインデックスにより高々1件に保たれる。
    クローズ済み会話の関連検索（RelatedConversationSearch）も提供する。
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

    async def find_by_id(self, conversation_id: str) -> Conversation | None:
        """ID で会話を検索する"""
        async with self._session_factory() as session:
            model = await self._get_model(session, conversation_id)
            if model is None:
                return None
            return self._to_entity(model)

    async def find_active(self, session_id: str) -> Conversation | None:
        """セッションのアクティブな会話を取得する"""
        async with self._session_factory() as session:
            result = await session.exec(
                select(ConversationModel).where(
                    ConversationModel.session_id == session_id,
                    ConversationModel.status == ConversationStatus.ACTIVE.value,
                )
            )
            model = result.first()
            if model is None:
                return None
            return self._to_entity(model)

    async def find_by_session(
        self,
        session_id: str,
        limit: int = 20,
    ) -> list[Conversation]:
        """セッションの会話を取得する（新しい順）"""
        async with self._session_factory() as session:
            statement = (
                select(ConversationModel)
                .where(ConversationModel.session_id == session_id)
                .order_by(
                    ConversationModel.start_seq.desc(),  # type: ignore[attr-defined]
                    ConversationModel.id.desc(),  # type: ignore[union-attr]
                )
                .limit(limit)
            )
            result = await session.exec(statement)
            return [self._to_entity(model) for model in result.all()]

    async def create(
        self,
        conversation: Conversation,
        closure: ConversationClosure | None = None,
    ) -> Conversation:
        """会話を作成する

        同じセッションのアクティブな会話を先にクローズしてから挿入する。
        クローズと挿入は同一トランザクションで行う。

        Raises:
            ActiveConversationConflictError: 並行する作成処理と競合した
        """
        now = datetime.now(timezone.utc)
        async with self._session_factory() as session:
            result = await session.exec(
                select(ConversationModel).where(
                    ConversationModel.session_id == conversation.session_id,
                    ConversationModel.status == ConversationStatus.ACTIVE.value,
                )
            )
            for existing in result.all():
                self._apply_closure(existing, closure or ConversationClosure(), now)
                session.add(existing)
                logger.info(
                    "Closed conversation %s before creating a new one in session %s",
                    existing.conversation_id,
                    conversation.session_id,
                )
            # The partial unique index requires the close to hit the table first
            await session.flush()

            model = self._to_model(conversation)
            session.add(model)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ActiveConversationConflictError(conversation.session_id) from e
            await session.refresh(model)
            return self._to_entity(model)

    async def advance_end(self, conversation_id: str, end_seq: int) -> Conversation:
        """アクティブな会話の end_seq を更新する

        Raises:
            ConversationNotFoundError: 会話が存在しない
            ConversationNotActiveError: 会話がアクティブでない
            ValueError: end_seq が start_seq より小さい
        """
        async with self._session_factory() as session:
            model = await self._require_model(session, conversation_id)
            if model.status != ConversationStatus.ACTIVE.value:
                raise ConversationNotActiveError(conversation_id)
            if end_seq < model.start_seq:
                raise ValueError(
                    f"end_seq {end_seq} is before start_seq {model.start_seq}"
                )
            model.end_seq = end_seq
            model.updated_at = datetime.now(timezone.utc)
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return self._to_entity(model)

    async def close(
        self,
        conversation_id: str,
        closure: ConversationClosure,
    ) -> Conversation:
        """会話をクローズする（クローズ済みなら何もしない）

        Raises:
            ConversationNotFoundError: 会話が存在しない
        """
        async with self._session_factory() as session:
            model = await self._require_model(session, conversation_id)
            if model.status == ConversationStatus.CLOSED.value:
                return self._to_entity(model)
            self._apply_closure(model, closure, datetime.now(timezone.utc))
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return self._to_entity(model)

    async def set_previous(
        self,
        conversation_id: str,
        previous_conversation_id: str,
        depth: int,
    ) -> Conversation:
        """前の会話へのリンクと深さを設定し、継続リレーションを追記する

        Raises:
            ConversationNotFoundError: 会話が存在しない
        """
        async with self._session_factory() as session:
            model = await self._require_model(session, conversation_id)
            model.previous_conversation_id = previous_conversation_id
            model.depth = depth
            relations = json.loads(model.relations)
            relations.append(
                {
                    "conversation_id": previous_conversation_id,
                    "type": RelationType.CONTINUATION.value,
                }
            )
            model.relations = json.dumps(relations)
            model.updated_at = datetime.now(timezone.utc)
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return self._to_entity(model)

    async def apply_summary(
        self,
        conversation_id: str,
        summary: ConversationSummary | None,
    ) -> Conversation:
        """要約を保存し summarized を立てる

        Raises:
            ConversationNotFoundError: 会話が存在しない
        """
        async with self._session_factory() as session:
            model = await self._require_model(session, conversation_id)
            if summary is not None:
                if summary.title:
                    model.title = summary.title
                if summary.summary:
                    model.summary = summary.summary
                if summary.tags:
                    model.tags = json.dumps(summary.tags, ensure_ascii=False)
                if summary.decisions:
                    model.decisions = json.dumps(
                        [
                            {"what": d.what, "reasoning": d.reasoning}
                            for d in summary.decisions
                        ],
                        ensure_ascii=False,
                    )
            model.summarized = True
            model.updated_at = datetime.now(timezone.utc)
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return self._to_entity(model)

    async def find_related(
        self,
        tenant_id: str,
        query_text: str,
        limit: int = 5,
    ) -> list[Conversation]:
        """クローズ済み会話からクエリに関連するものを検索する

        クエリを 4 文字以上の単語に分割し、タイトル・要約・タグ・決定事項に
        含まれる単語の数をスコアとする。直近 100 件のクローズ済み会話を走査し、
        スコアが 0 より大きいものをスコアの高い順に返す。

        Args:
            tenant_id: テナント ID
            query_text: 検索テキスト
            limit: 取得する最大件数

        Returns:
            関連する会話（スコアの高い順）
        """
        words = [
            word
            for word in query_text.lower().split()
            if len(word) >= MIN_QUERY_WORD_LENGTH
        ]
        if not words or limit <= 0:
            return []

        async with self._session_factory() as session:
            statement = (
                select(ConversationModel)
                .where(
                    ConversationModel.tenant_id == tenant_id,
                    ConversationModel.status == ConversationStatus.CLOSED.value,
                )
                .order_by(ConversationModel.updated_at.desc())  # type: ignore[attr-defined]
                .limit(RELATED_SEARCH_CANDIDATES)
            )
            result = await session.exec(statement)
            candidates = [self._to_entity(model) for model in result.all()]

        scored: list[tuple[int, Conversation]] = []
        for conversation in candidates:
            haystack = self._searchable_text(conversation)
            score = sum(1 for word in words if word in haystack)
            if score > 0:
                scored.append((score, conversation))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [conversation for _, conversation in scored[:limit]]

    @staticmethod
    def _searchable_text(conversation: Conversation) -> str:
        parts = [
            conversation.title or "",
            conversation.summary or "",
            " ".join(conversation.tags),
            " ".join(d.what for d in conversation.decisions),
        ]
        return " ".join(parts).lower()

    def _apply_closure(
        self,
        model: ConversationModel,
        closure: ConversationClosure,
        now: datetime,
    ) -> None:
        """クローズ内容をモデルに適用する

        end_seq は start_seq を下回らないように丸める。
        """
        if closure.title is not None:
            model.title = closure.title
        if closure.summary is not None:
            model.summary = closure.summary
        if closure.tags is not None:
            model.tags = json.dumps(closure.tags, ensure_ascii=False)

        end_seq = closure.end_seq if closure.end_seq is not None else model.end_seq
        if end_seq is None:
            end_seq = model.start_seq
        model.end_seq = max(end_seq, model.start_seq)

        model.status = ConversationStatus.CLOSED.value
        model.closed_at = now
        model.updated_at = now

    async def _get_model(
        self, session: AsyncSession, conversation_id: str
    ) -> ConversationModel | None:
        result = await session.exec(
            select(ConversationModel).where(
                ConversationModel.conversation_id == conversation_id
            )
        )
        return result.first()

    async def _require_model(
        self, session: AsyncSession, conversation_id: str
    ) -> ConversationModel:
        model = await self._get_model(session, conversation_id)
        if model is None:
            raise ConversationNotFoundError(conversation_id)
        return model

    def _to_model(self, conversation: Conversation) -> ConversationModel:
        """エンティティをモデルに変換する"""
        return ConversationModel(
            conversation_id=conversation.id,
            session_id=conversation.session_id,
            tenant_id=conversation.tenant_id,
            status=conversation.status.value,
            start_seq=conversation.start_seq,
            end_seq=conversation.end_seq,
            title=conversation.title,
            summary=conversation.summary,
            tags=json.dumps(conversation.tags, ensure_ascii=False),
            decisions=json.dumps(
                [{"what": d.what, "reasoning": d.reasoning} for d in conversation.decisions],
                ensure_ascii=False,
            ),
            depth=conversation.depth,
            previous_conversation_id=conversation.previous_conversation_id,
            relations=json.dumps(
                [
                    {"conversation_id": r.conversation_id, "type": r.type.value}
                    for r in conversation.relations
                ]
            ),
            summarized=conversation.summarized,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
            closed_at=conversation.closed_at,
        )

    def _to_entity(self, model: ConversationModel) -> Conversation:
        """モデルをエンティティに変換する"""
        return Conversation(
            id=model.conversation_id,
            session_id=model.session_id,
            tenant_id=model.tenant_id,
            status=ConversationStatus(model.status),
            start_seq=model.start_seq,
            end_seq=model.end_seq,
            depth=model.depth,
            created_at=normalize_to_utc(model.created_at),
            updated_at=normalize_to_utc(model.updated_at),
            title=model.title,
            summary=model.summary,
            tags=json.loads(model.tags),
            decisions=[
                Decision(what=d["what"], reasoning=d.get("reasoning"))
                for d in json.loads(model.decisions)
            ],
            previous_conversation_id=model.previous_conversation_id,
            relations=[
                ConversationRelation(
                    conversation_id=r["conversation_id"],
                    type=RelationType(r["type"]),
                )
                for r in json.loads(model.relations)
            ],
            summarized=model.summarized,
            closed_at=(
                normalize_to_utc(model.closed_at)
                if model.closed_at is not None
                else None
            ),
        )
