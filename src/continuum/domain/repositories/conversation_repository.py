"""Conversation repository protocol."""

from typing import Protocol

from continuum.domain.entities import (
    Conversation,
    ConversationClosure,
    ConversationSummary,
)


class ConversationRepository(Protocol):
    """会話リポジトリ"""

    async def find_by_id(self, conversation_id: str) -> Conversation | None:
        """ID で会話を検索する"""
        ...

    async def find_active(self, session_id: str) -> Conversation | None:
        """セッションのアクティブな会話を取得する"""
        ...

    async def find_by_session(
        self,
        session_id: str,
        limit: int = 20,
    ) -> list[Conversation]:
        """セッションの会話を取得する（新しい順）"""
        ...

    async def create(
        self,
        conversation: Conversation,
        closure: ConversationClosure | None = None,
    ) -> Conversation:
        """会話を作成する

        同じセッションのアクティブな会話を同一トランザクション内で先にクローズする。
        closure が指定された場合はクローズ時のスナップショットとして適用する。

        Args:
            conversation: 作成する会話（ACTIVE）
            closure: 既存のアクティブな会話に適用するクローズ内容

        Returns:
            作成した会話

        Raises:
            ActiveConversationConflictError: 並行する作成処理と競合した
        """
        ...

    async def advance_end(self, conversation_id: str, end_seq: int) -> Conversation:
        """アクティブな会話の end_seq を更新する

        Raises:
            ConversationNotFoundError: 会話が存在しない
            ConversationNotActiveError: 会話がアクティブでない
        """
        ...

    async def close(
        self,
        conversation_id: str,
        closure: ConversationClosure,
    ) -> Conversation:
        """会話をクローズする

        既にクローズ済みの場合は何もせず現在の状態を返す。

        Raises:
            ConversationNotFoundError: 会話が存在しない
        """
        ...

    async def set_previous(
        self,
        conversation_id: str,
        previous_conversation_id: str,
        depth: int,
    ) -> Conversation:
        """前の会話へのリンクと深さを設定する

        Raises:
            ConversationNotFoundError: 会話が存在しない
        """
        ...

    async def apply_summary(
        self,
        conversation_id: str,
        summary: ConversationSummary | None,
    ) -> Conversation:
        """要約を保存し summarized を立てる

        summary が None、または空のフィールドは既存の値を維持する。

        Raises:
            ConversationNotFoundError: 会話が存在しない
        """
        ...
