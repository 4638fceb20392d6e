"""Session repository protocol."""

from typing import Protocol

from continuum.domain.entities import Message, MessageRole, Session


class SessionRepository(Protocol):
    """セッション・メッセージリポジトリ"""

    async def create(
        self,
        tenant_id: str,
        channel: str,
        external_user_id: str,
        title: str | None = None,
    ) -> Session:
        """セッションを作成する

        Args:
            tenant_id: テナント ID
            channel: チャネル名
            external_user_id: チャネル側のユーザー ID
            title: 表示用タイトル

        Returns:
            作成したセッション
        """
        ...

    async def find_by_id(self, session_id: str) -> Session | None:
        """ID でセッションを検索する"""
        ...

    async def find_by_external_user(
        self,
        tenant_id: str,
        channel: str,
        external_user_id: str,
    ) -> Session | None:
        """(tenant, channel, external_user) でセッションを検索する

        分岐で作られたセッションは対象外。
        """
        ...

    async def append_message(
        self,
        session_id: str,
        role: MessageRole,
        content: str,
    ) -> Message:
        """メッセージを追加する

        セッションの last_seq を進め、新しい seq を割り当てる。

        Args:
            session_id: セッション ID
            role: 発話者ロール
            content: 本文

        Returns:
            追加したメッセージ

        Raises:
            SessionNotFoundError: セッションが存在しない
        """
        ...

    async def get_recent_messages(self, session_id: str, limit: int) -> list[Message]:
        """直近のメッセージを取得する

        Args:
            session_id: セッション ID
            limit: 取得する最大件数

        Returns:
            メッセージリスト（古い順）
        """
        ...

    async def find_message(self, message_id: str) -> Message | None:
        """ID でメッセージを検索する"""
        ...

    async def find_messages_in_range(
        self,
        session_id: str,
        start_seq: int,
        end_seq: int,
    ) -> list[Message]:
        """seq 範囲 [start_seq, end_seq] のメッセージを取得する（古い順）"""
        ...

    async def create_branch(
        self,
        source: Session,
        branch_message: Message,
    ) -> Session:
        """分岐セッションを作成する

        branch_message までのメッセージを seq 1 から振り直してコピーする。
        元のセッションは変更しない。

        Args:
            source: 分岐元セッション
            branch_message: 分岐点のメッセージ（このメッセージを含む）

        Returns:
            作成した分岐セッション
        """
        ...
