"""Session and message entities."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class MessageRole(Enum):
    """メッセージの発話者ロール"""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


@dataclass(frozen=True)
class Session:
    """セッションエンティティ

    (tenant, channel, external_user) の組に束縛された永続的なメッセージスレッド。

    Attributes:
        id: セッション ID
        tenant_id: テナント ID
        channel: 流入チャネル名（"web", "telegram" など）
        external_user_id: チャネル側のユーザー ID
        last_seq: 最後に割り当てたメッセージ seq（メッセージなしは 0）
        created_at: 作成日時
        title: 表示用タイトル
        branched_from_session_id: 分岐元セッション ID
        branched_from_message_id: 分岐点のメッセージ ID
    """

    id: str
    tenant_id: str
    channel: str
    external_user_id: str
    last_seq: int
    created_at: datetime
    title: str | None = None
    branched_from_session_id: str | None = None
    branched_from_message_id: str | None = None

    @property
    def next_seq(self) -> int:
        """次に割り当てられる seq"""
        return self.last_seq + 1

    @property
    def is_branch(self) -> bool:
        return self.branched_from_session_id is not None


@dataclass(frozen=True)
class Message:
    """メッセージエンティティ

    書き込み後は不変。seq はセッション内で一意かつ単調増加する。

    Attributes:
        id: メッセージ ID
        session_id: 所属セッション ID
        tenant_id: テナント ID
        seq: セッション内シーケンス番号
        role: 発話者ロール
        content: 本文
        created_at: 作成日時
    """

    id: str
    session_id: str
    tenant_id: str
    seq: int
    role: MessageRole
    content: str
    created_at: datetime

    @property
    def is_from_user(self) -> bool:
        return self.role == MessageRole.USER
