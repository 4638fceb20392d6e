"""Conversation entity and related value objects."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ConversationStatus(Enum):
    """会話の状態"""

    ACTIVE = "active"
    CLOSED = "closed"


class RelationType(Enum):
    """会話間リレーションの種類"""

    CONTINUATION = "continuation"


@dataclass(frozen=True)
class ConversationRelation:
    """会話間リレーション（追記のみ）"""

    conversation_id: str
    type: RelationType = RelationType.CONTINUATION


@dataclass(frozen=True)
class Decision:
    """会話中に下された決定事項

    Attributes:
        what: 決定内容
        reasoning: 理由（任意）
    """

    what: str
    reasoning: str | None = None


@dataclass(frozen=True)
class ConversationClosure:
    """会話クローズ時のスナップショット

    None のフィールドは既存の値を維持する。
    """

    title: str | None = None
    summary: str | None = None
    tags: list[str] | None = None
    end_seq: int | None = None


@dataclass(frozen=True)
class Conversation:
    """会話エンティティ

    1つのセッション内の、1つのまとまったトピックに対応するメッセージ範囲。
    セッションをまたぐことはない。

    Attributes:
        id: 会話 ID
        session_id: 所属セッション ID
        tenant_id: テナント ID
        status: ACTIVE / CLOSED
        start_seq: 範囲の開始 seq
        end_seq: 範囲の終了 seq（延長またはクローズ後のみ）
        depth: チェーンの深さ（ルートは 1）
        created_at: 作成日時
        updated_at: 更新日時
        title: タイトル
        summary: 要約
        tags: タグ
        decisions: 決定事項
        previous_conversation_id: 明示的にリンクされた前の会話
        relations: 会話間リレーション（追記のみ）
        summarized: 要約生成済みか
        closed_at: クローズ日時
    """

    id: str
    session_id: str
    tenant_id: str
    status: ConversationStatus
    start_seq: int
    depth: int
    created_at: datetime
    updated_at: datetime
    end_seq: int | None = None
    title: str | None = None
    summary: str | None = None
    tags: list[str] = field(default_factory=list)
    decisions: list[Decision] = field(default_factory=list)
    previous_conversation_id: str | None = None
    relations: list[ConversationRelation] = field(default_factory=list)
    summarized: bool = False
    closed_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.depth < 1:
            raise ValueError(f"Conversation depth must be >= 1: {self.depth}")

    @property
    def is_active(self) -> bool:
        return self.status == ConversationStatus.ACTIVE

    @property
    def is_closed(self) -> bool:
        return self.status == ConversationStatus.CLOSED
