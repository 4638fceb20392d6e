"""SQLModel table definitions."""

from datetime import datetime, timezone

from sqlalchemy import Index, UniqueConstraint, text
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionModel(SQLModel, table=True):
    """セッションテーブル"""

    __tablename__ = "sessions"

    id: int | None = Field(default=None, primary_key=True)
    session_id: str = Field(unique=True, index=True)
    tenant_id: str = Field(index=True)
    channel: str
    external_user_id: str = Field(index=True)
    title: str | None = None
    last_seq: int = 0
    branched_from_session_id: str | None = None
    branched_from_message_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class MessageModel(SQLModel, table=True):
    """メッセージテーブル"""

    __tablename__ = "messages"

    id: int | None = Field(default=None, primary_key=True)
    message_id: str = Field(unique=True, index=True)
    session_id: str = Field(index=True)
    tenant_id: str = Field(index=True)
    seq: int
    role: str
    content: str
    created_at: datetime = Field(default_factory=_utcnow)

    __table_args__ = (UniqueConstraint("session_id", "seq", name="uq_session_seq"),)


class ConversationModel(SQLModel, table=True):
    """会話テーブル

    セッションごとのアクティブな会話は部分ユニークインデックスで1件に制限する。
    """

    __tablename__ = "conversations"

    id: int | None = Field(default=None, primary_key=True)
    conversation_id: str = Field(unique=True, index=True)
    session_id: str = Field(index=True)
    tenant_id: str = Field(index=True)
    status: str = Field(index=True)
    start_seq: int
    end_seq: int | None = None
    title: str | None = None
    summary: str | None = None
    tags: str = "[]"  # JSON format: ["billing", "refund"]
    decisions: str = "[]"  # JSON format: [{"what": "...", "reasoning": "..."}]
    depth: int = 1
    previous_conversation_id: str | None = Field(default=None, index=True)
    relations: str = "[]"  # JSON format: [{"conversation_id": "...", "type": "..."}]
    summarized: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    closed_at: datetime | None = None

    __table_args__ = (
        Index(
            "uq_active_conversation_per_session",
            "session_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
        ),
    )


class TopicModel(SQLModel, table=True):
    """トピックテーブル"""

    __tablename__ = "topics"

    id: int | None = Field(default=None, primary_key=True)
    topic_id: str = Field(unique=True, index=True)
    tenant_id: str = Field(index=True)
    name: str
    category: str
    personal_weight: float
    frequency_weight: float
    mention_count: int = 1
    last_mentioned_at: datetime = Field(default_factory=_utcnow)
    extra: str = "{}"  # JSON format: arbitrary metadata
    frequency_pinned: bool = False

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_topic_tenant_name"),
    )


class PresenceStateModel(SQLModel, table=True):
    """プレゼンス状態テーブル（テナントごとに1件）"""

    __tablename__ = "presence_states"

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str = Field(unique=True, index=True)
    last_activity_at: datetime = Field(default_factory=_utcnow)
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    timezone: str | None = None
    # JSON format: [{"message": "...", "priority": 0.7, "scheduled_for": "ISO8601"}]
    pending_queue: str = "[]"
    updated_at: datetime = Field(default_factory=_utcnow)
