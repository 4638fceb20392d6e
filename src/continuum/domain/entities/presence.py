"""Presence state entity."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class PendingMessage:
    """送信待ちの自発メッセージ

    Attributes:
        message: 本文
        priority: 優先度（大きいほど優先）
        scheduled_for: 送信予定日時
    """

    message: str
    priority: float
    scheduled_for: datetime

    def is_due(self, now: datetime) -> bool:
        return self.scheduled_for <= now


@dataclass(frozen=True)
class PresenceState:
    """テナントごとのプレゼンス状態

    初回のアクティビティ記録、またはクワイエットアワー設定時に遅延生成される。

    Attributes:
        tenant_id: テナント ID
        last_activity_at: 最終アクティビティ日時
        quiet_hours_start: クワイエットアワー開始（"HH:MM"）
        quiet_hours_end: クワイエットアワー終了（"HH:MM"）
        timezone: IANA タイムゾーン名（未指定は UTC）
        pending_queue: 送信待ちメッセージ
    """

    tenant_id: str
    last_activity_at: datetime
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    timezone: str | None = None
    pending_queue: list[PendingMessage] = field(default_factory=list)

    @property
    def has_quiet_hours(self) -> bool:
        return bool(self.quiet_hours_start and self.quiet_hours_end)
