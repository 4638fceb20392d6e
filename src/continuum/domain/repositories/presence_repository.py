"""Presence state repository protocol."""

from datetime import datetime
from typing import Protocol

from continuum.domain.entities import PendingMessage, PresenceState


class PresenceRepository(Protocol):
    """プレゼンス状態リポジトリ

    テナント ID をキーとしたストア。レコードは初回書き込み時に作成される。
    """

    async def find_by_tenant(self, tenant_id: str) -> PresenceState | None:
        """テナントのプレゼンス状態を取得する"""
        ...

    async def record_activity(
        self,
        tenant_id: str,
        at: datetime | None = None,
    ) -> PresenceState:
        """アクティビティを記録する（状態がなければ作成）"""
        ...

    async def set_quiet_hours(
        self,
        tenant_id: str,
        start: str,
        end: str,
        timezone: str,
    ) -> PresenceState:
        """クワイエットアワーを設定する（状態がなければ作成）"""
        ...

    async def queue_message(self, tenant_id: str, pending: PendingMessage) -> bool:
        """送信待ちメッセージを追加する

        Returns:
            追加できた場合 True（状態が存在しない場合は False）
        """
        ...

    async def find_due(self, tenant_id: str, now: datetime) -> list[PendingMessage]:
        """送信予定日時を過ぎたメッセージを取得する（キューは変更しない）

        Returns:
            送信対象のメッセージ（優先度の高い順）
        """
        ...

    async def remove_pending(
        self, tenant_id: str, delivered: list[PendingMessage]
    ) -> None:
        """送信済みメッセージをキューから取り除く"""
        ...

    async def list_tenant_ids(self) -> list[str]:
        """プレゼンス状態を持つテナント ID を取得する"""
        ...
