"""Topic repository protocol."""

from datetime import datetime
from typing import Any, Protocol

from continuum.domain.entities import Topic


class TopicRepository(Protocol):
    """トピックリポジトリ"""

    async def upsert(
        self,
        name: str,
        category: str,
        tenant_id: str,
        personal_weight: float | None = None,
        metadata: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> Topic:
        """トピックを登録または言及を記録する

        既存の (name, tenant_id) がある場合は mention_count を増やし、
        last_mentioned_at を更新する。category は初回の値を維持する。
        personal_weight / metadata は明示的に指定された場合のみ上書きする。
        frequency_weight の固定は解除される。
        新規の場合は frequency_weight=0.1, mention_count=1 で作成する。

        Args:
            name: トピック名
            category: カテゴリ
            tenant_id: テナント ID
            personal_weight: 個人の重要度
            metadata: 任意のメタデータ
            now: 言及日時（省略時は現在時刻）

        Returns:
            保存後のトピック
        """
        ...

    async def get_active(self, tenant_id: str, threshold: float = 0.3) -> list[Topic]:
        """personal*0.6 + frequency*0.4 が閾値を超えるトピックを取得する"""
        ...

    async def find_by_name(self, tenant_id: str, name: str) -> Topic | None:
        """名前でトピックを検索する"""
        ...

    async def find_by_tenant(self, tenant_id: str) -> list[Topic]:
        """テナントの全トピックを取得する"""
        ...

    async def update_weights(
        self,
        topic_id: str,
        personal_weight: float | None = None,
        frequency_weight: float | None = None,
    ) -> Topic | None:
        """重みを更新する（指定されたもののみ）

        frequency_weight を指定した場合は次の言及まで固定する。

        Returns:
            更新後のトピック（存在しない場合は None）
        """
        ...

    async def store_frequency_weight(
        self, topic_id: str, weight: float
    ) -> Topic | None:
        """再計算した頻度重みを保存する（固定状態は変更しない）

        Returns:
            更新後のトピック（存在しない場合は None）
        """
        ...
