"""Topic entity for recurring subjects."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

DEFAULT_PERSONAL_WEIGHT = 0.5
INITIAL_FREQUENCY_WEIGHT = 0.1

# get_active の重み付け（個人の重要度 > 言及頻度）
PERSONAL_ACTIVATION_SHARE = 0.6
FREQUENCY_ACTIVATION_SHARE = 0.4


def clamp_weight(value: float) -> float:
    """重みを [0.0, 1.0] に丸める"""
    return max(0.0, min(1.0, float(value)))


@dataclass(frozen=True)
class Topic:
    """トピックエンティティ

    テナントごとの繰り返し登場する話題。(tenant_id, name) で一意。

    Attributes:
        id: トピック ID
        tenant_id: テナント ID
        name: トピック名
        category: カテゴリ
        personal_weight: 運用者/ユーザーが宣言した重要度（明示的に上書きされるまで維持）
        frequency_weight: 言及の頻度・新しさから導出される重み
        mention_count: 言及回数
        last_mentioned_at: 最終言及日時
        metadata: 任意のメタデータ
        frequency_pinned: frequency_weight が明示的に設定され、次の言及まで再計算しない
    """

    id: str
    tenant_id: str
    name: str
    category: str
    personal_weight: float
    frequency_weight: float
    mention_count: int
    last_mentioned_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)
    frequency_pinned: bool = False

    @property
    def activation_score(self) -> float:
        """アクティブ判定用スコア（0.6 / 0.4 の非対称配分）"""
        return (
            self.personal_weight * PERSONAL_ACTIVATION_SHARE
            + self.frequency_weight * FREQUENCY_ACTIVATION_SHARE
        )

    @property
    def salience(self) -> float:
        """声かけ判定用の平均重み"""
        return (self.personal_weight + self.frequency_weight) / 2

    def is_active(self, threshold: float) -> bool:
        return self.activation_score > threshold


def compute_frequency_weight(
    mention_count: int,
    last_mentioned_at: datetime,
    now: datetime,
    half_life_seconds: float,
    mention_saturation: float,
) -> float:
    """言及回数と経過時間から頻度重みを計算する

    saturation(n) = 1 - 0.5 ** (n / mention_saturation)
    decay(t) = 0.5 ** (t / half_life_seconds)

    Args:
        mention_count: 言及回数
        last_mentioned_at: 最終言及日時
        now: 現在時刻
        half_life_seconds: 減衰の半減期
        mention_saturation: saturation が 0.5 になる言及回数

    Returns:
        [0.0, 1.0] の頻度重み
    """
    if mention_count <= 0:
        return 0.0
    elapsed = max(0.0, (now - last_mentioned_at).total_seconds())
    saturation = 1.0 - 0.5 ** (mention_count / mention_saturation)
    decay = 0.5 ** (elapsed / half_life_seconds)
    return clamp_weight(saturation * decay)
