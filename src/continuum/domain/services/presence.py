"""Presence engine: decides when unsolicited contact is appropriate."""

import logging
import random
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from continuum.domain.entities import PresenceState, Topic

logger = logging.getLogger(__name__)

DEFAULT_IDLE_THRESHOLD = timedelta(hours=4)
DEFAULT_SALIENCE_THRESHOLD = 0.5

INITIATION_TEMPLATES = (
    "I've been thinking about {name} - want to discuss?",
    "{name} came to mind. Any updates on that?",
    "Quick thought on {name} - worth revisiting?",
)


def _to_minutes(value: str) -> int:
    """"HH:MM" を 0 時からの分数に変換する"""
    hours, _, minutes = value.strip().partition(":")
    return int(hours) * 60 + int(minutes or 0)


def _resolve_timezone(name: str | None) -> ZoneInfo | timezone:
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", name)
        return timezone.utc


def is_in_quiet_hours(state: PresenceState, now: datetime | None = None) -> bool:
    """現在時刻がクワイエットアワー内かを判定する

    テナントのタイムゾーンでの現在時刻 (HH:MM) が [start, end) に含まれるかを判定する。
    start > end の場合は日付をまたぐ範囲として扱う。

    Args:
        state: プレゼンス状態
        now: 現在時刻（省略時は UTC の現在時刻）

    Returns:
        クワイエットアワー内なら True（未設定なら常に False）
    """
    if not state.has_quiet_hours:
        return False
    assert state.quiet_hours_start is not None
    assert state.quiet_hours_end is not None

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(_resolve_timezone(state.timezone))
    current = local.hour * 60 + local.minute

    start = _to_minutes(state.quiet_hours_start)
    end = _to_minutes(state.quiet_hours_end)
    if start <= end:
        return start <= current < end
    return current >= start or current < end


def has_active_topics(
    topics: list[Topic],
    salience_threshold: float = DEFAULT_SALIENCE_THRESHOLD,
) -> bool:
    return any(topic.salience > salience_threshold for topic in topics)


def should_initiate(
    state: PresenceState,
    topics: list[Topic],
    now: datetime | None = None,
    idle_threshold: timedelta = DEFAULT_IDLE_THRESHOLD,
    salience_threshold: float = DEFAULT_SALIENCE_THRESHOLD,
) -> bool:
    """自発的に声をかけるべきかを判定する

    クワイエットアワー外で、アイドル時間が閾値を超え、
    かつ平均重みが閾値を超えるトピックがある場合に True。

    Args:
        state: プレゼンス状態
        topics: テナントのトピック
        now: 現在時刻
        idle_threshold: 最小アイドル時間
        salience_threshold: アクティブトピックの平均重み閾値

    Returns:
        声をかけるべきなら True
    """
    now = now or datetime.now(timezone.utc)
    if is_in_quiet_hours(state, now):
        return False
    idle = now - state.last_activity_at
    return idle > idle_threshold and has_active_topics(topics, salience_threshold)


def select_topic(
    topics: list[Topic],
    rng: random.Random | None = None,
) -> Topic | None:
    """平均重みによる重み付きランダムでトピックを選ぶ

    重みの合計が 0 の場合は先頭のトピックを返す。
    """
    if not topics:
        return None
    rng = rng or random.Random()

    scores = [topic.salience for topic in topics]
    total = sum(scores)
    if total <= 0:
        return topics[0]

    remaining = rng.random() * total
    for topic, score in zip(topics, scores):
        remaining -= score
        if remaining <= 0:
            return topic
    return topics[-1]


def format_initiation(topic: Topic, rng: random.Random | None = None) -> str:
    """トピック名から声かけメッセージを生成する"""
    rng = rng or random.Random()
    template = rng.choice(INITIATION_TEMPLATES)
    return template.format(name=topic.name)
