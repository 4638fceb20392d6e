"""UTC handling for timestamps read back from SQLite."""

from datetime import datetime, timezone


def normalize_to_utc(dt: datetime) -> datetime:
    """保存値を UTC の aware datetime にそろえる

    SQLite の DATETIME 列はタイムゾーンを保持しないため、読み出した
    naive な値は UTC で書き込まれたものとして扱う。aware な値は UTC に変換する。
    アイドル時間や送信予定日時の比較は aware 同士で行う必要がある。

    Args:
        dt: テーブルまたは JSON から読み出した日時

    Returns:
        UTC の aware datetime
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_stored_datetime(value: str) -> datetime:
    """JSON カラムに ISO 8601 で保存した日時を UTC で復元する

    送信待ちキューの scheduled_for などに使う。

    Raises:
        ValueError: ISO 8601 として解釈できない
    """
    return normalize_to_utc(datetime.fromisoformat(value))
