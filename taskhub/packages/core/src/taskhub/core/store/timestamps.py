"""时间戳存储格式

统一存为 UTC、微秒精度的 ISO 字符串，保证字典序即时间序，
overdue 判断可以直接在 SQL 中做字符串比较。
"""

from datetime import datetime

from ..models.task import ensure_utc


def format_ts(value: datetime) -> str:
    return ensure_utc(value).isoformat(timespec="microseconds")


def parse_ts(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)
