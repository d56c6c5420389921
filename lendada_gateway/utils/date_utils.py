"""Date manipulation utilities"""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (all stored timestamps are naive UTC)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def add_days(from_time: datetime, days: int) -> datetime:
    return from_time + timedelta(days=days)


def to_epoch_ms(moment: datetime) -> int:
    """Naive-UTC datetime to Unix epoch milliseconds"""
    return int(moment.replace(tzinfo=timezone.utc).timestamp() * 1000)
