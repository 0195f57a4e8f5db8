"""UTC helpers. Datetimes are aware UTC in memory and naive UTC in MongoDB."""
from datetime import date, datetime, time, timezone, timedelta
from enum import Enum
from typing import Any, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_storage(dt: datetime) -> datetime:
    """
    Convert a datetime to the naive UTC form MongoDB stores.

    pymongo hands naive datetimes back by default, so everything written and
    every query bound goes through here to keep comparisons homogeneous.
    """
    return ensure_utc(dt).replace(tzinfo=None)


def to_storage_document(value: Any) -> Any:
    """Recursively apply to_storage to every datetime in a document, enums become their values"""
    if isinstance(value, datetime):
        return to_storage(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: to_storage_document(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_storage_document(v) for v in value]
    return value


def format_iso(dt: datetime) -> str:
    """ISO 8601 with a Z suffix"""
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def start_of_day(day: date) -> datetime:
    """First instant of a calendar day in UTC"""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    """Last instant of a calendar day in UTC"""
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


def hours_between(start: datetime, end: datetime) -> float:
    """Elapsed hours from start to end"""
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / 3600


def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    """Datetime `days` days before now"""
    return (now or utc_now()) - timedelta(days=days)
