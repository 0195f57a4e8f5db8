"""Bucketing - Map dates onto analytics time windows"""
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple, Union

from dateutil.relativedelta import relativedelta

from ..domain.enums import AnalyticsPeriod, ViewMode
from ..utils.time import ensure_utc


BUCKET_STEP: Dict[ViewMode, relativedelta] = {
    ViewMode.DAILY: relativedelta(days=1),
    ViewMode.WEEKLY: relativedelta(weeks=1),
    ViewMode.MONTHLY: relativedelta(months=1),
    ViewMode.BIMONTHLY: relativedelta(months=2),
    ViewMode.QUARTERLY: relativedelta(months=3),
    ViewMode.YEARLY: relativedelta(years=1),
}

# (max days spanned, view mode) - first match wins
AUTO_VIEW_MODES: Tuple[Tuple[int, ViewMode], ...] = (
    (30, ViewMode.DAILY),
    (90, ViewMode.WEEKLY),
    (180, ViewMode.MONTHLY),
    (365, ViewMode.BIMONTHLY),
    (730, ViewMode.QUARTERLY),
)


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    return value


def bucket_start(value: Union[date, datetime], view_mode: ViewMode) -> date:
    """First calendar day of the bucket containing `value`"""
    day = _as_date(value)
    if view_mode == ViewMode.DAILY:
        return day
    if view_mode == ViewMode.WEEKLY:
        return day - timedelta(days=day.weekday())  # Monday
    if view_mode == ViewMode.MONTHLY:
        return day.replace(day=1)
    if view_mode == ViewMode.BIMONTHLY:
        return date(day.year, ((day.month - 1) // 2) * 2 + 1, 1)
    if view_mode == ViewMode.QUARTERLY:
        return date(day.year, ((day.month - 1) // 3) * 3 + 1, 1)
    return date(day.year, 1, 1)


def bucket_label(start: date, view_mode: ViewMode) -> str:
    """Label of the bucket starting on `start`"""
    if view_mode in (ViewMode.DAILY, ViewMode.WEEKLY):
        return start.isoformat()
    if view_mode == ViewMode.MONTHLY:
        return f"{start.year:04d}-{start.month:02d}"
    if view_mode == ViewMode.BIMONTHLY:
        return f"{start.year:04d}-B{(start.month - 1) // 2 + 1}"
    if view_mode == ViewMode.QUARTERLY:
        return f"{start.year:04d}-Q{(start.month - 1) // 3 + 1}"
    return f"{start.year:04d}"


def bucket_key(value: Union[date, datetime], view_mode: ViewMode) -> str:
    """
    Bucket label for a date or UTC timestamp.

    DAILY -> 2024-03-15, WEEKLY -> 2024-03-11 (Monday), MONTHLY -> 2024-03,
    BIMONTHLY -> 2024-B2, QUARTERLY -> 2024-Q1, YEARLY -> 2024
    """
    return bucket_label(bucket_start(value, view_mode), view_mode)


def bucket_sequence(start: date, end: date, view_mode: ViewMode) -> List[str]:
    """
    Every bucket label touching [start, end], in chronological order.

    Partial buckets at either edge are included, so every day of the range
    maps to exactly one label of the sequence.
    """
    if start > end:
        return []

    step = BUCKET_STEP[view_mode]
    labels = []
    cursor = bucket_start(start, view_mode)
    while cursor <= end:
        labels.append(bucket_label(cursor, view_mode))
        cursor = cursor + step
    return labels


def resolve_view_mode(start: date, end: date) -> ViewMode:
    """Pick a granularity that keeps the number of buckets readable"""
    span_days = (end - start).days + 1
    for max_days, view_mode in AUTO_VIEW_MODES:
        if span_days <= max_days:
            return view_mode
    return ViewMode.YEARLY


def resolve_period_range(
    period: Optional[AnalyticsPeriod],
    today: date
) -> Tuple[date, date, ViewMode]:
    """
    Date range and granularity for a legacy period, ending today.

    With no period the current month is used, bucketed daily.
    """
    if period == AnalyticsPeriod.YEAR:
        return date(today.year, 1, 1), today, ViewMode.MONTHLY
    if period == AnalyticsPeriod.SEMIANNUAL:
        return date(today.year, 1 if today.month <= 6 else 7, 1), today, ViewMode.MONTHLY
    if period == AnalyticsPeriod.BIMONTHLY:
        return bucket_start(today, ViewMode.BIMONTHLY), today, ViewMode.MONTHLY
    return today.replace(day=1), today, ViewMode.DAILY
