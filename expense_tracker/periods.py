"""
Calendar-aware period resolution and date bucketing.

A period is one calendar week (Sunday through Saturday), month, or year.
Its buckets partition the period exactly: the first bucket opens on the
period start and the last one closes on the period end, even when that
makes them shorter than a full week or month.
"""

from __future__ import annotations

import logging
from calendar import monthrange
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from expense_tracker.models import Bucket, Period, normalize_period_kind

logger = logging.getLogger(__name__)

WEEKLY_DAYS = 7
# date.weekday() value of the first day of the week (Sunday).
WEEK_STARTS_ON = 6

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_LABELS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def resolve_period(kind: str, reference: date | datetime | None = None) -> Period:
    normalized_kind = normalize_period_kind(kind)
    reference_date = _as_date(reference)

    if normalized_kind == "weekly":
        start = week_start(reference_date)
        end = week_end(reference_date)
        buckets = split_days(start, end)
    elif normalized_kind == "monthly":
        start = month_start(reference_date)
        end = month_end(reference_date)
        buckets = split_weeks(start, end)
    else:
        start = year_start(reference_date)
        end = year_end(reference_date)
        buckets = split_months(start, end)

    logger.debug(
        "Resolved %s period %s..%s with %d buckets",
        normalized_kind,
        start,
        end,
        len(buckets),
    )
    return Period(kind=normalized_kind, start=start, end=end, buckets=tuple(buckets))


def find_bucket_index(buckets: Tuple[Bucket, ...], value: date) -> Optional[int]:
    for index, bucket in enumerate(buckets):
        if bucket.start <= value <= bucket.end:
            return index
    return None


def week_start(value: date) -> date:
    offset = (value.weekday() - WEEK_STARTS_ON) % WEEKLY_DAYS
    return value - timedelta(days=offset)


def week_end(value: date) -> date:
    return week_start(value) + timedelta(days=WEEKLY_DAYS - 1)


def month_start(value: date) -> date:
    return value.replace(day=1)


def month_end(value: date) -> date:
    return value.replace(day=monthrange(value.year, value.month)[1])


def year_start(value: date) -> date:
    return date(value.year, 1, 1)


def year_end(value: date) -> date:
    return date(value.year, 12, 31)


def shift_month(value: date, months: int) -> date:
    month_index = (value.year * 12 + value.month - 1) + months
    year = month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1)


def split_days(start: date, end: date) -> List[Bucket]:
    _check_range(start, end)
    buckets: List[Bucket] = []
    cursor = start
    while cursor <= end:
        buckets.append(
            Bucket(label=WEEKDAY_LABELS[cursor.weekday()], start=cursor, end=cursor)
        )
        cursor += timedelta(days=1)
    return buckets


def split_weeks(start: date, end: date) -> List[Bucket]:
    _check_range(start, end)
    buckets: List[Bucket] = []
    cursor = week_start(start)
    while cursor <= end:
        bucket_start = max(cursor, start)
        bucket_end = min(cursor + timedelta(days=WEEKLY_DAYS - 1), end)
        buckets.append(
            Bucket(
                label=f"Week {len(buckets) + 1}",
                start=bucket_start,
                end=bucket_end,
            )
        )
        cursor += timedelta(days=WEEKLY_DAYS)
    return buckets


def split_months(start: date, end: date) -> List[Bucket]:
    _check_range(start, end)
    buckets: List[Bucket] = []
    cursor = month_start(start)
    while cursor <= end:
        bucket_start = max(cursor, start)
        bucket_end = min(month_end(cursor), end)
        buckets.append(
            Bucket(
                label=MONTH_LABELS[cursor.month - 1],
                start=bucket_start,
                end=bucket_end,
            )
        )
        cursor = shift_month(cursor, 1)
    return buckets


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise ValueError("start must be on or before end.")


def _as_date(value: date | datetime | None) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value
