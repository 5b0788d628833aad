from __future__ import annotations

import logging
from calendar import monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List

from expense_tracker.models import ZERO, Income, coerce_amount

logger = logging.getLogger(__name__)

WEEKLY_DAYS = 7
BIWEEKLY_DAYS = 14
DAYS_PER_YEAR = Decimal("365")
SUPPORTED_FREQUENCIES = {"onetime", "weekly", "biweekly", "monthly", "yearly"}


@dataclass(frozen=True)
class ProjectedIncome:
    date: date
    amount: Decimal
    income_id: str
    source: str


def project_income(income: Income, range_start: date, range_end: date) -> List[ProjectedIncome]:
    """Dated occurrences of ``income`` between ``range_start`` and ``range_end``.

    Occurrences are anchored on the income's start date and stop at its end
    date when one is set. Yearly incomes produce their anniversaries.
    """
    _validate_income(income, range_start, range_end)
    frequency = _validate_frequency(income.frequency)

    window_start = max(range_start, income.start_date)
    window_end = range_end if income.end_date is None else min(range_end, income.end_date)
    if window_start > window_end:
        return []

    if frequency == "onetime":
        if window_start <= income.start_date <= window_end:
            return [_projection(income, income.start_date)]
        return []

    projections: List[ProjectedIncome] = []
    if frequency in {"monthly", "yearly"}:
        month_increment = 1 if frequency == "monthly" else 12
        current_date, month_offset = _first_monthly_on_or_after(
            income.start_date, window_start, month_increment
        )
        while current_date <= window_end:
            projections.append(_projection(income, current_date))
            month_offset += month_increment
            current_date = _add_months(income.start_date, month_offset, income.start_date.day)
    else:
        interval = WEEKLY_DAYS if frequency == "weekly" else BIWEEKLY_DAYS
        current_date = _first_occurrence_on_or_after(income.start_date, window_start, interval)
        while current_date <= window_end:
            projections.append(_projection(income, current_date))
            current_date += timedelta(days=interval)

    return projections


def prorate_income(income: Income, range_start: date, range_end: date) -> Decimal:
    _validate_income(income, range_start, range_end)
    frequency = _validate_frequency(income.frequency)
    if not _is_active_within(income, range_start, range_end):
        return ZERO

    amount = coerce_amount(income.amount)
    if frequency == "yearly":
        # Fraction of a 365-day year, regardless of where the anniversary falls.
        window_days = (range_end - range_start).days + 1
        return amount * Decimal(window_days) / DAYS_PER_YEAR

    occurrences = len(project_income(income, range_start, range_end))
    return amount * occurrences


def total_income(incomes: Iterable[Income], range_start: date, range_end: date) -> Decimal:
    total = ZERO
    for income in incomes:
        total += prorate_income(income, range_start, range_end)
    logger.debug("Prorated income for %s..%s: %s", range_start, range_end, total)
    return max(total, ZERO)


def _is_active_within(income: Income, range_start: date, range_end: date) -> bool:
    if income.start_date > range_end:
        return False
    if income.end_date is not None and income.end_date < range_start:
        return False
    return True


def _validate_income(income: Income, range_start: date, range_end: date) -> None:
    if range_start > range_end:
        raise ValueError("range_start must be on or before range_end.")
    if coerce_amount(income.amount) <= 0:
        raise ValueError("income.amount must be greater than zero.")
    if income.end_date is not None and income.end_date < income.start_date:
        raise ValueError("income.end_date must be on or after income.start_date.")


def _validate_frequency(frequency: str) -> str:
    normalized = _normalize_frequency(frequency)
    if normalized == "byweekly":
        normalized = "biweekly"
    if normalized not in SUPPORTED_FREQUENCIES:
        raise ValueError(
            "Only one-time, weekly, bi-weekly, monthly, or yearly incomes are supported."
        )
    return normalized


def _normalize_frequency(value: str) -> str:
    return "".join(ch for ch in value.strip().lower() if ch.isalnum())


def _projection(income: Income, occurrence: date) -> ProjectedIncome:
    return ProjectedIncome(
        date=occurrence,
        amount=coerce_amount(income.amount),
        income_id=income.id,
        source=income.source,
    )


def _first_occurrence_on_or_after(
    start_date: date, minimum_date: date, interval_days: int
) -> date:
    if start_date >= minimum_date:
        return start_date
    days_between = (minimum_date - start_date).days
    intervals = (days_between + interval_days - 1) // interval_days
    return start_date + timedelta(days=interval_days * intervals)


def _first_monthly_on_or_after(
    start_date: date, minimum_date: date, month_increment: int
) -> tuple[date, int]:
    if start_date >= minimum_date:
        return start_date, 0
    months_between = (minimum_date.year - start_date.year) * 12 + (
        minimum_date.month - start_date.month
    )
    months_between -= months_between % month_increment
    candidate = _add_months(start_date, months_between, start_date.day)
    while candidate < minimum_date:
        months_between += month_increment
        candidate = _add_months(start_date, months_between, start_date.day)
    return candidate, months_between


def _add_months(start_date: date, months: int, anchor_day: int) -> date:
    total_month = start_date.month - 1 + months
    year = start_date.year + total_month // 12
    month = total_month % 12 + 1
    last_day = monthrange(year, month)[1]
    day = min(anchor_day, last_day)
    return date(year, month, day)
