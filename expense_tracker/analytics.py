"""
Period analytics.

Ties the engine together: resolve the period, keep the expenses that fall
inside it, aggregate them, prorate income over the same window, then rate
the spending and derive suggestions. Every function here is pure; callers
pass a stable snapshot of their records and get a fresh result back.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Dict, Iterable

from expense_tracker.aggregation import (
    build_time_series,
    category_breakdown,
    filter_expenses,
    total_spent,
)
from expense_tracker.income_projection import total_income
from expense_tracker.models import (
    PERIOD_KINDS,
    AnalyticsResult,
    Expense,
    Income,
    UserSettings,
)
from expense_tracker.periods import resolve_period
from expense_tracker.rating_engine import rate_spending, savings_rate
from expense_tracker.suggestions import generate_suggestions

logger = logging.getLogger(__name__)


def compute_analytics(
    period_kind: str,
    reference_date: date | datetime | None,
    expenses: Iterable[Expense],
    incomes: Iterable[Income],
    settings: UserSettings,
) -> AnalyticsResult:
    period = resolve_period(period_kind, reference_date)
    period_expenses = filter_expenses(expenses, period.start, period.end)

    spent = total_spent(period_expenses)
    breakdown = category_breakdown(period_expenses)
    time_series = build_time_series(period_expenses, period.buckets)
    income = total_income(incomes, period.start, period.end)

    rating = rate_spending(
        spent,
        income,
        settings.budget_limits.for_period(period.kind),
    )
    suggestions = generate_suggestions(
        period_expenses,
        breakdown,
        spent,
        income,
        settings,
    )

    logger.debug(
        "Computed %s analytics for %s..%s: %d expenses, spent=%s income=%s rating=%d",
        period.kind,
        period.start,
        period.end,
        len(period_expenses),
        spent,
        income,
        rating.rating,
    )
    return AnalyticsResult(
        period=period,
        total_spent=spent,
        total_income=income,
        savings_rate=savings_rate(spent, income),
        categories_breakdown=breakdown,
        time_series=time_series,
        rating=rating.rating,
        message=rating.message,
        suggestions=tuple(suggestions),
    )


def weekly_analytics(expenses, incomes, settings, reference_date=None) -> AnalyticsResult:
    return compute_analytics("weekly", reference_date, expenses, incomes, settings)


def monthly_analytics(expenses, incomes, settings, reference_date=None) -> AnalyticsResult:
    return compute_analytics("monthly", reference_date, expenses, incomes, settings)


def yearly_analytics(expenses, incomes, settings, reference_date=None) -> AnalyticsResult:
    return compute_analytics("yearly", reference_date, expenses, incomes, settings)


def compute_all_analytics(
    reference_date: date | datetime | None,
    expenses: Iterable[Expense],
    incomes: Iterable[Income],
    settings: UserSettings,
) -> Dict[str, AnalyticsResult]:
    if reference_date is None:
        reference_date = date.today()
    expense_list = list(expenses)
    income_list = list(incomes)
    return {
        kind: compute_analytics(kind, reference_date, expense_list, income_list, settings)
        for kind in PERIOD_KINDS
    }
