from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from expense_tracker.models import ZERO, Bucket, Category, Expense, TimeSeries, coerce_amount
from expense_tracker.periods import find_bucket_index

logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY_NAME = "Unknown"
HUNDRED = Decimal("100")


def filter_expenses(
    expenses: Iterable[Expense],
    start_date: date,
    end_date: date,
) -> List[Expense]:
    if start_date > end_date:
        raise ValueError("start_date must be on or before end_date.")
    return [
        expense
        for expense in expenses
        if start_date <= expense.date <= end_date
    ]


def total_spent(expenses: Iterable[Expense]) -> Decimal:
    total = ZERO
    for expense in expenses:
        total += coerce_amount(expense.amount)
    return total


def category_breakdown(expenses: Iterable[Expense]) -> Dict[str, Decimal]:
    # Sparse: only categories with at least one expense appear, in first-seen order.
    breakdown: Dict[str, Decimal] = {}
    for expense in expenses:
        breakdown[expense.category_id] = breakdown.get(expense.category_id, ZERO) + coerce_amount(
            expense.amount
        )
    return breakdown


def build_time_series(expenses: Iterable[Expense], buckets: Iterable[Bucket]) -> TimeSeries:
    bucket_list = tuple(buckets)
    values = [ZERO for _ in bucket_list]
    for expense in expenses:
        index = find_bucket_index(bucket_list, expense.date)
        if index is None:
            continue
        values[index] += coerce_amount(expense.amount)
    return TimeSeries(
        labels=tuple(bucket.label for bucket in bucket_list),
        values=tuple(values),
    )


def category_percentages(
    breakdown: Mapping[str, Decimal],
    total: Decimal,
) -> Dict[str, Decimal]:
    if total <= 0:
        return {category_id: ZERO for category_id in breakdown}
    return {
        category_id: amount / total * HUNDRED
        for category_id, amount in breakdown.items()
    }


def find_category(categories: Iterable[Category], category_id: str) -> Optional[Category]:
    for category in categories:
        if category.id == category_id:
            return category
    return None


def find_category_by_name(categories: Iterable[Category], name: str) -> Optional[Category]:
    wanted = name.lower()
    for category in categories:
        if category.name.lower() == wanted:
            return category
    return None


def category_display_name(category_id: str, categories: Iterable[Category]) -> str:
    category = find_category(categories, category_id)
    if category is None:
        logger.warning("Expense references unknown category id %r", category_id)
        return UNKNOWN_CATEGORY_NAME
    return category.name
