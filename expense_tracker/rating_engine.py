from __future__ import annotations

from decimal import Decimal
from typing import Tuple

from expense_tracker.models import ZERO, SpendingRating, coerce_amount

HUNDRED = Decimal("100")

# (upper bound in percent, rating, message); the bound is inclusive.
INCOME_THRESHOLDS: Tuple[Tuple[Decimal, int, str], ...] = (
    (Decimal("50"), 5, "Excellent! You're saving more than half of your income."),
    (Decimal("70"), 4, "Great job! You're saving a good portion of your income."),
    (Decimal("90"), 3, "Good, but there's room to save more of your income."),
    (Decimal("100"), 2, "Caution! You're spending almost all of your income."),
)
INCOME_OVERSPENT = (1, "Alert! You're spending more than you earn. Try to reduce spending.")

BUDGET_THRESHOLDS: Tuple[Tuple[Decimal, int, str], ...] = (
    (Decimal("50"), 5, "Excellent! You're well under your budget. Keep it up!"),
    (Decimal("75"), 4, "Great job! You're managing your spending well."),
    (Decimal("90"), 3, "Good, but keep an eye on your spending to stay within budget."),
    (Decimal("100"), 2, "Caution! You're approaching your budget limit."),
)
BUDGET_OVERSPENT = (1, "Alert! You've exceeded your budget. Try to reduce spending.")

NEUTRAL_RATING = SpendingRating(
    rating=3,
    message="Set a budget limit or add your income to get personalized spending feedback.",
    basis="none",
)


def rate_spending(
    total_spent: Decimal,
    total_income: Decimal = ZERO,
    budget_limit: Decimal = ZERO,
) -> SpendingRating:
    """Rate a period's spending from 1 (worst) to 5 (best).

    Income, when known, wins over the budget limit: the rating then reflects
    the share of income spent. Without either the rating is a neutral 3.
    """
    spent = coerce_amount(total_spent)
    income = coerce_amount(total_income)
    limit = coerce_amount(budget_limit)

    if income > ZERO:
        return _rate_ratio(
            spending_ratio(spent, income),
            INCOME_THRESHOLDS,
            INCOME_OVERSPENT,
            basis="income",
        )
    if limit > ZERO:
        return _rate_ratio(
            spending_ratio(spent, limit),
            BUDGET_THRESHOLDS,
            BUDGET_OVERSPENT,
            basis="budget",
        )
    return NEUTRAL_RATING


def spending_ratio(total_spent: Decimal, reference: Decimal) -> Decimal:
    if reference <= ZERO:
        return ZERO
    return coerce_amount(total_spent) / coerce_amount(reference) * HUNDRED


def savings_rate(total_spent: Decimal, total_income: Decimal) -> Decimal:
    income = coerce_amount(total_income)
    if income <= ZERO:
        return ZERO
    return (income - coerce_amount(total_spent)) / income * HUNDRED


def _rate_ratio(
    ratio: Decimal,
    thresholds: Tuple[Tuple[Decimal, int, str], ...],
    overspent: Tuple[int, str],
    basis: str,
) -> SpendingRating:
    for upper_bound, rating, message in thresholds:
        if ratio <= upper_bound:
            return SpendingRating(rating=rating, message=message, basis=basis)
    rating, message = overspent
    return SpendingRating(rating=rating, message=message, basis=basis)
