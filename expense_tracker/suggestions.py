"""
Spending suggestions.

Rules run in a fixed order and every rule that applies contributes one
suggestion. The empty-period rule short-circuits the rest, and the general
fallback only fires when nothing else did.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Mapping, Optional, Sequence

from expense_tracker.aggregation import category_display_name, find_category_by_name
from expense_tracker.models import ZERO, Expense, Suggestion, UserSettings, coerce_amount

TOP_CATEGORY_INCOME_SHARE = Decimal("0.30")
TOP_CATEGORY_SAVINGS_SHARE = Decimal("0.20")
FOOD_SPENDING_SHARE = Decimal("0.30")
FOOD_SAVINGS_SHARE = Decimal("0.30")
ENTERTAINMENT_SPENDING_SHARE = Decimal("0.15")
ENTERTAINMENT_SAVINGS_SHARE = Decimal("0.40")


@dataclass(frozen=True)
class SuggestionContext:
    expenses: Sequence[Expense]
    categories_breakdown: Mapping[str, Decimal]
    total_spent: Decimal
    total_income: Decimal
    settings: UserSettings

    def __post_init__(self) -> None:
        object.__setattr__(self, "total_spent", coerce_amount(self.total_spent))
        object.__setattr__(self, "total_income", coerce_amount(self.total_income))

    @property
    def currency(self) -> str:
        return self.settings.profile.currency

    @property
    def savings_goal(self) -> Decimal:
        return coerce_amount(self.settings.profile.savings_goal or ZERO)


Rule = Callable[[SuggestionContext], Optional[Suggestion]]


def generate_suggestions(
    expenses: Sequence[Expense],
    categories_breakdown: Mapping[str, Decimal],
    total_spent: Decimal,
    total_income: Decimal,
    settings: UserSettings,
) -> List[Suggestion]:
    context = SuggestionContext(
        expenses,
        categories_breakdown,
        total_spent,
        total_income,
        settings,
    )

    if not context.expenses:
        return [start_tracking_suggestion(context)]

    suggestions: List[Suggestion] = []
    for rule in SPENDING_RULES:
        suggestion = rule(context)
        if suggestion is not None:
            suggestions.append(suggestion)

    if not suggestions:
        suggestions.append(general_allocation_suggestion(context))
    return suggestions


def start_tracking_suggestion(context: SuggestionContext) -> Suggestion:
    return Suggestion(
        id="start-tracking",
        type="allocation",
        description=(
            "Start tracking your expenses to get personalized suggestions "
            "for this period."
        ),
        priority="medium",
    )


def overspending_suggestion(context: SuggestionContext) -> Optional[Suggestion]:
    if context.total_income <= ZERO or context.total_spent <= context.total_income:
        return None
    overspent = context.total_spent - context.total_income
    return Suggestion(
        id="reduce-overspending",
        type="reduction",
        description=(
            f"You're spending {format_currency(overspent, context.currency)} more than "
            "you earn. Cut back on non-essential expenses to balance your budget."
        ),
        priority="high",
        potential_savings=overspent,
    )


def savings_goal_suggestion(context: SuggestionContext) -> Optional[Suggestion]:
    goal = context.savings_goal
    if goal <= ZERO or context.total_income <= ZERO:
        return None
    current_savings = context.total_income - context.total_spent
    if current_savings >= goal:
        return None
    shortfall = goal - current_savings
    return Suggestion(
        id="savings-goal",
        type="saving",
        description=(
            f"Save {format_currency(shortfall, context.currency)} more to reach your "
            f"savings goal of {format_currency(goal, context.currency)}."
        ),
        priority="high",
        potential_savings=shortfall,
    )


def top_category_suggestion(context: SuggestionContext) -> Optional[Suggestion]:
    if not context.categories_breakdown:
        return None
    top_category_id = None
    top_amount = ZERO
    for category_id, amount in context.categories_breakdown.items():
        if top_category_id is None or amount > top_amount:
            top_category_id = category_id
            top_amount = amount

    if context.total_income > ZERO and top_amount <= context.total_income * TOP_CATEGORY_INCOME_SHARE:
        return None

    name = category_display_name(top_category_id, context.settings.categories)
    savings = top_amount * TOP_CATEGORY_SAVINGS_SHARE
    return Suggestion(
        id=f"top-category-{top_category_id}",
        type="reduction",
        category=top_category_id,
        description=(
            f"{name} is your largest expense at "
            f"{format_currency(top_amount, context.currency)}. Reducing it by 20% "
            f"would save {format_currency(savings, context.currency)}."
        ),
        priority="medium",
        potential_savings=savings,
    )


def food_spending_suggestion(context: SuggestionContext) -> Optional[Suggestion]:
    return _category_share_suggestion(
        context,
        category_name="Food",
        spending_share=FOOD_SPENDING_SHARE,
        savings_share=FOOD_SAVINGS_SHARE,
        suggestion_id="food-savings",
        advice="Cooking at home and planning meals could cut it by 30%",
    )


def entertainment_spending_suggestion(context: SuggestionContext) -> Optional[Suggestion]:
    return _category_share_suggestion(
        context,
        category_name="Entertainment",
        spending_share=ENTERTAINMENT_SPENDING_SHARE,
        savings_share=ENTERTAINMENT_SAVINGS_SHARE,
        suggestion_id="entertainment-savings",
        advice="Reviewing subscriptions and looking for free activities could cut it by 40%",
    )


def general_allocation_suggestion(context: SuggestionContext) -> Suggestion:
    return Suggestion(
        id="general-allocation",
        type="allocation",
        description=(
            "Your spending looks balanced. Consider the 50/30/20 rule: 50% for needs, "
            "30% for wants, and 20% for savings."
        ),
        priority="medium",
    )


SPENDING_RULES: tuple[Rule, ...] = (
    overspending_suggestion,
    savings_goal_suggestion,
    top_category_suggestion,
    food_spending_suggestion,
    entertainment_spending_suggestion,
)


def format_currency(amount: Decimal, currency: str = "USD") -> str:
    return f"{currency} {coerce_amount(amount):,.2f}"


def _category_share_suggestion(
    context: SuggestionContext,
    category_name: str,
    spending_share: Decimal,
    savings_share: Decimal,
    suggestion_id: str,
    advice: str,
) -> Optional[Suggestion]:
    if context.total_spent <= ZERO:
        return None
    category = find_category_by_name(context.settings.categories, category_name)
    if category is None:
        return None
    amount = context.categories_breakdown.get(category.id, ZERO)
    if amount / context.total_spent <= spending_share:
        return None

    savings = amount * savings_share
    return Suggestion(
        id=suggestion_id,
        type="saving",
        category=category.id,
        description=(
            f"{category.name} makes up {amount / context.total_spent:.0%} of your spending. "
            f"{advice}, saving about {format_currency(savings, context.currency)}."
        ),
        priority="low",
        potential_savings=savings,
    )
