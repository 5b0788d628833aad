from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Optional, Tuple

ZERO = Decimal("0")

PERIOD_KINDS = ("weekly", "monthly", "yearly")
SUGGESTION_TYPES = {"saving", "reduction", "allocation"}
SUGGESTION_PRIORITIES = {"high", "medium", "low"}
THEMES = ("light", "dark", "system")


@dataclass(frozen=True)
class Recurrence:
    frequency: str
    start_date: date
    end_date: Optional[date] = None


@dataclass(frozen=True)
class Expense:
    id: str
    amount: Decimal
    description: str
    category_id: str
    date: date
    recurrence: Optional[Recurrence] = None


@dataclass(frozen=True)
class Income:
    id: str
    amount: Decimal
    source: str
    frequency: str
    start_date: date
    end_date: Optional[date] = None


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    color: str = "#808080"


@dataclass(frozen=True)
class BudgetLimits:
    weekly: Optional[Decimal] = None
    monthly: Optional[Decimal] = None
    yearly: Optional[Decimal] = None

    def for_period(self, kind: str) -> Decimal:
        value = getattr(self, normalize_period_kind(kind))
        if value is None:
            return ZERO
        return coerce_amount(value)


@dataclass(frozen=True)
class UserProfile:
    name: str = "Your Name"
    currency: str = "USD"
    savings_goal: Decimal = ZERO
    email: Optional[str] = None


@dataclass(frozen=True)
class UserSettings:
    categories: Tuple[Category, ...] = ()
    budget_limits: BudgetLimits = field(default_factory=BudgetLimits)
    profile: UserProfile = field(default_factory=UserProfile)
    theme: str = "light"


@dataclass(frozen=True)
class Bucket:
    label: str
    start: date
    end: date


@dataclass(frozen=True)
class Period:
    kind: str
    start: date
    end: date
    buckets: Tuple[Bucket, ...]


@dataclass(frozen=True)
class TimeSeries:
    labels: Tuple[str, ...]
    values: Tuple[Decimal, ...]


@dataclass(frozen=True)
class SpendingRating:
    rating: int
    message: str
    basis: str


@dataclass(frozen=True)
class Suggestion:
    id: str
    type: str
    description: str
    priority: str
    category: Optional[str] = None
    potential_savings: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if self.type not in SUGGESTION_TYPES:
            raise ValueError(f"Unsupported suggestion type: {self.type}")
        if self.priority not in SUGGESTION_PRIORITIES:
            raise ValueError(f"Unsupported suggestion priority: {self.priority}")


@dataclass(frozen=True)
class AnalyticsResult:
    period: Period
    total_spent: Decimal
    total_income: Decimal
    savings_rate: Decimal
    categories_breakdown: Dict[str, Decimal]
    time_series: TimeSeries
    rating: int
    message: str
    suggestions: Tuple[Suggestion, ...]


DEFAULT_CATEGORIES: Tuple[Category, ...] = (
    Category(id="1", name="Food", color="#FF5733"),
    Category(id="2", name="Transportation", color="#33A8FF"),
    Category(id="3", name="Housing", color="#33FF57"),
    Category(id="4", name="Entertainment", color="#C133FF"),
    Category(id="5", name="Education", color="#FFD133"),
    Category(id="6", name="Health", color="#FF33A8"),
    Category(id="7", name="Shopping", color="#33FFD1"),
    Category(id="8", name="Utilities", color="#D1FF33"),
    Category(id="9", name="Other", color="#808080"),
)

DEFAULT_BUDGET_LIMITS = BudgetLimits(
    weekly=Decimal("300"),
    monthly=Decimal("1200"),
    yearly=Decimal("15000"),
)

DEFAULT_SETTINGS = UserSettings(
    categories=DEFAULT_CATEGORIES,
    budget_limits=DEFAULT_BUDGET_LIMITS,
    profile=UserProfile(),
)


def normalize_period_kind(kind: str) -> str:
    normalized = kind.strip().lower()
    if normalized not in PERIOD_KINDS:
        raise ValueError("Only weekly, monthly, or yearly periods are supported.")
    return normalized


def coerce_amount(amount: Decimal | float | int | str) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))
