from datetime import date
from decimal import Decimal
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from expense_tracker.aggregation import category_display_name, category_percentages
from expense_tracker.analytics import compute_all_analytics, compute_analytics
from expense_tracker.classification_engine import classify_category
from expense_tracker.config import configure_logging, load_config, normalize_currency
from expense_tracker.income_projection import project_income
from expense_tracker.models import (
    THEMES,
    AnalyticsResult,
    BudgetLimits,
    Category,
    Expense,
    Income,
    Recurrence,
    UserProfile,
    UserSettings,
    normalize_period_kind,
)
from expense_tracker.storage import Repository, create_database_engine

config = load_config()
configure_logging(config.log_level)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

engine = create_database_engine(config.database_url)
repository = Repository(engine, default_currency=config.default_currency)


def get_repository() -> Repository:
    return repository


@app.on_event("startup")
def init_db() -> None:
    repository.initialize()


EXPENSE_SORT_KEYS = {
    "date": lambda expense: expense.date,
    "amount": lambda expense: expense.amount,
    "description": lambda expense: expense.description.lower(),
}


def validate_cents(value: Decimal, field_name: str) -> None:
    # Amounts are stored with two decimal places.
    if not value.is_finite() or value.normalize().as_tuple().exponent < -2:
        raise ValueError(f"{field_name} must have at most two decimal places.")


class RecurrenceFrequency:
    values = {"daily", "weekly", "monthly", "yearly"}

    @classmethod
    def validate(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in cls.values:
            raise ValueError("Invalid recurrence frequency.")
        return normalized


class IncomeFrequency:
    values = {
        "onetime": "one-time",
        "weekly": "weekly",
        "biweekly": "bi-weekly",
        "monthly": "monthly",
        "yearly": "yearly",
    }

    @classmethod
    def validate(cls, value: str) -> str:
        normalized = "".join(ch for ch in value.strip().lower() if ch.isalnum())
        if normalized not in cls.values:
            raise ValueError("Invalid income frequency.")
        return cls.values[normalized]


class RecurrencePayload(BaseModel):
    frequency: str
    start_date: date | None = None
    end_date: date | None = None


class ExpensePayload(BaseModel):
    amount: Decimal
    description: str
    category_id: str | None = None
    date: date
    recurrence: RecurrencePayload | None = None

    @classmethod
    def validate_payload(cls, payload: "ExpensePayload") -> "ExpensePayload":
        payload.description = payload.description.strip()
        payload.category_id = payload.category_id.strip() if payload.category_id else None
        if payload.amount <= 0:
            raise ValueError("Amount must be greater than zero.")
        validate_cents(payload.amount, "Amount")
        if not payload.description:
            raise ValueError("Description required.")
        if payload.recurrence is not None:
            payload.recurrence.frequency = RecurrenceFrequency.validate(
                payload.recurrence.frequency
            )
            if payload.recurrence.start_date is None:
                payload.recurrence.start_date = payload.date
            end_date = payload.recurrence.end_date
            if end_date is not None and end_date < payload.recurrence.start_date:
                raise ValueError("Recurrence end date must be on or after its start date.")
        return payload


class ExpenseResponse(BaseModel):
    id: str
    amount: Decimal
    description: str
    category_id: str
    category_name: str
    date: date
    recurrence: RecurrencePayload | None = None


class IncomePayload(BaseModel):
    amount: Decimal
    source: str
    frequency: str
    start_date: date
    end_date: date | None = None

    @classmethod
    def validate_payload(cls, payload: "IncomePayload") -> "IncomePayload":
        payload.source = payload.source.strip()
        payload.frequency = IncomeFrequency.validate(payload.frequency)
        if payload.amount <= 0:
            raise ValueError("Amount must be greater than zero.")
        validate_cents(payload.amount, "Amount")
        if not payload.source:
            raise ValueError("Income source required.")
        if payload.end_date is not None and payload.end_date < payload.start_date:
            raise ValueError("End date must be on or after start date.")
        return payload


class IncomeResponse(IncomePayload):
    id: str


class CategoryPayload(BaseModel):
    name: str
    color: str | None = None

    @classmethod
    def validate_payload(cls, payload: "CategoryPayload") -> "CategoryPayload":
        payload.name = payload.name.strip()
        payload.color = payload.color.strip() if payload.color else "#808080"
        if not payload.name:
            raise ValueError("Category name required.")
        return payload


class CategoryResponse(BaseModel):
    id: str
    name: str
    color: str


class SettingsPayload(BaseModel):
    weekly_limit: Decimal | None = None
    monthly_limit: Decimal | None = None
    yearly_limit: Decimal | None = None
    name: str | None = None
    email: str | None = None
    currency: str | None = None
    savings_goal: Decimal | None = None
    theme: str | None = None

    @classmethod
    def validate_payload(cls, payload: "SettingsPayload") -> "SettingsPayload":
        for field_name in ("weekly_limit", "monthly_limit", "yearly_limit", "savings_goal"):
            value = getattr(payload, field_name)
            if value is None:
                continue
            if value < 0:
                raise ValueError(f"{field_name} must not be negative.")
            validate_cents(value, field_name)
        if payload.currency is not None:
            payload.currency = normalize_currency(payload.currency)
        if payload.name is not None:
            payload.name = payload.name.strip()
            if not payload.name:
                raise ValueError("Name must not be empty.")
        if payload.email is not None:
            payload.email = payload.email.strip() or None
        if payload.theme is not None:
            payload.theme = payload.theme.strip().lower()
            if payload.theme not in THEMES:
                raise ValueError("Theme must be light, dark, or system.")
        return payload


class SettingsResponse(BaseModel):
    weekly_limit: Decimal | None = None
    monthly_limit: Decimal | None = None
    yearly_limit: Decimal | None = None
    name: str
    email: str | None = None
    currency: str
    savings_goal: Decimal
    theme: str
    categories: list[CategoryResponse]


class ClassifyPayload(BaseModel):
    description: str


class ClassifyResponse(BaseModel):
    category_id: str
    category_name: str


class BucketResponse(BaseModel):
    label: str
    start_date: date
    end_date: date


class TimeSeriesResponse(BaseModel):
    labels: list[str]
    values: list[Decimal]


class SuggestionResponse(BaseModel):
    id: str
    type: str
    category: str | None = None
    description: str
    potential_savings: Decimal | None = None
    priority: str


class AnalyticsResponse(BaseModel):
    period: str
    start_date: date
    end_date: date
    buckets: list[BucketResponse]
    total_spent: Decimal
    total_income: Decimal
    savings_rate: Decimal
    categories_breakdown: dict[str, Decimal]
    category_names: dict[str, str]
    category_percentages: dict[str, Decimal]
    time_series: TimeSeriesResponse
    rating: int
    message: str
    suggestions: list[SuggestionResponse]


class IncomeProjectionEntry(BaseModel):
    date: date
    amount: Decimal
    income_id: str
    source: str


def expense_response(expense: Expense, categories: list[Category]) -> ExpenseResponse:
    recurrence = None
    if expense.recurrence is not None:
        recurrence = RecurrencePayload(
            frequency=expense.recurrence.frequency,
            start_date=expense.recurrence.start_date,
            end_date=expense.recurrence.end_date,
        )
    return ExpenseResponse(
        id=expense.id,
        amount=expense.amount,
        description=expense.description,
        category_id=expense.category_id,
        category_name=category_display_name(expense.category_id, categories),
        date=expense.date,
        recurrence=recurrence,
    )


def income_response(income: Income) -> IncomeResponse:
    return IncomeResponse(
        id=income.id,
        amount=income.amount,
        source=income.source,
        frequency=income.frequency,
        start_date=income.start_date,
        end_date=income.end_date,
    )


def settings_response(user_settings: UserSettings) -> SettingsResponse:
    limits = user_settings.budget_limits
    profile = user_settings.profile
    return SettingsResponse(
        weekly_limit=limits.weekly,
        monthly_limit=limits.monthly,
        yearly_limit=limits.yearly,
        name=profile.name,
        email=profile.email,
        currency=profile.currency,
        savings_goal=profile.savings_goal,
        theme=user_settings.theme,
        categories=[
            CategoryResponse(id=category.id, name=category.name, color=category.color)
            for category in user_settings.categories
        ],
    )


def analytics_response(result: AnalyticsResult, categories: tuple[Category, ...]) -> AnalyticsResponse:
    period = result.period
    return AnalyticsResponse(
        period=period.kind,
        start_date=period.start,
        end_date=period.end,
        buckets=[
            BucketResponse(label=bucket.label, start_date=bucket.start, end_date=bucket.end)
            for bucket in period.buckets
        ],
        total_spent=result.total_spent,
        total_income=result.total_income,
        savings_rate=result.savings_rate,
        categories_breakdown=dict(result.categories_breakdown),
        category_names={
            category_id: category_display_name(category_id, categories)
            for category_id in result.categories_breakdown
        },
        category_percentages=category_percentages(
            result.categories_breakdown, result.total_spent
        ),
        time_series=TimeSeriesResponse(
            labels=list(result.time_series.labels),
            values=list(result.time_series.values),
        ),
        rating=result.rating,
        message=result.message,
        suggestions=[
            SuggestionResponse(
                id=suggestion.id,
                type=suggestion.type,
                category=suggestion.category,
                description=suggestion.description,
                potential_savings=suggestion.potential_savings,
                priority=suggestion.priority,
            )
            for suggestion in result.suggestions
        ],
    )


def build_expense(expense_id: str, payload: ExpensePayload, categories: list[Category]) -> Expense:
    category_id = payload.category_id or classify_category(payload.description, categories)
    recurrence = None
    if payload.recurrence is not None:
        recurrence = Recurrence(
            frequency=payload.recurrence.frequency,
            start_date=payload.recurrence.start_date,
            end_date=payload.recurrence.end_date,
        )
    return Expense(
        id=expense_id,
        amount=payload.amount,
        description=payload.description,
        category_id=category_id,
        date=payload.date,
        recurrence=recurrence,
    )


def build_income(income_id: str, payload: IncomePayload) -> Income:
    return Income(
        id=income_id,
        amount=payload.amount,
        source=payload.source,
        frequency=payload.frequency,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )


def generate_id() -> str:
    return uuid4().hex


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/expenses", response_model=list[ExpenseResponse])
def list_expenses(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    search: str | None = Query(None),
    category_id: str | None = Query(None),
    sort_by: str = Query("date"),
    order: str = Query("desc"),
    repo: Repository = Depends(get_repository),
) -> list[ExpenseResponse]:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="Start date must be on or before end date.")
    sort_key = EXPENSE_SORT_KEYS.get(sort_by)
    if sort_key is None:
        raise HTTPException(status_code=400, detail="Sort by date, amount, or description.")
    if order not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="Order must be asc or desc.")

    needle = search.strip().lower() if search else ""
    categories = repo.load_categories()
    rows = [
        expense
        for expense in repo.load_expenses()
        if (start_date is None or expense.date >= start_date)
        and (end_date is None or expense.date <= end_date)
        and (not category_id or expense.category_id == category_id)
        and needle in expense.description.lower()
    ]
    rows.sort(key=lambda expense: (sort_key(expense), expense.id), reverse=order == "desc")
    return [expense_response(expense, categories) for expense in rows]


@app.post("/expenses", response_model=ExpenseResponse)
def create_expense(
    payload: ExpensePayload, repo: Repository = Depends(get_repository)
) -> ExpenseResponse:
    try:
        payload = ExpensePayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    categories = repo.load_categories()
    expense = repo.save_expense(build_expense(generate_id(), payload, categories))
    return expense_response(expense, categories)


@app.put("/expenses/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: str,
    payload: ExpensePayload,
    repo: Repository = Depends(get_repository),
) -> ExpenseResponse:
    try:
        payload = ExpensePayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if repo.get_expense(expense_id) is None:
        raise HTTPException(status_code=404, detail="Expense not found.")
    categories = repo.load_categories()
    expense = repo.save_expense(build_expense(expense_id, payload, categories))
    return expense_response(expense, categories)


@app.delete("/expenses/{expense_id}")
def delete_expense(expense_id: str, repo: Repository = Depends(get_repository)) -> dict:
    if not repo.delete_expense(expense_id):
        raise HTTPException(status_code=404, detail="Expense not found.")
    return {"status": "deleted"}


@app.get("/incomes", response_model=list[IncomeResponse])
def list_incomes(repo: Repository = Depends(get_repository)) -> list[IncomeResponse]:
    return [income_response(income) for income in repo.load_incomes()]


@app.post("/incomes", response_model=IncomeResponse)
def create_income(
    payload: IncomePayload, repo: Repository = Depends(get_repository)
) -> IncomeResponse:
    try:
        payload = IncomePayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    income = repo.save_income(build_income(generate_id(), payload))
    return income_response(income)


@app.put("/incomes/{income_id}", response_model=IncomeResponse)
def update_income(
    income_id: str,
    payload: IncomePayload,
    repo: Repository = Depends(get_repository),
) -> IncomeResponse:
    try:
        payload = IncomePayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if repo.get_income(income_id) is None:
        raise HTTPException(status_code=404, detail="Income not found.")
    income = repo.save_income(build_income(income_id, payload))
    return income_response(income)


@app.delete("/incomes/{income_id}")
def delete_income(income_id: str, repo: Repository = Depends(get_repository)) -> dict:
    if not repo.delete_income(income_id):
        raise HTTPException(status_code=404, detail="Income not found.")
    return {"status": "deleted"}


@app.get("/income/projections", response_model=list[IncomeProjectionEntry])
def income_projections(
    start_date: date = Query(...),
    end_date: date = Query(...),
    repo: Repository = Depends(get_repository),
) -> list[IncomeProjectionEntry]:
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="Start date must be on or before end date.")

    entries: list[IncomeProjectionEntry] = []
    for income in repo.load_incomes():
        try:
            projections = project_income(income, start_date, end_date)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        entries.extend(
            IncomeProjectionEntry(
                date=projection.date,
                amount=projection.amount,
                income_id=projection.income_id,
                source=projection.source,
            )
            for projection in projections
        )

    entries.sort(key=lambda entry: (entry.date, entry.income_id))
    return entries


@app.get("/categories", response_model=list[CategoryResponse])
def list_categories(repo: Repository = Depends(get_repository)) -> list[CategoryResponse]:
    return [
        CategoryResponse(id=category.id, name=category.name, color=category.color)
        for category in repo.load_categories()
    ]


@app.post("/categories", response_model=CategoryResponse)
def create_category(
    payload: CategoryPayload, repo: Repository = Depends(get_repository)
) -> CategoryResponse:
    try:
        payload = CategoryPayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    category = Category(id=generate_id(), name=payload.name, color=payload.color)
    try:
        repo.save_category(category)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return CategoryResponse(id=category.id, name=category.name, color=category.color)


@app.put("/categories/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    payload: CategoryPayload,
    repo: Repository = Depends(get_repository),
) -> CategoryResponse:
    try:
        payload = CategoryPayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if not any(category.id == category_id for category in repo.load_categories()):
        raise HTTPException(status_code=404, detail="Category not found.")
    category = Category(id=category_id, name=payload.name, color=payload.color)
    try:
        repo.save_category(category)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return CategoryResponse(id=category.id, name=category.name, color=category.color)


@app.delete("/categories/{category_id}")
def delete_category(category_id: str, repo: Repository = Depends(get_repository)) -> dict:
    if not repo.delete_category(category_id):
        raise HTTPException(status_code=404, detail="Category not found.")
    return {"status": "deleted"}


@app.post("/categories/classify", response_model=ClassifyResponse)
def classify_expense(
    payload: ClassifyPayload, repo: Repository = Depends(get_repository)
) -> ClassifyResponse:
    categories = repo.load_categories()
    category_id = classify_category(payload.description, categories)
    return ClassifyResponse(
        category_id=category_id,
        category_name=category_display_name(category_id, categories),
    )


@app.get("/settings", response_model=SettingsResponse)
def get_settings(repo: Repository = Depends(get_repository)) -> SettingsResponse:
    return settings_response(repo.load_settings())


@app.put("/settings", response_model=SettingsResponse)
def update_settings(
    payload: SettingsPayload, repo: Repository = Depends(get_repository)
) -> SettingsResponse:
    try:
        payload = SettingsPayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    current = repo.load_settings()
    limits = current.budget_limits
    profile = current.profile
    updated = UserSettings(
        categories=current.categories,
        budget_limits=BudgetLimits(
            weekly=_pick(payload.weekly_limit, limits.weekly),
            monthly=_pick(payload.monthly_limit, limits.monthly),
            yearly=_pick(payload.yearly_limit, limits.yearly),
        ),
        profile=UserProfile(
            name=_pick(payload.name, profile.name),
            currency=_pick(payload.currency, profile.currency),
            savings_goal=_pick(payload.savings_goal, profile.savings_goal),
            email=payload.email if "email" in payload.model_fields_set else profile.email,
        ),
        theme=_pick(payload.theme, current.theme),
    )
    return settings_response(repo.save_settings(updated))


@app.get("/analytics", response_model=dict[str, AnalyticsResponse])
def all_analytics(
    reference_date: date | None = Query(None),
    repo: Repository = Depends(get_repository),
) -> dict[str, AnalyticsResponse]:
    snapshot = repo.load_snapshot()
    try:
        results = compute_all_analytics(
            reference_date, snapshot.expenses, snapshot.incomes, snapshot.settings
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        kind: analytics_response(result, snapshot.settings.categories)
        for kind, result in results.items()
    }


@app.get("/analytics/{period}", response_model=AnalyticsResponse)
def period_analytics(
    period: str,
    reference_date: date | None = Query(None),
    repo: Repository = Depends(get_repository),
) -> AnalyticsResponse:
    try:
        period_kind = normalize_period_kind(period)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    snapshot = repo.load_snapshot()
    try:
        result = compute_analytics(
            period_kind,
            reference_date,
            snapshot.expenses,
            snapshot.incomes,
            snapshot.settings,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return analytics_response(result, snapshot.settings.categories)


@app.post("/reset")
def reset_data(repo: Repository = Depends(get_repository)) -> dict:
    repo.reset()
    return {"status": "reset"}


def _pick(value, fallback):
    return fallback if value is None else value
