from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import (
    Column,
    Date,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    create_engine,
    delete,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Connection, Engine

from expense_tracker.models import (
    DEFAULT_SETTINGS,
    BudgetLimits,
    Category,
    Expense,
    Income,
    Recurrence,
    UserProfile,
    UserSettings,
)

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1

metadata = MetaData()

categories = Table(
    "categories",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("color", String(20), nullable=False),
    Column("position", Integer, nullable=False),
)

# category_id carries no foreign key: deleting a category leaves its expenses in place.
expenses = Table(
    "expenses",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("description", String(500), nullable=False),
    Column("category_id", String(64), nullable=False),
    Column("date", Date, nullable=False),
    Column("recurrence_frequency", String(20)),
    Column("recurrence_start_date", Date),
    Column("recurrence_end_date", Date),
)

incomes = Table(
    "incomes",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("source", String(255), nullable=False),
    Column("frequency", String(20), nullable=False),
    Column("start_date", Date, nullable=False),
    Column("end_date", Date),
)

settings = Table(
    "settings",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255)),
    Column("currency", String(3), nullable=False),
    Column("savings_goal", Numeric(12, 2), nullable=False),
    Column("weekly_limit", Numeric(12, 2)),
    Column("monthly_limit", Numeric(12, 2)),
    Column("yearly_limit", Numeric(12, 2)),
    Column("theme", String(20), nullable=False),
)


@dataclass(frozen=True)
class LedgerSnapshot:
    expenses: Tuple[Expense, ...]
    incomes: Tuple[Income, ...]
    settings: UserSettings


def create_database_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(database_url, connect_args=connect_args)


class Repository:
    """Record store for expenses, incomes, categories and settings.

    Reads return plain frozen records; the analytics engine never sees a
    connection.
    """

    def __init__(self, engine: Engine, default_currency: str = "USD") -> None:
        self.engine = engine
        self.default_currency = default_currency

    def initialize(self) -> None:
        metadata.create_all(self.engine)
        with self.engine.begin() as conn:
            self._ensure_defaults(conn)

    def reset(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(expenses))
            conn.execute(delete(incomes))
            conn.execute(delete(categories))
            conn.execute(delete(settings))
            self._ensure_defaults(conn)
        logger.info("Reset all records to defaults")

    def load_snapshot(self) -> LedgerSnapshot:
        with self.engine.begin() as conn:
            return LedgerSnapshot(
                expenses=tuple(self._load_expenses(conn)),
                incomes=tuple(self._load_incomes(conn)),
                settings=self._load_settings(conn),
            )

    # Expenses

    def load_expenses(self) -> List[Expense]:
        with self.engine.begin() as conn:
            return self._load_expenses(conn)

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(expenses).where(expenses.c.id == expense_id)
            ).mappings().first()
        return _expense_from_row(row) if row else None

    def save_expense(self, expense: Expense) -> Expense:
        recurrence = expense.recurrence
        values = {
            "amount": expense.amount,
            "description": expense.description,
            "category_id": expense.category_id,
            "date": expense.date,
            "recurrence_frequency": recurrence.frequency if recurrence else None,
            "recurrence_start_date": recurrence.start_date if recurrence else None,
            "recurrence_end_date": recurrence.end_date if recurrence else None,
        }
        with self.engine.begin() as conn:
            self._upsert(conn, expenses, expense.id, values)
        logger.info("Saved expense %s", expense.id)
        return expense

    def delete_expense(self, expense_id: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(delete(expenses).where(expenses.c.id == expense_id))
        if result.rowcount:
            logger.info("Deleted expense %s", expense_id)
        return bool(result.rowcount)

    # Incomes

    def load_incomes(self) -> List[Income]:
        with self.engine.begin() as conn:
            return self._load_incomes(conn)

    def get_income(self, income_id: str) -> Optional[Income]:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(incomes).where(incomes.c.id == income_id)
            ).mappings().first()
        return _income_from_row(row) if row else None

    def save_income(self, income: Income) -> Income:
        values = {
            "amount": income.amount,
            "source": income.source,
            "frequency": income.frequency,
            "start_date": income.start_date,
            "end_date": income.end_date,
        }
        with self.engine.begin() as conn:
            self._upsert(conn, incomes, income.id, values)
        logger.info("Saved income %s", income.id)
        return income

    def delete_income(self, income_id: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(delete(incomes).where(incomes.c.id == income_id))
        if result.rowcount:
            logger.info("Deleted income %s", income_id)
        return bool(result.rowcount)

    # Categories

    def load_categories(self) -> List[Category]:
        with self.engine.begin() as conn:
            return self._load_categories(conn)

    def save_category(self, category: Category) -> Category:
        with self.engine.begin() as conn:
            duplicate = conn.execute(
                select(categories.c.id).where(
                    func.lower(categories.c.name) == category.name.strip().lower(),
                    categories.c.id != category.id,
                )
            ).first()
            if duplicate:
                raise ValueError("Category already exists.")
            exists = conn.execute(
                select(categories.c.id).where(categories.c.id == category.id)
            ).first()
            if exists:
                conn.execute(
                    update(categories)
                    .where(categories.c.id == category.id)
                    .values(name=category.name, color=category.color)
                )
            else:
                position = conn.execute(
                    select(func.coalesce(func.max(categories.c.position), 0))
                ).scalar_one()
                conn.execute(
                    insert(categories).values(
                        id=category.id,
                        name=category.name,
                        color=category.color,
                        position=position + 1,
                    )
                )
        logger.info("Saved category %s (%s)", category.id, category.name)
        return category

    def delete_category(self, category_id: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(delete(categories).where(categories.c.id == category_id))
        if result.rowcount:
            logger.info("Deleted category %s", category_id)
        return bool(result.rowcount)

    # Settings

    def load_settings(self) -> UserSettings:
        with self.engine.begin() as conn:
            return self._load_settings(conn)

    def save_settings(self, user_settings: UserSettings) -> UserSettings:
        """Persist budget limits and profile; categories are saved one by one."""
        profile = user_settings.profile
        limits = user_settings.budget_limits
        values = {
            "name": profile.name,
            "email": profile.email,
            "currency": profile.currency,
            "savings_goal": profile.savings_goal,
            "weekly_limit": limits.weekly,
            "monthly_limit": limits.monthly,
            "yearly_limit": limits.yearly,
            "theme": user_settings.theme,
        }
        with self.engine.begin() as conn:
            self._upsert(conn, settings, SETTINGS_ROW_ID, values)
            stored = self._load_settings(conn)
        logger.info("Saved settings")
        return stored

    def _ensure_defaults(self, conn: Connection) -> None:
        existing = conn.execute(select(settings.c.id).limit(1)).first()
        if existing:
            return
        profile = DEFAULT_SETTINGS.profile
        limits = DEFAULT_SETTINGS.budget_limits
        conn.execute(
            insert(settings).values(
                id=SETTINGS_ROW_ID,
                name=profile.name,
                email=profile.email,
                currency=self.default_currency,
                savings_goal=profile.savings_goal,
                weekly_limit=limits.weekly,
                monthly_limit=limits.monthly,
                yearly_limit=limits.yearly,
                theme=DEFAULT_SETTINGS.theme,
            )
        )
        has_categories = conn.execute(select(categories.c.id).limit(1)).first()
        if not has_categories:
            conn.execute(
                insert(categories),
                [
                    {
                        "id": category.id,
                        "name": category.name,
                        "color": category.color,
                        "position": position,
                    }
                    for position, category in enumerate(DEFAULT_SETTINGS.categories, start=1)
                ],
            )
        logger.info("Seeded default settings and categories")

    def _upsert(self, conn: Connection, table: Table, record_id, values: dict) -> None:
        exists = conn.execute(select(table.c.id).where(table.c.id == record_id)).first()
        if exists:
            conn.execute(update(table).where(table.c.id == record_id).values(**values))
        else:
            conn.execute(insert(table).values(id=record_id, **values))

    def _load_expenses(self, conn: Connection) -> List[Expense]:
        rows = conn.execute(
            select(expenses).order_by(expenses.c.date.asc(), expenses.c.id.asc())
        ).mappings().all()
        return [_expense_from_row(row) for row in rows]

    def _load_incomes(self, conn: Connection) -> List[Income]:
        rows = conn.execute(
            select(incomes).order_by(incomes.c.start_date.asc(), incomes.c.id.asc())
        ).mappings().all()
        return [_income_from_row(row) for row in rows]

    def _load_categories(self, conn: Connection) -> List[Category]:
        rows = conn.execute(
            select(categories).order_by(categories.c.position.asc(), categories.c.id.asc())
        ).mappings().all()
        return [
            Category(id=row["id"], name=row["name"], color=row["color"])
            for row in rows
        ]

    def _load_settings(self, conn: Connection) -> UserSettings:
        row = conn.execute(
            select(settings).where(settings.c.id == SETTINGS_ROW_ID)
        ).mappings().first()
        if not row:
            return DEFAULT_SETTINGS
        return UserSettings(
            categories=tuple(self._load_categories(conn)),
            budget_limits=BudgetLimits(
                weekly=row["weekly_limit"],
                monthly=row["monthly_limit"],
                yearly=row["yearly_limit"],
            ),
            profile=UserProfile(
                name=row["name"],
                currency=row["currency"],
                savings_goal=row["savings_goal"],
                email=row["email"],
            ),
            theme=row["theme"],
        )


def _expense_from_row(row) -> Expense:
    recurrence = None
    if row["recurrence_frequency"]:
        recurrence = Recurrence(
            frequency=row["recurrence_frequency"],
            start_date=row["recurrence_start_date"],
            end_date=row["recurrence_end_date"],
        )
    return Expense(
        id=row["id"],
        amount=row["amount"],
        description=row["description"],
        category_id=row["category_id"],
        date=row["date"],
        recurrence=recurrence,
    )


def _income_from_row(row) -> Income:
    return Income(
        id=row["id"],
        amount=row["amount"],
        source=row["source"],
        frequency=row["frequency"],
        start_date=row["start_date"],
        end_date=row["end_date"],
    )
