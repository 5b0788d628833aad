import unittest
from dataclasses import replace
from datetime import date
from decimal import Decimal

from expense_tracker.analytics import (
    compute_all_analytics,
    compute_analytics,
    monthly_analytics,
    weekly_analytics,
)
from expense_tracker.models import DEFAULT_SETTINGS, BudgetLimits, Expense, Income


def make_expense(expense_id, amount, category_id, expense_date):
    return Expense(
        id=expense_id,
        amount=Decimal(amount),
        description=f"expense {expense_id}",
        category_id=category_id,
        date=expense_date,
    )


class ComputeAnalyticsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.expenses = [
            make_expense("a", "20", "1", date(2024, 3, 10)),
            make_expense("b", "30", "3", date(2024, 3, 15)),
            make_expense("c", "10", "1", date(2024, 3, 16)),
            make_expense("d", "100", "4", date(2024, 3, 17)),
            make_expense("e", "45.5", "7", date(2024, 3, 9)),
            make_expense("f", "200", "3", date(2024, 2, 20)),
            make_expense("g", "15", "2", date(2023, 12, 31)),
        ]
        self.salary = Income(
            id="salary",
            amount=Decimal("1000"),
            source="Salary",
            frequency="monthly",
            start_date=date(2024, 1, 1),
        )

    def test_weekly_analytics_without_income_uses_budget(self) -> None:
        result = compute_analytics(
            "weekly",
            date(2024, 3, 15),
            self.expenses,
            [],
            DEFAULT_SETTINGS,
        )

        self.assertEqual(result.period.start, date(2024, 3, 10))
        self.assertEqual(result.period.end, date(2024, 3, 16))
        self.assertEqual(result.total_spent, Decimal("60"))
        self.assertEqual(result.total_income, Decimal("0"))
        self.assertEqual(result.savings_rate, Decimal("0"))
        self.assertEqual(result.categories_breakdown, {"1": Decimal("30"), "3": Decimal("30")})
        self.assertEqual(
            result.time_series.values,
            tuple(Decimal(value) for value in ("20", "0", "0", "0", "0", "30", "10")),
        )
        # 60 of a 300 weekly budget.
        self.assertEqual(result.rating, 5)
        self.assertIn("under your budget", result.message)

    def test_monthly_analytics_with_income(self) -> None:
        expenses = [
            make_expense("rent", "450", "3", date(2024, 2, 1)),
            make_expense("food", "150", "1", date(2024, 2, 29)),
        ]

        result = compute_analytics(
            "monthly",
            date(2024, 2, 14),
            expenses,
            [self.salary],
            DEFAULT_SETTINGS,
        )

        self.assertEqual(result.total_income, Decimal("1000"))
        self.assertEqual(result.total_spent, Decimal("600"))
        self.assertEqual(result.savings_rate, Decimal("40"))
        self.assertEqual(result.rating, 4)
        self.assertEqual(result.time_series.labels, ("Week 1", "Week 2", "Week 3", "Week 4", "Week 5"))
        self.assertEqual(result.time_series.values[0], Decimal("450"))
        self.assertEqual(result.time_series.values[-1], Decimal("150"))

    def test_empty_period_suggests_tracking(self) -> None:
        result = compute_analytics(
            "weekly",
            date(2025, 7, 2),
            self.expenses,
            [self.salary],
            DEFAULT_SETTINGS,
        )

        self.assertEqual(result.total_spent, Decimal("0"))
        self.assertEqual(result.categories_breakdown, {})
        self.assertEqual(len(result.suggestions), 1)
        self.assertEqual(result.suggestions[0].type, "allocation")

    def test_unset_budget_and_no_income_is_neutral(self) -> None:
        settings = replace(DEFAULT_SETTINGS, budget_limits=BudgetLimits())

        result = compute_analytics("yearly", date(2024, 6, 1), self.expenses, [], settings)

        self.assertEqual(result.rating, 3)

    def test_series_and_breakdown_sum_to_total(self) -> None:
        for kind in ("weekly", "monthly", "yearly"):
            for reference in (date(2024, 3, 15), date(2024, 2, 20), date(2023, 12, 31)):
                with self.subTest(kind=kind, reference=reference):
                    result = compute_analytics(
                        kind, reference, self.expenses, [self.salary], DEFAULT_SETTINGS
                    )
                    self.assertEqual(sum(result.time_series.values), result.total_spent)
                    self.assertEqual(sum(result.categories_breakdown.values()), result.total_spent)
                    self.assertEqual(
                        len(result.time_series.values), len(result.period.buckets)
                    )

    def test_identical_inputs_give_equal_results(self) -> None:
        first = compute_analytics(
            "monthly", date(2024, 3, 15), self.expenses, [self.salary], DEFAULT_SETTINGS
        )
        second = compute_analytics(
            "monthly", date(2024, 3, 15), self.expenses, [self.salary], DEFAULT_SETTINGS
        )

        self.assertEqual(first, second)

    def test_period_wrappers_match_compute_analytics(self) -> None:
        reference = date(2024, 3, 15)

        self.assertEqual(
            weekly_analytics(self.expenses, [], DEFAULT_SETTINGS, reference),
            compute_analytics("weekly", reference, self.expenses, [], DEFAULT_SETTINGS),
        )
        self.assertEqual(
            monthly_analytics(self.expenses, [], DEFAULT_SETTINGS, reference).total_spent,
            Decimal("205.5"),
        )

    def test_compute_all_analytics_covers_every_period(self) -> None:
        results = compute_all_analytics(
            date(2024, 3, 15), iter(self.expenses), iter([self.salary]), DEFAULT_SETTINGS
        )

        self.assertEqual(list(results), ["weekly", "monthly", "yearly"])
        self.assertEqual(results["yearly"].total_spent, Decimal("405.5"))
        self.assertEqual(results["yearly"].total_income, Decimal("12000"))


if __name__ == "__main__":
    unittest.main()
