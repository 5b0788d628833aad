import unittest
from datetime import date
from decimal import Decimal

from expense_tracker.aggregation import (
    build_time_series,
    category_breakdown,
    category_display_name,
    category_percentages,
    filter_expenses,
    find_category_by_name,
    total_spent,
)
from expense_tracker.models import DEFAULT_CATEGORIES, Category, Expense
from expense_tracker.periods import resolve_period


def make_expense(expense_id, amount, category_id, expense_date):
    return Expense(
        id=expense_id,
        amount=Decimal(amount),
        description=f"expense {expense_id}",
        category_id=category_id,
        date=expense_date,
    )


class AggregationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.expenses = [
            make_expense("a", "12.50", "1", date(2024, 3, 10)),
            make_expense("b", "40", "3", date(2024, 3, 13)),
            make_expense("c", "7.25", "1", date(2024, 3, 16)),
            make_expense("d", "99", "4", date(2024, 3, 17)),
            make_expense("e", "5", "1", date(2024, 3, 9)),
        ]

    def test_filter_keeps_inclusive_bounds(self) -> None:
        filtered = filter_expenses(self.expenses, date(2024, 3, 10), date(2024, 3, 16))

        self.assertEqual([expense.id for expense in filtered], ["a", "b", "c"])

    def test_filter_rejects_inverted_range(self) -> None:
        with self.assertRaises(ValueError):
            filter_expenses(self.expenses, date(2024, 3, 16), date(2024, 3, 10))

    def test_breakdown_is_sparse_and_sums_to_total(self) -> None:
        filtered = filter_expenses(self.expenses, date(2024, 3, 10), date(2024, 3, 16))

        breakdown = category_breakdown(filtered)

        self.assertEqual(breakdown, {"1": Decimal("19.75"), "3": Decimal("40")})
        self.assertEqual(sum(breakdown.values()), total_spent(filtered))
        self.assertEqual(total_spent(filtered), Decimal("59.75"))

    def test_time_series_assigns_each_expense_to_one_bucket(self) -> None:
        period = resolve_period("weekly", date(2024, 3, 15))
        filtered = filter_expenses(self.expenses, period.start, period.end)

        series = build_time_series(filtered, period.buckets)

        self.assertEqual(series.labels, ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"))
        self.assertEqual(
            series.values,
            (
                Decimal("12.50"),
                Decimal("0"),
                Decimal("0"),
                Decimal("40"),
                Decimal("0"),
                Decimal("0"),
                Decimal("7.25"),
            ),
        )
        self.assertEqual(sum(series.values), total_spent(filtered))

    def test_empty_expenses_give_zero_totals(self) -> None:
        period = resolve_period("yearly", date(2024, 3, 15))

        series = build_time_series([], period.buckets)

        self.assertEqual(total_spent([]), Decimal("0"))
        self.assertEqual(category_breakdown([]), {})
        self.assertEqual(len(series.values), 12)
        self.assertTrue(all(value == 0 for value in series.values))

    def test_percentages_guard_zero_total(self) -> None:
        breakdown = {"1": Decimal("25"), "3": Decimal("75")}

        self.assertEqual(
            category_percentages(breakdown, Decimal("100")),
            {"1": Decimal("25"), "3": Decimal("75")},
        )
        self.assertEqual(
            category_percentages(breakdown, Decimal("0")),
            {"1": Decimal("0"), "3": Decimal("0")},
        )

    def test_orphaned_category_displays_unknown(self) -> None:
        self.assertEqual(category_display_name("1", DEFAULT_CATEGORIES), "Food")
        self.assertEqual(category_display_name("deleted", DEFAULT_CATEGORIES), "Unknown")

    def test_orphaned_category_still_aggregated(self) -> None:
        expenses = [make_expense("x", "30", "deleted", date(2024, 3, 12))]

        self.assertEqual(category_breakdown(expenses), {"deleted": Decimal("30")})

    def test_find_category_by_name_is_exact_ignoring_case(self) -> None:
        categories = [Category(id="p", name=" Food "), Category(id="f", name="fOoD")]

        self.assertEqual(find_category_by_name(categories, "FOOD").id, "f")
        self.assertIsNone(find_category_by_name(categories[:1], "Food"))


if __name__ == "__main__":
    unittest.main()
