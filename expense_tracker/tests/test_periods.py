import unittest
from datetime import date, datetime, timedelta

from expense_tracker.models import Bucket
from expense_tracker.periods import (
    find_bucket_index,
    month_end,
    resolve_period,
    shift_month,
    split_weeks,
    week_start,
)


class PeriodResolverTests(unittest.TestCase):
    def test_weekly_period_runs_sunday_to_saturday(self) -> None:
        period = resolve_period("weekly", date(2024, 3, 15))

        self.assertEqual(period.kind, "weekly")
        self.assertEqual(period.start, date(2024, 3, 10))
        self.assertEqual(period.end, date(2024, 3, 16))
        self.assertEqual(
            [bucket.label for bucket in period.buckets],
            ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"],
        )
        self.assertTrue(all(bucket.start == bucket.end for bucket in period.buckets))

    def test_monthly_buckets_are_clamped_to_month(self) -> None:
        period = resolve_period("monthly", date(2024, 2, 14))

        expected = (
            Bucket(label="Week 1", start=date(2024, 2, 1), end=date(2024, 2, 3)),
            Bucket(label="Week 2", start=date(2024, 2, 4), end=date(2024, 2, 10)),
            Bucket(label="Week 3", start=date(2024, 2, 11), end=date(2024, 2, 17)),
            Bucket(label="Week 4", start=date(2024, 2, 18), end=date(2024, 2, 24)),
            Bucket(label="Week 5", start=date(2024, 2, 25), end=date(2024, 2, 29)),
        )
        self.assertEqual(period.start, date(2024, 2, 1))
        self.assertEqual(period.end, date(2024, 2, 29))
        self.assertEqual(period.buckets, expected)

    def test_monthly_period_can_end_with_single_day_week(self) -> None:
        period = resolve_period("monthly", date(2024, 3, 1))

        self.assertEqual(len(period.buckets), 6)
        self.assertEqual(
            period.buckets[-1],
            Bucket(label="Week 6", start=date(2024, 3, 31), end=date(2024, 3, 31)),
        )

    def test_yearly_period_has_one_bucket_per_month(self) -> None:
        period = resolve_period("Yearly", date(2023, 7, 4))

        self.assertEqual(period.start, date(2023, 1, 1))
        self.assertEqual(period.end, date(2023, 12, 31))
        self.assertEqual(len(period.buckets), 12)
        self.assertEqual(period.buckets[0].label, "Jan")
        self.assertEqual(period.buckets[1].end, date(2023, 2, 28))
        self.assertEqual(period.buckets[11].label, "Dec")

    def test_buckets_partition_the_period(self) -> None:
        references = [
            date(2024, 1, 1),
            date(2024, 2, 29),
            date(2023, 12, 31),
            date(2025, 6, 15),
            date(2026, 3, 1),
        ]
        for kind in ("weekly", "monthly", "yearly"):
            for reference in references:
                with self.subTest(kind=kind, reference=reference):
                    period = resolve_period(kind, reference)
                    self.assertEqual(period.buckets[0].start, period.start)
                    self.assertEqual(period.buckets[-1].end, period.end)
                    for previous, current in zip(period.buckets, period.buckets[1:]):
                        self.assertLessEqual(previous.start, previous.end)
                        self.assertEqual(current.start, previous.end + timedelta(days=1))

    def test_accepts_datetime_reference(self) -> None:
        period = resolve_period("weekly", datetime(2024, 3, 15, 23, 59))

        self.assertEqual(period.start, date(2024, 3, 10))

    def test_rejects_unknown_period_kind(self) -> None:
        with self.assertRaises(ValueError):
            resolve_period("quarterly", date(2024, 3, 15))


class DateBucketingTests(unittest.TestCase):
    def test_week_start_keeps_sunday(self) -> None:
        self.assertEqual(week_start(date(2024, 3, 10)), date(2024, 3, 10))
        self.assertEqual(week_start(date(2024, 3, 16)), date(2024, 3, 10))

    def test_month_helpers_cross_year_boundary(self) -> None:
        self.assertEqual(shift_month(date(2023, 12, 15), 1), date(2024, 1, 1))
        self.assertEqual(shift_month(date(2024, 1, 31), -1), date(2023, 12, 1))
        self.assertEqual(month_end(date(2023, 2, 10)), date(2023, 2, 28))

    def test_split_weeks_clamps_first_and_last_bucket(self) -> None:
        buckets = split_weeks(date(2024, 5, 1), date(2024, 5, 10))

        self.assertEqual(
            buckets,
            [
                Bucket(label="Week 1", start=date(2024, 5, 1), end=date(2024, 5, 4)),
                Bucket(label="Week 2", start=date(2024, 5, 5), end=date(2024, 5, 10)),
            ],
        )

    def test_find_bucket_index(self) -> None:
        period = resolve_period("monthly", date(2024, 2, 14))

        self.assertEqual(find_bucket_index(period.buckets, date(2024, 2, 4)), 1)
        self.assertEqual(find_bucket_index(period.buckets, date(2024, 2, 29)), 4)
        self.assertIsNone(find_bucket_index(period.buckets, date(2024, 3, 1)))


if __name__ == "__main__":
    unittest.main()
