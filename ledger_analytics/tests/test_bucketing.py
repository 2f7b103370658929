import unittest
from datetime import date, timedelta

from ledger_analytics.bucketing import (
    bucket_key,
    bucket_label,
    format_month_label,
    week_start,
)


class BucketKeyTests(unittest.TestCase):
    def test_day_month_and_year_keys(self) -> None:
        day = date(2025, 1, 5)

        self.assertEqual(bucket_key(day, "day"), "2025-01-05")
        self.assertEqual(bucket_key(day, "month"), "2025-01")
        self.assertEqual(bucket_key(day, "year"), "2025")

    def test_week_keys_around_year_boundaries(self) -> None:
        cases = {
            date(2024, 12, 29): "2024-W52",
            date(2024, 12, 30): "2025-W01",
            date(2025, 1, 5): "2025-W01",
            date(2025, 1, 6): "2025-W02",
            date(2021, 1, 3): "2020-W53",
            date(2020, 12, 31): "2020-W53",
            date(2026, 1, 1): "2026-W01",
            date(2027, 1, 1): "2026-W53",
            date(2027, 1, 4): "2027-W01",
        }
        for day, expected in cases.items():
            with self.subTest(day=day):
                self.assertEqual(bucket_key(day, "week"), expected)

    def test_week_keys_agree_with_iso_calendar(self) -> None:
        day = date(2018, 12, 1)
        while day <= date(2029, 1, 31):
            iso_year, iso_week, _ = day.isocalendar()
            self.assertEqual(bucket_key(day, "week"), f"{iso_year:04d}-W{iso_week:02d}")
            day += timedelta(days=1)

    def test_granularity_is_normalized(self) -> None:
        self.assertEqual(bucket_key(date(2025, 3, 9), " Month "), "2025-03")

    def test_unknown_granularity_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            bucket_key(date(2025, 1, 5), "quarter")


class BucketLabelTests(unittest.TestCase):
    def test_day_label_is_long_form(self) -> None:
        self.assertEqual(bucket_label("2025-01-15", "day"), "January 15, 2025")

    def test_month_label(self) -> None:
        self.assertEqual(bucket_label("2025-02", "month"), "February 2025")

    def test_year_label_is_key(self) -> None:
        self.assertEqual(bucket_label("2025", "year"), "2025")

    def test_week_label_names_monday(self) -> None:
        self.assertEqual(bucket_label("2025-W01", "week"), "Week of December 30, 2024")
        self.assertEqual(bucket_label("2020-W53", "week"), "Week of December 28, 2020")
        self.assertEqual(bucket_label("2026-W53", "week"), "Week of December 28, 2026")

    def test_week_start_round_trips_with_key(self) -> None:
        day = date(2018, 12, 1)
        while day <= date(2029, 1, 31):
            monday = day - timedelta(days=day.weekday())
            key = bucket_key(day, "week")
            self.assertEqual(week_start(key), monday, key)
            day += timedelta(days=1)

    def test_malformed_keys_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            week_start("2025-01")
        with self.assertRaises(ValueError):
            week_start("2025-W54")
        with self.assertRaises(ValueError):
            format_month_label("2025-13")
        with self.assertRaises(ValueError):
            bucket_label("2025-1-5", "day")
        with self.assertRaises(ValueError):
            bucket_label("25", "year")


if __name__ == "__main__":
    unittest.main()
