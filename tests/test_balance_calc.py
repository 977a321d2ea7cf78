from __future__ import annotations

import unittest
from datetime import datetime, timezone

from teamclock.models import Workday
from teamclock.services.balance_calc import BalanceResult, balance_as_of, marker_hours
from teamclock.services.targets import TargetModel

# Friday evening; the account started on Monday the 4th
NOW = datetime(2024, 3, 8, 18, 0, tzinfo=timezone.utc)
CREATED_AT = datetime(2024, 3, 4, 7, 0, tzinfo=timezone.utc)
TARGETS = TargetModel.build(daily_target=8, work_days=[1, 2, 3, 4, 5])


def _marker(day: int, start_hour: float, end_hour: float | None, *, month: int = 3) -> Workday:
    start = datetime(2024, month, day, int(start_hour), int((start_hour % 1) * 60), tzinfo=timezone.utc)
    end = None
    if end_hour is not None:
        end = datetime(2024, month, day, int(end_hour), int((end_hour % 1) * 60), tzinfo=timezone.utc)
    return Workday(workday_start_time=start, workday_end_time=end)


class BalanceCalculatorTests(unittest.TestCase):
    def test_overtime_when_worked_exceeds_target(self) -> None:
        markers = [_marker(day, 8, 16.5) for day in (4, 5, 6, 7)] + [_marker(8, 8, 16)]

        result = balance_as_of(NOW, markers, TARGETS, CREATED_AT)

        self.assertAlmostEqual(result.total_worked_hours, 42.0)
        self.assertAlmostEqual(result.total_target_hours, 40.0)
        self.assertAlmostEqual(result.balance, 2.0)
        self.assertAlmostEqual(result.overtime, 2.0)
        self.assertEqual(result.deficit, 0.0)
        self.assertEqual(result.days_worked, 5)
        self.assertAlmostEqual(result.today_worked, 8.0)

    def test_deficit_when_worked_below_target(self) -> None:
        markers = [_marker(day, 8, 15.5) for day in (4, 5, 6, 7)]

        result = balance_as_of(NOW, markers, TARGETS, CREATED_AT)

        self.assertAlmostEqual(result.total_worked_hours, 30.0)
        self.assertAlmostEqual(result.balance, -10.0)
        self.assertAlmostEqual(result.deficit, 10.0)
        self.assertEqual(result.overtime, 0.0)
        self.assertEqual(result.today_worked, 0.0)

    def test_open_marker_counts_only_today(self) -> None:
        markers = [_marker(7, 8, None), _marker(8, 9, None)]

        result = balance_as_of(NOW, markers, TARGETS, CREATED_AT)

        self.assertAlmostEqual(result.total_worked_hours, 9.0)
        self.assertAlmostEqual(result.today_worked, 9.0)

    def test_one_marker_per_day(self) -> None:
        markers = [_marker(5, 7, 9), _marker(5, 10, 12)]

        result = balance_as_of(NOW, markers, TARGETS, CREATED_AT)

        self.assertAlmostEqual(result.total_worked_hours, 2.0)

    def test_markers_outside_window_are_ignored(self) -> None:
        markers = [
            _marker(28, 8, 16, month=2),
            _marker(8, 19, 21),
        ]

        result = balance_as_of(NOW, markers, TARGETS, CREATED_AT)

        self.assertEqual(result.total_worked_hours, 0.0)

    def test_target_starts_at_month_start_for_old_accounts(self) -> None:
        result = balance_as_of(NOW, [], TARGETS, datetime(2023, 1, 1, tzinfo=timezone.utc))

        # Friday 1st plus Monday 4th to Friday 8th
        self.assertAlmostEqual(result.total_target_hours, 48.0)
        self.assertEqual(result.days_worked, 6)

    def test_marker_hours_for_inverted_interval(self) -> None:
        marker = _marker(5, 12, 10)

        self.assertEqual(marker_hours(marker, is_today=False, now=NOW), 0.0)

    def test_result_properties(self) -> None:
        result = BalanceResult(total_worked_hours=5.0, total_target_hours=5.0, days_worked=1, today_worked=0.0)

        self.assertEqual(result.balance, 0.0)
        self.assertEqual(result.overtime, 0.0)
        self.assertEqual(result.deficit, 0.0)


if __name__ == "__main__":
    unittest.main()
