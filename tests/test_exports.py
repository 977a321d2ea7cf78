from __future__ import annotations

import unittest
from datetime import date, datetime, timezone
from io import BytesIO
from zoneinfo import ZoneInfo

from openpyxl import load_workbook

from teamclock.models import TimeBreak, TimeEntry, Workday
from teamclock.services.exports import (
    DAILY_HEADERS,
    build_monthly_report_xlsx_bytes,
    hours_to_hhmm,
    notes_by_day,
)
from teamclock.services.report_calc import build_monthly_report
from teamclock.services.targets import TargetModel

NOW = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)
UTC = ZoneInfo("UTC")


def _utc(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 5, day, hour, minute, tzinfo=timezone.utc)


class HoursFormattingTests(unittest.TestCase):
    def test_hours_to_hhmm(self) -> None:
        self.assertEqual(hours_to_hhmm(7.5), "07:30")
        self.assertEqual(hours_to_hhmm(0.0), "00:00")
        self.assertEqual(hours_to_hhmm(26.25), "26:15")
        self.assertEqual(hours_to_hhmm(-1.0), "00:00")


class NotesByDayTests(unittest.TestCase):
    def test_descriptions_grouped_by_local_day(self) -> None:
        entries = [
            TimeEntry(start_time=_utc(15, 9), end_time=_utc(15, 10), description="Standup"),
            TimeEntry(start_time=_utc(15, 11), end_time=_utc(15, 12), description="  Review  "),
            TimeEntry(start_time=_utc(15, 22), end_time=_utc(15, 23), description="Hotfix"),
            TimeEntry(start_time=_utc(16, 9), end_time=_utc(16, 10), description="   "),
        ]

        notes = notes_by_day(entries, ZoneInfo("Europe/Istanbul"))

        self.assertEqual(notes, {date(2024, 5, 15): "Standup; Review", date(2024, 5, 16): "Hotfix"})


class MonthlyWorkbookTests(unittest.TestCase):
    def _workbook_rows(self) -> list[tuple]:
        entry = TimeEntry(
            start_time=_utc(15, 9),
            end_time=_utc(15, 17),
            is_manual=True,
            description="Migration",
            breaks=[TimeBreak(start_time=_utc(15, 12), end_time=_utc(15, 12, 30))],
        )
        marker = Workday(workday_start_time=_utc(15, 9), workday_end_time=_utc(15, 17))
        targets = TargetModel.build(daily_target=8, work_days=[1, 2, 3, 4, 5])
        report = build_monthly_report([entry], [marker], date(2024, 5, 1), targets, now=NOW, tz=UTC)

        payload = build_monthly_report_xlsx_bytes(
            user_label="dev@example.com",
            year=2024,
            month=5,
            report=report,
            notes=notes_by_day([entry], UTC),
            tz=UTC,
            generated_at=NOW,
        )
        workbook = load_workbook(BytesIO(payload))
        self.assertEqual(workbook.active.title, "2024-05")
        return list(workbook.active.iter_rows(values_only=True))

    def test_header_and_day_rows(self) -> None:
        rows = self._workbook_rows()

        self.assertEqual(rows[0][0], "MONTHLY TIME REPORT")
        self.assertEqual(rows[1][:2], ("User", "dev@example.com"))
        header_index = next(index for index, row in enumerate(rows) if row and row[0] == "Date")
        self.assertEqual(list(rows[header_index][: len(DAILY_HEADERS)]), DAILY_HEADERS)

        day_rows = rows[header_index + 1 : header_index + 32]
        self.assertEqual(len(day_rows), 31)
        may_fifteenth = day_rows[14]
        self.assertEqual(may_fifteenth[1], "Wednesday")
        self.assertEqual(may_fifteenth[4], "08:00")
        self.assertEqual(may_fifteenth[5], "07:30")
        self.assertEqual(may_fifteenth[6], "08:00")
        self.assertEqual(may_fifteenth[7], "MISSED")
        self.assertEqual(may_fifteenth[8], "Yes")
        self.assertEqual(may_fifteenth[9], "Migration")
        self.assertEqual(day_rows[30][7], "PENDING")

    def test_summary_area(self) -> None:
        rows = self._workbook_rows()

        summary = {row[0]: row[1] for row in rows if row and row[0] in {"Total Net", "Total Target", "Balance"}}
        self.assertEqual(summary["Total Net"], "07:30")
        # 14 work days from the 1st through the 20th
        self.assertEqual(summary["Total Target"], "112:00")
        self.assertEqual(summary["Balance"], "-104:30")


if __name__ == "__main__":
    unittest.main()
