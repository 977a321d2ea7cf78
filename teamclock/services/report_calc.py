from __future__ import annotations

from calendar import monthrange
from collections import defaultdict
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Literal

from teamclock.services.targets import TargetModel

DayStatus = Literal["MET", "MISSED", "OFF", "PENDING"]

SECONDS_PER_HOUR = 3600.0
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class DailyReport:
    date: date
    day_name: str
    is_work_day: bool
    target_hours: float
    start_time: datetime | None
    end_time: datetime | None
    total_duration_hours: float
    net_hours: float
    status: DayStatus
    has_manual_entries: bool
    session_range: str


@dataclass(frozen=True)
class MonthlyReport:
    days: tuple[DailyReport, ...]
    total_monthly_hours: float
    total_target_hours: float
    start_date: date | None = None
    end_date: date | None = None


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_date(value: datetime, tz: tzinfo) -> date:
    return to_utc(value).astimezone(tz).date()


def month_bounds(anchor: date) -> tuple[date, date]:
    days_in_month = monthrange(anchor.year, anchor.month)[1]
    return date(anchor.year, anchor.month, 1), date(anchor.year, anchor.month, days_in_month)


def iter_days(start_date: date, end_date: date) -> Iterator[date]:
    cursor = start_date
    while cursor <= end_date:
        yield cursor
        cursor += timedelta(days=1)


def select_authoritative_marker(markers: Sequence[Any]) -> Any | None:
    """Pick the marker that speaks for a day: the open one, else the latest started."""
    if not markers:
        return None
    open_markers = [marker for marker in markers if marker.workday_end_time is None]
    candidates = open_markers or list(markers)
    return max(candidates, key=lambda marker: to_utc(marker.workday_start_time))


def group_by_local_day(records: Sequence[Any], *, attr: str, tz: tzinfo) -> dict[date, list[Any]]:
    grouped: dict[date, list[Any]] = defaultdict(list)
    for record in records:
        grouped[local_date(getattr(record, attr), tz)].append(record)
    return grouped


def _format_hhmm(value: datetime | None, tz: tzinfo) -> str:
    if value is None:
        return "--:--"
    return f"{to_utc(value).astimezone(tz):%H:%M}"


def session_range_label(marker: Any | None, tz: tzinfo) -> str:
    if marker is None:
        return "-"
    return f"{_format_hhmm(marker.workday_start_time, tz)} - {_format_hhmm(marker.workday_end_time, tz)}"


def _break_seconds(entry: Any, *, session_start: datetime, session_end: datetime, now: datetime) -> float:
    total = 0.0
    for item in entry.breaks or ():
        break_start = max(to_utc(item.start_time), session_start)
        break_end = min(to_utc(item.end_time) if item.end_time is not None else now, session_end)
        if break_end > break_start:
            total += (break_end - break_start).total_seconds()
    return total


def session_hours(entry: Any, *, is_today: bool, now: datetime) -> tuple[float, float]:
    """Return (gross, net) hours for one entry.

    An entry without an end runs until ``now`` only on the current day; on a
    past day it contributes nothing.
    """
    session_start = to_utc(entry.start_time)
    if entry.end_time is not None:
        session_end = to_utc(entry.end_time)
    elif is_today:
        session_end = now
    else:
        return 0.0, 0.0

    if session_end <= session_start:
        return 0.0, 0.0

    gross_seconds = (session_end - session_start).total_seconds()
    net_seconds = max(
        0.0,
        gross_seconds - _break_seconds(entry, session_start=session_start, session_end=session_end, now=now),
    )
    return gross_seconds / SECONDS_PER_HOUR, net_seconds / SECONDS_PER_HOUR


def aggregate_day(
    day_value: date,
    entries: Sequence[Any],
    markers: Sequence[Any],
    targets: TargetModel,
    now: datetime,
    *,
    tz: tzinfo = timezone.utc,
) -> DailyReport:
    now_utc = to_utc(now)
    today = now_utc.astimezone(tz).date()
    is_today = day_value == today

    marker = select_authoritative_marker(
        [item for item in markers if local_date(item.workday_start_time, tz) == day_value]
    )
    day_entries = sorted(
        (entry for entry in entries if local_date(entry.start_time, tz) == day_value),
        key=lambda entry: to_utc(entry.start_time),
    )

    total_hours = 0.0
    net_hours = 0.0
    for entry in day_entries:
        gross, net = session_hours(entry, is_today=is_today, now=now_utc)
        total_hours += gross
        net_hours += net

    target_hours = targets.hours_for(day_value)
    is_work_day = target_hours > 0

    status: DayStatus
    if not is_work_day:
        status = "OFF"
    elif day_value > today:
        status = "PENDING"
    elif net_hours >= target_hours:
        status = "MET"
    else:
        status = "MISSED"

    return DailyReport(
        date=day_value,
        day_name=DAY_NAMES[day_value.weekday()],
        is_work_day=is_work_day,
        target_hours=target_hours,
        start_time=to_utc(marker.workday_start_time) if marker is not None else None,
        end_time=(
            to_utc(marker.workday_end_time)
            if marker is not None and marker.workday_end_time is not None
            else None
        ),
        total_duration_hours=total_hours,
        net_hours=net_hours,
        status=status,
        has_manual_entries=any(bool(entry.is_manual) for entry in day_entries),
        session_range=session_range_label(marker, tz),
    )


def effective_report_range(
    month_anchor: date,
    *,
    account_created_at: datetime | None,
    limit_end: datetime | None,
    tz: tzinfo,
) -> tuple[date, date]:
    start_date, end_date = month_bounds(month_anchor)
    if account_created_at is not None:
        start_date = max(start_date, local_date(account_created_at, tz))
    if limit_end is not None:
        end_date = min(end_date, local_date(limit_end, tz))
    return start_date, end_date


def build_monthly_report(
    entries: Sequence[Any],
    markers: Sequence[Any],
    month_anchor: date,
    targets: TargetModel,
    *,
    now: datetime,
    account_created_at: datetime | None = None,
    limit_end: datetime | None = None,
    tz: tzinfo = timezone.utc,
) -> MonthlyReport:
    """Run :func:`aggregate_day` over the month, clamped to the account start.

    ``limit_end`` optionally cuts the range (usually at ``now``); without it
    the full month is produced and days after today come back PENDING. A
    range that ends before it starts yields an empty report.
    """
    start_date, end_date = effective_report_range(
        month_anchor,
        account_created_at=account_created_at,
        limit_end=limit_end,
        tz=tz,
    )
    if start_date > end_date:
        return MonthlyReport(days=(), total_monthly_hours=0.0, total_target_hours=0.0)

    today = to_utc(now).astimezone(tz).date()
    entries_by_day = group_by_local_day(entries, attr="start_time", tz=tz)
    markers_by_day = group_by_local_day(markers, attr="workday_start_time", tz=tz)

    days = tuple(
        aggregate_day(
            day_value,
            entries_by_day.get(day_value, []),
            markers_by_day.get(day_value, []),
            targets,
            now,
            tz=tz,
        )
        for day_value in iter_days(start_date, end_date)
    )

    return MonthlyReport(
        days=days,
        total_monthly_hours=sum(day.net_hours for day in days),
        total_target_hours=sum(day.target_hours for day in days if day.is_work_day and day.date <= today),
        start_date=start_date,
        end_date=end_date,
    )
