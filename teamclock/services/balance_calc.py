from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Any

from teamclock.services.report_calc import (
    SECONDS_PER_HOUR,
    group_by_local_day,
    iter_days,
    local_date,
    month_bounds,
    select_authoritative_marker,
    to_utc,
)
from teamclock.services.targets import TargetModel


@dataclass(frozen=True)
class BalanceResult:
    total_worked_hours: float
    total_target_hours: float
    days_worked: int
    today_worked: float

    @property
    def balance(self) -> float:
        return self.total_worked_hours - self.total_target_hours

    @property
    def overtime(self) -> float:
        return self.balance if self.balance > 0 else 0.0

    @property
    def deficit(self) -> float:
        return -self.balance if self.balance < 0 else 0.0


def marker_hours(marker: Any, *, is_today: bool, now: datetime) -> float:
    start = to_utc(marker.workday_start_time)
    if marker.workday_end_time is not None:
        end = to_utc(marker.workday_end_time)
    elif is_today:
        end = now
    else:
        return 0.0
    if end <= start:
        return 0.0
    return (end - start).total_seconds() / SECONDS_PER_HOUR


def balance_as_of(
    now: datetime,
    markers: Sequence[Any],
    targets: TargetModel,
    account_created_at: datetime | None,
    *,
    tz: tzinfo = timezone.utc,
) -> BalanceResult:
    """Worked vs. target hours from the first of ``now``'s month up to ``now``.

    Worked time comes from workday markers only, one authoritative marker per
    local day. Target time counts every day from the month start (or the
    account start, if later) through today whose weekday carries a target.
    """
    now_utc = to_utc(now)
    today = now_utc.astimezone(tz).date()
    month_start, _ = month_bounds(today)

    in_window = [
        marker
        for marker in markers
        if month_start <= local_date(marker.workday_start_time, tz) and to_utc(marker.workday_start_time) <= now_utc
    ]

    total_worked = 0.0
    today_worked = 0.0
    for day_value, day_markers in group_by_local_day(in_window, attr="workday_start_time", tz=tz).items():
        marker = select_authoritative_marker(day_markers)
        hours = marker_hours(marker, is_today=day_value == today, now=now_utc)
        total_worked += hours
        if day_value == today:
            today_worked = hours

    target_start: date = month_start
    if account_created_at is not None:
        target_start = max(target_start, local_date(account_created_at, tz))

    total_target = 0.0
    days_worked = 0
    for day_value in iter_days(target_start, today):
        hours = targets.hours_for(day_value)
        if hours > 0:
            total_target += hours
            days_worked += 1

    return BalanceResult(
        total_worked_hours=total_worked,
        total_target_hours=total_target,
        days_worked=days_worked,
        today_worked=today_worked,
    )
