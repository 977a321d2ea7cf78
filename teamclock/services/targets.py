"""Per-weekday target hours.

Weekday numbers follow the Sunday=0 .. Saturday=6 convention used by the
stored ``work_days`` and ``weekly_hours`` columns. A non-empty
``weekly_hours`` map replaces the legacy ``daily_target`` + ``work_days``
pair entirely; weekdays missing from the map have no target.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from teamclock.settings import get_default_work_days, get_settings


def sunday_based_weekday(day_value: date) -> int:
    return (day_value.weekday() + 1) % 7


def normalize_weekly_hours(raw: Mapping[Any, Any] | None) -> dict[int, float] | None:
    if not raw:
        return None
    normalized: dict[int, float] = {}
    for key, value in raw.items():
        try:
            weekday = int(key)
            hours = float(value)
        except (TypeError, ValueError):
            continue
        if 0 <= weekday <= 6:
            normalized[weekday] = max(0.0, hours)
    return normalized or None


def normalize_work_days(raw: Iterable[Any] | None) -> frozenset[int]:
    days: set[int] = set()
    for item in raw or ():
        try:
            weekday = int(item)
        except (TypeError, ValueError):
            continue
        if 0 <= weekday <= 6:
            days.add(weekday)
    return frozenset(days)


@dataclass(frozen=True)
class TargetModel:
    daily_target: float = 0.0
    work_days: frozenset[int] = frozenset()
    weekly_hours: Mapping[int, float] | None = field(default=None, hash=False)

    def hours_for_weekday(self, weekday: int) -> float:
        if self.weekly_hours is not None:
            return self.weekly_hours.get(weekday, 0.0)
        if weekday in self.work_days:
            return max(0.0, self.daily_target)
        return 0.0

    def hours_for(self, day_value: date) -> float:
        return self.hours_for_weekday(sunday_based_weekday(day_value))

    def is_work_day(self, day_value: date) -> bool:
        return self.hours_for(day_value) > 0

    @classmethod
    def build(
        cls,
        *,
        daily_target: float | None,
        work_days: Iterable[Any] | None,
        weekly_hours: Mapping[Any, Any] | None = None,
    ) -> TargetModel:
        return cls(
            daily_target=float(daily_target or 0.0),
            work_days=normalize_work_days(work_days),
            weekly_hours=normalize_weekly_hours(weekly_hours),
        )

    @classmethod
    def from_user(cls, user: Any) -> TargetModel:
        """Resolve a user's target model, falling back to project then settings."""
        daily_target = user.daily_target
        if daily_target is None:
            project = getattr(user, "project", None)
            if project is not None and project.daily_target is not None:
                daily_target = project.daily_target
        if daily_target is None:
            daily_target = get_settings().default_daily_target_hours

        work_days = user.work_days
        if work_days is None:
            work_days = get_default_work_days()

        return cls.build(
            daily_target=daily_target,
            work_days=work_days,
            weekly_hours=user.weekly_hours,
        )
