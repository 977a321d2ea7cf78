from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from teamclock.errors import forbidden
from teamclock.models import TimeEntry, User, Workday
from teamclock.services.access import visible_user_ids
from teamclock.services.balance_calc import BalanceResult, balance_as_of
from teamclock.services.directory import list_project_users, list_secondary_relations
from teamclock.services.ledger import list_time_entries, list_workdays, local_range_to_utc_bounds
from teamclock.services.report_calc import (
    DailyReport,
    MonthlyReport,
    aggregate_day,
    build_monthly_report,
    effective_report_range,
    month_bounds,
    select_authoritative_marker,
)
from teamclock.services.targets import TargetModel
from teamclock.settings import get_settings

logger = logging.getLogger("teamclock.reports")


@dataclass(frozen=True)
class DayDetails:
    day: date
    workday: Workday | None
    time_entries: list[TimeEntry]
    report: DailyReport


@lru_cache
def report_timezone() -> ZoneInfo:
    raw_name = (get_settings().report_timezone or "").strip() or "UTC"
    try:
        return ZoneInfo(raw_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("report_timezone_invalid", extra={"report_timezone": raw_name})
        return ZoneInfo("UTC")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_can_view(db: Session, requester: User, target_user_id: int) -> User:
    """Return the target user or raise 403.

    Unknown ids and users of another project are refused the same way as
    users outside the requester's subtree, so the response never reveals
    whether the id exists.
    """
    if target_user_id == requester.id:
        return requester

    target = db.get(User, target_user_id)
    if target is None or target.project_id is None or target.project_id != requester.project_id:
        logger.info(
            "report_access_denied",
            extra={"requester_id": requester.id, "target_user_id": target_user_id, "reason": "scope"},
        )
        raise forbidden()

    users = list_project_users(db, requester=requester)
    relations = list_secondary_relations(db, manager_id=requester.id)
    if target.id not in visible_user_ids(requester, users, secondary_relations=relations):
        logger.info(
            "report_access_denied",
            extra={"requester_id": requester.id, "target_user_id": target_user_id, "reason": "hierarchy"},
        )
        raise forbidden()
    return target


def calculate_user_monthly_report(
    db: Session,
    *,
    user: User,
    year: int,
    month: int,
    now: datetime | None = None,
    until_now: bool = False,
) -> MonthlyReport:
    tz = report_timezone()
    now_utc = now or _utcnow()
    month_anchor = date(year, month, 1)
    limit_end = now_utc if until_now else None

    start_date, end_date = effective_report_range(
        month_anchor,
        account_created_at=user.created_at,
        limit_end=limit_end,
        tz=tz,
    )
    if start_date > end_date:
        return MonthlyReport(days=(), total_monthly_hours=0.0, total_target_hours=0.0)

    start_utc, end_utc = local_range_to_utc_bounds(start_date, end_date, tz)
    entries = list_time_entries(db, user_id=user.id, start_utc=start_utc, end_utc=end_utc)
    markers = list_workdays(db, user_id=user.id, start_utc=start_utc, end_utc=end_utc)

    report = build_monthly_report(
        entries,
        markers,
        month_anchor,
        TargetModel.from_user(user),
        now=now_utc,
        account_created_at=user.created_at,
        limit_end=limit_end,
        tz=tz,
    )
    logger.info(
        "monthly_report_built",
        extra={
            "user_id": user.id,
            "year": year,
            "month": month,
            "day_count": len(report.days),
            "entry_count": len(entries),
            "marker_count": len(markers),
        },
    )
    return report


def calculate_user_balance(
    db: Session,
    *,
    user: User,
    now: datetime | None = None,
) -> BalanceResult:
    tz = report_timezone()
    now_utc = now or _utcnow()
    today = now_utc.astimezone(tz).date()
    month_start, _ = month_bounds(today)

    start_utc, end_utc = local_range_to_utc_bounds(month_start, today, tz)
    markers = list_workdays(db, user_id=user.id, start_utc=start_utc, end_utc=end_utc)
    result = balance_as_of(
        now_utc,
        markers,
        TargetModel.from_user(user),
        user.created_at,
        tz=tz,
    )
    logger.info(
        "balance_calculated",
        extra={
            "user_id": user.id,
            "worked_hours": result.total_worked_hours,
            "target_hours": result.total_target_hours,
        },
    )
    return result


def get_day_details(
    db: Session,
    *,
    user: User,
    day: date,
    now: datetime | None = None,
) -> DayDetails:
    tz = report_timezone()
    now_utc = now or _utcnow()
    start_utc, end_utc = local_range_to_utc_bounds(day, day, tz)
    entries = list_time_entries(db, user_id=user.id, start_utc=start_utc, end_utc=end_utc)
    markers = list_workdays(db, user_id=user.id, start_utc=start_utc, end_utc=end_utc)
    return DayDetails(
        day=day,
        workday=select_authoritative_marker(markers),
        time_entries=entries,
        report=aggregate_day(day, entries, markers, TargetModel.from_user(user), now_utc, tz=tz),
    )
