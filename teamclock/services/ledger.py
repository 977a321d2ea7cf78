from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from teamclock.models import TimeEntry, Workday


def local_range_to_utc_bounds(start_date: date, end_date: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """UTC half-open interval covering local calendar days ``start_date``..``end_date``."""
    start_local = datetime.combine(start_date, datetime.min.time(), tzinfo=tz)
    end_local = datetime.combine(end_date + timedelta(days=1), datetime.min.time(), tzinfo=tz)
    return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)


def list_time_entries(
    db: Session,
    *,
    user_id: int,
    start_utc: datetime,
    end_utc: datetime,
) -> list[TimeEntry]:
    return list(
        db.scalars(
            select(TimeEntry)
            .options(selectinload(TimeEntry.breaks))
            .where(
                TimeEntry.user_id == user_id,
                TimeEntry.start_time >= start_utc,
                TimeEntry.start_time < end_utc,
            )
            .order_by(TimeEntry.start_time.asc(), TimeEntry.id.asc())
        ).all()
    )


def list_workdays(
    db: Session,
    *,
    user_id: int,
    start_utc: datetime,
    end_utc: datetime,
) -> list[Workday]:
    return list(
        db.scalars(
            select(Workday)
            .where(
                Workday.user_id == user_id,
                Workday.workday_start_time >= start_utc,
                Workday.workday_start_time < end_utc,
            )
            .order_by(Workday.workday_start_time.asc(), Workday.id.asc())
        ).all()
    )
