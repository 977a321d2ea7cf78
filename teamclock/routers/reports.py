from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from teamclock.db import get_db
from teamclock.models import User
from teamclock.schemas import (
    BalanceResponse,
    DailyReportRead,
    DayDetailsResponse,
    MonthlyReportResponse,
    TimeEntryRead,
    WorkdayRead,
)
from teamclock.security import get_current_user
from teamclock.services.exports import export_user_monthly_xlsx
from teamclock.services.reports import (
    calculate_user_balance,
    calculate_user_monthly_report,
    ensure_can_view,
    get_day_details,
)

router = APIRouter(tags=["reports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/api/reports/monthly", response_model=MonthlyReportResponse)
def monthly_report(
    user_id: int = Query(ge=1),
    year: int = Query(ge=1970, le=9999),
    month: int = Query(ge=1, le=12),
    until_now: bool = Query(default=False),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MonthlyReportResponse:
    target = ensure_can_view(db, current_user, user_id)
    report = calculate_user_monthly_report(db, user=target, year=year, month=month, until_now=until_now)
    return MonthlyReportResponse(
        user_id=target.id,
        year=year,
        month=month,
        start_date=report.start_date,
        end_date=report.end_date,
        days=[DailyReportRead.model_validate(day) for day in report.days],
        total_monthly_hours=report.total_monthly_hours,
        total_target_hours=report.total_target_hours,
    )


@router.get("/api/reports/day-details", response_model=DayDetailsResponse)
def day_details(
    user_id: int = Query(ge=1),
    day: date = Query(alias="date"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DayDetailsResponse:
    target = ensure_can_view(db, current_user, user_id)
    details = get_day_details(db, user=target, day=day)
    return DayDetailsResponse(
        user_id=target.id,
        date=details.day,
        workday=WorkdayRead.model_validate(details.workday) if details.workday is not None else None,
        time_entries=[TimeEntryRead.model_validate(entry) for entry in details.time_entries],
        report=DailyReportRead.model_validate(details.report),
    )


@router.get("/api/reports/balance", response_model=BalanceResponse)
def balance(
    user_id: int | None = Query(default=None, ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BalanceResponse:
    target = ensure_can_view(db, current_user, user_id) if user_id is not None else current_user
    now_utc = datetime.now(timezone.utc)
    result = calculate_user_balance(db, user=target, now=now_utc)
    return BalanceResponse(
        user_id=target.id,
        as_of=now_utc,
        total_worked_hours=result.total_worked_hours,
        total_target_hours=result.total_target_hours,
        balance=result.balance,
        days_worked=result.days_worked,
        today_worked=result.today_worked,
        overtime=result.overtime,
        deficit=result.deficit,
    )


@router.get("/api/reports/export")
def export_monthly_report(
    user_id: int = Query(ge=1),
    year: int = Query(ge=1970, le=9999),
    month: int = Query(ge=1, le=12),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    target = ensure_can_view(db, current_user, user_id)
    payload = export_user_monthly_xlsx(db, user=target, year=year, month=month)
    return Response(
        content=payload,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="report-{target.id}-{year}-{month:02d}.xlsx"',
        },
    )
