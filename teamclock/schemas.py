from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from teamclock.models import SecondaryPermission, UserRole, WorkMode


class UserRead(BaseModel):
    id: int
    email: str
    name: str | None = None
    role: UserRole
    project_id: int | None = None
    manager_id: int | None = None
    daily_target: float | None = None
    work_days: list[int] | None = None
    weekly_hours: dict[str, float] | None = None
    work_mode: WorkMode | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class HierarchyNodeRead(BaseModel):
    user: UserRead
    children: list[HierarchyNodeRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class HierarchyResponse(BaseModel):
    project_id: int | None
    project_name: str
    roots: list[HierarchyNodeRead]


class AssignManagerRequest(BaseModel):
    employee_id: int = Field(ge=1)
    manager_id: int | None = Field(default=None, ge=1)


class AssignManagerResponse(BaseModel):
    user: UserRead
    message: str


class SecondaryManagerUpsertRequest(BaseModel):
    employee_id: int = Field(ge=1)
    manager_id: int = Field(ge=1)
    permissions: list[SecondaryPermission] = Field(min_length=1)


class SecondaryManagerRemoveRequest(BaseModel):
    employee_id: int = Field(ge=1)
    manager_id: int = Field(ge=1)


class SecondaryManagerRead(BaseModel):
    id: int
    employee_id: int
    manager_id: int
    permissions: list[str]

    model_config = ConfigDict(from_attributes=True)


class SoftDeleteResponse(BaseModel):
    ok: bool
    id: int


class WorkSettingsUpdateRequest(BaseModel):
    user_id: int = Field(ge=1)
    daily_target: float | None = Field(default=None, ge=0, le=24)
    work_days: list[int] | None = None
    weekly_hours: dict[int, float] | None = None

    @model_validator(mode="after")
    def validate_days(self) -> WorkSettingsUpdateRequest:
        if self.work_days is not None:
            if any(day < 0 or day > 6 for day in self.work_days):
                raise ValueError("work_days values must be between 0 and 6")
            self.work_days = sorted(set(self.work_days))
        if self.weekly_hours is not None:
            for weekday, hours in self.weekly_hours.items():
                if weekday < 0 or weekday > 6:
                    raise ValueError("weekly_hours keys must be between 0 and 6")
                if hours < 0 or hours > 24:
                    raise ValueError("weekly_hours values must be between 0 and 24")
        return self


class DailyReportRead(BaseModel):
    date: date
    day_name: str
    is_work_day: bool
    target_hours: float
    start_time: datetime | None = None
    end_time: datetime | None = None
    total_duration_hours: float
    net_hours: float
    status: Literal["MET", "MISSED", "OFF", "PENDING"]
    has_manual_entries: bool
    session_range: str

    model_config = ConfigDict(from_attributes=True)


class MonthlyReportResponse(BaseModel):
    user_id: int
    year: int
    month: int
    start_date: date | None = None
    end_date: date | None = None
    days: list[DailyReportRead]
    total_monthly_hours: float
    total_target_hours: float


class BalanceResponse(BaseModel):
    user_id: int
    as_of: datetime
    total_worked_hours: float
    total_target_hours: float
    balance: float
    days_worked: int
    today_worked: float
    overtime: float
    deficit: float


class TimeBreakRead(BaseModel):
    id: int
    start_time: datetime
    end_time: datetime | None = None
    reason: str | None = None

    model_config = ConfigDict(from_attributes=True)


class TimeEntryRead(BaseModel):
    id: int
    start_time: datetime
    end_time: datetime | None = None
    is_manual: bool = False
    description: str | None = None
    breaks: list[TimeBreakRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class WorkdayRead(BaseModel):
    id: int
    workday_start_time: datetime
    workday_end_time: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class DayDetailsResponse(BaseModel):
    user_id: int
    date: date
    workday: WorkdayRead | None = None
    time_entries: list[TimeEntryRead]
    report: DailyReportRead
