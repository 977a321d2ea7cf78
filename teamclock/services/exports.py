from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import date, datetime, timezone, tzinfo
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet
from sqlalchemy.orm import Session

from teamclock.models import TimeEntry, User
from teamclock.services.ledger import list_time_entries, local_range_to_utc_bounds
from teamclock.services.report_calc import MonthlyReport, local_date
from teamclock.services.reports import calculate_user_monthly_report, report_timezone

DAILY_HEADERS = [
    "Date",
    "Day",
    "Start",
    "End",
    "Total",
    "Net",
    "Target",
    "Status",
    "Manual",
    "Notes",
]

HEADER_FILL = PatternFill(fill_type="solid", fgColor="0B4F73")
META_LABEL_FILL = PatternFill(fill_type="solid", fgColor="EAF4F9")
META_VALUE_FILL = PatternFill(fill_type="solid", fgColor="F8FCFF")
ZEBRA_FILL = PatternFill(fill_type="solid", fgColor="F7FBFE")
WARNING_FILL = PatternFill(fill_type="solid", fgColor="FFF3CD")
ALERT_FILL = PatternFill(fill_type="solid", fgColor="FDE2E4")
SUCCESS_FILL = PatternFill(fill_type="solid", fgColor="E6F4EA")
SUMMARY_FILL = PatternFill(fill_type="solid", fgColor="E9F1F7")

HEADER_FONT = Font(bold=True, color="FFFFFF")
BOLD_FONT = Font(bold=True, color="0F172A")
TITLE_FONT = Font(bold=True, color="0B4F73", size=14)
MUTED_FONT = Font(color="334155")

THIN_SIDE = Side(style="thin", color="D5E2EC")
THIN_BORDER = Border(left=THIN_SIDE, right=THIN_SIDE, top=THIN_SIDE, bottom=THIN_SIDE)

STATUS_FILLS = {
    "MISSED": ALERT_FILL,
    "PENDING": WARNING_FILL,
    "MET": SUCCESS_FILL,
}


def _to_excel_datetime(value: datetime | None, tz: tzinfo) -> datetime | None:
    # openpyxl cannot write tz-aware datetimes
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).replace(tzinfo=None)


def hours_to_hhmm(hours: float) -> str:
    total_minutes = max(0, int(round(hours * 60)))
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def _style_header(ws: Worksheet, row: int = 1) -> None:
    for cell in ws[row]:
        if cell.value is None:
            continue
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        cell.border = THIN_BORDER


def _auto_width(ws: Worksheet) -> None:
    for column_cells in ws.iter_cols(min_row=1, max_row=ws.max_row, min_col=1, max_col=ws.max_column):
        max_len = 0
        col_letter = get_column_letter(column_cells[0].column)
        for cell in column_cells:
            if cell.coordinate in ws.merged_cells:
                continue
            value = "" if cell.value is None else str(cell.value)
            max_len = max(max_len, len(value))
        ws.column_dimensions[col_letter].width = min(max_len + 2, 45)


def _merge_title(ws: Worksheet, row: int, text: str) -> None:
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=len(DAILY_HEADERS))
    cell = ws.cell(row=row, column=1, value=text)
    cell.font = TITLE_FONT
    cell.alignment = Alignment(horizontal="left", vertical="center")


def _style_metadata_rows(ws: Worksheet, *, start_row: int, end_row: int) -> None:
    for row_idx in range(start_row, end_row + 1):
        label_cell = ws.cell(row=row_idx, column=1)
        value_cell = ws.cell(row=row_idx, column=2)
        label_cell.font = BOLD_FONT
        label_cell.fill = META_LABEL_FILL
        label_cell.border = THIN_BORDER
        value_cell.font = MUTED_FONT
        value_cell.fill = META_VALUE_FILL
        value_cell.border = THIN_BORDER


def _style_table_region(ws: Worksheet, *, header_row: int, data_start_row: int, data_end_row: int) -> None:
    ws.freeze_panes = f"A{header_row + 1}"
    if data_end_row < data_start_row:
        return

    ws.auto_filter.ref = f"A{header_row}:{get_column_letter(len(DAILY_HEADERS))}{data_end_row}"
    status_col = DAILY_HEADERS.index("Status") + 1

    for row_idx in range(data_start_row, data_end_row + 1):
        row_fill = ZEBRA_FILL if row_idx % 2 == 0 else None
        for col_idx in range(1, len(DAILY_HEADERS) + 1):
            cell = ws.cell(row=row_idx, column=col_idx)
            cell.border = THIN_BORDER
            if row_fill is not None:
                cell.fill = row_fill
            if col_idx == len(DAILY_HEADERS):
                cell.alignment = Alignment(horizontal="left", vertical="center", wrap_text=True)
            else:
                cell.alignment = Alignment(horizontal="center", vertical="center")

        status_cell = ws.cell(row=row_idx, column=status_col)
        status_fill = STATUS_FILLS.get(str(status_cell.value))
        if status_fill is not None:
            status_cell.fill = status_fill
            status_cell.font = BOLD_FONT


def _append_summary_area(ws: Worksheet, *, report: MonthlyReport) -> None:
    balance = report.total_monthly_hours - report.total_target_hours
    missed_days = sum(1 for day in report.days if day.status == "MISSED")

    ws.append([])
    ws.append(["Summary", "Value"])
    summary_start = ws.max_row
    ws.append(["Total Net", hours_to_hhmm(report.total_monthly_hours)])
    ws.append(["Total Target", hours_to_hhmm(report.total_target_hours)])
    ws.append(["Balance", f"{'-' if balance < 0 else '+'}{hours_to_hhmm(abs(balance))}"])
    ws.append(["Missed Days", missed_days])
    _style_header(ws, summary_start)

    for row_idx in range(summary_start + 1, ws.max_row + 1):
        label_cell = ws.cell(row=row_idx, column=1)
        value_cell = ws.cell(row=row_idx, column=2)
        label_cell.fill = SUMMARY_FILL
        label_cell.border = THIN_BORDER
        label_cell.font = BOLD_FONT
        value_cell.border = THIN_BORDER
        value_cell.alignment = Alignment(horizontal="center", vertical="center")


def notes_by_day(entries: Sequence[TimeEntry], tz: tzinfo) -> dict[date, str]:
    grouped: dict[date, list[str]] = defaultdict(list)
    for entry in entries:
        description = (entry.description or "").strip()
        if description:
            grouped[local_date(entry.start_time, tz)].append(description)
    return {day_value: "; ".join(items) for day_value, items in grouped.items()}


def build_monthly_report_xlsx_bytes(
    *,
    user_label: str,
    year: int,
    month: int,
    report: MonthlyReport,
    notes: dict[date, str],
    tz: tzinfo,
    generated_at: datetime,
) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = f"{year}-{month:02d}"

    _merge_title(ws, 1, "MONTHLY TIME REPORT")
    ws.append(["User", user_label])
    ws.append(["Period", f"{year}-{month:02d}"])
    ws.append(["Generated (UTC)", generated_at.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")])
    ws.append([])
    _style_metadata_rows(ws, start_row=2, end_row=4)

    ws.append(DAILY_HEADERS)
    header_row = ws.max_row
    _style_header(ws, header_row)

    data_start_row = header_row + 1
    for day in report.days:
        ws.append(
            [
                day.date,
                day.day_name,
                _to_excel_datetime(day.start_time, tz),
                _to_excel_datetime(day.end_time, tz),
                hours_to_hhmm(day.total_duration_hours),
                hours_to_hhmm(day.net_hours),
                hours_to_hhmm(day.target_hours),
                day.status,
                "Yes" if day.has_manual_entries else "-",
                notes.get(day.date, ""),
            ]
        )
    data_end_row = ws.max_row

    for row in ws.iter_rows(min_row=data_start_row, max_row=data_end_row):
        row[0].number_format = "yyyy-mm-dd"
        if row[2].value is not None:
            row[2].number_format = "hh:mm"
        if row[3].value is not None:
            row[3].number_format = "hh:mm"

    _style_table_region(ws, header_row=header_row, data_start_row=data_start_row, data_end_row=data_end_row)
    _append_summary_area(ws, report=report)
    _auto_width(ws)

    stream = BytesIO()
    wb.save(stream)
    return stream.getvalue()


def export_user_monthly_xlsx(
    db: Session,
    *,
    user: User,
    year: int,
    month: int,
    now: datetime | None = None,
) -> bytes:
    tz = report_timezone()
    now_utc = now or datetime.now(timezone.utc)
    report = calculate_user_monthly_report(db, user=user, year=year, month=month, now=now_utc)

    notes: dict[date, str] = {}
    if report.start_date is not None and report.end_date is not None:
        start_utc, end_utc = local_range_to_utc_bounds(report.start_date, report.end_date, tz)
        entries = list_time_entries(db, user_id=user.id, start_utc=start_utc, end_utc=end_utc)
        notes = notes_by_day(entries, tz)

    return build_monthly_report_xlsx_bytes(
        user_label=user.name or user.email,
        year=year,
        month=month,
        report=report,
        notes=notes,
        tz=tz,
        generated_at=now_utc,
    )
