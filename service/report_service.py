"""Daily, weekly and monthly timesheet reports and their file renderings."""

import calendar
import csv
import html
import io
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Tuple

import pandas as pd
from openpyxl.styles import Font, PatternFill
from sqlalchemy.orm import Session
from xhtml2pdf import pisa

from db import repository
from db.repository import TimesheetCriteria
from Schema.report_schema import ReportData, ReportFormat, ReportPeriodKind
from Schema.timesheet_schema import TimesheetResponse
from service import access_control
from service.access_control import Actor
from service.aggregation import group_by_date, group_by_project, group_by_user, require_relations, summarize
from utils.exceptions import ReportRenderError, ValidationError

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^\d{4}-\d{2}$")
DETAIL_COLUMNS = ["Date", "User", "Project", "Task", "Hours", "Billable", "Status", "Description"]
SHEET_NAME = "Timesheet Report"

MEDIA_TYPES = {
    ReportFormat.CSV: "text/csv",
    ReportFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ReportFormat.PDF: "application/pdf",
}
EXTENSIONS = {
    ReportFormat.CSV: "csv",
    ReportFormat.EXCEL: "xlsx",
    ReportFormat.PDF: "pdf",
}


@dataclass(frozen=True)
class ReportPeriod:
    kind: ReportPeriodKind
    start: date
    end: date
    label: str

    def filename(self, fmt: ReportFormat) -> str:
        return f"{self.kind.value}-report-{self.label}.{EXTENSIONS[fmt]}"


@dataclass
class RenderedReport:
    content: bytes
    media_type: str
    filename: str


def daily_period(day: date) -> ReportPeriod:
    return ReportPeriod(ReportPeriodKind.DAILY, day, day, day.isoformat())


def weekly_period(start_date: date) -> ReportPeriod:
    """The ISO week (Monday to Sunday) containing ``start_date``."""
    week_start = start_date - timedelta(days=start_date.weekday())
    week_end = week_start + timedelta(days=6)
    return ReportPeriod(
        ReportPeriodKind.WEEKLY,
        week_start,
        week_end,
        f"{week_start.isoformat()}-to-{week_end.isoformat()}",
    )


def monthly_period(month: str) -> ReportPeriod:
    if not month or not MONTH_PATTERN.match(month):
        raise ValidationError.for_field("month", "Month must be in YYYY-MM format", month)
    year, month_number = (int(part) for part in month.split("-"))
    if not 1 <= month_number <= 12 or year < 1:
        raise ValidationError.for_field("month", "Month must be in YYYY-MM format", month)
    last_day = calendar.monthrange(year, month_number)[1]
    return ReportPeriod(
        ReportPeriodKind.MONTHLY,
        date(year, month_number, 1),
        date(year, month_number, last_day),
        month,
    )


def build_report(db: Session, actor: Actor, period: ReportPeriod) -> ReportData:
    criteria = TimesheetCriteria(start_date=period.start, end_date=period.end)
    entries = repository.find_timesheets(
        db,
        criteria,
        access_control.timesheet_scope(actor),
        include=("user", "approver", "task", "project"),
        newest_first=False,
    )
    rows = [TimesheetResponse.model_validate(entry) for entry in entries]
    for row in rows:
        require_relations(row, "user", "project", "task")

    totals = summarize(rows)
    report = ReportData(
        period=period.kind,
        start_date=period.start,
        end_date=period.end,
        label=period.label,
        total_hours=totals.total_hours,
        billable_hours=totals.billable_hours,
        non_billable_hours=totals.non_billable_hours,
        total_entries=totals.total_entries,
        timesheets=rows,
    )
    if period.kind == ReportPeriodKind.WEEKLY:
        report.daily_data = group_by_date(rows)
    elif period.kind == ReportPeriodKind.MONTHLY:
        report.project_data = group_by_project(rows, keep_rows=True)
        report.user_data = group_by_user(rows, keep_rows=True)

    logger.info(f"Built {period.kind.value} report {period.label} for user {actor.id}: {len(rows)} entries")
    return report


def _detail_row(row: TimesheetResponse) -> List[str]:
    return [
        row.date.isoformat(),
        f"{row.user.first_name} {row.user.last_name}",
        row.project.name,
        row.task.title,
        f"{row.hours:.2f}",
        "Yes" if row.is_billable else "No",
        row.status.value,
        row.description or "",
    ]


def detail_frame(report: ReportData) -> pd.DataFrame:
    return pd.DataFrame([_detail_row(row) for row in report.timesheets], columns=DETAIL_COLUMNS)


def summary_rows(report: ReportData) -> List[Tuple[str, object]]:
    return [
        ("Total Hours", round(report.total_hours, 2)),
        ("Billable Hours", round(report.billable_hours, 2)),
        ("Non-Billable Hours", round(report.non_billable_hours, 2)),
        ("Total Entries", report.total_entries),
    ]


def _generated_on() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def render_csv(report: ReportData) -> bytes:
    header = ",".join(DETAIL_COLUMNS) + "\n"
    body = detail_frame(report).to_csv(index=False, header=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    return (header + body).encode("utf-8")


def render_excel(report: ReportData) -> bytes:
    detail = detail_frame(report)
    detail["Hours"] = detail["Hours"].astype(float)
    summary = summary_rows(report)
    # title, generated-on, blank, "Summary", summary lines, blank
    detail_start = 4 + len(summary) + 1

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        detail.to_excel(writer, index=False, sheet_name=SHEET_NAME, startrow=detail_start)
        sheet = writer.sheets[SHEET_NAME]

        sheet.cell(row=1, column=1, value=report.title).font = Font(bold=True, size=14)
        sheet.cell(row=2, column=1, value=f"Generated on: {_generated_on()}")
        sheet.cell(row=4, column=1, value="Summary").font = Font(bold=True)
        for offset, (label, value) in enumerate(summary, start=5):
            sheet.cell(row=offset, column=1, value=label)
            sheet.cell(row=offset, column=2, value=value)

        header_fill = PatternFill(fill_type="solid", fgColor="FFE0E0E0")
        for column in range(1, len(DETAIL_COLUMNS) + 1):
            cell = sheet.cell(row=detail_start + 1, column=column)
            cell.font = Font(bold=True)
            cell.fill = header_fill

    return output.getvalue()


def generate_html_report(report: ReportData) -> str:
    """HTML for xhtml2pdf; the detail table header repeats on every page."""
    html_content = f"""
    <html>
    <head>
        <meta charset="UTF-8">
        <title>{html.escape(report.title)}</title>
        <style>
            @page {{ size: A4; margin: 1.5cm; }}
            body {{ font-family: Helvetica; font-size: 10px; color: #1f2937; }}
            h1 {{ font-size: 20px; margin-bottom: 4px; }}
            h2 {{ font-size: 14px; margin-top: 16px; }}
            .meta {{ color: #6b7280; }}
            table {{ width: 100%; border-collapse: collapse; }}
            th {{ background-color: #e0e0e0; font-weight: bold; text-align: left; padding: 4px; }}
            td {{ border-bottom: 1px solid #e5e7eb; padding: 4px; }}
        </style>
    </head>
    <body>
        <h1>{html.escape(report.title)}</h1>
        <p class="meta">Period: {report.start_date.isoformat()} to {report.end_date.isoformat()}</p>
        <p class="meta">Generated on: {_generated_on()}</p>
        <h2>Summary</h2>
        <table class="summary">
    """
    for label, value in summary_rows(report):
        html_content += f"<tr><td>{label}</td><td>{value}</td></tr>"
    html_content += """
        </table>
        <h2>Timesheet Entries</h2>
        <table repeat="1">
            <thead><tr>
    """
    for column in DETAIL_COLUMNS:
        html_content += f"<th>{column}</th>"
    html_content += "</tr></thead><tbody>"

    for values in detail_frame(report).itertuples(index=False):
        html_content += "<tr>" + "".join(f"<td>{html.escape(str(value))}</td>" for value in values) + "</tr>"

    html_content += """
        </tbody></table>
    </body>
    </html>
    """
    return html_content


def render_pdf(report: ReportData) -> bytes:
    output = io.BytesIO()
    pisa_status = pisa.CreatePDF(generate_html_report(report), dest=output)
    if pisa_status.err:
        raise ReportRenderError(f"PDF generation failed with {pisa_status.err} error(s)")
    return output.getvalue()


RENDERERS = {
    ReportFormat.CSV: render_csv,
    ReportFormat.EXCEL: render_excel,
    ReportFormat.PDF: render_pdf,
}


def render_report(report: ReportData, period: ReportPeriod, fmt: ReportFormat) -> RenderedReport:
    """Render to a complete file in memory; nothing is streamed until this returns."""
    try:
        content = RENDERERS[fmt](report)
    except ReportRenderError:
        raise
    except Exception as e:
        raise ReportRenderError(f"Failed to render {fmt.value} report") from e

    logger.info(f"Rendered {period.filename(fmt)} ({len(content)} bytes)")
    return RenderedReport(content=content, media_type=MEDIA_TYPES[fmt], filename=period.filename(fmt))
