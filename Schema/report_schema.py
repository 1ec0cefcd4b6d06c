# Schema/report_schema.py
import datetime as dt
from enum import Enum
from typing import Optional, List, Dict

from Schema.common_schema import CamelModel, UserSummary, ProjectSummary
from Schema.timesheet_schema import TimesheetResponse


class ReportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    EXCEL = "excel"
    PDF = "pdf"


class ReportPeriodKind(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class HoursSummary(CamelModel):
    total_hours: float = 0
    billable_hours: float = 0
    non_billable_hours: float = 0
    total_entries: int = 0


class HoursBucket(CamelModel):
    total_hours: float = 0
    billable_hours: float = 0
    entries: int = 0
    timesheets: Optional[List[TimesheetResponse]] = None


class ProjectBucket(HoursBucket):
    project: ProjectSummary


class UserBucket(HoursBucket):
    user: UserSummary


class DateBucket(HoursBucket):
    date: dt.date


class StatusBucket(CamelModel):
    count: int = 0
    hours: float = 0


class TimesheetSummaryResponse(CamelModel):
    summary: HoursSummary
    project_summary: List[ProjectBucket]
    user_summary: List[UserBucket]
    timesheets: List[TimesheetResponse]


class UserStatsResponse(CamelModel):
    summary: HoursSummary
    project_stats: List[ProjectBucket]
    status_stats: Dict[str, StatusBucket]


class ReportData(CamelModel):
    """Aggregated report over one period; optional groupings depend on the period kind."""

    period: ReportPeriodKind
    start_date: dt.date
    end_date: dt.date
    label: str
    total_hours: float = 0
    billable_hours: float = 0
    non_billable_hours: float = 0
    total_entries: int = 0
    daily_data: Optional[List[DateBucket]] = None
    project_data: Optional[List[ProjectBucket]] = None
    user_data: Optional[List[UserBucket]] = None
    timesheets: List[TimesheetResponse] = []

    @property
    def title(self) -> str:
        return f"{self.period.value.capitalize()} Report"
