from pydantic import Field, model_validator
from typing import Optional
import datetime as dt
from datetime import datetime
from decimal import Decimal

from model.timesheet_model import TimesheetStatus
from Schema.common_schema import CamelModel, StrictCamelModel, UserSummary, ProjectSummary, TaskSummary

# Hours are in (0, 24] with two-place precision
HOURS_FIELD = dict(gt=0, le=24, max_digits=4, decimal_places=2)


class TimesheetCreate(StrictCamelModel):
    date: dt.date
    hours: Decimal = Field(..., **HOURS_FIELD)
    description: Optional[str] = None
    task_id: int
    project_id: int
    is_billable: bool = True
    # Accepted for client compatibility; new entries always start as draft
    status: Optional[TimesheetStatus] = None


class TimesheetUpdate(StrictCamelModel):
    hours: Optional[Decimal] = Field(None, **HOURS_FIELD)
    description: Optional[str] = None
    is_billable: Optional[bool] = None
    status: Optional[TimesheetStatus] = None
    rejection_reason: Optional[str] = None


class TimesheetStatusUpdate(StrictCamelModel):
    status: TimesheetStatus
    rejection_reason: Optional[str] = None

    @model_validator(mode='after')
    def strip_reason(self):
        if self.rejection_reason is not None:
            self.rejection_reason = self.rejection_reason.strip() or None
        return self


class TimesheetResponse(CamelModel):
    id: int
    date: dt.date
    hours: float
    description: Optional[str] = None
    is_billable: bool
    status: TimesheetStatus
    user_id: int
    task_id: int
    project_id: int
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    user: Optional[UserSummary] = None
    approver: Optional[UserSummary] = None
    task: Optional[TaskSummary] = None
    project: Optional[ProjectSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
