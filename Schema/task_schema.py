from pydantic import Field, field_validator
from typing import Optional, List
import datetime as dt
from datetime import datetime
from decimal import Decimal

from model.Project_model import Priority
from model.task_model import TaskStatus
from model.timesheet_model import TimesheetStatus
from Schema.common_schema import CamelModel, StrictCamelModel, UserSummary, ProjectSummary


class TaskCreate(StrictCamelModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM
    project_id: int
    assigned_to: Optional[int] = None
    estimated_hours: Optional[Decimal] = Field(None, ge=0, max_digits=5, decimal_places=2)
    due_date: Optional[datetime] = None
    tags: List[str] = []

    @field_validator('title')
    @classmethod
    def strip_title(cls, v):
        v = v.strip()
        if len(v) < 3:
            raise ValueError('Task title must be between 3 and 200 characters')
        return v


class TaskUpdate(StrictCamelModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    assigned_to: Optional[int] = None
    estimated_hours: Optional[Decimal] = Field(None, ge=0, max_digits=5, decimal_places=2)
    actual_hours: Optional[Decimal] = Field(None, ge=0, max_digits=5, decimal_places=2)
    due_date: Optional[datetime] = None
    tags: Optional[List[str]] = None


class TimeStats(CamelModel):
    estimated: float = 0
    logged: float = 0
    progress_percentage: int = 0


class TaskTimesheetItem(CamelModel):
    id: int
    date: dt.date
    hours: float
    status: TimesheetStatus
    is_billable: bool
    description: Optional[str] = None
    user: Optional[UserSummary] = None


class TaskResponse(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: Priority
    project_id: int
    assigned_to: Optional[int] = None
    created_by: int
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    tags: List[str] = []
    project: Optional[ProjectSummary] = None
    assignee: Optional[UserSummary] = None
    creator: Optional[UserSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('tags', mode='before')
    @classmethod
    def default_tags(cls, v):
        return v or []


class TaskListItem(TaskResponse):
    time_stats: TimeStats = TimeStats()


class TaskDetailResponse(TaskResponse):
    timesheets: List[TaskTimesheetItem] = []
