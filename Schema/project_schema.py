from pydantic import Field, field_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from model.Project_model import ProjectStatus, Priority
from model.task_model import TaskStatus
from Schema.common_schema import CamelModel, StrictCamelModel, UserSummary

HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3}){1,2}$"


class ProjectCreate(StrictCamelModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: Priority = Priority.MEDIUM
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    manager_id: Optional[int] = None
    color: str = Field("#3B82F6", pattern=HEX_COLOR_PATTERN)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if len(v) < 3:
            raise ValueError('Project name must be between 3 and 100 characters')
        return v


class ProjectUpdate(StrictCamelModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    priority: Optional[Priority] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    manager_id: Optional[int] = None
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    is_archived: Optional[bool] = None


class TaskStats(CamelModel):
    total: int = 0
    completed: int = 0
    completion_percentage: int = 0


class ProjectTaskItem(CamelModel):
    id: int
    title: str
    status: TaskStatus
    priority: Priority
    assigned_to: Optional[int] = None
    assignee: Optional[UserSummary] = None
    due_date: Optional[datetime] = None


class ProjectResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    status: ProjectStatus
    priority: Priority
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[float] = None
    color: str
    is_archived: bool = False
    manager_id: Optional[int] = None
    created_by: int
    creator: Optional[UserSummary] = None
    manager: Optional[UserSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectListItem(ProjectResponse):
    task_stats: TaskStats = TaskStats()


class ProjectDetailResponse(ProjectResponse):
    tasks: List[ProjectTaskItem] = []
