from model.usermodels import User, UserRole
from model.Project_model import Project, ProjectStatus, Priority
from model.task_model import Task, TaskStatus
from model.timesheet_model import Timesheet, TimesheetStatus

__all__ = [
    "User",
    "UserRole",
    "Project",
    "ProjectStatus",
    "Priority",
    "Task",
    "TaskStatus",
    "Timesheet",
    "TimesheetStatus",
]
