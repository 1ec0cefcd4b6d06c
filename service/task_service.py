import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from db import repository
from db.repository import TaskCriteria
from model.task_model import Task, TaskStatus
from Schema.common_schema import Pagination
from Schema.task_schema import TaskCreate, TaskDetailResponse, TaskListItem, TaskResponse, TaskUpdate, TimeStats
from service import access_control
from service.access_control import Actor
from service.aggregation import percentage
from utils.exceptions import ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

TASK_RELATIONS = ("project", "assignee", "creator")


def time_stats(task: Task) -> TimeStats:
    logged = sum(float(entry.hours) for entry in task.timesheets or [])
    estimated = float(task.estimated_hours or 0)
    return TimeStats(
        estimated=estimated,
        logged=logged,
        progress_percentage=percentage(logged, estimated, cap=100),
    )


class TaskService:
    def __init__(self, db: Session):
        self.db = db

    def _load(self, task_id: int, include=TASK_RELATIONS) -> Task:
        task = repository.get_task(self.db, task_id, include)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def _validate_assignee(self, user_id: Optional[int]) -> None:
        assignee = repository.get_user(self.db, user_id)
        if assignee is None or not assignee.is_active:
            raise ValidationError.for_field("assignedTo", "Invalid assignee", user_id)

    def list_tasks(self, actor: Actor, criteria: TaskCriteria, page: int, limit: int) -> Tuple[List[TaskListItem], Pagination]:
        query = repository.task_query(
            self.db, criteria, access_control.task_scope(actor), TASK_RELATIONS + ("timesheets",)
        )
        tasks, pagination = repository.paginate(query, page, limit)
        items = []
        for task in tasks:
            item = TaskListItem.model_validate(task)
            item.time_stats = time_stats(task)
            items.append(item)
        return items, pagination

    def get_task(self, actor: Actor, task_id: int) -> TaskDetailResponse:
        task = self._load(task_id, TASK_RELATIONS + ("timesheets",))
        if not access_control.can_view_task(actor, task):
            raise ForbiddenError("Access denied")
        return TaskDetailResponse.model_validate(task)

    def create_task(self, actor: Actor, data: TaskCreate) -> TaskResponse:
        if not access_control.can_create_task(actor):
            raise ForbiddenError("Only managers and admins can create tasks")
        if repository.get_project(self.db, data.project_id) is None:
            raise ValidationError.for_field("projectId", "Project not found", data.project_id)
        if data.assigned_to:
            self._validate_assignee(data.assigned_to)

        task = Task(**data.model_dump(), created_by=actor.id)
        task.assigned_to = data.assigned_to or None
        if task.status == TaskStatus.DONE:
            task.completed_at = datetime.utcnow()
        self.db.add(task)
        self.db.commit()

        logger.info(f"Task {task.id} created in project {task.project_id} by user {actor.id}")
        return TaskResponse.model_validate(self._load(task.id))

    def update_task(self, actor: Actor, task_id: int, data: TaskUpdate) -> TaskResponse:
        task = self._load(task_id)
        if not access_control.can_update_task(actor, task):
            raise ForbiddenError("Access denied")

        fields = data.model_dump(exclude_unset=True)
        for required in ("title", "status", "priority"):
            if required in fields and fields[required] is None:
                raise ValidationError.for_field(required, f"{required} cannot be null")

        if "assigned_to" in fields:
            new_assignee = fields["assigned_to"] or None
            if new_assignee != task.assigned_to:
                if not access_control.can_reassign_task(actor):
                    raise ForbiddenError("Only managers and admins can reassign tasks")
                if new_assignee is not None:
                    self._validate_assignee(new_assignee)
            fields["assigned_to"] = new_assignee

        if "actual_hours" in fields:
            if not access_control.can_log_actual_hours(actor, task):
                raise ForbiddenError("Only the assigned user can update actual hours")
            if fields["actual_hours"] is None:
                fields["actual_hours"] = 0

        if "tags" in fields and fields["tags"] is None:
            fields["tags"] = []

        new_status = fields.pop("status", None)
        for field, value in fields.items():
            setattr(task, field, value)
        if new_status is not None:
            if new_status == TaskStatus.DONE and task.status != TaskStatus.DONE:
                task.completed_at = datetime.utcnow()
            elif new_status != TaskStatus.DONE:
                task.completed_at = None
            task.status = new_status

        self.db.commit()
        logger.info(f"Task {task.id} updated by user {actor.id}")
        return TaskResponse.model_validate(self._load(task.id))

    def delete_task(self, actor: Actor, task_id: int) -> None:
        if not access_control.can_delete_task(actor):
            raise ForbiddenError("Only managers and admins can delete tasks")
        task = self._load(task_id, ())
        self.db.delete(task)
        self.db.commit()
        logger.info(f"Task {task_id} deleted by user {actor.id}")
