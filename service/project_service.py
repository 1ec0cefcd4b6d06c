import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from db import repository
from db.repository import ProjectCriteria
from model.usermodels import UserRole
from model.Project_model import Project
from model.task_model import TaskStatus
from Schema.common_schema import Pagination
from Schema.project_schema import (
    ProjectCreate,
    ProjectDetailResponse,
    ProjectListItem,
    ProjectResponse,
    ProjectUpdate,
    TaskStats,
)
from service import access_control
from service.access_control import Actor
from service.aggregation import percentage
from utils.exceptions import ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PROJECT_RELATIONS = ("creator", "manager")


def task_stats(project: Project) -> TaskStats:
    tasks = project.tasks or []
    completed = sum(1 for task in tasks if task.status == TaskStatus.DONE)
    return TaskStats(
        total=len(tasks),
        completed=completed,
        completion_percentage=percentage(completed, len(tasks)),
    )


class ProjectService:
    def __init__(self, db: Session):
        self.db = db

    def _load(self, project_id: int, include=PROJECT_RELATIONS) -> Project:
        project = repository.get_project(self.db, project_id, include)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def _validate_manager(self, manager_id: Optional[int]) -> None:
        manager = repository.get_user(self.db, manager_id)
        if manager is None or manager.role not in (UserRole.ADMIN, UserRole.MANAGER):
            raise ValidationError.for_field(
                "managerId", "Invalid manager. Manager must be an admin or manager.", manager_id
            )

    def list_projects(self, actor: Actor, criteria: ProjectCriteria, page: int, limit: int) -> Tuple[List[ProjectListItem], Pagination]:
        query = repository.project_query(
            self.db, criteria, access_control.project_scope(actor), PROJECT_RELATIONS + ("tasks",)
        )
        projects, pagination = repository.paginate(query, page, limit)
        items = []
        for project in projects:
            item = ProjectListItem.model_validate(project)
            item.task_stats = task_stats(project)
            items.append(item)
        return items, pagination

    def get_project(self, actor: Actor, project_id: int) -> ProjectDetailResponse:
        project = self._load(project_id, PROJECT_RELATIONS + ("tasks",))
        if not access_control.can_view_project(actor, project):
            raise ForbiddenError("Access denied")
        return ProjectDetailResponse.model_validate(project)

    def create_project(self, actor: Actor, data: ProjectCreate) -> ProjectResponse:
        if not access_control.can_create_project(actor):
            raise ForbiddenError("Only managers and admins can create projects")
        if data.manager_id:
            self._validate_manager(data.manager_id)

        fields = data.model_dump()
        fields["manager_id"] = data.manager_id or actor.id
        project = Project(**fields, created_by=actor.id)
        self.db.add(project)
        self.db.commit()

        logger.info(f"Project {project.id} '{project.name}' created by user {actor.id}")
        return ProjectResponse.model_validate(self._load(project.id))

    def update_project(self, actor: Actor, project_id: int, data: ProjectUpdate) -> ProjectResponse:
        project = self._load(project_id)
        if not access_control.can_update_project(actor, project):
            raise ForbiddenError("Access denied")

        fields = data.model_dump(exclude_unset=True)
        if fields.get("manager_id"):
            self._validate_manager(fields["manager_id"])
        for required in ("name", "status", "priority", "color", "is_archived"):
            if required in fields and fields[required] is None:
                raise ValidationError.for_field(required, f"{required} cannot be null")

        for field, value in fields.items():
            setattr(project, field, value)
        self.db.commit()

        logger.info(f"Project {project.id} updated by user {actor.id}")
        return ProjectResponse.model_validate(self._load(project.id))

    def delete_project(self, actor: Actor, project_id: int) -> None:
        if not access_control.can_delete_project(actor):
            raise ForbiddenError("Only admins can delete projects")
        project = self._load(project_id, ())
        self.db.delete(project)
        self.db.commit()
        logger.info(f"Project {project_id} deleted by user {actor.id}")
