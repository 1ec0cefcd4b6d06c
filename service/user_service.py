import logging
from typing import List, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from db import repository
from db.repository import TimesheetCriteria, UserCriteria
from model.usermodels import User, UserRole
from model.Project_model import Project
from model.task_model import Task
from model.timesheet_model import Timesheet
from Schema.common_schema import Pagination
from Schema.report_schema import UserStatsResponse
from Schema.timesheet_schema import TimesheetResponse
from Schema.user_schema import UserDetailResponse, UserResponse, UserUpdate
from service import access_control
from service.access_control import Actor
from service.aggregation import group_by_project, group_by_status, summarize
from utils.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def _load(self, user_id: int) -> User:
        user = repository.get_user(self.db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _require_view(self, actor: Actor, user_id: int) -> None:
        if not access_control.can_view_user(actor, user_id):
            raise ForbiddenError("Access denied")

    def list_users(self, actor: Actor, criteria: UserCriteria, page: int, limit: int) -> Tuple[List[UserResponse], Pagination]:
        if not access_control.can_list_users(actor):
            raise ForbiddenError("Only managers and admins can list users")
        users, pagination = repository.paginate(repository.user_query(self.db, criteria), page, limit)
        return [UserResponse.model_validate(user) for user in users], pagination

    def get_user(self, actor: Actor, user_id: int) -> UserDetailResponse:
        self._require_view(actor, user_id)
        user = (
            self.db.query(User)
            .options(selectinload(User.managed_projects), selectinload(User.assigned_tasks))
            .filter(User.id == user_id)
            .first()
        )
        if user is None:
            raise NotFoundError("User not found")
        return UserDetailResponse.model_validate(user)

    def update_user(self, actor: Actor, user_id: int, data: UserUpdate) -> UserResponse:
        if not access_control.can_manage_users(actor):
            raise ForbiddenError("Only admins can update users")
        user = self._load(user_id)

        fields = data.model_dump(exclude_unset=True)
        for required in ("first_name", "last_name", "email", "role", "is_active"):
            if required in fields and fields[required] is None:
                raise ValidationError.for_field(required, f"{required} cannot be null")

        if fields.get("email") and fields["email"] != user.email:
            if repository.get_user_by_email(self.db, fields["email"]) is not None:
                raise ConflictError("Email already exists")

        if fields.get("role") == UserRole.EMPLOYEE and user.role != UserRole.EMPLOYEE:
            if self.db.query(Project.id).filter(Project.manager_id == user.id).first() is not None:
                raise ConflictError("User still manages projects; assign another manager first")
        if fields.get("is_active") is False and user.is_active:
            if self.db.query(Task.id).filter(Task.assigned_to == user.id).first() is not None:
                raise ConflictError("User still has assigned tasks; reassign them before deactivating")

        for field, value in fields.items():
            setattr(user, field, value)
        self.db.commit()

        logger.info(f"User {user.id} updated by admin {actor.id}")
        return UserResponse.model_validate(self._load(user_id))

    def _is_referenced(self, user_id: int) -> bool:
        checks = (
            self.db.query(Project.id).filter(or_(Project.created_by == user_id, Project.manager_id == user_id)),
            self.db.query(Task.id).filter(or_(Task.created_by == user_id, Task.assigned_to == user_id)),
            self.db.query(Timesheet.id).filter(or_(Timesheet.user_id == user_id, Timesheet.approved_by == user_id)),
        )
        return any(query.first() is not None for query in checks)

    def delete_user(self, actor: Actor, user_id: int) -> None:
        if not access_control.can_manage_users(actor):
            raise ForbiddenError("Only admins can delete users")
        user = self._load(user_id)
        if user.id == actor.id:
            raise ValidationError("Cannot delete your own account")
        if self._is_referenced(user.id):
            raise ConflictError("User still owns projects, tasks or timesheets; deactivate the account instead")

        self.db.delete(user)
        self.db.commit()
        logger.info(f"User {user_id} deleted by admin {actor.id}")

    def get_user_timesheets(self, actor: Actor, user_id: int, criteria: TimesheetCriteria, page: int, limit: int) -> Tuple[List[TimesheetResponse], Pagination]:
        self._require_view(actor, user_id)
        self._load(user_id)
        criteria.user_id = user_id
        query = repository.timesheet_query(self.db, criteria, include=("task", "project", "user", "approver"))
        query = query.order_by(Timesheet.date.desc(), Timesheet.created_at.desc(), Timesheet.id.desc())
        rows, pagination = repository.paginate(query, page, limit)
        return [TimesheetResponse.model_validate(row) for row in rows], pagination

    def get_user_stats(self, actor: Actor, user_id: int, criteria: TimesheetCriteria) -> UserStatsResponse:
        self._require_view(actor, user_id)
        self._load(user_id)
        criteria.user_id = user_id
        rows = [TimesheetResponse.model_validate(row) for row in repository.find_timesheets(self.db, criteria)]
        return UserStatsResponse(
            summary=summarize(rows),
            project_stats=group_by_project(rows),
            status_stats=group_by_status(rows),
        )
