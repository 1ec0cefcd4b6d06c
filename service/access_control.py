"""Role-based visibility predicates and per-action capability checks.

Every function takes an explicit :class:`Actor` instead of reading request
state, so the rules can be exercised without an HTTP request. Capability
checks return booleans; services decide which error to raise.
"""

from dataclasses import dataclass
from typing import List

from sqlalchemy import or_

from model.usermodels import UserRole
from model.Project_model import Project
from model.task_model import Task
from model.timesheet_model import Timesheet, TimesheetStatus


@dataclass(frozen=True)
class Actor:
    id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_manager(self) -> bool:
        """Managers and admins share reviewer rights."""
        return self.role in (UserRole.ADMIN, UserRole.MANAGER)

    @property
    def is_employee(self) -> bool:
        return self.role == UserRole.EMPLOYEE

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=UserRole(user.role))


# Visibility predicates, applied before counting and pagination

def timesheet_scope(actor: Actor) -> List:
    if actor.is_employee:
        return [Timesheet.user_id == actor.id]
    return []


def task_scope(actor: Actor) -> List:
    if actor.is_employee:
        return [Task.assigned_to == actor.id]
    return []


def project_scope(actor: Actor) -> List:
    if actor.is_employee:
        return [or_(Project.manager_id == actor.id, Project.created_by == actor.id)]
    return []


def can_view_user(actor: Actor, user_id: int) -> bool:
    return actor.is_manager or actor.id == user_id


def can_view_project(actor: Actor, project) -> bool:
    return actor.is_manager or actor.id in (project.manager_id, project.created_by)


def can_view_task(actor: Actor, task) -> bool:
    return actor.is_manager or task.assigned_to == actor.id


def can_view_timesheet(actor: Actor, entry) -> bool:
    return actor.is_manager or entry.user_id == actor.id


# Projects

def can_create_project(actor: Actor) -> bool:
    return actor.is_manager


def can_update_project(actor: Actor, project) -> bool:
    if actor.is_admin:
        return True
    if actor.role == UserRole.MANAGER:
        return actor.id in (project.manager_id, project.created_by)
    return False


def can_delete_project(actor: Actor) -> bool:
    return actor.is_admin


# Tasks

def can_create_task(actor: Actor) -> bool:
    return actor.is_manager


def can_update_task(actor: Actor, task) -> bool:
    return actor.is_manager or actor.id in (task.assigned_to, task.created_by)


def can_reassign_task(actor: Actor) -> bool:
    return actor.is_manager


def can_log_actual_hours(actor: Actor, task) -> bool:
    return task.assigned_to == actor.id


def can_delete_task(actor: Actor) -> bool:
    return actor.is_manager


# Timesheets

def can_log_time(actor: Actor, task) -> bool:
    return actor.is_manager or task.assigned_to == actor.id


def can_edit(actor: Actor, entry) -> bool:
    if entry.status == TimesheetStatus.APPROVED:
        return actor.is_admin
    return actor.is_manager or entry.user_id == actor.id


def can_approve(actor: Actor, entry) -> bool:
    if actor.is_admin:
        return True
    return actor.is_manager and entry.status == TimesheetStatus.SUBMITTED


def can_transition(actor: Actor, entry, new_status: TimesheetStatus) -> bool:
    current = TimesheetStatus(entry.status)
    new_status = TimesheetStatus(new_status)
    is_owner = entry.user_id == actor.id

    if actor.is_admin:
        return True
    if current == TimesheetStatus.APPROVED:
        return False
    if new_status in (TimesheetStatus.APPROVED, TimesheetStatus.REJECTED):
        return can_approve(actor, entry)
    if new_status == TimesheetStatus.SUBMITTED and current in (TimesheetStatus.DRAFT, TimesheetStatus.SUBMITTED):
        return is_owner or actor.is_manager
    return is_owner and current == TimesheetStatus.DRAFT


def can_delete(actor: Actor, entry) -> bool:
    if actor.is_manager:
        return True
    return entry.user_id == actor.id and entry.status == TimesheetStatus.DRAFT


# Users

def can_list_users(actor: Actor) -> bool:
    return actor.is_manager


def can_manage_users(actor: Actor) -> bool:
    return actor.is_admin
