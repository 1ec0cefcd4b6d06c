"""Timesheet lifecycle: creation rules, edits, the status state machine and deletion."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db import repository
from db.repository import TimesheetCriteria
from model.timesheet_model import Timesheet, TimesheetStatus
from Schema.common_schema import Pagination
from Schema.report_schema import TimesheetSummaryResponse
from Schema.timesheet_schema import TimesheetCreate, TimesheetResponse, TimesheetUpdate
from service import access_control
from service.access_control import Actor
from service.aggregation import group_by_project, group_by_user, summarize
from utils.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

MIN_HOURS = Decimal("0")
MAX_HOURS = Decimal("24")
DEFAULT_REJECTION_REASON = "No reason provided"
DUPLICATE_MESSAGE = "Time entry already exists for this task on this date"


def validate_hours(hours) -> Decimal:
    value = Decimal(str(hours))
    if value <= MIN_HOURS or value > MAX_HOURS:
        raise ValidationError.for_field("hours", "Hours must be between 0.01 and 24", float(value))
    return value


def apply_status(entry: Timesheet, new_status: TimesheetStatus, actor: Actor, rejection_reason: Optional[str] = None) -> None:
    """Set the status and keep approval/rejection fields consistent with it."""
    entry.status = new_status
    if new_status == TimesheetStatus.APPROVED:
        entry.approved_by = actor.id
        entry.approved_at = datetime.utcnow()
        entry.rejection_reason = None
    elif new_status == TimesheetStatus.REJECTED:
        entry.approved_by = None
        entry.approved_at = None
        entry.rejection_reason = rejection_reason or DEFAULT_REJECTION_REASON
    else:
        entry.approved_by = None
        entry.approved_at = None
        entry.rejection_reason = None


def to_response(entry: Timesheet) -> TimesheetResponse:
    return TimesheetResponse.model_validate(entry)


class TimesheetService:
    def __init__(self, db: Session):
        self.db = db

    def _load(self, timesheet_id: int) -> Timesheet:
        entry = repository.get_timesheet(self.db, timesheet_id)
        if entry is None:
            raise NotFoundError("Timesheet entry not found")
        return entry

    def _reload(self, entry: Timesheet) -> TimesheetResponse:
        self.db.expire(entry)
        return to_response(self._load(entry.id))

    def list_timesheets(self, actor: Actor, criteria: TimesheetCriteria, page: int, limit: int) -> Tuple[List[TimesheetResponse], Pagination]:
        query = repository.timesheet_query(self.db, criteria, access_control.timesheet_scope(actor))
        query = query.order_by(Timesheet.date.desc(), Timesheet.created_at.desc(), Timesheet.id.desc())
        rows, pagination = repository.paginate(query, page, limit)
        return [to_response(row) for row in rows], pagination

    def get_timesheet(self, actor: Actor, timesheet_id: int) -> TimesheetResponse:
        entry = self._load(timesheet_id)
        if not access_control.can_view_timesheet(actor, entry):
            raise ForbiddenError("Access denied")
        return to_response(entry)

    def create_timesheet(self, actor: Actor, data: TimesheetCreate) -> TimesheetResponse:
        hours = validate_hours(data.hours)

        task = repository.get_task(self.db, data.task_id)
        if task is None:
            raise ValidationError.for_field("taskId", "Task not found", data.task_id)
        if not access_control.can_log_time(actor, task):
            raise ForbiddenError("You can only log time for tasks assigned to you")
        if task.project_id != data.project_id:
            raise ValidationError.for_field("projectId", "Project does not match task project", data.project_id)
        if repository.find_duplicate_timesheet(self.db, actor.id, task.id, data.date) is not None:
            raise ConflictError(DUPLICATE_MESSAGE)

        entry = Timesheet(
            date=data.date,
            hours=hours,
            description=data.description,
            task_id=task.id,
            project_id=task.project_id,
            user_id=actor.id,
            is_billable=data.is_billable,
            status=TimesheetStatus.DRAFT,
        )
        self.db.add(entry)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent request inserted the same (user, task, date) first
            self.db.rollback()
            raise ConflictError(DUPLICATE_MESSAGE)

        logger.info(f"User {actor.id} logged {hours}h on task {task.id} for {data.date}")
        return self._reload(entry)

    def update_timesheet(self, actor: Actor, timesheet_id: int, data: TimesheetUpdate) -> TimesheetResponse:
        entry = self._load(timesheet_id)
        if not access_control.can_edit(actor, entry):
            if entry.status == TimesheetStatus.APPROVED:
                raise ForbiddenError("Cannot update approved timesheet entry")
            raise ForbiddenError("Access denied")

        fields = data.model_dump(exclude_unset=True, exclude={"status", "rejection_reason"})
        if "hours" in fields:
            if fields["hours"] is None:
                raise ValidationError.for_field("hours", "Hours must be between 0.01 and 24")
            fields["hours"] = validate_hours(fields["hours"])
        if "is_billable" in fields and fields["is_billable"] is None:
            raise ValidationError.for_field("isBillable", "isBillable must be boolean")

        new_status = data.status
        if new_status is not None and new_status != entry.status:
            if not access_control.can_transition(actor, entry, new_status):
                raise ForbiddenError(self._transition_denied_message(entry, new_status))
        else:
            new_status = None

        for field, value in fields.items():
            setattr(entry, field, value)
        if new_status is not None:
            apply_status(entry, new_status, actor, data.rejection_reason)

        self.db.commit()
        logger.info(f"Timesheet {entry.id} updated by user {actor.id}")
        return self._reload(entry)

    def update_status(self, actor: Actor, timesheet_id: int, new_status: TimesheetStatus, rejection_reason: Optional[str] = None) -> TimesheetResponse:
        entry = self._load(timesheet_id)
        if not access_control.can_transition(actor, entry, new_status):
            raise ForbiddenError(self._transition_denied_message(entry, new_status))

        previous = entry.status
        apply_status(entry, new_status, actor, rejection_reason)
        self.db.commit()
        logger.info(f"Timesheet {entry.id} moved from {previous.value} to {new_status.value} by user {actor.id}")
        return self._reload(entry)

    @staticmethod
    def _transition_denied_message(entry: Timesheet, new_status: TimesheetStatus) -> str:
        if entry.status == TimesheetStatus.APPROVED:
            return "Approved timesheet entries can only be changed by an admin"
        if new_status in (TimesheetStatus.APPROVED, TimesheetStatus.REJECTED):
            return "Only managers and admins can approve or reject submitted timesheets"
        return f"Cannot change timesheet status from {entry.status.value} to {new_status.value}"

    def delete_timesheet(self, actor: Actor, timesheet_id: int) -> None:
        entry = self._load(timesheet_id)
        if not access_control.can_delete(actor, entry):
            raise ForbiddenError("Access denied")
        self.db.delete(entry)
        self.db.commit()
        logger.info(f"Timesheet {timesheet_id} deleted by user {actor.id}")

    def get_summary(self, actor: Actor, criteria: TimesheetCriteria) -> TimesheetSummaryResponse:
        rows = [
            to_response(row)
            for row in repository.find_timesheets(self.db, criteria, access_control.timesheet_scope(actor))
        ]
        return TimesheetSummaryResponse(
            summary=summarize(rows),
            project_summary=group_by_project(rows),
            user_summary=group_by_user(rows),
            timesheets=rows,
        )
