from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import date
from typing import Annotated, Optional

from db.database import get_db
from db.repository import TimesheetCriteria
from model.timesheet_model import TimesheetStatus
from Schema.timesheet_schema import TimesheetCreate, TimesheetStatusUpdate, TimesheetUpdate
from service.access_control import Actor
from service.timesheet_service import TimesheetService
from utils.exceptions import AppError, UnhandledError
from utils.responses import page_response, success_response
from utils.token import get_current_actor

db_dependency = Annotated[Session, Depends(get_db)]
actor_dependency = Annotated[Actor, Depends(get_current_actor)]

router = APIRouter(prefix="/timesheets")


@router.get("")
async def list_timesheets(
    db: db_dependency,
    actor: actor_dependency,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[TimesheetStatus] = Query(None, alias="status"),
    project_id: Optional[int] = Query(None, alias="projectId"),
    task_id: Optional[int] = Query(None, alias="taskId"),
    user_id: Optional[int] = Query(None, alias="userId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
):
    """
    List timesheet entries visible to the caller, newest first
    """
    try:
        criteria = TimesheetCriteria(
            user_id=user_id,
            project_id=project_id,
            task_id=task_id,
            status=status_filter,
            start_date=start_date,
            end_date=end_date,
        )
        items, pagination = TimesheetService(db).list_timesheets(actor, criteria, page, limit)
        return page_response("timesheets", items, pagination)
    except AppError:
        raise
    except Exception as e:
        raise UnhandledError("Server error while fetching timesheets") from e


@router.get("/summary")
async def get_timesheet_summary(
    db: db_dependency,
    actor: actor_dependency,
    user_id: Optional[int] = Query(None, alias="userId"),
    project_id: Optional[int] = Query(None, alias="projectId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
):
    """
    Totals plus per-project and per-user breakdowns
    """
    try:
        criteria = TimesheetCriteria(
            user_id=user_id,
            project_id=project_id,
            start_date=start_date,
            end_date=end_date,
        )
        return success_response(TimesheetService(db).get_summary(actor, criteria))
    except AppError:
        raise
    except Exception as e:
        raise UnhandledError("Server error while fetching timesheet summary") from e


@router.get("/{timesheet_id}")
async def get_timesheet(timesheet_id: int, db: db_dependency, actor: actor_dependency):
    try:
        entry = TimesheetService(db).get_timesheet(actor, timesheet_id)
        return success_response({"timesheet": entry})
    except AppError:
        raise
    except Exception as e:
        raise UnhandledError("Server error while fetching timesheet entry") from e


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_timesheet(payload: TimesheetCreate, db: db_dependency, actor: actor_dependency):
    try:
        entry = TimesheetService(db).create_timesheet(actor, payload)
        return success_response({"timesheet": entry}, "Timesheet entry created successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while creating timesheet entry") from e


@router.put("/{timesheet_id}")
async def update_timesheet(timesheet_id: int, payload: TimesheetUpdate, db: db_dependency, actor: actor_dependency):
    try:
        entry = TimesheetService(db).update_timesheet(actor, timesheet_id, payload)
        return success_response({"timesheet": entry}, "Timesheet entry updated successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while updating timesheet entry") from e


@router.patch("/{timesheet_id}/status")
async def update_timesheet_status(
    timesheet_id: int,
    payload: TimesheetStatusUpdate,
    db: db_dependency,
    actor: actor_dependency,
):
    """
    Move an entry through draft -> submitted -> approved/rejected
    """
    try:
        entry = TimesheetService(db).update_status(actor, timesheet_id, payload.status, payload.rejection_reason)
        return success_response({"timesheet": entry}, f"Timesheet entry {payload.status.value}")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while updating timesheet status") from e


@router.delete("/{timesheet_id}")
async def delete_timesheet(timesheet_id: int, db: db_dependency, actor: actor_dependency):
    try:
        TimesheetService(db).delete_timesheet(actor, timesheet_id)
        return success_response(message="Timesheet entry deleted successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while deleting timesheet entry") from e
