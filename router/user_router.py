from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import Annotated, Optional

from db.database import get_db
from db.repository import TimesheetCriteria, UserCriteria
from model.usermodels import UserRole
from Schema.user_schema import UserUpdate
from service.access_control import Actor
from service.user_service import UserService
from utils.exceptions import AppError, UnhandledError
from utils.responses import page_response, success_response
from utils.token import get_current_actor

db_dependency = Annotated[Session, Depends(get_db)]
actor_dependency = Annotated[Actor, Depends(get_current_actor)]

router = APIRouter(prefix="/users")


@router.get("")
async def list_users(
    db: db_dependency,
    actor: actor_dependency,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    search: Optional[str] = Query(None, max_length=100),
):
    """
    List users (managers and admins only)
    """
    try:
        criteria = UserCriteria(role=role, is_active=is_active, search=search)
        items, pagination = UserService(db).list_users(actor, criteria, page, limit)
        return page_response("users", items, pagination)
    except AppError:
        raise
    except Exception as e:
        raise UnhandledError("Server error while fetching users") from e


@router.get("/{user_id}")
async def get_user(user_id: int, db: db_dependency, actor: actor_dependency):
    try:
        user = UserService(db).get_user(actor, user_id)
        return success_response({"user": user})
    except AppError:
        raise
    except Exception as e:
        raise UnhandledError("Server error while fetching user") from e


@router.put("/{user_id}")
async def update_user(user_id: int, payload: UserUpdate, db: db_dependency, actor: actor_dependency):
    try:
        user = UserService(db).update_user(actor, user_id, payload)
        return success_response({"user": user}, "User updated successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while updating user") from e


@router.delete("/{user_id}")
async def delete_user(user_id: int, db: db_dependency, actor: actor_dependency):
    try:
        UserService(db).delete_user(actor, user_id)
        return success_response(message="User deleted successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while deleting user") from e


@router.get("/{user_id}/timesheets")
async def get_user_timesheets(
    user_id: int,
    db: db_dependency,
    actor: actor_dependency,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
):
    try:
        criteria = TimesheetCriteria(start_date=start_date, end_date=end_date)
        items, pagination = UserService(db).get_user_timesheets(actor, user_id, criteria, page, limit)
        return page_response("timesheets", items, pagination)
    except AppError:
        raise
    except Exception as e:
        raise UnhandledError("Server error while fetching user timesheets") from e


@router.get("/{user_id}/stats")
async def get_user_stats(
    user_id: int,
    db: db_dependency,
    actor: actor_dependency,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
):
    """
    Hours per project and per status for one user
    """
    try:
        criteria = TimesheetCriteria(start_date=start_date, end_date=end_date)
        return success_response(UserService(db).get_user_stats(actor, user_id, criteria))
    except AppError:
        raise
    except Exception as e:
        raise UnhandledError("Server error while fetching user statistics") from e
