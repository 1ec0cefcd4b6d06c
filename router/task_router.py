from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Annotated, Optional

from db.database import get_db
from db.repository import TaskCriteria
from model.Project_model import Priority
from model.task_model import TaskStatus
from Schema.task_schema import TaskCreate, TaskUpdate
from service.access_control import Actor
from service.task_service import TaskService
from utils.exceptions import AppError, UnhandledError
from utils.responses import page_response, success_response
from utils.token import get_current_actor

db_dependency = Annotated[Session, Depends(get_db)]
actor_dependency = Annotated[Actor, Depends(get_current_actor)]

router = APIRouter(prefix="/tasks")


@router.get("")
async def list_tasks(
    db: db_dependency,
    actor: actor_dependency,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[Priority] = Query(None),
    project_id: Optional[int] = Query(None, alias="projectId"),
    search: Optional[str] = Query(None, max_length=200),
):
    """
    List tasks with logged-time progress
    """
    try:
        criteria = TaskCriteria(project_id=project_id, status=status_filter, priority=priority, search=search)
        items, pagination = TaskService(db).list_tasks(actor, criteria, page, limit)
        return page_response("tasks", items, pagination)
    except AppError:
        raise
    except Exception as e:
        raise UnhandledError("Server error while fetching tasks") from e


@router.get("/{task_id}")
async def get_task(task_id: int, db: db_dependency, actor: actor_dependency):
    try:
        task = TaskService(db).get_task(actor, task_id)
        return success_response({"task": task})
    except AppError:
        raise
    except Exception as e:
        raise UnhandledError("Server error while fetching task") from e


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(payload: TaskCreate, db: db_dependency, actor: actor_dependency):
    try:
        task = TaskService(db).create_task(actor, payload)
        return success_response({"task": task}, "Task created successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while creating task") from e


@router.put("/{task_id}")
async def update_task(task_id: int, payload: TaskUpdate, db: db_dependency, actor: actor_dependency):
    try:
        task = TaskService(db).update_task(actor, task_id, payload)
        return success_response({"task": task}, "Task updated successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while updating task") from e


@router.delete("/{task_id}")
async def delete_task(task_id: int, db: db_dependency, actor: actor_dependency):
    try:
        TaskService(db).delete_task(actor, task_id)
        return success_response(message="Task deleted successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while deleting task") from e
