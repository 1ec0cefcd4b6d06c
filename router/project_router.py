from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Annotated, Optional

from db.database import get_db
from db.repository import ProjectCriteria
from model.Project_model import ProjectStatus, Priority
from Schema.project_schema import ProjectCreate, ProjectUpdate
from service.access_control import Actor
from service.project_service import ProjectService
from utils.exceptions import AppError, UnhandledError
from utils.responses import page_response, success_response
from utils.token import get_current_actor

db_dependency = Annotated[Session, Depends(get_db)]
actor_dependency = Annotated[Actor, Depends(get_current_actor)]

router = APIRouter(prefix="/projects")


@router.get("")
async def list_projects(
    db: db_dependency,
    actor: actor_dependency,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[ProjectStatus] = Query(None, alias="status"),
    priority: Optional[Priority] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
):
    """
    List projects with task completion stats
    """
    try:
        criteria = ProjectCriteria(status=status_filter, priority=priority, search=search)
        items, pagination = ProjectService(db).list_projects(actor, criteria, page, limit)
        return page_response("projects", items, pagination)
    except AppError:
        raise
    except Exception as e:
        raise UnhandledError("Server error while fetching projects") from e


@router.get("/{project_id}")
async def get_project(project_id: int, db: db_dependency, actor: actor_dependency):
    try:
        project = ProjectService(db).get_project(actor, project_id)
        return success_response({"project": project})
    except AppError:
        raise
    except Exception as e:
        raise UnhandledError("Server error while fetching project") from e


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(payload: ProjectCreate, db: db_dependency, actor: actor_dependency):
    try:
        project = ProjectService(db).create_project(actor, payload)
        return success_response({"project": project}, "Project created successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while creating project") from e


@router.put("/{project_id}")
async def update_project(project_id: int, payload: ProjectUpdate, db: db_dependency, actor: actor_dependency):
    try:
        project = ProjectService(db).update_project(actor, project_id, payload)
        return success_response({"project": project}, "Project updated successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while updating project") from e


@router.delete("/{project_id}")
async def delete_project(project_id: int, db: db_dependency, actor: actor_dependency):
    try:
        ProjectService(db).delete_project(actor, project_id)
        return success_response(message="Project deleted successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while deleting project") from e
