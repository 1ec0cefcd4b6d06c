"""Query builders shared by the services.

Filters arrive as explicit criteria objects, relations to eager-load as an
explicit ``include`` tuple, and visibility predicates from
``service.access_control`` as a ``scope`` list. The scope is applied before
``count()`` so pagination totals match what the caller may see.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from model.usermodels import User, UserRole
from model.Project_model import Project, ProjectStatus, Priority
from model.task_model import Task, TaskStatus
from model.timesheet_model import Timesheet, TimesheetStatus
from Schema.common_schema import Pagination

TIMESHEET_RELATIONS = ("user", "approver", "task", "project")


@dataclass
class TimesheetCriteria:
    user_id: Optional[int] = None
    project_id: Optional[int] = None
    task_id: Optional[int] = None
    status: Optional[TimesheetStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass
class TaskCriteria:
    project_id: Optional[int] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    search: Optional[str] = None


@dataclass
class ProjectCriteria:
    status: Optional[ProjectStatus] = None
    priority: Optional[Priority] = None
    search: Optional[str] = None


@dataclass
class UserCriteria:
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    search: Optional[str] = None


def _contains(column, text: str):
    """Case-insensitive substring match; LIKE wildcards in ``text`` match literally."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


def _with_relations(query: Query, model, include: Iterable[str]) -> Query:
    for relation in include:
        attr = getattr(model, relation)
        if attr.property.uselist:
            query = query.options(selectinload(attr))
        else:
            query = query.options(joinedload(attr))
    return query


def paginate(query: Query, page: int, limit: int) -> Tuple[List, Pagination]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, Pagination.build(page, limit, total)


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def get_project(db: Session, project_id: int, include: Sequence[str] = ()) -> Optional[Project]:
    query = _with_relations(db.query(Project), Project, include)
    return query.filter(Project.id == project_id).first()


def get_task(db: Session, task_id: int, include: Sequence[str] = ()) -> Optional[Task]:
    query = _with_relations(db.query(Task), Task, include)
    return query.filter(Task.id == task_id).first()


def get_timesheet(db: Session, timesheet_id: int, include: Sequence[str] = TIMESHEET_RELATIONS) -> Optional[Timesheet]:
    query = _with_relations(db.query(Timesheet), Timesheet, include)
    return query.filter(Timesheet.id == timesheet_id).first()


def find_duplicate_timesheet(db: Session, user_id: int, task_id: int, day: date) -> Optional[Timesheet]:
    return db.query(Timesheet).filter(
        Timesheet.user_id == user_id,
        Timesheet.task_id == task_id,
        Timesheet.date == day,
    ).first()


def timesheet_query(
    db: Session,
    criteria: TimesheetCriteria,
    scope: Sequence = (),
    include: Sequence[str] = TIMESHEET_RELATIONS,
) -> Query:
    query = _with_relations(db.query(Timesheet), Timesheet, include)
    if criteria.user_id:
        query = query.filter(Timesheet.user_id == criteria.user_id)
    if criteria.project_id:
        query = query.filter(Timesheet.project_id == criteria.project_id)
    if criteria.task_id:
        query = query.filter(Timesheet.task_id == criteria.task_id)
    if criteria.status:
        query = query.filter(Timesheet.status == criteria.status)
    if criteria.start_date:
        query = query.filter(Timesheet.date >= criteria.start_date)
    if criteria.end_date:
        query = query.filter(Timesheet.date <= criteria.end_date)
    for predicate in scope:
        query = query.filter(predicate)
    return query


def find_timesheets(
    db: Session,
    criteria: TimesheetCriteria,
    scope: Sequence = (),
    include: Sequence[str] = TIMESHEET_RELATIONS,
    newest_first: bool = True,
) -> List[Timesheet]:
    query = timesheet_query(db, criteria, scope, include)
    if newest_first:
        query = query.order_by(Timesheet.date.desc(), Timesheet.created_at.desc())
    else:
        query = query.order_by(Timesheet.date.asc(), Timesheet.created_at.asc())
    return query.all()


def task_query(db: Session, criteria: TaskCriteria, scope: Sequence = (), include: Sequence[str] = ()) -> Query:
    query = _with_relations(db.query(Task), Task, include)
    if criteria.project_id:
        query = query.filter(Task.project_id == criteria.project_id)
    if criteria.status:
        query = query.filter(Task.status == criteria.status)
    if criteria.priority:
        query = query.filter(Task.priority == criteria.priority)
    if criteria.search:
        query = query.filter(_contains(Task.title, criteria.search))
    for predicate in scope:
        query = query.filter(predicate)
    return query.order_by(Task.created_at.desc(), Task.id.desc())


def project_query(db: Session, criteria: ProjectCriteria, scope: Sequence = (), include: Sequence[str] = ()) -> Query:
    query = _with_relations(db.query(Project), Project, include)
    if criteria.status:
        query = query.filter(Project.status == criteria.status)
    if criteria.priority:
        query = query.filter(Project.priority == criteria.priority)
    if criteria.search:
        query = query.filter(_contains(Project.name, criteria.search))
    for predicate in scope:
        query = query.filter(predicate)
    return query.order_by(Project.created_at.desc(), Project.id.desc())


def user_query(db: Session, criteria: UserCriteria) -> Query:
    query = db.query(User)
    if criteria.role:
        query = query.filter(User.role == criteria.role)
    if criteria.is_active is not None:
        query = query.filter(User.is_active == criteria.is_active)
    if criteria.search:
        query = query.filter(or_(
            _contains(User.first_name, criteria.search),
            _contains(User.last_name, criteria.search),
            _contains(User.email, criteria.search),
        ))
    return query.order_by(User.created_at.desc(), User.id.desc())
