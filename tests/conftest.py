import os

# Must be set before the application modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_ENABLED"] = "0"
os.environ.setdefault("JWT_SECRET_KEY", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET_KEY", "test-refresh-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from main import app
from db.database import Base, SessionLocal, engine
from model.usermodels import User, UserRole
from model.Project_model import Project
from model.task_model import Task, TaskStatus
from model.timesheet_model import Timesheet, TimesheetStatus
from service.access_control import Actor
from utils.token import create_access_token, hash_password

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


def _persist(obj) -> int:
    session = SessionLocal()
    try:
        session.add(obj)
        session.commit()
        return obj.id
    finally:
        session.close()


def headers_for(user_id: int, role: UserRole) -> dict:
    token = create_access_token(SimpleNamespace(id=user_id, role=role))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user():
    counter = {"n": 0}

    def _make_user(role=UserRole.EMPLOYEE, email=None, is_active=True, first_name="Test", last_name=None):
        counter["n"] += 1
        user_id = _persist(User(
            first_name=first_name,
            last_name=last_name or f"{role.value.capitalize()}{counter['n']}",
            email=email or f"{role.value}{counter['n']}@acme.io",
            password=PASSWORD_HASH,
            role=role,
            is_active=is_active,
        ))
        return SimpleNamespace(
            id=user_id,
            role=role,
            actor=Actor(id=user_id, role=role),
            headers=headers_for(user_id, role),
        )

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN)


@pytest.fixture
def manager(make_user):
    return make_user(UserRole.MANAGER)


@pytest.fixture
def employee(make_user):
    return make_user(UserRole.EMPLOYEE)


@pytest.fixture
def other_employee(make_user):
    return make_user(UserRole.EMPLOYEE)


@pytest.fixture
def make_project():
    def _make_project(created_by, manager_id=None, name="Website Redesign"):
        return _persist(Project(name=name, created_by=created_by, manager_id=manager_id or created_by))

    return _make_project


@pytest.fixture
def make_task():
    def _make_task(project_id, created_by, assigned_to=None, title="Build landing page",
                   estimated_hours=None, status=TaskStatus.TODO):
        return _persist(Task(
            title=title,
            project_id=project_id,
            created_by=created_by,
            assigned_to=assigned_to,
            estimated_hours=estimated_hours,
            status=status,
        ))

    return _make_task


@pytest.fixture
def make_timesheet():
    def _make_timesheet(user_id, task_id, project_id, day=date(2024, 1, 5), hours="8",
                        status=TimesheetStatus.DRAFT, is_billable=True, description=None):
        return _persist(Timesheet(
            user_id=user_id,
            task_id=task_id,
            project_id=project_id,
            date=day,
            hours=Decimal(hours),
            status=status,
            is_billable=is_billable,
            description=description,
        ))

    return _make_timesheet


@pytest.fixture
def project(manager, make_project):
    return make_project(manager.id)


@pytest.fixture
def task(project, manager, employee, make_task):
    return make_task(project, manager.id, assigned_to=employee.id, estimated_hours=Decimal("10"))
