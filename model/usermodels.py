from sqlalchemy import Column, Integer, String, DateTime, Boolean, Enum
from sqlalchemy.orm import relationship
from enum import Enum as pyEnum
from datetime import datetime
from db.database import Base


class UserRole(str, pyEnum):
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


def enum_values(enum_cls):
    """Persist enum values (e.g. 'in-progress') rather than member names."""
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(100), nullable=False)
    role = Column(Enum(UserRole, values_callable=enum_values), default=UserRole.EMPLOYEE, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    avatar = Column(String(500), nullable=True)
    phone = Column(String(30), nullable=True)
    department = Column(String(100), nullable=True)
    position = Column(String(100), nullable=True)
    last_login = Column(DateTime, default=None)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    created_projects = relationship("Project", foreign_keys="[Project.created_by]", back_populates="creator")
    managed_projects = relationship("Project", foreign_keys="[Project.manager_id]", back_populates="manager")
    assigned_tasks = relationship("Task", foreign_keys="[Task.assigned_to]", back_populates="assignee")
    created_tasks = relationship("Task", foreign_keys="[Task.created_by]", back_populates="creator")
    timesheets = relationship("Timesheet", foreign_keys="[Timesheet.user_id]", back_populates="user")
    approved_timesheets = relationship("Timesheet", foreign_keys="[Timesheet.approved_by]", back_populates="approver")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
