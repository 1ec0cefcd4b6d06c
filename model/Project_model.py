from sqlalchemy import Column, Integer, String, Text, Date, Numeric, ForeignKey, DateTime, Boolean, Enum
from sqlalchemy.orm import relationship
from enum import Enum as pyEnum
from datetime import datetime
from db.database import Base
from model.usermodels import enum_values


class ProjectStatus(str, pyEnum):
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Priority(str, pyEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), index=True, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(ProjectStatus, values_callable=enum_values), default=ProjectStatus.PLANNING, nullable=False, index=True)
    priority = Column(Enum(Priority, values_callable=enum_values), default=Priority.MEDIUM, nullable=False, index=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    budget = Column(Numeric(10, 2), nullable=True)
    color = Column(String(7), default="#3B82F6", nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("User", foreign_keys=[created_by], back_populates="created_projects")
    manager = relationship("User", foreign_keys=[manager_id], back_populates="managed_projects")
    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")
    timesheets = relationship("Timesheet", back_populates="project", cascade="all, delete-orphan")
