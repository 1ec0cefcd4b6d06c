from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, DateTime, Enum, JSON
from sqlalchemy.orm import relationship
from enum import Enum as pyEnum
from datetime import datetime
from db.database import Base
from model.usermodels import enum_values
from model.Project_model import Priority


class TaskStatus(str, pyEnum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    DONE = "done"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(TaskStatus, values_callable=enum_values), default=TaskStatus.TODO, nullable=False, index=True)
    priority = Column(Enum(Priority, values_callable=enum_values), default=Priority.MEDIUM, nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    estimated_hours = Column(Numeric(5, 2), nullable=True)
    actual_hours = Column(Numeric(5, 2), default=0)
    due_date = Column(DateTime, nullable=True, index=True)
    completed_at = Column(DateTime, nullable=True)
    tags = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", back_populates="tasks")
    assignee = relationship("User", foreign_keys=[assigned_to], back_populates="assigned_tasks")
    creator = relationship("User", foreign_keys=[created_by], back_populates="created_tasks")
    timesheets = relationship("Timesheet", back_populates="task", cascade="all, delete-orphan")
