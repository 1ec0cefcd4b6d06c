from sqlalchemy import Column, Integer, Text, Date, Numeric, Boolean, ForeignKey, DateTime, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from enum import Enum as pyEnum
from datetime import datetime
from db.database import Base
from model.usermodels import enum_values


class TimesheetStatus(str, pyEnum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class Timesheet(Base):
    __tablename__ = "timesheets"
    # One entry per user, task and day; two concurrent inserts cannot both win
    __table_args__ = (
        UniqueConstraint("user_id", "task_id", "date", name="uq_timesheet_user_task_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    hours = Column(Numeric(4, 2), nullable=False)
    description = Column(Text, nullable=True)
    is_billable = Column(Boolean, default=True, nullable=False)
    status = Column(Enum(TimesheetStatus, values_callable=enum_values), default=TimesheetStatus.DRAFT, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", onupdate="CASCADE"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id], back_populates="timesheets")
    approver = relationship("User", foreign_keys=[approved_by], back_populates="approved_timesheets")
    task = relationship("Task", back_populates="timesheets")
    project = relationship("Project", back_populates="timesheets")
