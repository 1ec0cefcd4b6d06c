from math import ceil
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from model.Project_model import ProjectStatus
from model.task_model import TaskStatus


class CamelModel(BaseModel):
    """Serializes with camelCase keys and accepts either camelCase or snake_case."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class StrictCamelModel(CamelModel):
    """Request bodies: unknown fields are rejected."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            current_page=page,
            total_pages=ceil(total / limit) if total > 0 else 0,
            total_items=total,
            items_per_page=limit,
        )


class UserSummary(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str


class ProjectSummary(CamelModel):
    id: int
    name: str
    status: Optional[ProjectStatus] = None
    color: Optional[str] = None


class TaskSummary(CamelModel):
    id: int
    title: str
    status: Optional[TaskStatus] = None
