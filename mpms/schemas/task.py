from datetime import date, datetime
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from mpms.core.enums import TaskPriority, TaskStatus
from mpms.schemas.project import ProjectBrief
from mpms.schemas.response import CamelModel
from mpms.schemas.sprint import SprintBrief
from mpms.schemas.user import UserBrief, require_any_field, strip_text


class TaskCreate(CamelModel):
    """
    TaskCreate — создание задачи (admin/manager).
    """
    title: str = Field(..., min_length=1, max_length=300, examples=["Design landing page"])
    description: Optional[str] = Field(None, max_length=5000)
    project_id: int
    sprint_id: Optional[int] = None
    assignees: List[int] = Field(default_factory=list)
    estimate: Optional[float] = Field(None, ge=0)
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    due_date: Optional[date] = None
    requires_review: bool = False

    strip_strings = field_validator("title", "description", mode="before")(strip_text)


class TaskUpdate(CamelModel):
    """
    TaskUpdate — частичное обновление. Статус меняется только через /status.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    description: Optional[str] = Field(None, max_length=5000)
    sprint_id: Optional[int] = None
    assignees: Optional[List[int]] = None
    estimate: Optional[float] = Field(None, ge=0)
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None
    requires_review: Optional[bool] = None

    strip_strings = field_validator("title", "description", mode="before")(strip_text)
    at_least_one_field = model_validator(mode="after")(require_any_field)


class TaskStatusUpdate(CamelModel):
    status: TaskStatus


class LogTimeRequest(CamelModel):
    hours: float = Field(..., ge=0, examples=[1.5])
    description: Optional[str] = None


class SubtaskCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=300)

    strip_title = field_validator("title", mode="before")(strip_text)


class SubtaskUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    is_completed: Optional[bool] = None

    strip_title = field_validator("title", mode="before")(strip_text)


class SubtaskRead(CamelModel):
    id: int
    title: str
    is_completed: bool


class TaskRead(CamelModel):
    """
    TaskRead — задача в ответе API.
    """
    id: int
    title: str
    description: Optional[str] = None
    project_id: int
    project: Optional[ProjectBrief] = None
    sprint_id: Optional[int] = None
    sprint: Optional[SprintBrief] = None
    assignees: List[UserBrief] = Field(default_factory=list)
    created_by_id: Optional[int] = None
    created_by: Optional[UserBrief] = None
    estimate: Optional[float] = None
    time_logged: float = 0
    priority: TaskPriority
    status: TaskStatus
    due_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    subtasks: List[SubtaskRead] = Field(default_factory=list)
    order: int = 0
    requires_review: bool = False
    reviewed_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class KanbanBoard(CamelModel):
    """Задачи проекта, сгруппированные по статусу (ключи = значения TaskStatus)."""
    todo: List[TaskRead] = Field(default_factory=list)
    in_progress: List[TaskRead] = Field(default_factory=list, alias="in_progress")
    review: List[TaskRead] = Field(default_factory=list)
    done: List[TaskRead] = Field(default_factory=list)
