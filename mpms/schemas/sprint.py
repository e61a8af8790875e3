from datetime import date, datetime
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from mpms.core.enums import SprintStatus
from mpms.schemas.project import ProjectBrief
from mpms.schemas.response import CamelModel
from mpms.schemas.user import require_any_field, strip_text


def check_sprint_dates(start: Optional[date], end: Optional[date]) -> None:
    if start is not None and end is not None and end <= start:
        raise ValueError("End date must be after start date")


class SprintCreate(CamelModel):
    """
    SprintCreate — новый спринт. sprintNumber и order назначаются автоматически.
    """
    title: str = Field(..., min_length=1, max_length=200, examples=["Sprint 1"])
    project_id: int
    description: Optional[str] = Field(None, max_length=1000)
    start_date: date
    end_date: date
    status: SprintStatus = SprintStatus.PLANNED
    goals: List[str] = Field(default_factory=list)

    strip_strings = field_validator("title", "description", mode="before")(strip_text)

    @model_validator(mode="after")
    def dates_in_order(self):
        check_sprint_dates(self.start_date, self.end_date)
        return self


class SprintUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[SprintStatus] = None
    goals: Optional[List[str]] = None

    strip_strings = field_validator("title", "description", mode="before")(strip_text)
    at_least_one_field = model_validator(mode="after")(require_any_field)


class SprintOrderItem(CamelModel):
    sprint_id: int
    order: int


class SprintReorder(CamelModel):
    sprint_orders: List[SprintOrderItem]


class SprintBrief(CamelModel):
    id: int
    title: str
    sprint_number: int


class SprintRead(CamelModel):
    """
    SprintRead — спринт в ответе API.
    """
    id: int
    title: str
    sprint_number: int
    project_id: int
    project: Optional[ProjectBrief] = None
    description: Optional[str] = None
    start_date: date
    end_date: date
    status: SprintStatus
    goals: List[str] = Field(default_factory=list)
    order: int
    created_at: datetime
    updated_at: datetime


class SprintStatsBlock(CamelModel):
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    todo_tasks: int
    progress: int


class SprintWithStats(CamelModel):
    sprint: SprintRead
    stats: SprintStatsBlock
