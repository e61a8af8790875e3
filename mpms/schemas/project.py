from datetime import date, datetime
from typing import List, Optional

from pydantic import Field, HttpUrl, field_validator, model_validator

from mpms.core.enums import ProjectStatus
from mpms.schemas.response import CamelModel
from mpms.schemas.user import UserBrief, require_any_field, strip_text


def check_date_range(start: Optional[date], end: Optional[date]) -> None:
    if start is not None and end is not None and end < start:
        raise ValueError("End date must be after start date")


class ProjectCreate(CamelModel):
    """
    ProjectCreate — создание проекта. Slug вычисляется из title.
    """
    title: str = Field(..., min_length=3, max_length=200, examples=["Website Redesign"])
    client: str = Field(..., min_length=1, examples=["Acme Corp"])
    description: Optional[str] = Field(None, max_length=2000)
    start_date: date = Field(..., examples=["2026-01-01"])
    end_date: Optional[date] = Field(None, examples=["2026-06-30"])
    budget: Optional[float] = Field(None, ge=0)
    status: ProjectStatus = ProjectStatus.PLANNED
    thumbnail: Optional[HttpUrl] = None
    team_members: List[int] = Field(default_factory=list)
    managers: List[int] = Field(default_factory=list)

    strip_strings = field_validator("title", "client", "description", mode="before")(strip_text)

    @model_validator(mode="after")
    def dates_in_order(self):
        check_date_range(self.start_date, self.end_date)
        return self


class ProjectUpdate(CamelModel):
    """
    ProjectUpdate — частичное обновление. endDate/budget можно сбросить в null.
    """
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    client: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, max_length=2000)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[float] = Field(None, ge=0)
    status: Optional[ProjectStatus] = None
    thumbnail: Optional[HttpUrl] = None
    team_members: Optional[List[int]] = None
    managers: Optional[List[int]] = None

    strip_strings = field_validator("title", "client", "description", mode="before")(strip_text)
    at_least_one_field = model_validator(mode="after")(require_any_field)

    @model_validator(mode="after")
    def dates_in_order(self):
        check_date_range(self.start_date, self.end_date)
        return self


class TeamMembersUpdate(CamelModel):
    user_ids: List[int] = Field(..., min_length=1)


class ProjectBrief(CamelModel):
    id: int
    title: str
    slug: str


class ProjectRead(CamelModel):
    """
    ProjectRead — проект в ответе API (с командой и менеджерами).
    """
    id: int
    title: str
    slug: str
    client: str
    description: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    budget: Optional[float] = None
    status: ProjectStatus
    thumbnail: Optional[str] = None
    created_by: Optional[UserBrief] = None
    team_members: List[UserBrief] = Field(default_factory=list)
    managers: List[UserBrief] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ProjectStatsBlock(CamelModel):
    total_tasks: int
    completed_tasks: int
    progress: int
    total_sprints: int
    active_sprints: int


class ProjectWithStats(CamelModel):
    project: ProjectRead
    stats: ProjectStatsBlock


class ProjectSummary(CamelModel):
    id: int
    title: str
    status: ProjectStatus
    progress: int = 0

