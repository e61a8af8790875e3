from datetime import date
from typing import Dict, List, Optional

from pydantic import Field

from mpms.core.enums import ProjectStatus
from mpms.schemas.project import ProjectSummary
from mpms.schemas.response import CamelModel
from mpms.schemas.task import TaskRead
from mpms.schemas.user import UserBrief


class DashboardOverview(CamelModel):
    total_projects: int
    active_projects: int
    total_tasks: int
    completed_tasks: int
    total_users: int
    total_hours_logged: float


class DashboardReport(CamelModel):
    """
    DashboardReport — сводка по всей системе (admin/manager).
    """
    overview: DashboardOverview
    projects_by_status: Dict[str, int] = Field(default_factory=dict)
    tasks_by_status: Dict[str, int] = Field(default_factory=dict)
    tasks_by_priority: Dict[str, int] = Field(default_factory=dict)
    recent_projects: List[ProjectSummary] = Field(default_factory=list)
    upcoming_deadlines: List[TaskRead] = Field(default_factory=list)


class MyStats(CamelModel):
    assigned_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    total_hours_logged: float
    completion_rate: int


class ProjectTaskCount(CamelModel):
    project_id: int
    project_title: str
    task_count: int
    completed_count: int


class MyReport(CamelModel):
    """
    MyReport — личная статистика по назначенным задачам.
    """
    user: Optional[UserBrief] = None
    stats: MyStats
    tasks_by_project: List[ProjectTaskCount] = Field(default_factory=list)


class ReportProject(CamelModel):
    id: int
    title: str
    status: ProjectStatus
    start_date: date
    end_date: Optional[date] = None


class ProjectReportStats(CamelModel):
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    todo_tasks: int
    review_tasks: int
    progress: int
    total_sprints: int
    completed_sprints: int
    estimated_hours: float
    logged_hours: float
    team_size: int


class ProjectReport(CamelModel):
    project: ReportProject
    stats: ProjectReportStats
    tasks_by_priority: Dict[str, int] = Field(default_factory=dict)
