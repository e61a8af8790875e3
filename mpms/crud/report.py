#mpms/crud/report.py
"""
Read-only rollups for the reports endpoints. Nothing here writes.
"""

from datetime import date, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from mpms.core.enums import ProjectStatus, SprintStatus, TaskStatus
from mpms.core.permissions import Action, Actor, enforce
from mpms.crud.project import get_project, progress_percent
from mpms.models.project import Project
from mpms.models.sprint import Sprint
from mpms.models.task import Task, task_assignees
from mpms.models.user import User

RECENT_PROJECTS_LIMIT = 5
UPCOMING_DAYS = 7
UPCOMING_LIMIT = 10

DONE_FLAG = case((Task.status == TaskStatus.DONE, 1), else_=0)


def _count_by(db: Session, column, *criteria) -> Dict[str, int]:
    """GROUP BY column -> {value: count}."""
    rows = db.query(column, func.count()).filter(*criteria).group_by(column).all()
    return {(key.value if hasattr(key, "value") else key): count for key, count in rows}


def _project_progress(db: Session, project_id: int) -> int:
    counts = _count_by(db, Task.status, Task.project_id == project_id)
    return progress_percent(counts.get(TaskStatus.DONE.value, 0), sum(counts.values()))


def get_dashboard(db: Session, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Сводка по системе: счётчики, распределения по статусам/приоритетам,
    последние проекты и незакрытые задачи со сроком в ближайшие 7 дней.
    """
    today = today or date.today()
    tasks_by_status = _count_by(db, Task.status)

    recent = db.query(Project).order_by(Project.created_at.desc(), Project.id.desc()).limit(RECENT_PROJECTS_LIMIT).all()
    upcoming = (
        db.query(Task)
        .filter(
            Task.due_date >= today,
            Task.due_date <= today + timedelta(days=UPCOMING_DAYS),
            Task.status != TaskStatus.DONE,
        )
        .order_by(Task.due_date.asc(), Task.id.asc())
        .limit(UPCOMING_LIMIT)
        .all()
    )

    return {
        "overview": {
            "total_projects": db.query(func.count(Project.id)).scalar() or 0,
            "active_projects": db.query(func.count(Project.id)).filter(Project.status == ProjectStatus.ACTIVE).scalar() or 0,
            "total_tasks": sum(tasks_by_status.values()),
            "completed_tasks": tasks_by_status.get(TaskStatus.DONE.value, 0),
            "total_users": db.query(func.count(User.id)).filter(User.is_active == True).scalar() or 0,
            "total_hours_logged": db.query(func.coalesce(func.sum(Task.time_logged), 0)).scalar() or 0,
        },
        "projects_by_status": _count_by(db, Project.status),
        "tasks_by_status": tasks_by_status,
        "tasks_by_priority": _count_by(db, Task.priority),
        "recent_projects": [
            {"id": p.id, "title": p.title, "status": p.status, "progress": _project_progress(db, p.id)}
            for p in recent
        ],
        "upcoming_deadlines": upcoming,
    }


def get_my_report(db: Session, actor: Actor, user_id: Optional[int] = None) -> Dict[str, Any]:
    """
    Личная статистика по назначенным задачам + разбивка по проектам.
    """
    user_id = actor.id if user_id is None else user_id
    enforce(actor, Action.REPORT_MINE, owner_id=user_id)
    user = db.get(User, user_id)
    assigned = Task.assignees.any(User.id == user_id)
    by_status = _count_by(db, Task.status, assigned)
    assigned_count = sum(by_status.values())
    completed = by_status.get(TaskStatus.DONE.value, 0)
    hours = db.query(func.coalesce(func.sum(Task.time_logged), 0)).filter(assigned).scalar() or 0

    done_flag = func.sum(DONE_FLAG)
    rows = (
        db.query(Project.id, Project.title, func.count(Task.id), done_flag)
        .join(Task, Task.project_id == Project.id)
        .join(task_assignees, task_assignees.c.task_id == Task.id)
        .filter(task_assignees.c.user_id == user_id)
        .group_by(Project.id, Project.title)
        .order_by(Project.id.asc())
        .all()
    )

    return {
        "user": user,
        "stats": {
            "assigned_tasks": assigned_count,
            "completed_tasks": completed,
            "in_progress_tasks": by_status.get(TaskStatus.IN_PROGRESS.value, 0),
            "total_hours_logged": hours,
            "completion_rate": progress_percent(completed, assigned_count),
        },
        "tasks_by_project": [
            {"project_id": pid, "project_title": title, "task_count": count, "completed_count": int(done or 0)}
            for pid, title, count, done in rows
        ],
    }


def get_project_report(db: Session, project_id: int) -> Dict[str, Any]:
    project = get_project(db, project_id)
    by_status = _count_by(db, Task.status, Task.project_id == project.id)
    total = sum(by_status.values())
    completed = by_status.get(TaskStatus.DONE.value, 0)
    estimated, logged = (
        db.query(func.coalesce(func.sum(Task.estimate), 0), func.coalesce(func.sum(Task.time_logged), 0))
        .filter(Task.project_id == project.id)
        .one()
    )
    sprints = _count_by(db, Sprint.status, Sprint.project_id == project.id)

    return {
        "project": project,
        "stats": {
            "total_tasks": total,
            "completed_tasks": completed,
            "in_progress_tasks": by_status.get(TaskStatus.IN_PROGRESS.value, 0),
            "todo_tasks": by_status.get(TaskStatus.TODO.value, 0),
            "review_tasks": by_status.get(TaskStatus.REVIEW.value, 0),
            "progress": progress_percent(completed, total),
            "total_sprints": sum(sprints.values()),
            "completed_sprints": sprints.get(SprintStatus.COMPLETED.value, 0),
            "estimated_hours": estimated or 0,
            "logged_hours": logged or 0,
            "team_size": len(project.team_members),
        },
        "tasks_by_priority": _count_by(db, Task.priority, Task.project_id == project.id),
    }
