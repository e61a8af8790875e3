# mpms/crud/sprint.py
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mpms.core.enums import SprintStatus, TaskStatus
from mpms.core.exceptions import BadRequestError, ConflictError, SprintNotFound
from mpms.crud.project import get_project, progress_percent
from mpms.models.sprint import Sprint
from mpms.models.task import Task

logger = logging.getLogger("MPMS.Sprints")

NULLABLE_FIELDS = ("description",)
REQUIRED_FIELDS = ("title", "start_date", "end_date", "status", "goals")


def next_sprint_number(db: Session, project_id: int) -> int:
    """max(sprint_number) + 1 в пределах проекта, первый спринт = 1."""
    current = db.query(func.max(Sprint.sprint_number)).filter(Sprint.project_id == project_id).scalar()
    return (current or 0) + 1


def _check_dates(sprint: Sprint) -> None:
    if sprint.end_date <= sprint.start_date:
        raise BadRequestError("End date must be after start date")


def create_sprint(db: Session, data: dict) -> Sprint:
    """
    Создать спринт в проекте. Номер выдаётся по порядку, order по умолчанию = номер.
    """
    project = get_project(db, data["project_id"])
    number = next_sprint_number(db, project.id)
    sprint = Sprint(
        title=data["title"],
        sprint_number=number,
        project_id=project.id,
        description=data.get("description"),
        start_date=data["start_date"],
        end_date=data["end_date"],
        status=SprintStatus(data.get("status") or SprintStatus.PLANNED),
        goals=data.get("goals") or [],
        order=data.get("order") or number,
    )
    _check_dates(sprint)
    db.add(sprint)
    try:
        db.commit()
        db.refresh(sprint)
        logger.info(f"Created sprint #{sprint.sprint_number} (ID: {sprint.id}) in project {project.id}")
        return sprint
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Sprint number collision in project {project.id}: {e}")
        raise ConflictError("Sprint number already exists for this project")


def get_sprint(db: Session, sprint_id: int) -> Sprint:
    sprint = db.get(Sprint, sprint_id)
    if not sprint:
        raise SprintNotFound()
    return sprint


def list_project_sprints(db: Session, project_id: int) -> List[Sprint]:
    get_project(db, project_id)
    return (
        db.query(Sprint)
        .filter(Sprint.project_id == project_id)
        .order_by(Sprint.order.asc(), Sprint.sprint_number.asc())
        .all()
    )


def get_active_sprint(db: Session, project_id: int) -> Optional[Sprint]:
    get_project(db, project_id)
    return (
        db.query(Sprint)
        .filter(Sprint.project_id == project_id, Sprint.status == SprintStatus.ACTIVE)
        .order_by(Sprint.order.asc())
        .first()
    )


def update_sprint(db: Session, sprint_id: int, data: dict) -> Sprint:
    sprint = get_sprint(db, sprint_id)
    for field in NULLABLE_FIELDS:
        if field in data:
            setattr(sprint, field, data[field])
    for field in REQUIRED_FIELDS:
        if data.get(field) is not None:
            setattr(sprint, field, data[field])

    try:
        _check_dates(sprint)
    except BadRequestError:
        db.rollback()
        raise
    try:
        db.commit()
        db.refresh(sprint)
        logger.info(f"Updated sprint {sprint_id}: {sorted(data.keys())}")
        return sprint
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update sprint {sprint_id}: {e}")
        raise


def delete_sprint(db: Session, sprint_id: int) -> None:
    """
    Удалить спринт. Пока в спринте есть задачи, ответ 400.
    """
    sprint = get_sprint(db, sprint_id)
    task_count = db.query(func.count(Task.id)).filter(Task.sprint_id == sprint.id).scalar() or 0
    if task_count > 0:
        raise BadRequestError("Cannot delete sprint with existing tasks. Move or delete tasks first.")
    db.delete(sprint)
    try:
        db.commit()
        logger.info(f"Deleted sprint {sprint_id}")
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to delete sprint {sprint_id}: {e}")
        raise


def reorder_sprints(db: Session, project_id: int, sprint_orders: List[dict]) -> List[Sprint]:
    """
    Проставляет order. Спринты чужих проектов в списке игнорируются.
    """
    get_project(db, project_id)
    wanted = {item["sprint_id"]: item["order"] for item in sprint_orders}
    if wanted:
        sprints = db.query(Sprint).filter(Sprint.project_id == project_id, Sprint.id.in_(list(wanted))).all()
        for sprint in sprints:
            sprint.order = wanted[sprint.id]
        try:
            db.commit()
            logger.info(f"Reordered {len(sprints)} sprints in project {project_id}")
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to reorder sprints in project {project_id}: {e}")
            raise
    return list_project_sprints(db, project_id)


def get_sprint_stats(db: Session, sprint_id: int) -> Dict[str, Any]:
    sprint = get_sprint(db, sprint_id)
    counts = dict(
        db.query(Task.status, func.count(Task.id))
        .filter(Task.sprint_id == sprint.id)
        .group_by(Task.status)
        .all()
    )
    total = sum(counts.values())
    completed = counts.get(TaskStatus.DONE, 0)
    return {
        "sprint": sprint,
        "stats": {
            "total_tasks": total,
            "completed_tasks": completed,
            "in_progress_tasks": counts.get(TaskStatus.IN_PROGRESS, 0),
            "todo_tasks": counts.get(TaskStatus.TODO, 0),
            "progress": progress_percent(completed, total),
        },
    }
