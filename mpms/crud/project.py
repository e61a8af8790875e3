# mpms/crud/project.py
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mpms.core.enums import ProjectStatus, SprintStatus, TaskStatus
from mpms.core.exceptions import BadRequestError, ConflictError, ProjectNotFound
from mpms.core.pagination import Page, PageParams, paginate
from mpms.core.permissions import Action, Actor, enforce
from mpms.core.slug import unique_slug
from mpms.models.project import Project
from mpms.models.sprint import Sprint
from mpms.models.task import Task
from mpms.models.user import User

logger = logging.getLogger("MPMS.Projects")

PROJECT_SORT_FIELDS = {"created_at", "updated_at", "title", "client", "start_date", "end_date", "budget", "status"}
NULLABLE_FIELDS = ("description", "end_date", "budget")
REQUIRED_FIELDS = ("client", "start_date", "status")


def load_users(db: Session, user_ids: Iterable[int]) -> List[User]:
    """
    Загружает пользователей по списку id (дубликаты схлопываются). Неизвестный id -> 400.
    """
    ids = list(dict.fromkeys(user_ids))
    if not ids:
        return []
    users = db.query(User).filter(User.id.in_(ids)).all()
    found = {u.id for u in users}
    missing = [i for i in ids if i not in found]
    if missing:
        raise BadRequestError(f"Unknown user id(s): {', '.join(str(i) for i in missing)}")
    by_id = {u.id: u for u in users}
    return [by_id[i] for i in ids]


def is_slug_taken(db: Session, slug: str, exclude_project_id: Optional[int] = None) -> bool:
    query = db.query(Project.id).filter(Project.slug == slug)
    if exclude_project_id is not None:
        query = query.filter(Project.id != exclude_project_id)
    return query.first() is not None


def _check_dates(project: Project) -> None:
    if project.end_date is not None and project.start_date is not None and project.end_date < project.start_date:
        raise BadRequestError("End date must be after start date")


def _commit(db: Session, project: Project, action: str) -> Project:
    try:
        db.commit()
        db.refresh(project)
        logger.info(f"{action} project {project.id} ('{project.slug}')")
        return project
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error on project {action.lower()}: {e}")
        raise ConflictError("Project slug already exists")
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to {action.lower()} project: {e}")
        raise


def create_project(db: Session, data: dict, creator_id: int) -> Project:
    """
    Создаёт проект. Slug = первый свободный из base, base-1, base-2, ...
    """
    title = data["title"].strip()
    project = Project(
        title=title,
        slug=unique_slug(title, lambda s: is_slug_taken(db, s)),
        client=data["client"],
        description=data.get("description"),
        start_date=data["start_date"],
        end_date=data.get("end_date"),
        budget=data.get("budget"),
        status=ProjectStatus(data.get("status") or ProjectStatus.PLANNED),
        thumbnail=str(data["thumbnail"]) if data.get("thumbnail") else None,
        created_by_id=creator_id,
    )
    _check_dates(project)
    project.team_members = load_users(db, data.get("team_members") or [])
    project.managers = load_users(db, data.get("managers") or [])
    db.add(project)
    return _commit(db, project, "Created")


def get_project(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise ProjectNotFound()
    return project


def get_project_by_id_or_slug(db: Session, id_or_slug: str) -> Project:
    """
    Числовой параметр ищется как id, затем как slug (slug тоже может быть числом: '2024').
    """
    if id_or_slug.isdigit():
        project = db.get(Project, int(id_or_slug))
        if project:
            return project
    project = db.query(Project).filter(Project.slug == id_or_slug.lower()).first()
    if not project:
        raise ProjectNotFound()
    return project


def _apply_search(query, filters: Dict[str, Any], with_description: bool = True):
    search = filters.get("search_term")
    if search:
        pattern = f"%{search}%"
        clauses = [Project.title.ilike(pattern), Project.client.ilike(pattern)]
        if with_description:
            clauses.append(Project.description.ilike(pattern))
        query = query.filter(or_(*clauses))
    if filters.get("status"):
        query = query.filter(Project.status == ProjectStatus(filters["status"]))
    return query


def query_projects(db: Session, params: PageParams, filters: Optional[Dict[str, Any]] = None) -> Page:
    """
    Все проекты: searchTerm (title/client/description), status, client, startDateFrom/To.
    """
    filters = filters or {}
    query = _apply_search(db.query(Project), filters)
    if filters.get("client"):
        query = query.filter(Project.client.ilike(f"%{filters['client']}%"))
    if filters.get("start_date_from"):
        query = query.filter(Project.start_date >= filters["start_date_from"])
    if filters.get("start_date_to"):
        query = query.filter(Project.start_date <= filters["start_date_to"])
    return paginate(query, Project, params, PROJECT_SORT_FIELDS)


def query_user_projects(
    db: Session, actor: Actor, params: PageParams, filters: Optional[Dict[str, Any]] = None, user_id: Optional[int] = None
) -> Page:
    """
    Проекты пользователя: автор, участник команды или менеджер.
    Список чужих проектов запрещён (403).
    """
    user_id = actor.id if user_id is None else user_id
    enforce(actor, Action.PROJECT_LIST_MINE, owner_id=user_id)
    query = db.query(Project).filter(
        or_(
            Project.created_by_id == user_id,
            Project.team_members.any(User.id == user_id),
            Project.managers.any(User.id == user_id),
        )
    )
    query = _apply_search(query, filters or {}, with_description=False)
    return paginate(query, Project, params, PROJECT_SORT_FIELDS)


def update_project(db: Session, project_id: int, data: dict) -> Project:
    """
    Частичное обновление. Смена title пересчитывает slug.
    """
    project = get_project(db, project_id)
    team = load_users(db, data["team_members"]) if data.get("team_members") is not None else None
    managers = load_users(db, data["managers"]) if data.get("managers") is not None else None

    for field in NULLABLE_FIELDS:
        if field in data:
            setattr(project, field, data[field])
    for field in REQUIRED_FIELDS:
        if data.get(field) is not None:
            setattr(project, field, data[field])
    if "thumbnail" in data:
        project.thumbnail = str(data["thumbnail"]) if data["thumbnail"] else None
    if data.get("title") and data["title"].strip() != project.title:
        project.title = data["title"].strip()
        project.slug = unique_slug(project.title, lambda s: is_slug_taken(db, s, exclude_project_id=project.id))
    if team is not None:
        project.team_members = team
    if managers is not None:
        project.managers = managers

    try:
        _check_dates(project)
    except BadRequestError:
        db.rollback()
        raise
    return _commit(db, project, "Updated")


def delete_project(db: Session, project_id: int) -> None:
    """
    Удаляет проект вместе со спринтами и задачами.
    """
    project = get_project(db, project_id)
    db.delete(project)
    try:
        db.commit()
        logger.info(f"Deleted project {project_id} with its sprints and tasks")
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to delete project {project_id}: {e}")
        raise


def add_team_members(db: Session, project_id: int, user_ids: List[int]) -> Project:
    """Add-to-set: уже добавленные не дублируются."""
    project = get_project(db, project_id)
    current = {u.id for u in project.team_members}
    for user in load_users(db, user_ids):
        if user.id not in current:
            project.team_members.append(user)
            current.add(user.id)
    return _commit(db, project, "Added team members to")


def remove_team_members(db: Session, project_id: int, user_ids: List[int]) -> Project:
    project = get_project(db, project_id)
    to_remove = set(user_ids)
    project.team_members = [u for u in project.team_members if u.id not in to_remove]
    return _commit(db, project, "Removed team members from")


def progress_percent(completed: int, total: int) -> int:
    # округление half-up, как Math.round
    return int(completed * 100 / total + 0.5) if total > 0 else 0


def get_project_stats(db: Session, project: Project) -> Dict[str, Any]:
    total_tasks = db.query(func.count(Task.id)).filter(Task.project_id == project.id).scalar() or 0
    completed_tasks = (
        db.query(func.count(Task.id))
        .filter(Task.project_id == project.id, Task.status == TaskStatus.DONE)
        .scalar() or 0
    )
    total_sprints = db.query(func.count(Sprint.id)).filter(Sprint.project_id == project.id).scalar() or 0
    active_sprints = (
        db.query(func.count(Sprint.id))
        .filter(Sprint.project_id == project.id, Sprint.status == SprintStatus.ACTIVE)
        .scalar() or 0
    )
    return {
        "project": project,
        "stats": {
            "total_tasks": total_tasks,
            "completed_tasks": completed_tasks,
            "progress": progress_percent(completed_tasks, total_tasks),
            "total_sprints": total_sprints,
            "active_sprints": active_sprints,
        },
    }
