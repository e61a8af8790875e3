#mpms/crud/task.py
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import case, or_
from sqlalchemy.orm import Session

from mpms.core.enums import TaskPriority, TaskStatus
from mpms.core.exceptions import BadRequestError, SubtaskNotFound, TaskNotFound
from mpms.core.permissions import Action, Actor, enforce
from mpms.core.workflow import add_logged_time, apply_status
from mpms.crud.project import get_project, load_users
from mpms.crud.sprint import get_sprint
from mpms.models.task import Subtask, Task
from mpms.models.user import User

logger = logging.getLogger("MPMS.Tasks")

NULLABLE_FIELDS = ("description", "estimate", "due_date")
REQUIRED_FIELDS = ("title", "priority", "requires_review")

# срочные выше: сортировка по убыванию ранга
PRIORITY_RANK = case(
    (Task.priority == TaskPriority.URGENT, 4),
    (Task.priority == TaskPriority.HIGH, 3),
    (Task.priority == TaskPriority.MEDIUM, 2),
    (Task.priority == TaskPriority.LOW, 1),
    else_=0,
)


def _commit(db: Session, task: Task, action: str) -> Task:
    try:
        db.commit()
        db.refresh(task)
        logger.info(f"{action} task {task.id}")
        return task
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to {action.lower()} task: {e}")
        raise


def _sprint_in_project(db: Session, sprint_id: int, project_id: int):
    sprint = get_sprint(db, sprint_id)
    if sprint.project_id != project_id:
        raise BadRequestError("Sprint does not belong to this project")
    return sprint


def create_task(db: Session, data: dict, creator: Actor) -> Task:
    """
    Создать задачу. Проект обязателен, спринт (если указан) должен быть из того же проекта.
    """
    project = get_project(db, data["project_id"])
    sprint_id = data.get("sprint_id")
    if sprint_id is not None:
        _sprint_in_project(db, sprint_id, project.id)

    task = Task(
        title=data["title"],
        description=data.get("description"),
        project_id=project.id,
        sprint_id=sprint_id,
        created_by_id=creator.id,
        estimate=data.get("estimate"),
        time_logged=0,
        priority=TaskPriority(data.get("priority") or TaskPriority.MEDIUM),
        status=TaskStatus.TODO,
        due_date=data.get("due_date"),
        requires_review=bool(data.get("requires_review", False)),
    )
    task.assignees = load_users(db, data.get("assignees") or [])
    # начальный статус проходит через ту же политику, что и /status
    apply_status(task, TaskStatus(data.get("status") or TaskStatus.TODO), creator)
    db.add(task)
    return _commit(db, task, "Created")


def get_task(db: Session, task_id: int) -> Task:
    task = db.get(Task, task_id)
    if not task:
        raise TaskNotFound()
    return task


def list_project_tasks(db: Session, project_id: int) -> List[Task]:
    get_project(db, project_id)
    return db.query(Task).filter(Task.project_id == project_id).order_by(Task.order.asc(), Task.id.asc()).all()


def list_sprint_tasks(db: Session, sprint_id: int) -> List[Task]:
    get_sprint(db, sprint_id)
    return db.query(Task).filter(Task.sprint_id == sprint_id).order_by(Task.order.asc(), Task.id.asc()).all()


def list_my_tasks(
    db: Session, actor: Actor, filters: Optional[Dict[str, Any]] = None, user_id: Optional[int] = None
) -> List[Task]:
    """
    Задачи, назначенные пользователю. Фильтры: status, priority, search_term (title/description).
    Сортировка: ближайший срок, затем приоритет по убыванию.
    """
    user_id = actor.id if user_id is None else user_id
    enforce(actor, Action.TASK_LIST_MINE, owner_id=user_id)
    filters = filters or {}
    query = db.query(Task).filter(Task.assignees.any(User.id == user_id))
    if filters.get("status"):
        query = query.filter(Task.status == TaskStatus(filters["status"]))
    if filters.get("priority"):
        query = query.filter(Task.priority == TaskPriority(filters["priority"]))
    search = (filters.get("search_term") or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))
    return query.order_by(Task.due_date.asc(), PRIORITY_RANK.desc(), Task.id.asc()).all()


def get_kanban(db: Session, project_id: int, sprint_id: Optional[int] = None) -> Dict[str, List[Task]]:
    """Задачи проекта (опционально одного спринта), сгруппированные по статусу."""
    get_project(db, project_id)
    query = db.query(Task).filter(Task.project_id == project_id)
    if sprint_id is not None:
        query = query.filter(Task.sprint_id == sprint_id)
    board: Dict[str, List[Task]] = {status.value: [] for status in TaskStatus}
    for task in query.order_by(Task.order.asc(), Task.id.asc()).all():
        board[task.status.value].append(task)
    return board


def update_task(db: Session, task_id: int, data: dict) -> Task:
    """
    Частичное обновление без статуса. sprint_id=None отвязывает задачу от спринта.
    """
    task = get_task(db, task_id)
    assignees = load_users(db, data["assignees"]) if data.get("assignees") is not None else None
    if "sprint_id" in data:
        if data["sprint_id"] is not None:
            _sprint_in_project(db, data["sprint_id"], task.project_id)
        task.sprint_id = data["sprint_id"]

    for field in NULLABLE_FIELDS:
        if field in data:
            setattr(task, field, data[field])
    for field in REQUIRED_FIELDS:
        if data.get(field) is not None:
            setattr(task, field, data[field])
    if assignees is not None:
        task.assignees = assignees
    return _commit(db, task, "Updated")


def update_task_status(db: Session, task_id: int, new_status: TaskStatus, actor: Actor) -> Task:
    task = get_task(db, task_id)
    apply_status(task, TaskStatus(new_status), actor)
    return _commit(db, task, f"Moved to {task.status.value}:")


def delete_task(db: Session, task_id: int) -> None:
    """Удаляет задачу вместе с подзадачами и комментариями."""
    task = get_task(db, task_id)
    db.delete(task)
    try:
        db.commit()
        logger.info(f"Deleted task {task_id}")
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to delete task {task_id}: {e}")
        raise


def log_time(db: Session, task_id: int, hours: float) -> Task:
    task = get_task(db, task_id)
    add_logged_time(task, hours)
    return _commit(db, task, f"Logged {hours}h on")


# ==== Subtasks ====

def add_subtask(db: Session, task_id: int, title: str) -> Task:
    task = get_task(db, task_id)
    position = max((s.position for s in task.subtasks), default=-1) + 1
    task.subtasks.append(Subtask(title=title, is_completed=False, position=position))
    return _commit(db, task, "Added subtask to")


def _get_subtask(db: Session, task_id: int, subtask_id: int) -> Subtask:
    subtask = db.query(Subtask).filter(Subtask.id == subtask_id, Subtask.task_id == task_id).first()
    if not subtask:
        raise SubtaskNotFound()
    return subtask


def update_subtask(db: Session, task_id: int, subtask_id: int, data: dict) -> Task:
    task = get_task(db, task_id)
    subtask = _get_subtask(db, task.id, subtask_id)
    if data.get("title"):
        subtask.title = data["title"]
    if data.get("is_completed") is not None:
        subtask.is_completed = data["is_completed"]
    return _commit(db, task, f"Updated subtask {subtask_id} of")


def delete_subtask(db: Session, task_id: int, subtask_id: int) -> Task:
    task = get_task(db, task_id)
    subtask = _get_subtask(db, task.id, subtask_id)
    db.delete(subtask)
    task = _commit(db, task, f"Removed subtask {subtask_id} from")
    # коллекция перечитается при следующем обращении
    db.expire(task, ["subtasks"])
    return task
