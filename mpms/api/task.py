#mpms/api/task.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mpms.core.enums import TaskPriority, TaskStatus
from mpms.core.permissions import Action, Actor
from mpms.crud import task as crud_task
from mpms.dependencies import get_db, require
from mpms.schemas.response import ApiResponse, envelope
from mpms.schemas.task import (
    KanbanBoard,
    LogTimeRequest,
    SubtaskCreate,
    SubtaskUpdate,
    TaskCreate,
    TaskRead,
    TaskStatusUpdate,
    TaskUpdate,
)

router = APIRouter(prefix="/tasks", tags=["Tasks"])
logger = logging.getLogger("MPMS.TasksAPI")


@router.post("", response_model=ApiResponse[TaskRead], status_code=status.HTTP_201_CREATED)
def create_task(
    data: TaskCreate,
    actor: Actor = Depends(require(Action.TASK_CREATE)),
    db: Session = Depends(get_db),
):
    """
    Создать задачу в проекте (admin/manager).
    """
    task = crud_task.create_task(db, data.model_dump(), creator=actor)
    return envelope("Task created successfully", task, status_code=status.HTTP_201_CREATED)


@router.get("/my-tasks", response_model=ApiResponse[List[TaskRead]])
def my_tasks(
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    actor: Actor = Depends(require(Action.TASK_LIST_MINE)),
    db: Session = Depends(get_db),
):
    """Задачи, назначенные текущему пользователю."""
    filters = {"status": task_status, "priority": priority, "search_term": search_term}
    return envelope("Tasks retrieved successfully", crud_task.list_my_tasks(db, actor, filters))


@router.get("/project/{project_id}", response_model=ApiResponse[List[TaskRead]])
def project_tasks(
    project_id: int,
    actor: Actor = Depends(require(Action.TASK_READ)),
    db: Session = Depends(get_db),
):
    return envelope("Tasks retrieved successfully", crud_task.list_project_tasks(db, project_id))


@router.get("/project/{project_id}/kanban", response_model=ApiResponse[KanbanBoard])
def kanban(
    project_id: int,
    sprint_id: Optional[int] = Query(None, alias="sprintId"),
    actor: Actor = Depends(require(Action.TASK_READ)),
    db: Session = Depends(get_db),
):
    """
    Kanban: задачи проекта (или одного спринта) по колонкам статусов.
    """
    return envelope("Kanban tasks retrieved successfully", crud_task.get_kanban(db, project_id, sprint_id))


@router.get("/sprint/{sprint_id}", response_model=ApiResponse[List[TaskRead]])
def sprint_tasks(
    sprint_id: int,
    actor: Actor = Depends(require(Action.TASK_READ)),
    db: Session = Depends(get_db),
):
    return envelope("Tasks retrieved successfully", crud_task.list_sprint_tasks(db, sprint_id))


@router.get("/{task_id}", response_model=ApiResponse[TaskRead])
def read_task(
    task_id: int,
    actor: Actor = Depends(require(Action.TASK_READ)),
    db: Session = Depends(get_db),
):
    return envelope("Task retrieved successfully", crud_task.get_task(db, task_id))


@router.patch("/{task_id}", response_model=ApiResponse[TaskRead])
def update_task(
    task_id: int,
    data: TaskUpdate,
    actor: Actor = Depends(require(Action.TASK_UPDATE)),
    db: Session = Depends(get_db),
):
    """
    Обновить поля задачи. Статус меняется через PATCH /tasks/{id}/status.
    """
    task = crud_task.update_task(db, task_id, data.model_dump(exclude_unset=True))
    return envelope("Task updated successfully", task)


@router.delete("/{task_id}", response_model=ApiResponse[None])
def delete_task(
    task_id: int,
    actor: Actor = Depends(require(Action.TASK_DELETE)),
    db: Session = Depends(get_db),
):
    crud_task.delete_task(db, task_id)
    return envelope("Task deleted successfully")


@router.patch("/{task_id}/status", response_model=ApiResponse[TaskRead])
def update_task_status(
    task_id: int,
    data: TaskStatusUpdate,
    actor: Actor = Depends(require(Action.TASK_UPDATE_STATUS)),
    db: Session = Depends(get_db),
):
    """
    Сменить статус. Member не может закрыть задачу с requiresReview (только в review).
    """
    task = crud_task.update_task_status(db, task_id, data.status, actor)
    return envelope("Task status updated successfully", task)


@router.post("/{task_id}/log-time", response_model=ApiResponse[TaskRead])
def log_time(
    task_id: int,
    data: LogTimeRequest,
    actor: Actor = Depends(require(Action.TASK_LOG_TIME)),
    db: Session = Depends(get_db),
):
    task = crud_task.log_time(db, task_id, data.hours)
    if data.description:
        logger.info(f"User {actor.id} logged {data.hours}h on task {task_id}: {data.description}")
    return envelope("Time logged successfully", task)


# ==== Subtasks ====

@router.post("/{task_id}/subtasks", response_model=ApiResponse[TaskRead], status_code=status.HTTP_201_CREATED)
def add_subtask(
    task_id: int,
    data: SubtaskCreate,
    actor: Actor = Depends(require(Action.TASK_MANAGE_SUBTASKS)),
    db: Session = Depends(get_db),
):
    task = crud_task.add_subtask(db, task_id, data.title)
    return envelope("Subtask added successfully", task, status_code=status.HTTP_201_CREATED)


@router.patch("/{task_id}/subtasks/{subtask_id}", response_model=ApiResponse[TaskRead])
def update_subtask(
    task_id: int,
    subtask_id: int,
    data: SubtaskUpdate,
    actor: Actor = Depends(require(Action.TASK_MANAGE_SUBTASKS)),
    db: Session = Depends(get_db),
):
    task = crud_task.update_subtask(db, task_id, subtask_id, data.model_dump(exclude_unset=True))
    return envelope("Subtask updated successfully", task)


@router.delete("/{task_id}/subtasks/{subtask_id}", response_model=ApiResponse[TaskRead])
def delete_subtask(
    task_id: int,
    subtask_id: int,
    actor: Actor = Depends(require(Action.TASK_MANAGE_SUBTASKS)),
    db: Session = Depends(get_db),
):
    task = crud_task.delete_subtask(db, task_id, subtask_id)
    return envelope("Subtask deleted successfully", task)
