#mpms/api/sprint.py
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mpms.core.permissions import Action, Actor
from mpms.crud import sprint as crud_sprint
from mpms.dependencies import get_db, require
from mpms.schemas.response import ApiResponse, envelope
from mpms.schemas.sprint import SprintCreate, SprintRead, SprintReorder, SprintUpdate, SprintWithStats

router = APIRouter(prefix="/sprints", tags=["Sprints"])


@router.post("", response_model=ApiResponse[SprintRead], status_code=status.HTTP_201_CREATED)
def create_sprint(
    data: SprintCreate,
    actor: Actor = Depends(require(Action.SPRINT_CREATE)),
    db: Session = Depends(get_db),
):
    """
    Создать спринт. sprintNumber = следующий номер в проекте.
    """
    sprint = crud_sprint.create_sprint(db, data.model_dump())
    return envelope("Sprint created successfully", sprint, status_code=status.HTTP_201_CREATED)


@router.get("/project/{project_id}", response_model=ApiResponse[List[SprintRead]])
def project_sprints(
    project_id: int,
    actor: Actor = Depends(require(Action.SPRINT_READ)),
    db: Session = Depends(get_db),
):
    return envelope("Sprints retrieved successfully", crud_sprint.list_project_sprints(db, project_id))


@router.get("/project/{project_id}/active", response_model=ApiResponse[Optional[SprintRead]])
def active_sprint(
    project_id: int,
    actor: Actor = Depends(require(Action.SPRINT_READ)),
    db: Session = Depends(get_db),
):
    sprint = crud_sprint.get_active_sprint(db, project_id)
    return envelope("Active sprint retrieved successfully" if sprint else "No active sprint", sprint)


@router.patch("/project/{project_id}/reorder", response_model=ApiResponse[List[SprintRead]])
def reorder_sprints(
    project_id: int,
    data: SprintReorder,
    actor: Actor = Depends(require(Action.SPRINT_REORDER)),
    db: Session = Depends(get_db),
):
    """
    Новый порядок спринтов: [{sprintId, order}].
    """
    sprints = crud_sprint.reorder_sprints(db, project_id, [item.model_dump() for item in data.sprint_orders])
    return envelope("Sprints reordered successfully", sprints)


@router.get("/{sprint_id}", response_model=ApiResponse[SprintRead])
def read_sprint(
    sprint_id: int,
    actor: Actor = Depends(require(Action.SPRINT_READ)),
    db: Session = Depends(get_db),
):
    return envelope("Sprint retrieved successfully", crud_sprint.get_sprint(db, sprint_id))


@router.get("/{sprint_id}/stats", response_model=ApiResponse[SprintWithStats])
def sprint_stats(
    sprint_id: int,
    actor: Actor = Depends(require(Action.SPRINT_READ)),
    db: Session = Depends(get_db),
):
    return envelope("Sprint stats retrieved successfully", crud_sprint.get_sprint_stats(db, sprint_id))


@router.patch("/{sprint_id}", response_model=ApiResponse[SprintRead])
def update_sprint(
    sprint_id: int,
    data: SprintUpdate,
    actor: Actor = Depends(require(Action.SPRINT_UPDATE)),
    db: Session = Depends(get_db),
):
    sprint = crud_sprint.update_sprint(db, sprint_id, data.model_dump(exclude_unset=True))
    return envelope("Sprint updated successfully", sprint)


@router.delete("/{sprint_id}", response_model=ApiResponse[None])
def delete_sprint(
    sprint_id: int,
    actor: Actor = Depends(require(Action.SPRINT_DELETE)),
    db: Session = Depends(get_db),
):
    """Спринт с задачами не удаляется (400)."""
    crud_sprint.delete_sprint(db, sprint_id)
    return envelope("Sprint deleted successfully")
