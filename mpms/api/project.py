#mpms/api/project.py
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mpms.core.enums import ProjectStatus
from mpms.core.pagination import PageParams, pagination_params
from mpms.core.permissions import Action, Actor
from mpms.crud import project as crud_project
from mpms.dependencies import get_db, require
from mpms.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate, ProjectWithStats, TeamMembersUpdate
from mpms.schemas.response import ApiResponse, envelope

router = APIRouter(prefix="/projects", tags=["Projects"])
logger = logging.getLogger("MPMS.ProjectsAPI")


@router.post("", response_model=ApiResponse[ProjectRead], status_code=status.HTTP_201_CREATED)
def create_project(
    data: ProjectCreate,
    actor: Actor = Depends(require(Action.PROJECT_CREATE)),
    db: Session = Depends(get_db),
):
    """
    Создать проект. Slug генерируется из title.
    """
    project = crud_project.create_project(db, data.model_dump(), creator_id=actor.id)
    return envelope("Project created successfully", project, status_code=status.HTTP_201_CREATED)


@router.get("", response_model=ApiResponse[List[ProjectRead]])
def list_projects(
    params: PageParams = Depends(pagination_params),
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    project_status: Optional[ProjectStatus] = Query(None, alias="status"),
    client: Optional[str] = Query(None),
    start_date_from: Optional[date] = Query(None, alias="startDateFrom"),
    start_date_to: Optional[date] = Query(None, alias="startDateTo"),
    actor: Actor = Depends(require(Action.PROJECT_LIST)),
    db: Session = Depends(get_db),
):
    """
    Все проекты (admin/manager) с фильтрами и пагинацией.
    """
    filters = {
        "search_term": search_term,
        "status": project_status,
        "client": client,
        "start_date_from": start_date_from,
        "start_date_to": start_date_to,
    }
    page = crud_project.query_projects(db, params, filters)
    return envelope("Projects retrieved successfully", page.items, meta=page.meta)


@router.get("/my-projects", response_model=ApiResponse[List[ProjectRead]])
def my_projects(
    params: PageParams = Depends(pagination_params),
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    project_status: Optional[ProjectStatus] = Query(None, alias="status"),
    actor: Actor = Depends(require(Action.PROJECT_LIST_MINE)),
    db: Session = Depends(get_db),
):
    """Проекты, где пользователь автор, участник или менеджер."""
    page = crud_project.query_user_projects(
        db, actor, params, {"search_term": search_term, "status": project_status}
    )
    return envelope("Projects retrieved successfully", page.items, meta=page.meta)


@router.get("/{id_or_slug}", response_model=ApiResponse[ProjectRead])
def read_project(
    id_or_slug: str,
    actor: Actor = Depends(require(Action.PROJECT_READ)),
    db: Session = Depends(get_db),
):
    return envelope("Project retrieved successfully", crud_project.get_project_by_id_or_slug(db, id_or_slug))


@router.get("/{id_or_slug}/stats", response_model=ApiResponse[ProjectWithStats])
def project_stats(
    id_or_slug: str,
    actor: Actor = Depends(require(Action.PROJECT_READ)),
    db: Session = Depends(get_db),
):
    project = crud_project.get_project_by_id_or_slug(db, id_or_slug)
    return envelope("Project stats retrieved successfully", crud_project.get_project_stats(db, project))


@router.patch("/{project_id}", response_model=ApiResponse[ProjectRead])
def update_project(
    project_id: int,
    data: ProjectUpdate,
    actor: Actor = Depends(require(Action.PROJECT_UPDATE)),
    db: Session = Depends(get_db),
):
    """
    Частичное обновление проекта. Смена title меняет slug.
    """
    project = crud_project.update_project(db, project_id, data.model_dump(exclude_unset=True))
    return envelope("Project updated successfully", project)


@router.delete("/{project_id}", response_model=ApiResponse[None])
def delete_project(
    project_id: int,
    actor: Actor = Depends(require(Action.PROJECT_DELETE)),
    db: Session = Depends(get_db),
):
    crud_project.delete_project(db, project_id)
    logger.info(f"Admin {actor.id} deleted project {project_id}")
    return envelope("Project deleted successfully")


@router.post("/{project_id}/team-members", response_model=ApiResponse[ProjectRead])
def add_team_members(
    project_id: int,
    data: TeamMembersUpdate,
    actor: Actor = Depends(require(Action.PROJECT_MANAGE_TEAM)),
    db: Session = Depends(get_db),
):
    project = crud_project.add_team_members(db, project_id, data.user_ids)
    return envelope("Team members added successfully", project)


@router.delete("/{project_id}/team-members", response_model=ApiResponse[ProjectRead])
def remove_team_members(
    project_id: int,
    data: TeamMembersUpdate,
    actor: Actor = Depends(require(Action.PROJECT_MANAGE_TEAM)),
    db: Session = Depends(get_db),
):
    project = crud_project.remove_team_members(db, project_id, data.user_ids)
    return envelope("Team members removed successfully", project)
