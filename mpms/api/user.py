#mpms/api/user.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mpms.core.enums import Role
from mpms.core.pagination import PageParams, pagination_params
from mpms.core.permissions import Action, Actor
from mpms.core.settings import Settings
from mpms.crud import user as crud_user
from mpms.dependencies import get_app_settings, get_current_user, get_db, require
from mpms.models.user import User
from mpms.schemas.response import ApiResponse, envelope
from mpms.schemas.user import ChangePassword, ProfileUpdate, RoleUpdate, UserCreate, UserRead, UserStats, UserUpdate

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger("MPMS.UsersAPI")


# ==== Собственный профиль (любая роль) ====

@router.get("/profile", response_model=ApiResponse[UserRead])
def read_profile(
    current_user: User = Depends(get_current_user),
    actor: Actor = Depends(require(Action.USER_VIEW_PROFILE)),
):
    return envelope("Profile retrieved successfully", current_user)


@router.patch("/profile", response_model=ApiResponse[UserRead])
def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    actor: Actor = Depends(require(Action.USER_UPDATE_PROFILE)),
    db: Session = Depends(get_db),
):
    """
    Обновить свой профиль (name, department, skills, avatar).
    """
    user = crud_user.update_user(db, current_user.id, data.model_dump(exclude_unset=True))
    return envelope("Profile updated successfully", user)


@router.post("/change-password", response_model=ApiResponse[None])
def change_password(
    data: ChangePassword,
    current_user: User = Depends(get_current_user),
    actor: Actor = Depends(require(Action.USER_CHANGE_PASSWORD)),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    crud_user.change_password(db, current_user, data.current_password, data.new_password, settings.BCRYPT_ROUNDS)
    return envelope("Password changed successfully")


@router.get("/team-members", response_model=ApiResponse[List[UserRead]])
def team_members(
    actor: Actor = Depends(require(Action.USER_LIST_TEAM)),
    db: Session = Depends(get_db),
):
    """Активные пользователи для выбора в команду/исполнители."""
    return envelope("Team members retrieved successfully", crud_user.list_team_members(db))


# ==== Администрирование ====

@router.get("/stats", response_model=ApiResponse[UserStats])
def user_stats(
    actor: Actor = Depends(require(Action.USER_STATS)),
    db: Session = Depends(get_db),
):
    return envelope("User stats retrieved successfully", crud_user.get_user_stats(db))


@router.get("", response_model=ApiResponse[List[UserRead]])
def list_users(
    params: PageParams = Depends(pagination_params),
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    role: Optional[Role] = Query(None),
    department: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    actor: Actor = Depends(require(Action.USER_LIST)),
    db: Session = Depends(get_db),
):
    """
    Список пользователей с пагинацией и фильтрами.
    """
    filters = {"search_term": search_term, "role": role, "department": department, "is_active": is_active}
    page = crud_user.query_users(db, params, filters)
    return envelope("Users retrieved successfully", page.items, meta=page.meta)


@router.post("", response_model=ApiResponse[UserRead], status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    actor: Actor = Depends(require(Action.USER_CREATE)),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    user = crud_user.create_user(db, data.model_dump(), bcrypt_rounds=settings.BCRYPT_ROUNDS)
    return envelope("User created successfully", user, status_code=status.HTTP_201_CREATED)


@router.get("/{user_id}", response_model=ApiResponse[UserRead])
def read_user(
    user_id: int,
    actor: Actor = Depends(require(Action.USER_READ)),
    db: Session = Depends(get_db),
):
    return envelope("User retrieved successfully", crud_user.get_user(db, user_id))


@router.patch("/{user_id}", response_model=ApiResponse[UserRead])
def update_user(
    user_id: int,
    data: UserUpdate,
    actor: Actor = Depends(require(Action.USER_UPDATE)),
    db: Session = Depends(get_db),
):
    """
    Обновить пользователя. isActive=false деактивирует аккаунт и обрывает refresh-сессию.
    """
    user = crud_user.update_user(db, user_id, data.model_dump(exclude_unset=True))
    return envelope("User updated successfully", user)


@router.patch("/{user_id}/role", response_model=ApiResponse[UserRead])
def update_user_role(
    user_id: int,
    data: RoleUpdate,
    actor: Actor = Depends(require(Action.USER_UPDATE_ROLE)),
    db: Session = Depends(get_db),
):
    user = crud_user.update_role(db, user_id, data.role)
    logger.info(f"Admin {actor.id} set role of user {user_id} to {user.role.value}")
    return envelope("User role updated successfully", user)


@router.delete("/{user_id}", response_model=ApiResponse[None])
def delete_user(
    user_id: int,
    actor: Actor = Depends(require(Action.USER_DELETE)),
    db: Session = Depends(get_db),
):
    crud_user.delete_user(db, user_id)
    return envelope("User deleted successfully")
