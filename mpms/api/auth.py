#mpms/api/auth.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from mpms.core.permissions import Action, Actor
from mpms.core.settings import Settings
from mpms.crud import auth as crud_auth
from mpms.dependencies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    get_app_settings,
    get_current_actor,
    get_current_user,
    get_db,
    require,
)
from mpms.models.user import User
from mpms.schemas.auth import AuthResult, LoginRequest, RefreshRequest, RegisterRequest, TokenPair
from mpms.schemas.response import ApiResponse, envelope
from mpms.schemas.user import UserCreate, UserRead

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger("MPMS.AuthAPI")


def set_auth_cookies(response: Response, settings: Settings, tokens: dict) -> None:
    """Кладёт пару токенов в http-only cookies."""
    secure = not settings.is_development
    response.set_cookie(
        ACCESS_COOKIE,
        tokens["access_token"],
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=secure,
        samesite="lax",
    )
    response.set_cookie(
        REFRESH_COOKIE,
        tokens["refresh_token"],
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 3600,
        httponly=True,
        secure=secure,
        samesite="lax",
    )


def clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)


@router.post("/register", response_model=ApiResponse[AuthResult], status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """
    Регистрация нового пользователя (роль member) + сразу выдаёт токены.
    """
    user, tokens = crud_auth.register(db, settings, data.model_dump())
    set_auth_cookies(response, settings, tokens)
    return envelope("Registration successful", {"user": user, "tokens": tokens}, status_code=status.HTTP_201_CREATED)


@router.post("/login", response_model=ApiResponse[AuthResult])
def login(
    data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """
    Логин по email + password.
    """
    user, tokens = crud_auth.login(db, settings, data.email, data.password)
    set_auth_cookies(response, settings, tokens)
    return envelope("Login successful", {"user": user, "tokens": tokens})


@router.post("/refresh-token", response_model=ApiResponse[TokenPair])
def refresh_token(
    request: Request,
    response: Response,
    data: Optional[RefreshRequest] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """
    Ротация refresh token: токен из тела или из cookie refreshToken.
    """
    token = (data.refresh_token if data else None) or request.cookies.get(REFRESH_COOKIE)
    tokens = crud_auth.refresh(db, settings, token)
    set_auth_cookies(response, settings, tokens)
    return envelope("Tokens refreshed successfully", tokens)


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    response: Response,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    crud_auth.logout(db, actor.id)
    clear_auth_cookies(response)
    return envelope("Logout successful")


@router.get("/me", response_model=ApiResponse[UserRead])
def me(current_user: User = Depends(get_current_user)):
    return envelope("User retrieved successfully", current_user)


@router.post("/admin/create-user", response_model=ApiResponse[UserRead], status_code=status.HTTP_201_CREATED)
def admin_create_user(
    data: UserCreate,
    actor: Actor = Depends(require(Action.USER_CREATE)),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """
    Создание пользователя администратором (роль задаётся явно).
    """
    user = crud_auth.admin_create_user(db, settings, data.model_dump())
    logger.info(f"Admin {actor.id} created user {user.id} with role {user.role.value}")
    return envelope("User created successfully", user, status_code=status.HTTP_201_CREATED)
