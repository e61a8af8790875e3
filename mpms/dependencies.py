# mpms/dependencies.py
import logging
from typing import Callable, Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from mpms.core.exceptions import ForbiddenError, UnauthorizedError, UserNotFound
from mpms.core.permissions import Action, Actor, enforce_role
from mpms.core.security import verify_access_token
from mpms.core.settings import Settings
from mpms.models.user import User

logger = logging.getLogger("MPMS.Auth")

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings объект, собранный при старте (create_app) и лежащий в app.state."""
    return request.app.state.settings


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Создает и возвращает сессию базы данных, гарантирует закрытие после использования.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    # Bearer header важнее cookie
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_COOKIE)


def get_current_actor(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> Actor:
    """
    Декодирует access token (header или cookie) и возвращает Actor {id, role}.
    База не читается: роль берётся из токена.
    """
    token = _extract_token(request, credentials)
    if not token:
        raise UnauthorizedError("Access token is required")
    try:
        payload = verify_access_token(settings, token)
    except UnauthorizedError as e:
        logger.warning(f"Rejected access token on {request.url.path}: {e.message}")
        raise
    return Actor(id=payload["userId"], role=payload["role"])


def get_optional_actor(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> Optional[Actor]:
    """То же, что get_current_actor, но без ошибки: нет/битый токен -> None."""
    token = _extract_token(request, credentials)
    if not token:
        return None
    try:
        payload = verify_access_token(settings, token)
    except UnauthorizedError:
        return None
    return Actor(id=payload["userId"], role=payload["role"])


def get_current_user(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> User:
    """
    Пользователь из БД для текущего токена. Деактивированный аккаунт -> 403.
    """
    user = db.get(User, actor.id)
    if user is None:
        raise UserNotFound()
    if not user.is_active:
        raise ForbiddenError("Your account has been deactivated")
    return user


def require(action: Action) -> Callable[..., Actor]:
    """
    Dependency factory: role gate for `action`.
    Ownership-scoped actions are checked again in the route once the resource is loaded.
    """
    def _check(actor: Actor = Depends(get_current_actor)) -> Actor:
        enforce_role(actor, action)
        return actor

    return _check
