#mpms/crud/auth.py
import logging
from typing import Dict, Tuple

from sqlalchemy.orm import Session

from mpms.core.enums import Role
from mpms.core.exceptions import ForbiddenError, InvalidTokenError, UnauthorizedError
from mpms.core.security import create_token_pair, verify_refresh_token
from mpms.core.settings import Settings
from mpms.crud.user import authenticate_user, create_user, set_refresh_token
from mpms.models.user import User

logger = logging.getLogger("MPMS.Auth")

INVALID_CREDENTIALS = "Invalid email or password"
ACCOUNT_DEACTIVATED = "Your account has been deactivated"


def issue_tokens(db: Session, settings: Settings, user: User) -> Dict[str, str]:
    """
    Выдаёт новую пару токенов и кладёт refresh token в слот пользователя.
    """
    tokens = create_token_pair(settings, user.id, user.role)
    set_refresh_token(db, user, tokens["refresh_token"])
    return tokens


def register(db: Session, settings: Settings, data: dict) -> Tuple[User, Dict[str, str]]:
    """
    Регистрация: всегда роль member. Конфликт email (без учёта регистра) -> 409.
    """
    user = create_user(
        db,
        {
            "name": data["name"],
            "email": data["email"],
            "password": data["password"],
            "role": Role.MEMBER,
            "department": data.get("department"),
        },
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )
    tokens = issue_tokens(db, settings, user)
    logger.info(f"Registered user {user.id}")
    return user, tokens


def login(db: Session, settings: Settings, email: str, password: str) -> Tuple[User, Dict[str, str]]:
    user = authenticate_user(db, email, password)
    if user is None:
        logger.warning(f"Failed login for {email.strip().lower()}")
        raise UnauthorizedError(INVALID_CREDENTIALS)
    if not user.is_active:
        logger.warning(f"Login attempt on deactivated account {user.id}")
        raise ForbiddenError(ACCOUNT_DEACTIVATED)

    tokens = issue_tokens(db, settings, user)
    logger.info(f"User {user.id} logged in")
    return user, tokens


def refresh(db: Session, settings: Settings, refresh_token: str) -> Dict[str, str]:
    """
    Ротация: токен должен быть валиден И совпадать со слотом пользователя.
    Устаревший (уже ротированный) токен -> 401.
    """
    if not refresh_token:
        raise UnauthorizedError("Refresh token is required")
    try:
        payload = verify_refresh_token(settings, refresh_token)
    except InvalidTokenError:
        raise UnauthorizedError("Invalid refresh token")

    user = db.get(User, payload["userId"])
    if user is None or user.refresh_token != refresh_token:
        logger.warning(f"Stale or unknown refresh token for user {payload['userId']}")
        raise UnauthorizedError("Invalid refresh token")
    if not user.is_active:
        raise ForbiddenError(ACCOUNT_DEACTIVATED)

    tokens = issue_tokens(db, settings, user)
    logger.info(f"Rotated refresh token for user {user.id}")
    return tokens


def logout(db: Session, user_id: int) -> None:
    """Очищает слот refresh token. Access token живёт до истечения срока."""
    user = db.get(User, user_id)
    if user is None:
        return
    set_refresh_token(db, user, None)
    logger.info(f"User {user_id} logged out")


def admin_create_user(db: Session, settings: Settings, data: dict) -> User:
    return create_user(db, data, bcrypt_rounds=settings.BCRYPT_ROUNDS)

