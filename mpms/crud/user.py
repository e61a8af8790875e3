#mpms/crud/user.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mpms.core.enums import Role
from mpms.core.exceptions import DuplicateEmail, UnauthorizedError, UserNotFound
from mpms.core.pagination import Page, PageParams, paginate
from mpms.core.security import hash_password, verify_password
from mpms.models.user import User

logger = logging.getLogger("MPMS.Users")

USER_SORT_FIELDS = {"created_at", "updated_at", "name", "email", "role", "department"}
REQUIRED_FIELDS = ("name", "skills", "is_active")
NULLABLE_FIELDS = ("department", "avatar")


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise UserNotFound()
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """
    Поиск по email без учёта регистра.
    """
    return db.query(User).filter(User.email == email.strip().lower()).first()


def create_user(db: Session, data: dict, bcrypt_rounds: int = 12) -> User:
    """
    Создать пользователя. Email приводится к нижнему регистру, пароль хэшируется.
    """
    email = data["email"].strip().lower()
    if get_user_by_email(db, email):
        raise DuplicateEmail()

    user = User(
        name=data["name"].strip(),
        email=email,
        password_hash=hash_password(data["password"], bcrypt_rounds),
        role=Role(data.get("role") or Role.MEMBER),
        department=data.get("department"),
        skills=data.get("skills") or [],
        is_active=data.get("is_active", True),
    )
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Created user {user.id} ({user.role.value})")
        return user
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Failed to create user {email}: {e}")
        raise DuplicateEmail()


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def query_users(db: Session, params: PageParams, filters: Optional[Dict[str, Any]] = None) -> Page:
    """
    Список пользователей с фильтрами searchTerm / role / department / isActive.
    """
    filters = filters or {}
    query = db.query(User)

    search = filters.get("search_term")
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern), User.department.ilike(pattern)))
    if filters.get("role"):
        query = query.filter(User.role == Role(filters["role"]))
    if filters.get("department"):
        query = query.filter(User.department == filters["department"])
    if filters.get("is_active") is not None:
        query = query.filter(User.is_active == filters["is_active"])

    return paginate(query, User, params, USER_SORT_FIELDS)


def list_team_members(db: Session) -> List[User]:
    """Активные пользователи по имени."""
    return db.query(User).filter(User.is_active == True).order_by(User.name.asc(), User.id.asc()).all()


def update_user(db: Session, user_id: int, data: dict) -> User:
    user = get_user(db, user_id)
    for field in REQUIRED_FIELDS:
        if data.get(field) is not None:
            setattr(user, field, data[field])
    for field in NULLABLE_FIELDS:
        if field in data:
            value = data[field]
            if field == "avatar" and value is not None:
                value = str(value)
            setattr(user, field, value)

    # деактивация обрывает refresh-сессию
    if data.get("is_active") is False:
        user.refresh_token = None

    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Updated user {user_id}: {sorted(data.keys())}")
        return user
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update user {user_id}: {e}")
        raise


def update_role(db: Session, user_id: int, role: Role) -> User:
    user = get_user(db, user_id)
    user.role = Role(role)
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Changed role of user {user_id} to {user.role.value}")
        return user
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to change role of user {user_id}: {e}")
        raise


def delete_user(db: Session, user_id: int) -> None:
    """Жёсткое удаление (обычный путь — деактивация через is_active)."""
    user = get_user(db, user_id)
    db.delete(user)
    try:
        db.commit()
        logger.info(f"Deleted user {user_id}")
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to delete user {user_id}: {e}")
        raise


def change_password(db: Session, user: User, current_password: str, new_password: str, bcrypt_rounds: int = 12) -> None:
    if not verify_password(current_password, user.password_hash):
        raise UnauthorizedError("Current password is incorrect")
    user.password_hash = hash_password(new_password, bcrypt_rounds)
    user.password_changed_at = datetime.now(timezone.utc)
    try:
        db.commit()
        logger.info(f"User {user.id} changed password")
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to change password for user {user.id}: {e}")
        raise


def get_user_stats(db: Session) -> Dict[str, Any]:
    total = db.query(func.count(User.id)).scalar() or 0
    active = db.query(func.count(User.id)).filter(User.is_active == True).scalar() or 0
    by_role = {
        role.value if isinstance(role, Role) else role: count
        for role, count in db.query(User.role, func.count(User.id)).group_by(User.role).all()
    }
    return {"total": total, "by_role": by_role, "active": active, "inactive": total - active}


def set_refresh_token(db: Session, user: User, token: Optional[str]) -> User:
    """Единственный слот refresh token: новый токен вытесняет старый, None = logout."""
    user.refresh_token = token
    try:
        db.commit()
        return user
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to store refresh token for user {user.id}: {e}")
        raise
