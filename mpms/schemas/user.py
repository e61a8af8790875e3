import re
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import EmailStr, Field, HttpUrl, field_validator, model_validator

from mpms.core.enums import Role
from mpms.schemas.response import CamelModel

NAME_FIELD = dict(min_length=2, max_length=100)


def check_password_strength(value: str) -> str:
    """>= 8 символов, минимум одна строчная, одна заглавная буква и одна цифра."""
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[0-9]", value):
        raise ValueError("Password must contain at least one number")
    return value


def strip_text(value):
    return value.strip() if isinstance(value, str) else value


def normalize_email(value: str) -> str:
    return value.strip().lower() if isinstance(value, str) else value


def reject_null(value):
    if value is None:
        raise ValueError("Field cannot be null")
    return value


def require_any_field(model):
    if not model.model_fields_set:
        raise ValueError("At least one field is required for update")
    return model


class UserBrief(CamelModel):
    """
    UserBrief — краткая карточка пользователя для вложенных ответов.
    """
    id: int
    name: str
    email: str
    role: Role
    avatar: Optional[str] = None


class UserRead(CamelModel):
    """
    UserRead — пользователь в ответе API (без пароля и refresh token).
    """
    id: int
    name: str
    email: str
    role: Role
    department: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    avatar: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UserCreate(CamelModel):
    """
    UserCreate — создание пользователя администратором.
    """
    name: str = Field(..., **NAME_FIELD, examples=["Jane Doe"])
    email: EmailStr = Field(..., examples=["jane@example.com"])
    password: str = Field(..., examples=["Str0ngPass"])
    role: Role = Role.MEMBER
    department: Optional[str] = None
    skills: List[str] = Field(default_factory=list)

    strip_name = field_validator("name", mode="before")(strip_text)
    lowercase_email = field_validator("email", mode="before")(normalize_email)
    password_strength = field_validator("password")(check_password_strength)


class UserUpdate(CamelModel):
    """
    UserUpdate — обновление пользователя администратором (isActive=false деактивирует аккаунт).
    """
    name: Optional[str] = Field(None, **NAME_FIELD)
    department: Optional[str] = None
    skills: Optional[List[str]] = None
    avatar: Optional[HttpUrl] = None
    is_active: Optional[bool] = None

    not_null = field_validator("name", "skills", "is_active")(reject_null)
    at_least_one_field = model_validator(mode="after")(require_any_field)


class ProfileUpdate(CamelModel):
    """
    ProfileUpdate — пользователь обновляет свой профиль.
    """
    name: Optional[str] = Field(None, **NAME_FIELD)
    department: Optional[str] = None
    skills: Optional[List[str]] = None
    avatar: Optional[HttpUrl] = None

    not_null = field_validator("name", "skills")(reject_null)
    at_least_one_field = model_validator(mode="after")(require_any_field)


class RoleUpdate(CamelModel):
    role: Role


class ChangePassword(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str
    confirm_password: str = Field(..., min_length=1)

    password_strength = field_validator("new_password")(check_password_strength)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserStats(CamelModel):
    total: int
    by_role: Dict[str, int]
    active: int
    inactive: int
