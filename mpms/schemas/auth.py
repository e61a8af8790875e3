from typing import Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from mpms.schemas.response import CamelModel
from mpms.schemas.user import NAME_FIELD, UserRead, check_password_strength, normalize_email, strip_text


class RegisterRequest(CamelModel):
    """
    RegisterRequest — регистрация (роль всегда member).
    """
    name: str = Field(..., **NAME_FIELD, examples=["John Doe"])
    email: EmailStr = Field(..., examples=["john.doe@example.com"])
    password: str = Field(..., examples=["Str0ngPass"])
    confirm_password: str = Field(..., min_length=1)

    strip_name = field_validator("name", mode="before")(strip_text)
    lowercase_email = field_validator("email", mode="before")(normalize_email)
    password_strength = field_validator("password")(check_password_strength)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(CamelModel):
    """
    LoginRequest — вход по email + password.
    """
    email: EmailStr = Field(..., examples=["john.doe@example.com"])
    password: str = Field(..., min_length=1)

    lowercase_email = field_validator("email", mode="before")(normalize_email)


class RefreshRequest(CamelModel):
    """
    RefreshRequest — refresh token в теле (иначе берётся из cookie refreshToken).
    """
    refresh_token: Optional[str] = None


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class AuthResult(CamelModel):
    """
    AuthResult — ответ register/login: пользователь + пара токенов.
    """
    user: UserRead
    tokens: TokenPair
