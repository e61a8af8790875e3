# mpms/core/security.py

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from mpms.core.enums import Role
from mpms.core.exceptions import InvalidTokenError, TokenExpiredError
from mpms.core.settings import Settings

ACCESS = "access"
REFRESH = "refresh"

# bcrypt игнорирует всё после 72 байт
BCRYPT_MAX_BYTES = 72


def _encode(data: Dict[str, Any], secret: str, algorithm: str, token_type: str, expires_delta: timedelta) -> Tuple[str, datetime]:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire, "type": token_type, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, secret, algorithm=algorithm), expire


def create_access_token(
    settings: Settings,
    user_id: int,
    role: Role,
    expires_delta: Optional[timedelta] = None,
) -> Tuple[str, datetime]:
    """
    Генерирует access token (JWT) c payload {userId, role} и возвращает (token, expire_time)
    """
    return _encode(
        {"userId": user_id, "role": Role(role).value},
        settings.JWT_ACCESS_SECRET,
        settings.JWT_ALGORITHM,
        ACCESS,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(
    settings: Settings,
    user_id: int,
    role: Role,
    expires_delta: Optional[timedelta] = None,
) -> Tuple[str, datetime]:
    """
    Генерирует refresh token (JWT, отдельный секрет) и возвращает (token, expire_time).
    Каждый токен уникален за счёт jti, поэтому ротация всегда меняет строку токена.
    """
    return _encode(
        {"userId": user_id, "role": Role(role).value},
        settings.JWT_REFRESH_SECRET,
        settings.JWT_ALGORITHM,
        REFRESH,
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def create_token_pair(settings: Settings, user_id: int, role: Role) -> Dict[str, str]:
    access_token, _ = create_access_token(settings, user_id, role)
    refresh_token, _ = create_refresh_token(settings, user_id, role)
    return {"access_token": access_token, "refresh_token": refresh_token}


def _decode(token: str, secret: str, algorithm: str, token_type: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise InvalidTokenError()

    if payload.get("type") != token_type or "userId" not in payload or "role" not in payload:
        raise InvalidTokenError()
    try:
        payload["role"] = Role(payload["role"])
    except ValueError:
        raise InvalidTokenError()
    return payload


def verify_access_token(settings: Settings, token: str) -> Dict[str, Any]:
    """
    Декодирует и валидирует access token.
    Raises TokenExpiredError / InvalidTokenError.
    """
    return _decode(token, settings.JWT_ACCESS_SECRET, settings.JWT_ALGORITHM, ACCESS)


def verify_refresh_token(settings: Settings, token: str) -> Dict[str, Any]:
    """
    Декодирует и валидирует refresh token.
    Raises TokenExpiredError / InvalidTokenError.
    """
    return _decode(token, settings.JWT_REFRESH_SECRET, settings.JWT_ALGORITHM, REFRESH)


def hash_password(password: str, rounds: int = 12) -> str:
    raw = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    raw = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
    except ValueError:
        return False
