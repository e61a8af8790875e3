from typing import Any, Callable, Dict, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from mpms.core.enums import Role
from mpms.core.security import create_access_token
from mpms.core.settings import Settings
from mpms.crud.user import create_user
from mpms.dependencies import get_db
from mpms.main import create_app
from mpms.models import Base, User

TEST_PASSWORD = "Passw0rdTest"


@pytest.fixture
def test_settings() -> Settings:
    """
    Explicit settings for tests: in-memory SQLite (StaticPool), cheap bcrypt, .env ignored.
    """
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        JWT_ACCESS_SECRET="test-access-secret",
        JWT_REFRESH_SECRET="test-refresh-secret",
        BCRYPT_ROUNDS=4,
        ENV="test",
        API_PREFIX="/api/v1",
    )


@pytest.fixture
def app(test_settings: Settings) -> Generator[FastAPI, None, None]:
    """
    Fresh application (and so a fresh in-memory database) for each test.
    """
    application = create_app(test_settings)
    Base.metadata.create_all(bind=application.state.engine)
    yield application
    application.state.engine.dispose()


@pytest.fixture
def db(app: FastAPI) -> Generator[Session, None, None]:
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def client(app: FastAPI, db: Session) -> Generator[TestClient, None, None]:
    """
    TestClient whose requests share the test's session.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
        # release the session's connection before lifespan shutdown disposes the engine
        db.close()
    app.dependency_overrides.clear()


@pytest.fixture
def user_factory(db: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(role: Role = Role.MEMBER, **overrides: Any) -> User:
        counter["n"] += 1
        data = {
            "name": f"{role.value.title()} User {counter['n']}",
            "email": f"{role.value}{counter['n']}@example.com",
            "password": TEST_PASSWORD,
            "role": role,
        }
        data.update(overrides)
        return create_user(db, data, bcrypt_rounds=4)

    return _make


@pytest.fixture
def admin(user_factory) -> User:
    return user_factory(Role.ADMIN)


@pytest.fixture
def manager(user_factory) -> User:
    return user_factory(Role.MANAGER)


@pytest.fixture
def member(user_factory) -> User:
    return user_factory(Role.MEMBER)


@pytest.fixture
def other_member(user_factory) -> User:
    return user_factory(Role.MEMBER)


@pytest.fixture
def auth_headers(test_settings: Settings) -> Callable[[User], Dict[str, str]]:
    """Bearer header for any user."""
    def _headers(user: User) -> Dict[str, str]:
        token, _ = create_access_token(test_settings, user.id, user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers(admin, auth_headers) -> Dict[str, str]:
    return auth_headers(admin)


@pytest.fixture
def manager_headers(manager, auth_headers) -> Dict[str, str]:
    return auth_headers(manager)


@pytest.fixture
def member_headers(member, auth_headers) -> Dict[str, str]:
    return auth_headers(member)


@pytest.fixture
def other_member_headers(other_member, auth_headers) -> Dict[str, str]:
    return auth_headers(other_member)
