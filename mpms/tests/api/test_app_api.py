#tests/api/test_app_api.py
from datetime import timedelta

from fastapi.testclient import TestClient

from mpms.core.enums import Role
from mpms.core.security import create_access_token, create_refresh_token

API = "/api/v1"


def test_root_anonymous(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body == {
        "success": True,
        "statusCode": 200,
        "message": "Welcome to MPMS API",
        "data": {"authenticated": False},
    }


def test_root_with_token(client: TestClient, member, member_headers):
    body = client.get("/", headers=member_headers).json()
    assert body["data"] == {"authenticated": True, "userId": member.id, "role": "member"}


def test_root_ignores_broken_token(client: TestClient):
    response = client.get("/", headers={"Authorization": "Bearer broken"})
    assert response.status_code == 200
    assert response.json()["data"]["authenticated"] is False


def test_health(client: TestClient):
    response = client.get(f"{API}/health")
    assert response.status_code == 200
    assert response.json()["message"] == "MPMS API is running"


def test_unknown_route_uses_error_envelope(client: TestClient):
    response = client.get(f"{API}/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "statusCode": 404,
        "message": f"Route {API}/does-not-exist not found",
    }


def test_missing_token_is_401(client: TestClient):
    response = client.get(f"{API}/tasks/my-tasks")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Access token is required"


def test_expired_token_is_401(client: TestClient, test_settings, member):
    token, _ = create_access_token(test_settings, member.id, Role.MEMBER, expires_delta=timedelta(seconds=-5))
    response = client.get(f"{API}/tasks/my-tasks", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "Token expired. Please log in again"


def test_token_signed_with_refresh_secret_is_rejected(client: TestClient, test_settings, member):
    token, _ = create_refresh_token(test_settings, member.id, Role.MEMBER)
    response = client.get(f"{API}/tasks/my-tasks", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_access_cookie_authenticates(client: TestClient, test_settings, member):
    token, _ = create_access_token(test_settings, member.id, Role.MEMBER)
    response = client.get(f"{API}/auth/me", headers={"Cookie": f"accessToken={token}"})
    assert response.status_code == 200
    assert response.json()["data"]["id"] == member.id


def test_role_gate_is_403(client: TestClient, member_headers):
    response = client.get(f"{API}/reports/dashboard", headers=member_headers)
    assert response.status_code == 403
    assert response.json()["message"] == "You do not have permission to perform this action"


def test_validation_error_shape(client: TestClient):
    response = client.post(
        f"{API}/auth/login",
        json={"email": "not-an-email", "password": "whatever"},
    )
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert [e["path"] for e in body["errors"]] == ["body.email"]
