#tests/api/test_auth_api.py
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from mpms.crud.user import get_user, update_user

API = "/api/v1/auth"
PASSWORD = "Passw0rdTest"


def register_payload(email: str = "john.doe@example.com", **extra) -> dict:
    data = {"name": "John Doe", "email": email, "password": PASSWORD, "confirmPassword": PASSWORD}
    data.update(extra)
    return data


def set_cookies(response) -> dict:
    """name -> raw Set-Cookie header."""
    return {header.split("=", 1)[0]: header for header in response.headers.get_list("set-cookie")}


def test_register(client: TestClient):
    response = client.post(f"{API}/register", json=register_payload(email="  John.Doe@Example.com"))
    assert response.status_code == 201
    body = response.json()
    assert body["statusCode"] == 201
    assert body["message"] == "Registration successful"

    user = body["data"]["user"]
    assert user["email"] == "john.doe@example.com"
    assert user["role"] == "member"
    assert user["isActive"] is True
    assert "passwordHash" not in user and "refreshToken" not in user
    assert set(body["data"]["tokens"]) == {"accessToken", "refreshToken"}

    cookies = set_cookies(response)
    assert set(cookies) == {"accessToken", "refreshToken"}
    assert "httponly" in cookies["accessToken"].lower()
    assert "samesite=lax" in cookies["refreshToken"].lower()


def test_register_ignores_requested_role(client: TestClient):
    response = client.post(f"{API}/register", json=register_payload(role="admin"))
    assert response.status_code == 201
    assert response.json()["data"]["user"]["role"] == "member"


def test_register_duplicate_email_is_409(client: TestClient):
    client.post(f"{API}/register", json=register_payload())
    response = client.post(f"{API}/register", json=register_payload(email="JOHN.DOE@example.com"))
    assert response.status_code == 409
    assert response.json()["message"] == "Email already registered"


def test_register_validation(client: TestClient):
    response = client.post(f"{API}/register", json=register_payload(password="short", confirmPassword="short"))
    assert response.status_code == 422
    errors = response.json()["errors"]
    assert errors == [{"path": "body.password", "message": "Password must be at least 8 characters"}]

    response = client.post(f"{API}/register", json=register_payload(confirmPassword="Different1"))
    assert response.status_code == 422
    assert response.json()["errors"][0]["message"] == "Passwords do not match"


def test_login(client: TestClient, member):
    response = client.post(f"{API}/login", json={"email": member.email, "password": PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Login successful"
    assert body["data"]["user"]["id"] == member.id
    assert set(set_cookies(response)) == {"accessToken", "refreshToken"}


def test_login_wrong_password(client: TestClient, member):
    response = client.post(f"{API}/login", json={"email": member.email, "password": "WrongPass1"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


def test_login_deactivated(client: TestClient, db: Session, member):
    update_user(db, member.id, {"is_active": False})
    response = client.post(f"{API}/login", json={"email": member.email, "password": PASSWORD})
    assert response.status_code == 403
    assert response.json()["message"] == "Your account has been deactivated"


def test_refresh_token_from_body_rotates(client: TestClient, member):
    tokens = client.post(f"{API}/login", json={"email": member.email, "password": PASSWORD}).json()["data"]["tokens"]

    response = client.post(f"{API}/refresh-token", json={"refreshToken": tokens["refreshToken"]})
    assert response.status_code == 200
    assert response.json()["message"] == "Tokens refreshed successfully"
    rotated = response.json()["data"]
    assert rotated["refreshToken"] != tokens["refreshToken"]

    # старый refresh token больше не действует
    stale = client.post(f"{API}/refresh-token", json={"refreshToken": tokens["refreshToken"]})
    assert stale.status_code == 401


def test_refresh_token_from_cookie(client: TestClient, member):
    tokens = client.post(f"{API}/login", json={"email": member.email, "password": PASSWORD}).json()["data"]["tokens"]
    response = client.post(f"{API}/refresh-token", headers={"Cookie": f"refreshToken={tokens['refreshToken']}"})
    assert response.status_code == 200


def test_refresh_token_missing(client: TestClient):
    response = client.post(f"{API}/refresh-token")
    assert response.status_code == 401
    assert response.json()["message"] == "Refresh token is required"


def test_me(client: TestClient, member, member_headers):
    response = client.get(f"{API}/me", headers=member_headers)
    assert response.status_code == 200
    assert response.json()["data"]["email"] == member.email


def test_me_deactivated_is_403(client: TestClient, db: Session, member, member_headers):
    update_user(db, member.id, {"is_active": False})
    assert client.get(f"{API}/me", headers=member_headers).status_code == 403


def test_logout_clears_session(client: TestClient, db: Session, member, member_headers):
    client.post(f"{API}/login", json={"email": member.email, "password": PASSWORD})

    response = client.post(f"{API}/logout", headers=member_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "statusCode": 200, "message": "Logout successful"}
    assert get_user(db, member.id).refresh_token is None


def test_admin_create_user(client: TestClient, admin_headers, member_headers):
    payload = {"name": "New Manager", "email": "pm@example.com", "password": PASSWORD, "role": "manager"}

    assert client.post(f"{API}/admin/create-user", json=payload, headers=member_headers).status_code == 403

    response = client.post(f"{API}/admin/create-user", json=payload, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["data"]["role"] == "manager"
