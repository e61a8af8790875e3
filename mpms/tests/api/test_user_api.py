#tests/api/test_user_api.py
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from mpms.core.enums import Role
from mpms.core.security import verify_password
from mpms.crud.user import get_user

API = "/api/v1/users"
PASSWORD = "Passw0rdTest"


def test_profile_read_and_update(client: TestClient, member, member_headers):
    response = client.get(f"{API}/profile", headers=member_headers)
    assert response.status_code == 200
    assert response.json()["data"]["id"] == member.id

    response = client.patch(
        f"{API}/profile",
        json={"department": "Design", "skills": ["figma"], "avatar": "https://cdn.example.com/a.png"},
        headers=member_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["department"] == "Design"
    assert data["skills"] == ["figma"]
    assert data["avatar"] == "https://cdn.example.com/a.png"


def test_profile_update_requires_a_field(client: TestClient, member_headers):
    response = client.patch(f"{API}/profile", json={}, headers=member_headers)
    assert response.status_code == 422
    assert response.json()["errors"][0]["message"] == "At least one field is required for update"


def test_change_password(client: TestClient, db: Session, member, member_headers):
    payload = {"currentPassword": "WrongPass1", "newPassword": "NewPassw0rd", "confirmPassword": "NewPassw0rd"}
    assert client.post(f"{API}/change-password", json=payload, headers=member_headers).status_code == 401

    payload["currentPassword"] = PASSWORD
    response = client.post(f"{API}/change-password", json=payload, headers=member_headers)
    assert response.status_code == 200
    assert verify_password("NewPassw0rd", get_user(db, member.id).password_hash)


def test_team_members_visible_to_everyone(client: TestClient, admin, manager, member_headers):
    response = client.get(f"{API}/team-members", headers=member_headers)
    assert response.status_code == 200
    assert len(response.json()["data"]) == 3


def test_list_users_staff_only_with_meta(client: TestClient, admin, member, manager_headers, member_headers):
    assert client.get(API, headers=member_headers).status_code == 403

    response = client.get(API, params={"limit": 2, "page": 1, "sortBy": "name", "sortOrder": "asc"}, headers=manager_headers)
    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 2
    assert body["meta"] == {
        "page": 1,
        "limit": 2,
        "total": 3,
        "totalPages": 2,
        "hasNextPage": True,
        "hasPrevPage": False,
    }


def test_list_users_filters(client: TestClient, admin, member, manager_headers):
    response = client.get(API, params={"role": "admin"}, headers=manager_headers)
    assert [u["id"] for u in response.json()["data"]] == [admin.id]

    assert client.get(API, params={"role": "owner"}, headers=manager_headers).status_code == 422


def test_lenient_pagination(client: TestClient, manager_headers):
    response = client.get(API, params={"page": "abc", "limit": "1000"}, headers=manager_headers)
    assert response.status_code == 200
    meta = response.json()["meta"]
    assert meta["page"] == 1
    assert meta["limit"] == 100


def test_read_user(client: TestClient, member, manager_headers, member_headers):
    assert client.get(f"{API}/{member.id}", headers=manager_headers).json()["data"]["id"] == member.id
    assert client.get(f"{API}/{member.id}", headers=member_headers).status_code == 403

    response = client.get(f"{API}/9999", headers=manager_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


def test_stats_admin_only(client: TestClient, admin_headers, manager_headers, member):
    assert client.get(f"{API}/stats", headers=manager_headers).status_code == 403

    response = client.get(f"{API}/stats", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total"] == 3
    assert data["byRole"] == {"admin": 1, "manager": 1, "member": 1}


def test_admin_creates_user(client: TestClient, admin_headers):
    payload = {"name": "Dev", "email": "dev@example.com", "password": PASSWORD, "role": "manager"}
    response = client.post(API, json=payload, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["data"]["role"] == "manager"

    assert client.post(API, json=payload, headers=admin_headers).status_code == 409


def test_deactivate_user(client: TestClient, db: Session, member, admin_headers, member_headers):
    response = client.patch(f"{API}/{member.id}", json={"isActive": False}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["isActive"] is False

    # токен ещё валиден, но аккаунт деактивирован
    assert client.get(f"{API}/profile", headers=member_headers).status_code == 403


def test_update_role(client: TestClient, member, admin_headers, manager_headers):
    assert client.patch(f"{API}/{member.id}/role", json={"role": "manager"}, headers=manager_headers).status_code == 403

    response = client.patch(f"{API}/{member.id}/role", json={"role": "manager"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["role"] == Role.MANAGER.value


def test_delete_user(client: TestClient, member, admin_headers):
    response = client.delete(f"{API}/{member.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "User deleted successfully"
    assert client.delete(f"{API}/{member.id}", headers=admin_headers).status_code == 404


def test_null_for_required_user_fields_is_422(client: TestClient, member, admin_headers, member_headers):
    response = client.patch(f"{API}/{member.id}", json={"name": None}, headers=admin_headers)
    assert response.status_code == 422
    assert response.json()["errors"][0]["path"] == "body.name"

    response = client.patch(f"{API}/{member.id}", json={"isActive": None}, headers=admin_headers)
    assert response.status_code == 422

    response = client.patch(f"{API}/profile", json={"skills": None}, headers=member_headers)
    assert response.status_code == 422
    assert response.json()["errors"][0]["path"] == "body.skills"

    # профиль остаётся читаемым
    response = client.get(f"{API}/profile", headers=member_headers)
    assert response.status_code == 200
    assert response.json()["data"]["skills"] == []
    assert response.json()["data"]["name"] == member.name


def test_null_clears_optional_user_fields(client: TestClient, member_headers):
    client.patch(f"{API}/profile", json={"department": "Design"}, headers=member_headers)

    response = client.patch(f"{API}/profile", json={"department": None, "avatar": None}, headers=member_headers)
    assert response.status_code == 200
    assert response.json()["data"]["department"] is None
    assert response.json()["data"]["avatar"] is None
