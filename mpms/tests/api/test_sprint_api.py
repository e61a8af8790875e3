#tests/api/test_sprint_api.py
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from mpms.crud.project import create_project

API = "/api/v1/sprints"


@pytest.fixture
def project(db: Session, manager):
    return create_project(db, {"title": "Sprint API", "client": "Acme", "start_date": date(2026, 1, 1)}, creator_id=manager.id)


def sprint_payload(project_id: int, title: str = "Sprint 1", **extra) -> dict:
    data = {"projectId": project_id, "title": title, "startDate": "2026-01-01", "endDate": "2026-01-14"}
    data.update(extra)
    return data


def create(client: TestClient, headers, project_id: int, **kwargs) -> dict:
    response = client.post(API, json=sprint_payload(project_id, **kwargs), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_sprint(client: TestClient, project, manager_headers):
    first = create(client, manager_headers, project.id, goals=["ship login"])
    second = create(client, manager_headers, project.id, title="Sprint 2")

    assert first["sprintNumber"] == 1
    assert first["order"] == 1
    assert first["status"] == "planned"
    assert first["goals"] == ["ship login"]
    assert first["project"]["slug"] == "sprint-api"
    assert second["sprintNumber"] == 2


def test_create_sprint_rules(client: TestClient, project, manager_headers, member_headers):
    assert client.post(API, json=sprint_payload(project.id), headers=member_headers).status_code == 403

    response = client.post(API, json=sprint_payload(project.id, endDate="2026-01-01"), headers=manager_headers)
    assert response.status_code == 422
    assert response.json()["errors"][0]["message"] == "End date must be after start date"

    response = client.post(API, json=sprint_payload(9999), headers=manager_headers)
    assert response.status_code == 404


def test_list_and_active_sprint(client: TestClient, project, manager_headers, member_headers):
    response = client.get(f"{API}/project/{project.id}/active", headers=member_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "No active sprint"
    assert "data" not in response.json()

    create(client, manager_headers, project.id)
    active = create(client, manager_headers, project.id, title="Sprint 2", status="active")

    response = client.get(f"{API}/project/{project.id}", headers=member_headers)
    assert [s["title"] for s in response.json()["data"]] == ["Sprint 1", "Sprint 2"]

    response = client.get(f"{API}/project/{project.id}/active", headers=member_headers)
    assert response.json()["data"]["id"] == active["id"]

    assert client.get(f"{API}/project/9999", headers=member_headers).status_code == 404


def test_reorder(client: TestClient, project, manager_headers, member_headers):
    s1 = create(client, manager_headers, project.id)
    s2 = create(client, manager_headers, project.id, title="Sprint 2")
    payload = {"sprintOrders": [{"sprintId": s1["id"], "order": 2}, {"sprintId": s2["id"], "order": 1}]}
    url = f"{API}/project/{project.id}/reorder"

    assert client.patch(url, json=payload, headers=member_headers).status_code == 403

    response = client.patch(url, json=payload, headers=manager_headers)
    assert response.status_code == 200
    assert [s["id"] for s in response.json()["data"]] == [s2["id"], s1["id"]]


def test_read_update_and_stats(client: TestClient, project, manager_headers, member_headers):
    sprint = create(client, manager_headers, project.id)

    assert client.get(f"{API}/{sprint['id']}", headers=member_headers).json()["data"]["title"] == "Sprint 1"
    assert client.get(f"{API}/9999", headers=member_headers).status_code == 404

    response = client.patch(f"{API}/{sprint['id']}", json={"status": "active", "description": "focus"}, headers=manager_headers)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "active"

    response = client.patch(f"{API}/{sprint['id']}", json={"endDate": "2025-12-01"}, headers=manager_headers)
    assert response.status_code == 400

    client.post(
        "/api/v1/tasks",
        json={"projectId": project.id, "sprintId": sprint["id"], "title": "T", "status": "done"},
        headers=manager_headers,
    )
    response = client.get(f"{API}/{sprint['id']}/stats", headers=member_headers)
    assert response.json()["data"]["stats"]["progress"] == 100


def test_delete_sprint(client: TestClient, project, manager_headers, member_headers):
    sprint = create(client, manager_headers, project.id)
    task = client.post(
        "/api/v1/tasks",
        json={"projectId": project.id, "sprintId": sprint["id"], "title": "T"},
        headers=manager_headers,
    ).json()["data"]

    assert client.delete(f"{API}/{sprint['id']}", headers=member_headers).status_code == 403

    response = client.delete(f"{API}/{sprint['id']}", headers=manager_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Cannot delete sprint with existing tasks. Move or delete tasks first."

    client.patch(f"/api/v1/tasks/{task['id']}", json={"sprintId": None}, headers=manager_headers)
    assert client.delete(f"{API}/{sprint['id']}", headers=manager_headers).status_code == 200
