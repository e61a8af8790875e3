#tests/api/test_task_api.py
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from mpms.crud.project import create_project
from mpms.crud.sprint import create_sprint

API = "/api/v1/tasks"


@pytest.fixture
def project(db: Session, manager):
    return create_project(db, {"title": "Task API", "client": "Acme", "start_date": date(2026, 1, 1)}, creator_id=manager.id)


def create(client: TestClient, headers, project_id: int, **extra) -> dict:
    payload = {"projectId": project_id, "title": extra.pop("title", "Build feature")}
    payload.update(extra)
    response = client.post(API, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_task(client: TestClient, project, manager, member, manager_headers):
    task = create(client, manager_headers, project.id, assignees=[member.id], estimate=5, dueDate="2026-02-01", priority="high")
    assert task["status"] == "todo"
    assert task["priority"] == "high"
    assert task["timeLogged"] == 0
    assert task["dueDate"] == "2026-02-01"
    assert task["createdBy"]["id"] == manager.id
    assert task["project"]["id"] == project.id
    assert [a["id"] for a in task["assignees"]] == [member.id]
    assert task["completedAt"] is None


def test_member_cannot_create_task(client: TestClient, project, member_headers):
    response = client.post(API, json={"projectId": project.id, "title": "Nope"}, headers=member_headers)
    assert response.status_code == 403


def test_create_task_validation(client: TestClient, project, manager_headers):
    response = client.post(API, json={"projectId": project.id, "title": "X", "priority": "critical"}, headers=manager_headers)
    assert response.status_code == 422
    assert response.json()["errors"][0]["path"] == "body.priority"

    response = client.post(API, json={"projectId": project.id, "title": "X", "assignees": [9999]}, headers=manager_headers)
    assert response.status_code == 400


def test_review_gate_over_http(client: TestClient, project, manager, manager_headers, member_headers):
    task = create(client, manager_headers, project.id, requiresReview=True)
    url = f"{API}/{task['id']}/status"

    response = client.patch(url, json={"status": "done"}, headers=member_headers)
    assert response.status_code == 403
    assert response.json()["message"] == "This task requires review. Please move to review status."

    response = client.patch(url, json={"status": "review"}, headers=member_headers)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "review"

    response = client.patch(url, json={"status": "done"}, headers=manager_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Task status updated successfully"
    assert body["data"]["status"] == "done"
    assert body["data"]["completedAt"] is not None
    assert body["data"]["reviewedById"] == manager.id


def test_member_closes_task_without_review(client: TestClient, project, manager_headers, member_headers):
    task = create(client, manager_headers, project.id)
    response = client.patch(f"{API}/{task['id']}/status", json={"status": "done"}, headers=member_headers)
    assert response.status_code == 200
    assert response.json()["data"]["completedAt"] is not None

    # повторное открытие не стирает completedAt
    response = client.patch(f"{API}/{task['id']}/status", json={"status": "in_progress"}, headers=member_headers)
    assert response.json()["data"]["status"] == "in_progress"
    assert response.json()["data"]["completedAt"] is not None


def test_update_task_is_staff_only(client: TestClient, db: Session, project, manager_headers, member_headers):
    sprint = create_sprint(db, {"project_id": project.id, "title": "S1", "start_date": date(2026, 1, 1), "end_date": date(2026, 1, 14)})
    task = create(client, manager_headers, project.id, sprintId=sprint.id)

    assert client.patch(f"{API}/{task['id']}", json={"title": "Mine now"}, headers=member_headers).status_code == 403

    response = client.patch(f"{API}/{task['id']}", json={"title": "Renamed", "sprintId": None}, headers=manager_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Renamed"
    assert data["sprintId"] is None

    assert client.patch(f"{API}/{task['id']}", json={}, headers=manager_headers).status_code == 422


def test_log_time(client: TestClient, project, manager_headers, member_headers):
    task = create(client, manager_headers, project.id)
    url = f"{API}/{task['id']}/log-time"

    client.post(url, json={"hours": 1.5}, headers=member_headers)
    response = client.post(url, json={"hours": 2, "description": "pairing"}, headers=member_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Time logged successfully"
    assert response.json()["data"]["timeLogged"] == 3.5

    assert client.post(url, json={"hours": -1}, headers=member_headers).status_code == 422


def test_my_tasks(client: TestClient, project, member, manager_headers, member_headers):
    later = create(client, manager_headers, project.id, title="Later", assignees=[member.id], dueDate="2026-04-01")
    sooner = create(client, manager_headers, project.id, title="Sooner", assignees=[member.id], dueDate="2026-03-01")
    create(client, manager_headers, project.id, title="Unassigned")

    response = client.get(f"{API}/my-tasks", headers=member_headers)
    assert response.status_code == 200
    assert [t["id"] for t in response.json()["data"]] == [sooner["id"], later["id"]]

    response = client.get(f"{API}/my-tasks", params={"searchTerm": "later"}, headers=member_headers)
    assert [t["id"] for t in response.json()["data"]] == [later["id"]]


def test_project_and_kanban_views(client: TestClient, db: Session, project, manager_headers, member_headers):
    sprint = create_sprint(db, {"project_id": project.id, "title": "S1", "start_date": date(2026, 1, 1), "end_date": date(2026, 1, 14)})
    todo = create(client, manager_headers, project.id, sprintId=sprint.id)
    doing = create(client, manager_headers, project.id, status="in_progress")

    response = client.get(f"{API}/project/{project.id}", headers=member_headers)
    assert [t["id"] for t in response.json()["data"]] == [todo["id"], doing["id"]]

    response = client.get(f"{API}/sprint/{sprint.id}", headers=member_headers)
    assert [t["id"] for t in response.json()["data"]] == [todo["id"]]

    board = client.get(f"{API}/project/{project.id}/kanban", headers=member_headers).json()["data"]
    assert set(board) == {"todo", "in_progress", "review", "done"}
    assert [t["id"] for t in board["todo"]] == [todo["id"]]
    assert [t["id"] for t in board["in_progress"]] == [doing["id"]]

    board = client.get(f"{API}/project/{project.id}/kanban", params={"sprintId": sprint.id}, headers=member_headers).json()["data"]
    assert board["in_progress"] == []

    assert client.get(f"{API}/project/9999/kanban", headers=member_headers).status_code == 404


def test_subtasks(client: TestClient, project, manager_headers, member_headers):
    task = create(client, manager_headers, project.id)
    url = f"{API}/{task['id']}/subtasks"

    response = client.post(url, json={"title": "Write docs"}, headers=member_headers)
    assert response.status_code == 201
    subtask = response.json()["data"]["subtasks"][0]
    assert subtask["isCompleted"] is False

    response = client.patch(f"{url}/{subtask['id']}", json={"isCompleted": True}, headers=member_headers)
    assert response.json()["data"]["subtasks"][0]["isCompleted"] is True

    response = client.delete(f"{url}/{subtask['id']}", headers=member_headers)
    assert response.status_code == 200
    assert response.json()["data"]["subtasks"] == []

    response = client.delete(f"{url}/{subtask['id']}", headers=member_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Task or subtask not found"


def test_read_and_delete_task(client: TestClient, project, manager_headers, member_headers):
    task = create(client, manager_headers, project.id)

    assert client.get(f"{API}/{task['id']}", headers=member_headers).json()["data"]["id"] == task["id"]
    assert client.delete(f"{API}/{task['id']}", headers=member_headers).status_code == 403

    response = client.delete(f"{API}/{task['id']}", headers=manager_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Task deleted successfully"

    response = client.get(f"{API}/{task['id']}", headers=member_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Task not found"
