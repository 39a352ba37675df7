"""Tests for the per-module task lists."""

from __future__ import annotations

import pytest


@pytest.mark.parametrize("module", ["music", "publishing"])
def test_task_crud(client, user_headers, module):
    url = f"/api/{module}/tasks"
    assert client.get(url, headers=user_headers).json() == []

    created = client.post(url, json={"text": "  Send masters  ", "due_date": "2024-05-01"}, headers=user_headers)
    assert created.status_code == 201
    task = created.json()
    assert task == {"id": task["id"], "text": "Send masters", "completed": False, "due_date": "2024-05-01"}

    done = client.patch(f"{url}/{task['id']}", json={"completed": True}, headers=user_headers).json()
    assert done["completed"] is True

    assert client.delete(f"{url}/{task['id']}", headers=user_headers).status_code == 200
    assert client.get(url, headers=user_headers).json() == []


def test_open_tasks_come_first(client, user_headers):
    url = "/api/music/tasks"
    first = client.post(url, json={"text": "Book studio"}, headers=user_headers).json()
    client.post(url, json={"text": "Mix single", "due_date": "2024-02-01"}, headers=user_headers)
    client.patch(f"{url}/{first['id']}", json={"completed": True}, headers=user_headers)

    tasks = client.get(url, headers=user_headers).json()

    assert [t["text"] for t in tasks] == ["Mix single", "Book studio"]
    assert tasks[1]["due_date"] == ""


def test_blank_text_is_rejected(client, user_headers):
    response = client.post("/api/music/tasks", json={"text": "   "}, headers=user_headers)
    assert response.status_code == 400


def test_modules_are_separate(client, user_headers):
    task = client.post("/api/music/tasks", json={"text": "Music only"}, headers=user_headers).json()

    assert client.get("/api/publishing/tasks", headers=user_headers).json() == []
    response = client.patch(f"/api/publishing/tasks/{task['id']}", json={"completed": True}, headers=user_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Task not found"
