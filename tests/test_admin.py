"""Tests for admin user management."""

from __future__ import annotations


def test_non_admin_is_forbidden(client, user_headers, editor_headers):
    for headers in (user_headers, editor_headers):
        response = client.get("/api/admin/users", headers=headers)
        assert response.status_code == 403
        assert response.json()["message"] == "Insufficient permissions"


def test_list_users(client, admin_headers, plain_user):
    response = client.get("/api/admin/users", headers=admin_headers)

    assert response.status_code == 200
    usernames = [u["username"] for u in response.json()["users"]]
    assert usernames == ["admin", "member"]


def test_change_role(client, admin_headers, plain_user):
    response = client.put(f"/api/admin/users/{plain_user.id}", json={"role": "manager"}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "manager"


def test_invalid_role(client, admin_headers, plain_user):
    response = client.put(f"/api/admin/users/{plain_user.id}", json={"role": "owner"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid role")


def test_change_role_of_missing_user(client, admin_headers):
    response = client.put("/api/admin/users/999", json={"role": "editor"}, headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


def test_admin_cannot_delete_self(client, admin_headers, admin_user):
    response = client.delete(f"/api/admin/users/{admin_user.id}", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "You cannot delete your own account"


def test_delete_user_keeps_their_activity(client, admin_headers, plain_user, user_headers):
    client.post("/api/music/artists", json={"name": "Solo"}, headers=user_headers)

    response = client.delete(f"/api/admin/users/{plain_user.id}", headers=admin_headers)

    assert response.status_code == 200
    users = client.get("/api/admin/users", headers=admin_headers).json()["users"]
    assert [u["username"] for u in users] == ["admin"]
    activities = client.get("/api/activities/recent", headers=admin_headers).json()["activities"]
    assert activities[0]["type"] == "artist_created"
    assert activities[0]["user"] is None
