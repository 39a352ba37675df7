"""Tests for the artist catalogue."""

from __future__ import annotations


def create_artist(client, headers, **fields):
    payload = {"name": "Artist", **fields}
    response = client.post("/api/music/artists", json=payload, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["artist"]


def test_create_artist_defaults(client, user_headers):
    artist = create_artist(client, user_headers, name="Quiet Storm")

    assert artist["status"] == "active"
    assert artist["genres"] == []
    assert artist["social_links"] == {}
    assert artist["is_verified"] is False


def test_create_artist_validation(client, user_headers):
    response = client.post(
        "/api/music/artists",
        json={"name": "", "country": "pl", "genres": ["x" * 51]},
        headers=user_headers,
    )

    assert response.status_code == 400
    fields = {e.split(":")[0] for e in response.json()["errors"]}
    assert {"name", "country", "genres"} <= fields


def test_list_filters_and_pagination(client, user_headers):
    create_artist(client, user_headers, name="Alpha", genres=["Techno"])
    create_artist(client, user_headers, name="Beta", genres=["House", "techno"], status="inactive")
    create_artist(client, user_headers, name="Gamma", genres=["Ambient"])

    by_genre = client.get("/api/music/artists?genre=TECHNO&sort_by=name&sort_order=asc", headers=user_headers).json()
    assert [a["name"] for a in by_genre["items"]] == ["Alpha", "Beta"]

    active = client.get("/api/music/artists?status=active", headers=user_headers).json()
    assert {a["name"] for a in active["items"]} == {"Alpha", "Gamma"}

    page = client.get("/api/music/artists?limit=2&page=2&sort_by=name&sort_order=asc", headers=user_headers).json()
    assert [a["name"] for a in page["items"]] == ["Gamma"]
    assert page["pagination"] == {
        "page": 2, "limit": 2, "total": 3, "total_pages": 2, "has_next": False, "has_prev": True,
    }

    by_name = client.get("/api/music/artists?name=amm", headers=user_headers).json()
    assert [a["name"] for a in by_name["items"]] == ["Gamma"]


def test_get_artist_includes_stats(client, user_headers, ready_release):
    response = client.get(f"/api/music/artists/{ready_release['artist_id']}", headers=user_headers)

    assert response.status_code == 200
    assert response.json()["artist"]["stats"] == {
        "total_releases": 1,
        "total_tracks": 1,
        "total_streams": 0,
        "total_revenue": 0.0,
    }


def test_update_artist(client, user_headers, artist):
    response = client.put(
        f"/api/music/artists/{artist['id']}",
        json={"biography": "Berlin based.", "is_verified": True},
        headers=user_headers,
    )

    updated = response.json()["artist"]
    assert updated["biography"] == "Berlin based."
    assert updated["is_verified"] is True
    assert updated["name"] == "Nova Ray"


def test_update_artist_rejects_null_name(client, user_headers, artist):
    for body in ({"name": None}, {"is_verified": None, "status": None}):
        response = client.patch(f"/api/music/artists/{artist['id']}", json=body, headers=user_headers)
        assert response.status_code == 400, body
        assert any("cannot be null" in error for error in response.json()["errors"])

    fetched = client.get(f"/api/music/artists/{artist['id']}", headers=user_headers).json()["artist"]
    assert fetched["name"] == "Nova Ray"


def test_missing_artist(client, user_headers):
    for method in ("get", "delete"):
        response = getattr(client, method)("/api/music/artists/404", headers=user_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Artist not found"


def test_delete_artist_cascades_to_releases(client, user_headers, ready_release):
    response = client.delete(f"/api/music/artists/{ready_release['artist_id']}", headers=user_headers)

    assert response.status_code == 200
    listing = client.get("/api/music/releases", headers=user_headers).json()
    assert listing["items"] == []


def test_artist_releases(client, user_headers, release):
    url = f"/api/music/artists/{release['artist_id']}/releases"

    assert [r["id"] for r in client.get(url, headers=user_headers).json()["releases"]] == [release["id"]]
    assert client.get(f"{url}?status=live,approved", headers=user_headers).json()["releases"] == []
