"""Tests for release track management."""

from __future__ import annotations

import ast
import inspect

import pytest

from hardban_lab.services import artists, catalog, tracks


def tracks_url(release):
    return f"/api/music/releases/{release['id']}/tracks"


@pytest.mark.parametrize("module", [tracks, artists])
def test_release_helpers_are_imported_at_module_level(module):
    nested = [
        node.name
        for node in ast.walk(ast.parse(inspect.getsource(module)))
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))
        and any(isinstance(child, (ast.Import, ast.ImportFrom)) for child in ast.walk(node))
    ]
    assert nested == []
    assert tracks.require_release is catalog.require_release
    assert artists.serialize_release is catalog.serialize_release


def test_track_numbers_are_assigned_in_sequence(client, user_headers, release):
    first = client.post(tracks_url(release), json={"title": "Intro"}, headers=user_headers).json()["track"]
    second = client.post(tracks_url(release), json={"title": "Outro"}, headers=user_headers).json()["track"]

    assert (first["track_number"], second["track_number"]) == (1, 2)
    listed = client.get(tracks_url(release), headers=user_headers).json()["tracks"]
    assert [t["title"] for t in listed] == ["Intro", "Outro"]


def test_isrc_is_normalized(client, user_headers, release):
    track = client.post(
        tracks_url(release), json={"title": "Intro", "isrc": "pl-a12-24-00009"}, headers=user_headers,
    ).json()["track"]
    assert track["isrc"] == "PLA122400009"


def test_invalid_isrc(client, user_headers, release):
    response = client.post(tracks_url(release), json={"title": "Intro", "isrc": "PL-12"}, headers=user_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid ISRC format. Expected CC-XXX-YY-NNNNN"


def test_duplicate_isrc_across_releases(client, user_headers, ready_release, artist):
    other = client.post(
        "/api/music/releases", json={"artist_id": artist["id"], "title": "Other"}, headers=user_headers,
    ).json()["release"]

    response = client.post(
        tracks_url(other), json={"title": "Copy", "isrc": "PLA122400001"}, headers=user_headers,
    )
    assert response.status_code == 409
    assert response.json()["message"] == "ISRC code is already in use"


def test_duplicate_track_number(client, user_headers, ready_release):
    response = client.post(
        tracks_url(ready_release), json={"title": "Again", "track_number": 1}, headers=user_headers,
    )
    assert response.status_code == 409


def test_duration_bounds(client, user_headers, release):
    for duration in (0, 7201):
        response = client.post(
            tracks_url(release), json={"title": "Bad", "duration_seconds": duration}, headers=user_headers,
        )
        assert response.status_code == 400


def test_update_and_delete_track(client, user_headers, release):
    track = client.post(tracks_url(release), json={"title": "Demo"}, headers=user_headers).json()["track"]

    updated = client.patch(
        f"/api/music/tracks/{track['id']}",
        json={"title": "Final", "explicit": True, "track_number": 4},
        headers=user_headers,
    ).json()["track"]
    assert (updated["title"], updated["explicit"], updated["track_number"]) == ("Final", True, 4)

    assert client.delete(f"/api/music/tracks/{track['id']}", headers=user_headers).status_code == 200
    assert client.get(tracks_url(release), headers=user_headers).json()["tracks"] == []
    missing = client.delete(f"/api/music/tracks/{track['id']}", headers=user_headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Track not found"


def test_update_track_rejects_nulls(client, user_headers, release):
    track = client.post(tracks_url(release), json={"title": "Demo"}, headers=user_headers).json()["track"]

    for field in ("title", "track_number", "explicit"):
        response = client.patch(f"/api/music/tracks/{track['id']}", json={field: None}, headers=user_headers)
        assert response.status_code == 400, field
        assert any(f"{field} cannot be null" in error for error in response.json()["errors"])

    cleared = client.patch(f"/api/music/tracks/{track['id']}", json={"isrc": None}, headers=user_headers)
    assert cleared.status_code == 200
    assert cleared.json()["track"]["track_number"] == 1


def test_tracks_of_missing_release(client, user_headers):
    assert client.get("/api/music/releases/77/tracks", headers=user_headers).status_code == 404
