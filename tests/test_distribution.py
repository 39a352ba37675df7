"""Tests for delivering releases to distribution channels."""

from __future__ import annotations

import pytest

from hardban_lab.services.distribution import overall_status


@pytest.mark.parametrize(
    "statuses, expected",
    [
        ([], "not_distributed"),
        (["live", "live"], "live"),
        (["live", "pending"], "partially_live"),
        (["failed", "failed"], "failed"),
        (["pending", "failed"], "in_progress"),
    ],
)
def test_overall_status(statuses, expected):
    assert overall_status(statuses) == expected


def test_channels_are_seeded(client, user_headers):
    channels = client.get("/api/music/distribution/channels", headers=user_headers).json()["channels"]
    assert len(channels) == 10
    assert channels[0]["name"] == "Amazon Music"
    assert {c["status"] for c in channels} == {"active"}


def test_draft_cannot_be_distributed(client, user_headers, release):
    response = client.post(f"/api/music/distribution/releases/{release['id']}", headers=user_headers)
    assert response.status_code == 409
    assert response.json()["message"] == "Only approved or live releases can be distributed"


def test_distribute_to_all_active_channels_once(client, user_headers, approved_release):
    url = f"/api/music/distribution/releases/{approved_release['id']}"

    first = client.post(url, headers=user_headers)
    assert first.status_code == 201
    assert first.json()["created"] == 10
    assert {e["status"] for e in first.json()["entries"]} == {"pending"}

    again = client.post(url, headers=user_headers).json()
    assert again["created"] == 0

    status = client.get(f"{url}/status", headers=user_headers).json()
    assert status["total"] == 10
    assert status["overall"] == "in_progress"
    assert status["release_status"] == "approved"


def test_distribute_to_selected_channels(client, user_headers, approved_release):
    url = f"/api/music/distribution/releases/{approved_release['id']}"

    missing = client.post(url, json={"channel_ids": [1, 999]}, headers=user_headers)
    assert missing.status_code == 404

    body = client.post(url, json={"channel_ids": [1, 2]}, headers=user_headers).json()
    assert sorted(e["channel_id"] for e in body["entries"]) == [1, 2]


def test_delivery_transitions(client, user_headers, approved_release):
    release_url = f"/api/music/releases/{approved_release['id']}"
    entries = client.post(
        f"/api/music/distribution/releases/{approved_release['id']}",
        json={"channel_ids": [1, 2]},
        headers=user_headers,
    ).json()["entries"]
    entry_url = f"/api/music/distribution/entries/{entries[0]['id']}"

    skipped = client.patch(entry_url, json={"status": "live"}, headers=user_headers)
    assert skipped.status_code == 409
    assert skipped.json()["message"] == "Cannot move from pending to live"

    bogus = client.patch(entry_url, json={"status": "shipped"}, headers=user_headers)
    assert bogus.status_code == 400

    client.patch(entry_url, json={"status": "processing"}, headers=user_headers)
    live = client.patch(
        entry_url, json={"status": "live", "platform_url": "https://open.spotify.com/album/x"}, headers=user_headers,
    ).json()["entry"]
    assert live["status"] == "live"
    assert live["live_at"] is not None
    assert live["platform_url"] == "https://open.spotify.com/album/x"

    assert client.get(release_url, headers=user_headers).json()["release"]["status"] == "live"
    status = client.get(f"{release_url}/distribution-status", headers=user_headers).json()
    assert status["overall"] == "partially_live"
    assert status["by_status"] == {"live": 1, "pending": 1}


def test_failed_delivery_can_be_retried(client, user_headers, approved_release):
    entry = client.post(
        f"/api/music/distribution/releases/{approved_release['id']}",
        json={"channel_ids": [3]},
        headers=user_headers,
    ).json()["entries"][0]
    url = f"/api/music/distribution/entries/{entry['id']}"

    failed = client.patch(url, json={"status": "failed", "error_message": "Artwork rejected"}, headers=user_headers)
    assert failed.json()["entry"]["error_message"] == "Artwork rejected"
    assert client.patch(url, json={"status": "pending"}, headers=user_headers).json()["entry"]["status"] == "pending"


def test_missing_entry(client, user_headers):
    response = client.patch("/api/music/distribution/entries/999", json={"status": "live"}, headers=user_headers)
    assert response.status_code == 404
