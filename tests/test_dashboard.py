"""Tests for dashboard figures and the activity feed."""

from __future__ import annotations


def test_stats_on_empty_label(client, user_headers):
    stats = client.get("/api/dashboard/stats", headers=user_headers).json()["stats"]

    assert stats == {
        "active_artists": 0,
        "total_releases": 0,
        "published_books": 0,
        "total_revenue": 0.0,
        "total_revenue_formatted": "$0.00",
        "music_platforms": 10,
        "publishing_platforms": 10,
    }


def test_stats_count_live_releases_and_revenue(client, user_headers, approved_release):
    release_id = approved_release["id"]
    entry = client.post(
        f"/api/music/distribution/releases/{release_id}", json={"channel_ids": [1]}, headers=user_headers,
    ).json()["entries"][0]
    for status in ("processing", "live"):
        client.patch(f"/api/music/distribution/entries/{entry['id']}", json={"status": status}, headers=user_headers)
    client.post(
        "/api/music/royalties/import",
        files=[("files", ("s.csv", b"ISRC,Streams,Net\nPLA122400001,10,1234.5\n", "text/csv"))],
        data={"platform": "Tidal", "period_start": "2024-01-01", "period_end": "2024-01-31"},
        headers=user_headers,
    )

    stats = client.get("/api/dashboard/stats", headers=user_headers).json()["stats"]

    assert stats["active_artists"] == 1
    assert stats["total_releases"] == 1
    assert stats["total_revenue"] == 1234.5
    assert stats["total_revenue_formatted"] == "$1,234.50"


def test_recent_activity_feed(client, user_headers, approved_release):
    activities = client.get("/api/activities/recent", headers=user_headers).json()["activities"]

    assert [a["type"] for a in activities] == [
        "release_approved", "release_submitted", "release_created", "artist_created",
    ]
    assert activities[0]["user"] == "Editor"
    assert activities[-1]["user"] == "Member"
    assert {a["status"] for a in activities} == {"success"}


def test_activity_limit(client, user_headers, approved_release):
    activities = client.get("/api/activities/recent?limit=2", headers=user_headers).json()["activities"]
    assert len(activities) == 2
    assert client.get("/api/activities/recent?limit=0", headers=user_headers).status_code == 400
