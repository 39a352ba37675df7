"""Tests for the TTL cache and repository cache coherence."""

from __future__ import annotations

from hardban_lab import repositories
from hardban_lab.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("releases:1", {"id": 1})

    clock.now += 9.9
    assert cache.get("releases:1") == {"id": 1}

    clock.now += 0.1
    assert cache.get("releases:1") is None
    assert len(cache) == 0


def test_clear_and_missing_keys():
    cache = TTLCache()
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.get("missing") is None
    cache.clear()
    assert len(cache) == 0


def test_find_by_id_serves_cached_copy(client, artist, db):
    """Reads are cached; mutating the returned dict does not poison the cache."""
    first = repositories.artists.find_by_id(db, artist["id"])
    first["name"] = "Changed locally"
    second = repositories.artists.find_by_id(db, artist["id"])
    assert second["name"] == "Nova Ray"
    assert len(repositories.artists.cache) == 1


def test_update_through_api_invalidates_cache(client, user_headers, artist):
    url = f"/api/music/artists/{artist['id']}"
    assert client.get(url, headers=user_headers).json()["artist"]["name"] == "Nova Ray"

    client.patch(url, json={"name": "Nova Ray II"}, headers=user_headers)

    assert client.get(url, headers=user_headers).json()["artist"]["name"] == "Nova Ray II"


def test_delete_clears_every_repository_cache(client, user_headers, release):
    client.get(f"/api/music/releases/{release['id']}", headers=user_headers)
    assert len(repositories.releases.cache) == 1

    client.delete(f"/api/music/artists/{release['artist_id']}", headers=user_headers)

    assert len(repositories.releases.cache) == 0
    response = client.get(f"/api/music/releases/{release['id']}", headers=user_headers)
    assert response.status_code == 404
