"""Shared fixtures: in-memory SQLite app client, seeded platforms and role tokens."""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import bcrypt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hardban_lab.config import settings
from hardban_lab.database import Base, get_db, make_engine
from hardban_lab.main import app
from hardban_lab.models import UserDB
from hardban_lab.ratelimit import limiter
from hardban_lab.repositories import clear_all_caches
from hardban_lab.security import create_access_token
from hardban_lab.seed import seed_platforms

TEST_PASSWORD = "s3cret-pass"


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory, db, tmp_path, monkeypatch):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))
    seed_platforms(db)
    clear_all_caches()
    limiter.reset()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    clear_all_caches()


def make_user(db, username: str, role: str) -> UserDB:
    user = UserDB(
        username=username,
        display_name=username.title(),
        password_hash=bcrypt.hashpw(TEST_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode(),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def bearer(user: UserDB) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def admin_user(db):
    return make_user(db, "admin", "admin")


@pytest.fixture
def editor_user(db):
    return make_user(db, "editor", "editor")


@pytest.fixture
def plain_user(db):
    return make_user(db, "member", "user")


@pytest.fixture
def admin_headers(admin_user):
    return bearer(admin_user)


@pytest.fixture
def editor_headers(editor_user):
    return bearer(editor_user)


@pytest.fixture
def user_headers(plain_user):
    return bearer(plain_user)


@pytest.fixture
def artist(client, user_headers):
    response = client.post(
        "/api/music/artists",
        json={"name": "Nova Ray", "stage_name": "NOVA", "genres": ["Electronic"], "country": "PL"},
        headers=user_headers,
    )
    assert response.status_code == 201
    return response.json()["artist"]


@pytest.fixture
def release(client, user_headers, artist):
    response = client.post(
        "/api/music/releases",
        json={
            "artist_id": artist["id"],
            "title": "Night Drive",
            "release_type": "single",
            "genre": "Electronic",
            "release_date": "2030-05-01",
            "cover_url": "http://localhost:8000/uploads/cover.png",
        },
        headers=user_headers,
    )
    assert response.status_code == 201
    return response.json()["release"]


@pytest.fixture
def ready_release(client, user_headers, release):
    """A single with one ISRC-coded track, ready to be submitted."""
    response = client.post(
        f"/api/music/releases/{release['id']}/tracks",
        json={"title": "Night Drive", "isrc": "PL-A12-24-00001", "duration_seconds": 201},
        headers=user_headers,
    )
    assert response.status_code == 201
    return release


@pytest.fixture
def approved_release(client, user_headers, editor_headers, ready_release):
    release_id = ready_release["id"]
    assert client.post(f"/api/music/releases/{release_id}/submit", headers=user_headers).status_code == 200
    assert client.post(f"/api/music/releases/{release_id}/approve", headers=editor_headers).status_code == 200
    return ready_release


@pytest.fixture
def author(client, user_headers):
    response = client.post(
        "/api/publishing/authors",
        json={"name": "Ada Quill", "bio": "Writes about sound."},
        headers=user_headers,
    )
    assert response.status_code == 201
    return response.json()["author"]


@pytest.fixture
def user_password():
    return TEST_PASSWORD
