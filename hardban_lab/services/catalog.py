"""Release lookups shared by the artist, track and release services."""
from sqlalchemy.orm import Session

from hardban_lab import repositories
from hardban_lab.exceptions import NotFoundError
from hardban_lab.models import ReleaseDB
from hardban_lab.repositories import row_to_dict


def serialize_release(release) -> dict:
    data = release if isinstance(release, dict) else row_to_dict(release)
    return {
        "id": data["id"],
        "artist_id": data["artist_id"],
        "title": data["title"],
        "release_type": data["release_type"],
        "genre": data["genre"],
        "label": data["label"],
        "upc": data["upc"],
        "cover_url": data["cover_url"],
        "audio_url": data["audio_url"],
        "release_date": data["release_date"],
        "status": data["status"],
        "rejection_reason": data["rejection_reason"],
        "submitted_at": data["submitted_at"],
        "reviewed_at": data["reviewed_at"],
        "reviewed_by": data["reviewed_by"],
        "streams": int(data["streams"] or 0),
        "revenue": float(data["revenue"] or 0),
        "details": data["details"] or {},
        "created_at": data["created_at"],
        "updated_at": data["updated_at"],
    }


def require_release(db: Session, release_id: int) -> ReleaseDB:
    release = repositories.releases.get(db, release_id)
    if not release:
        raise NotFoundError("Release not found")
    return release

