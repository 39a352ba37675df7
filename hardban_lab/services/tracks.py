import logging
import re

from sqlalchemy import func
from sqlalchemy.orm import Session

from hardban_lab import repositories
from hardban_lab.exceptions import ConflictError, NotFoundError, ValidationFailed
from hardban_lab.models import TrackDB
from hardban_lab.schemas import TrackCreate, TrackUpdate
from hardban_lab.services.catalog import require_release

logger = logging.getLogger(__name__)

# CC-XXX-YY-NNNNN, dashes optional
ISRC_PATTERN = re.compile(r"^[A-Z]{2}-?[A-Z0-9]{3}-?\d{2}-?\d{5}$")


def normalize_isrc(value):
    if value is None:
        return None
    value = value.strip().upper()
    if not value:
        return None
    if not ISRC_PATTERN.match(value):
        raise ValidationFailed("Invalid ISRC format. Expected CC-XXX-YY-NNNNN")
    return value.replace("-", "")


def serialize_track(track: TrackDB) -> dict:
    return {
        "id": track.id,
        "release_id": track.release_id,
        "title": track.title,
        "track_number": track.track_number,
        "isrc": track.isrc,
        "duration_seconds": track.duration_seconds,
        "explicit": track.explicit,
        "audio_url": track.audio_url,
        "created_at": track.created_at,
    }


def _check_isrc_free(db: Session, isrc, track_id=None):
    if isrc is None:
        return
    query = db.query(TrackDB).filter(TrackDB.isrc == isrc)
    if track_id is not None:
        query = query.filter(TrackDB.id != track_id)
    if query.first():
        raise ConflictError("ISRC code is already in use")


def _check_number_free(db: Session, release_id: int, number: int, track_id=None):
    query = db.query(TrackDB).filter(TrackDB.release_id == release_id, TrackDB.track_number == number)
    if track_id is not None:
        query = query.filter(TrackDB.id != track_id)
    if query.first():
        raise ConflictError(f"Track number {number} already exists on this release")


def list_tracks(db: Session, release_id: int):
    require_release(db, release_id)
    rows = db.query(TrackDB).filter(TrackDB.release_id == release_id).order_by(TrackDB.track_number).all()
    return [serialize_track(t) for t in rows]


def create_track(db: Session, release_id: int, data: TrackCreate) -> dict:
    require_release(db, release_id)
    values = data.model_dump()
    values["isrc"] = normalize_isrc(values.get("isrc"))
    _check_isrc_free(db, values["isrc"])

    if values.get("track_number") is None:
        current = db.query(func.max(TrackDB.track_number)).filter(TrackDB.release_id == release_id).scalar()
        values["track_number"] = (current or 0) + 1
    else:
        _check_number_free(db, release_id, values["track_number"])

    track = repositories.tracks.create(db, release_id=release_id, **values)
    logger.info(f"Added track {track.track_number} '{track.title}' to release {release_id}")
    return serialize_track(track)


def require_track(db: Session, track_id: int) -> TrackDB:
    track = repositories.tracks.get(db, track_id)
    if not track:
        raise NotFoundError("Track not found")
    return track


def update_track(db: Session, track_id: int, data: TrackUpdate) -> dict:
    track = require_track(db, track_id)
    values = data.model_dump(exclude_unset=True)
    if "isrc" in values:
        values["isrc"] = normalize_isrc(values["isrc"])
        _check_isrc_free(db, values["isrc"], track_id=track.id)
    if "track_number" in values:
        _check_number_free(db, track.release_id, values["track_number"], track_id=track.id)

    track = repositories.tracks.update(db, track, values)
    logger.info(f"Updated track {track_id}: {sorted(values)}")
    return serialize_track(track)


def delete_track(db: Session, track_id: int) -> None:
    track = require_track(db, track_id)
    repositories.tracks.delete(db, track)
    logger.info(f"Deleted track {track_id}")
