import logging
import re
from datetime import date, datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session

from hardban_lab import repositories, storage
from hardban_lab.exceptions import ConflictError, NotFoundError, ValidationFailed
from hardban_lab.models import DistributionReleaseDB, ReleaseDB, RoyaltySplitDB, TrackDB
from hardban_lab.repositories import paginate
from hardban_lab.schemas import CloneRequest, ReleaseCreate, ReleaseUpdate
from hardban_lab.services.activities import record_activity
from hardban_lab.services.artists import require_artist
from hardban_lab.services.catalog import require_release, serialize_release
from hardban_lab.services.splits import splits_payload, splits_total
from hardban_lab.services.tracks import serialize_track

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "created_at": ReleaseDB.created_at,
    "release_date": ReleaseDB.release_date,
    "title": ReleaseDB.title,
}
# changing any of these means the stores need a fresh delivery
CRITICAL_FIELDS = ("title", "genre", "cover_url", "audio_url")
MAX_TRACKS = {"single": 3, "ep": 8}
MIN_TRACKS_WARNING = {"ep": 3, "album": 7}
UPC_PATTERN = re.compile(r"^\d{12,13}$")


def _check_upc(db: Session, upc, release_id=None):
    if upc is None:
        return None
    upc = upc.strip()
    if not upc:
        return None
    if not UPC_PATTERN.match(upc):
        raise ValidationFailed("UPC must be 12 or 13 digits")
    query = db.query(ReleaseDB).filter(ReleaseDB.upc == upc)
    if release_id is not None:
        query = query.filter(ReleaseDB.id != release_id)
    if query.first():
        raise ConflictError("UPC code is already in use")
    return upc


def readiness_check(release, tracks, splits):
    """Return (errors, warnings) for delivering a release; no errors means ready."""
    errors = []
    warnings = []

    for field in ("title", "genre", "release_date", "cover_url"):
        if not getattr(release, field):
            errors.append(f"{field.replace('_', ' ').capitalize()} is required")

    count = len(tracks)
    if count == 0:
        errors.append("Release must have at least one track")

    limit = MAX_TRACKS.get(release.release_type)
    if limit is not None and count > limit:
        errors.append(f"A {release.release_type} can have at most {limit} tracks")

    minimum = MIN_TRACKS_WARNING.get(release.release_type)
    if minimum is not None and 0 < count < minimum:
        warnings.append(f"An {release.release_type} usually has at least {minimum} tracks")

    missing_isrc = [t.title for t in tracks if not t.isrc]
    if missing_isrc:
        errors.append(f"Tracks missing ISRC: {', '.join(missing_isrc)}")

    total = splits_total(splits)
    if total > 100:
        errors.append(f"Royalty splits total {total}% which exceeds 100%")

    return errors, warnings


def list_releases(db: Session, status=None, artist_id=None, q=None, page=1, limit=20,
                  sort_by="created_at", sort_order="desc"):
    query = repositories.releases.query(db)
    statuses = [s.strip() for s in (status or "").split(",") if s.strip()]
    if statuses:
        query = query.filter(ReleaseDB.status.in_(statuses))
    if artist_id is not None:
        query = query.filter(ReleaseDB.artist_id == artist_id)
    if q:
        query = query.filter(ReleaseDB.title.ilike(f"%{q}%"))

    column = SORT_COLUMNS.get(sort_by, ReleaseDB.created_at)
    query = query.order_by(column.asc() if sort_order == "asc" else column.desc(), ReleaseDB.id)
    items, pagination = paginate(query, page, limit)
    return [serialize_release(r) for r in items], pagination


def recent_releases(db: Session, limit: int = 10):
    rows = (
        repositories.releases.query(db)
        .order_by(ReleaseDB.created_at.desc(), ReleaseDB.id.desc())
        .limit(limit)
        .all()
    )
    return [serialize_release(r) for r in rows]


def upcoming_releases(db: Session, days: int = 30):
    today = date.today()
    rows = (
        repositories.releases.query(db)
        .filter(ReleaseDB.release_date >= today, ReleaseDB.release_date <= today + timedelta(days=days))
        .order_by(ReleaseDB.release_date.asc(), ReleaseDB.id)
        .all()
    )
    return [serialize_release(r) for r in rows]


def search_releases(db: Session, q: str):
    term = (q or "").strip()
    if len(term) < 2:
        raise ValidationFailed("Search query must be at least 2 characters")
    rows = (
        repositories.releases.query(db)
        .filter(or_(ReleaseDB.title.ilike(f"%{term}%"), ReleaseDB.genre.ilike(f"%{term}%")))
        .order_by(ReleaseDB.created_at.desc())
        .limit(50)
        .all()
    )
    return [serialize_release(r) for r in rows]


def get_release(db: Session, release_id: int) -> dict:
    data = repositories.releases.find_by_id(db, release_id)
    if data is None:
        raise NotFoundError("Release not found")

    release = serialize_release(data)
    artist = repositories.artists.find_by_id(db, data["artist_id"])
    tracks = db.query(TrackDB).filter(TrackDB.release_id == release_id).order_by(TrackDB.track_number).all()
    splits = db.query(RoyaltySplitDB).filter(RoyaltySplitDB.release_id == release_id).order_by(RoyaltySplitDB.id).all()

    release["artist_name"] = artist["name"] if artist else None
    release["tracks"] = [serialize_track(t) for t in tracks]
    payload = splits_payload(splits)
    release["splits"] = payload["splits"]
    release["label_share"] = payload["label_share"]
    return release


def create_release(db: Session, data: ReleaseCreate, user=None) -> dict:
    require_artist(db, data.artist_id)
    values = data.model_dump()
    values["upc"] = _check_upc(db, values.get("upc"))
    values["details"] = values["details"] or {}

    release = repositories.releases.create(db, commit=False, status="draft", **values)
    record_activity(db, "release_created", f"Release {release.title} created", user=user)
    db.commit()
    db.refresh(release)
    logger.info(f"Created release {release.title} (id={release.id}) for artist {release.artist_id}")
    return serialize_release(release)


def _reset_live_deliveries(db: Session, release_id: int) -> int:
    rows = (
        db.query(DistributionReleaseDB)
        .filter(DistributionReleaseDB.release_id == release_id, DistributionReleaseDB.status == "live")
        .all()
    )
    for row in rows:
        repositories.distributions.update(db, row, {"status": "pending", "live_at": None}, commit=False)
    return len(rows)


def apply_release_update(db: Session, release: ReleaseDB, values: dict) -> ReleaseDB:
    if "upc" in values:
        values["upc"] = _check_upc(db, values["upc"], release_id=release.id)

    changed = [f for f in CRITICAL_FIELDS if f in values and values[f] != getattr(release, f)]
    try:
        repositories.releases.update(db, release, values, commit=False)
        if changed:
            reset = _reset_live_deliveries(db, release.id)
            if reset:
                logger.info(f"Release {release.id} changed {changed}, {reset} live deliveries reset to pending")
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Failed to update release {release.id}", exc_info=True)
        raise
    db.refresh(release)
    return release


def update_release(db: Session, release_id: int, data: ReleaseUpdate) -> dict:
    release = require_release(db, release_id)
    values = data.model_dump(exclude_unset=True)
    if "details" in values and values["details"] is None:
        values["details"] = {}
    release = apply_release_update(db, release, values)
    logger.info(f"Updated release {release_id}: {sorted(values)}")
    return serialize_release(release)


def delete_release(db: Session, release_id: int) -> None:
    release = require_release(db, release_id)
    if release.status == "live":
        raise ConflictError("Cannot delete a live release. Please take it down first.")
    repositories.releases.delete(db, release)
    logger.info(f"Deleted release {release_id}")


def submit_release(db: Session, release_id: int, user=None) -> dict:
    release = require_release(db, release_id)
    if release.status not in ("draft", "rejected"):
        raise ConflictError("Only draft releases can be submitted for distribution")

    errors, warnings = readiness_check(release, list(release.tracks), list(release.splits))
    if errors:
        raise ValidationFailed("Release not ready for distribution", errors=errors)

    repositories.releases.update(db, release, {
        "status": "pending",
        "submitted_at": datetime.utcnow(),
        "rejection_reason": None,
    }, commit=False)
    record_activity(db, "release_submitted", f"Release {release.title} submitted for review", user=user)
    db.commit()
    db.refresh(release)
    logger.info(f"Release {release_id} submitted for review")
    result = serialize_release(release)
    result["warnings"] = warnings
    return result


def approve_release(db: Session, release_id: int, user) -> dict:
    release = require_release(db, release_id)
    if release.status != "pending":
        raise ConflictError("Only pending releases can be approved")
    repositories.releases.update(db, release, {
        "status": "approved",
        "reviewed_at": datetime.utcnow(),
        "reviewed_by": user.id,
    }, commit=False)
    record_activity(db, "release_approved", f"Release {release.title} approved", user=user)
    db.commit()
    db.refresh(release)
    logger.info(f"Release {release_id} approved by {user.username}")
    return serialize_release(release)


def reject_release(db: Session, release_id: int, reason, user) -> dict:
    release = require_release(db, release_id)
    if not reason or not reason.strip():
        raise ValidationFailed("Rejection reason is required")
    if release.status != "pending":
        raise ConflictError("Only pending releases can be rejected")
    repositories.releases.update(db, release, {
        "status": "rejected",
        "rejection_reason": reason.strip(),
        "reviewed_at": datetime.utcnow(),
        "reviewed_by": user.id,
    }, commit=False)
    record_activity(db, "release_rejected", f"Release {release.title} rejected", user=user, details=reason.strip())
    db.commit()
    db.refresh(release)
    logger.info(f"Release {release_id} rejected by {user.username}")
    return serialize_release(release)


def takedown_release(db: Session, release_id: int, user=None) -> dict:
    release = require_release(db, release_id)
    if release.status != "live":
        raise ConflictError("Only live releases can be taken down")
    try:
        repositories.releases.update(db, release, {"status": "taken_down"}, commit=False)
        for row in list(release.distributions):
            repositories.distributions.update(db, row, {"status": "taken_down"}, commit=False)
        record_activity(db, "release_taken_down", f"Release {release.title} taken down", user=user)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Failed to take down release {release_id}", exc_info=True)
        raise
    db.refresh(release)
    logger.info(f"Release {release_id} taken down")
    return serialize_release(release)


def clone_release(db: Session, release_id: int, overrides: CloneRequest, user=None) -> dict:
    source = require_release(db, release_id)
    changes = overrides.model_dump(exclude_unset=True) if overrides else {}
    try:
        clone = repositories.releases.create(
            db,
            commit=False,
            artist_id=source.artist_id,
            title=changes.get("title") or f"{source.title} (Copy)",
            release_type=changes.get("release_type") or source.release_type,
            genre=source.genre,
            label=source.label,
            cover_url=source.cover_url,
            audio_url=source.audio_url,
            release_date=changes.get("release_date", source.release_date),
            details=dict(source.details or {}),
            status="draft",
        )
        for track in source.tracks:
            repositories.tracks.create(
                db,
                commit=False,
                release_id=clone.id,
                title=track.title,
                track_number=track.track_number,
                duration_seconds=track.duration_seconds,
                explicit=track.explicit,
                audio_url=track.audio_url,
            )
        for split in source.splits:
            repositories.splits.create(
                db, commit=False, release_id=clone.id, name=split.name, role=split.role, percentage=split.percentage,
            )
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Failed to clone release {release_id}", exc_info=True)
        raise
    db.refresh(clone)
    logger.info(f"Cloned release {release_id} into {clone.id}")
    return get_release(db, clone.id)


def upload_release_file(db: Session, release_id: int, contents: bytes, filename: str, kind: str) -> dict:
    release = require_release(db, release_id)
    allowed = storage.IMAGE_EXTENSIONS if kind == "cover" else storage.AUDIO_EXTENSIONS
    url = storage.save_upload(contents, filename, f"releases/{release_id}", allowed)
    field = "cover_url" if kind == "cover" else "audio_url"
    release = apply_release_update(db, release, {field: url})
    return serialize_release(release)
