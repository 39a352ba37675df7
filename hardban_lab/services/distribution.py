import logging
from collections import Counter
from datetime import datetime

from sqlalchemy.orm import Session, joinedload

from hardban_lab import repositories
from hardban_lab.exceptions import ConflictError, NotFoundError, ValidationFailed
from hardban_lab.models import DELIVERY_STATUSES, DistributionChannelDB, DistributionReleaseDB
from hardban_lab.services.activities import record_activity
from hardban_lab.services.releases import require_release

logger = logging.getLogger(__name__)

# shared by music channels and publishing stores
DELIVERY_TRANSITIONS = {
    "pending": ("processing", "failed"),
    "processing": ("live", "failed"),
    "failed": ("pending",),
    "live": ("taken_down",),
    "taken_down": ("pending",),
}


def check_delivery_transition(current: str, target: str) -> None:
    if target not in DELIVERY_STATUSES:
        raise ValidationFailed(f"Invalid status. Allowed: {', '.join(DELIVERY_STATUSES)}")
    if target not in DELIVERY_TRANSITIONS.get(current, ()):
        raise ConflictError(f"Cannot move from {current} to {target}")


def overall_status(statuses) -> str:
    statuses = list(statuses)
    if not statuses:
        return "not_distributed"
    if all(s == "live" for s in statuses):
        return "live"
    if any(s == "live" for s in statuses):
        return "partially_live"
    if all(s == "failed" for s in statuses):
        return "failed"
    return "in_progress"


def serialize_channel(channel: DistributionChannelDB) -> dict:
    return {
        "id": channel.id,
        "name": channel.name,
        "category": channel.category,
        "status": channel.status,
        "integration_enabled": channel.integration_enabled,
    }


def serialize_entry(entry: DistributionReleaseDB) -> dict:
    return {
        "id": entry.id,
        "release_id": entry.release_id,
        "channel_id": entry.channel_id,
        "channel": entry.channel.name if entry.channel else None,
        "status": entry.status,
        "platform_url": entry.platform_url,
        "error_message": entry.error_message,
        "submitted_at": entry.submitted_at,
        "live_at": entry.live_at,
        "updated_at": entry.updated_at,
    }


def list_channels(db: Session, status: str = None):
    query = repositories.channels.query(db)
    if status:
        query = query.filter(DistributionChannelDB.status == status)
    return [serialize_channel(c) for c in query.order_by(DistributionChannelDB.name).all()]


def submit_to_channels(db: Session, release_id: int, channel_ids=None, user=None):
    release = require_release(db, release_id)
    if release.status not in ("approved", "live"):
        raise ConflictError("Only approved or live releases can be distributed")

    query = repositories.channels.query(db)
    if channel_ids:
        channels = query.filter(DistributionChannelDB.id.in_(channel_ids)).all()
        missing = set(channel_ids) - {c.id for c in channels}
        if missing:
            raise NotFoundError(f"Distribution channels not found: {sorted(missing)}")
    else:
        channels = query.filter(DistributionChannelDB.status == "active").all()

    existing = {
        row.channel_id
        for row in db.query(DistributionReleaseDB).filter(DistributionReleaseDB.release_id == release_id).all()
    }
    created = []
    try:
        for channel in channels:
            if channel.id in existing:
                continue
            created.append(repositories.distributions.create(
                db, commit=False, release_id=release_id, channel_id=channel.id, status="pending",
            ))
        if created:
            record_activity(db, "release_distributed",
                            f"Release {release.title} sent to {len(created)} channels", user=user)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Failed to queue distribution for release {release_id}", exc_info=True)
        raise

    for row in created:
        db.refresh(row)
    logger.info(f"Queued release {release_id} on {len(created)} channels, skipped {len(channels) - len(created)}")
    return [serialize_entry(row) for row in created]


def update_entry(db: Session, entry_id: int, status: str, platform_url=None, error_message=None) -> dict:
    entry = repositories.distributions.get(db, entry_id)
    if not entry:
        raise NotFoundError("Distribution entry not found")
    check_delivery_transition(entry.status, status)

    values = {"status": status}
    if platform_url is not None:
        values["platform_url"] = platform_url
    if error_message is not None:
        values["error_message"] = error_message
    if status == "live":
        values["live_at"] = datetime.utcnow()
        values["error_message"] = None

    try:
        repositories.distributions.update(db, entry, values, commit=False)
        release = entry.release
        if status == "live" and release.status == "approved":
            repositories.releases.update(db, release, {"status": "live"}, commit=False)
            logger.info(f"Release {release.id} is now live")
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Failed to update distribution entry {entry_id}", exc_info=True)
        raise
    db.refresh(entry)
    return serialize_entry(entry)


def release_status(db: Session, release_id: int) -> dict:
    release = require_release(db, release_id)
    entries = (
        db.query(DistributionReleaseDB)
        .options(joinedload(DistributionReleaseDB.channel))
        .filter(DistributionReleaseDB.release_id == release_id)
        .order_by(DistributionReleaseDB.id)
        .all()
    )
    statuses = [e.status for e in entries]
    return {
        "release_id": release.id,
        "release_status": release.status,
        "total": len(entries),
        "by_status": dict(Counter(statuses)),
        "overall": overall_status(statuses),
        "entries": [serialize_entry(e) for e in entries],
    }
