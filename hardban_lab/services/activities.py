import logging

from sqlalchemy.orm import Session, joinedload

from hardban_lab import repositories
from hardban_lab.models import ActivityDB

logger = logging.getLogger(__name__)


def record_activity(db: Session, type_: str, title: str, user=None, details: str = None, status: str = "success"):
    """Add an activity row to the current transaction; the caller commits."""
    activity = repositories.activities.create(
        db,
        commit=False,
        type=type_,
        title=title,
        details=details,
        status=status,
        user_id=user.id if user is not None else None,
    )
    logger.info(f"Activity {type_}: {title}")
    return activity


def serialize_activity(activity: ActivityDB) -> dict:
    user = activity.user
    return {
        "id": activity.id,
        "type": activity.type,
        "title": activity.title,
        "details": activity.details,
        "status": activity.status,
        "user": (user.display_name or user.username) if user else None,
        "created_at": activity.created_at,
    }


def list_recent(db: Session, limit: int = 6):
    rows = (
        repositories.activities.query(db)
        .options(joinedload(ActivityDB.user))
        .order_by(ActivityDB.created_at.desc(), ActivityDB.id.desc())
        .limit(limit)
        .all()
    )
    return [serialize_activity(row) for row in rows]
