import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from hardban_lab import repositories
from hardban_lab.exceptions import NotFoundError
from hardban_lab.models import ArtistDB, ReleaseDB, TrackDB
from hardban_lab.repositories import paginate
from hardban_lab.schemas import ArtistCreate, ArtistUpdate
from hardban_lab.services.activities import record_activity
from hardban_lab.services.catalog import serialize_release

logger = logging.getLogger(__name__)

SORT_COLUMNS = {"created_at": ArtistDB.created_at, "name": ArtistDB.name}


def serialize_artist(data: dict) -> dict:
    return {
        "id": data["id"],
        "name": data["name"],
        "stage_name": data["stage_name"],
        "biography": data["biography"],
        "genres": data["genres"] or [],
        "country": data["country"],
        "profile_image": data["profile_image"],
        "social_links": data["social_links"] or {},
        "contact_email": data["contact_email"],
        "status": data["status"],
        "is_verified": data["is_verified"],
        "created_at": data["created_at"],
        "updated_at": data["updated_at"],
    }


def artist_stats(db: Session, artist_id: int) -> dict:
    releases = db.query(
        func.count(ReleaseDB.id),
        func.coalesce(func.sum(ReleaseDB.streams), 0),
        func.coalesce(func.sum(ReleaseDB.revenue), 0),
    ).filter(ReleaseDB.artist_id == artist_id).one()
    total_tracks = (
        db.query(func.count(TrackDB.id))
        .join(ReleaseDB, TrackDB.release_id == ReleaseDB.id)
        .filter(ReleaseDB.artist_id == artist_id)
        .scalar()
    )
    return {
        "total_releases": releases[0],
        "total_tracks": total_tracks or 0,
        "total_streams": int(releases[1] or 0),
        "total_revenue": float(releases[2] or 0),
    }


def require_artist(db: Session, artist_id: int) -> ArtistDB:
    artist = repositories.artists.get(db, artist_id)
    if not artist:
        raise NotFoundError("Artist not found")
    return artist


def list_artists(db: Session, name=None, status=None, genre=None, page=1, limit=20,
                 sort_by="created_at", sort_order="desc"):
    query = repositories.artists.query(db)
    if name:
        query = query.filter(ArtistDB.name.ilike(f"%{name}%"))
    if status:
        query = query.filter(ArtistDB.status == status)

    column = SORT_COLUMNS.get(sort_by, ArtistDB.created_at)
    query = query.order_by(column.asc() if sort_order == "asc" else column.desc(), ArtistDB.id)

    if genre:
        # genres live in a JSON array, so filter in Python before paging
        wanted = genre.lower()
        matching_ids = [
            a.id for a in query.all() if any(g.lower() == wanted for g in (a.genres or []))
        ]
        query = query.filter(ArtistDB.id.in_(matching_ids))

    items, pagination = paginate(query, page, limit)
    return [serialize_artist(repositories.row_to_dict(a)) for a in items], pagination


def get_artist(db: Session, artist_id: int) -> dict:
    data = repositories.artists.find_by_id(db, artist_id)
    if data is None:
        raise NotFoundError("Artist not found")
    artist = serialize_artist(data)
    artist["stats"] = artist_stats(db, artist_id)
    return artist


def create_artist(db: Session, data: ArtistCreate, user=None) -> dict:
    values = data.model_dump()
    values["genres"] = values["genres"] or []
    values["social_links"] = values["social_links"] or {}
    artist = repositories.artists.create(db, commit=False, **values)
    record_activity(db, "artist_created", f"Artist {artist.name} added", user=user)
    db.commit()
    db.refresh(artist)
    logger.info(f"Created artist {artist.name} (id={artist.id})")
    return serialize_artist(repositories.row_to_dict(artist))


def update_artist(db: Session, artist_id: int, data: ArtistUpdate) -> dict:
    artist = require_artist(db, artist_id)
    values = data.model_dump(exclude_unset=True)
    artist = repositories.artists.update(db, artist, values)
    logger.info(f"Updated artist {artist_id}: {sorted(values)}")
    return serialize_artist(repositories.row_to_dict(artist))


def delete_artist(db: Session, artist_id: int) -> None:
    artist = require_artist(db, artist_id)
    repositories.artists.delete(db, artist)
    logger.info(f"Deleted artist {artist_id} with its releases")


def artist_releases(db: Session, artist_id: int, status: str = None):
    require_artist(db, artist_id)
    query = db.query(ReleaseDB).filter(ReleaseDB.artist_id == artist_id)
    statuses = [s.strip() for s in (status or "").split(",") if s.strip()]
    if statuses:
        query = query.filter(ReleaseDB.status.in_(statuses))
    return [serialize_release(r) for r in query.order_by(ReleaseDB.created_at.desc(), ReleaseDB.id.desc()).all()]
