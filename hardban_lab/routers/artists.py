from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hardban_lab.database import get_db
from hardban_lab.models import UserDB
from hardban_lab.schemas import ArtistCreate, ArtistUpdate
from hardban_lab.security import require_roles
from hardban_lab.services import artists

router = APIRouter(prefix="/api/music/artists", tags=["artists"], dependencies=[Depends(require_roles())])


@router.get("")
def list_artists(
    name: Optional[str] = None,
    status: Optional[Literal["active", "inactive"]] = None,
    genre: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: Literal["created_at", "name"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
):
    items, pagination = artists.list_artists(db, name, status, genre, page, limit, sort_by, sort_order)
    return {"success": True, "items": items, "pagination": pagination}


@router.post("", status_code=201)
def create_artist(data: ArtistCreate, db: Session = Depends(get_db), user: UserDB = Depends(require_roles())):
    return {"success": True, "artist": artists.create_artist(db, data, user)}


@router.get("/{artist_id}")
def get_artist(artist_id: int, db: Session = Depends(get_db)):
    return {"success": True, "artist": artists.get_artist(db, artist_id)}


@router.put("/{artist_id}")
@router.patch("/{artist_id}")
def update_artist(artist_id: int, data: ArtistUpdate, db: Session = Depends(get_db)):
    return {"success": True, "artist": artists.update_artist(db, artist_id, data)}


@router.delete("/{artist_id}")
def delete_artist(artist_id: int, db: Session = Depends(get_db)):
    artists.delete_artist(db, artist_id)
    return {"success": True, "message": "Artist deleted"}


@router.get("/{artist_id}/releases")
def artist_releases(artist_id: int, status: Optional[str] = None, db: Session = Depends(get_db)):
    return {"success": True, "releases": artists.artist_releases(db, artist_id, status)}
