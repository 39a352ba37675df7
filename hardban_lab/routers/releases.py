from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from sqlalchemy.orm import Session

from hardban_lab.database import get_db
from hardban_lab.models import UserDB
from hardban_lab.ratelimit import limiter, upload_limit
from hardban_lab.schemas import (
    CloneRequest,
    RejectRequest,
    ReleaseCreate,
    ReleaseUpdate,
    SplitsReplace,
    TrackCreate,
    TrackUpdate,
)
from hardban_lab.security import EDITOR_ROLES, require_roles
from hardban_lab.services import distribution, releases, splits, tracks
from hardban_lab.services.releases import require_release

router = APIRouter(prefix="/api/music", tags=["releases"], dependencies=[Depends(require_roles())])


@router.get("/releases")
def list_releases(
    status: Optional[str] = None,
    artist_id: Optional[int] = None,
    q: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: Literal["created_at", "release_date", "title"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
):
    items, pagination = releases.list_releases(db, status, artist_id, q, page, limit, sort_by, sort_order)
    return {"success": True, "items": items, "pagination": pagination}


@router.get("/releases/recent")
def recent_releases(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    return {"success": True, "releases": releases.recent_releases(db, limit)}


@router.get("/releases/upcoming")
def upcoming_releases(days: int = Query(30, ge=0, le=3650), db: Session = Depends(get_db)):
    return {"success": True, "releases": releases.upcoming_releases(db, days)}


@router.get("/releases/search")
def search_releases(q: Optional[str] = None, db: Session = Depends(get_db)):
    return {"success": True, "releases": releases.search_releases(db, q)}


@router.post("/releases", status_code=201)
def create_release(data: ReleaseCreate, db: Session = Depends(get_db), user: UserDB = Depends(require_roles())):
    return {"success": True, "release": releases.create_release(db, data, user)}


@router.get("/releases/{release_id}")
def get_release(release_id: int, db: Session = Depends(get_db)):
    return {"success": True, "release": releases.get_release(db, release_id)}


@router.put("/releases/{release_id}")
@router.patch("/releases/{release_id}")
def update_release(release_id: int, data: ReleaseUpdate, db: Session = Depends(get_db)):
    return {"success": True, "release": releases.update_release(db, release_id, data)}


@router.delete("/releases/{release_id}")
def delete_release(release_id: int, db: Session = Depends(get_db), _: UserDB = Depends(require_roles("admin"))):
    releases.delete_release(db, release_id)
    return {"success": True, "message": "Release deleted"}


# workflow

@router.post("/releases/{release_id}/submit")
def submit_release(release_id: int, db: Session = Depends(get_db), user: UserDB = Depends(require_roles())):
    return {"success": True, "release": releases.submit_release(db, release_id, user)}


@router.post("/releases/{release_id}/approve")
def approve_release(release_id: int, db: Session = Depends(get_db),
                    user: UserDB = Depends(require_roles(*EDITOR_ROLES))):
    return {"success": True, "release": releases.approve_release(db, release_id, user)}


@router.post("/releases/{release_id}/reject")
def reject_release(release_id: int, data: Optional[RejectRequest] = None,
                   db: Session = Depends(get_db), user: UserDB = Depends(require_roles(*EDITOR_ROLES))):
    return {"success": True, "release": releases.reject_release(db, release_id, data.reason if data else None, user)}


@router.post("/releases/{release_id}/takedown")
def takedown_release(release_id: int, db: Session = Depends(get_db), user: UserDB = Depends(require_roles())):
    return {"success": True, "release": releases.takedown_release(db, release_id, user)}


@router.post("/releases/{release_id}/clone", status_code=201)
def clone_release(release_id: int, data: Optional[CloneRequest] = None,
                  db: Session = Depends(get_db), user: UserDB = Depends(require_roles())):
    return {"success": True, "release": releases.clone_release(db, release_id, data, user)}


@router.get("/releases/{release_id}/distribution-status")
def distribution_status(release_id: int, db: Session = Depends(get_db)):
    return {"success": True, **distribution.release_status(db, release_id)}


# uploads

@router.post("/releases/{release_id}/cover")
@limiter.limit(upload_limit)
async def upload_cover(
    request: Request, release_id: int, file: UploadFile = File(...), db: Session = Depends(get_db)
):
    contents = await file.read()
    return {"success": True, "release": releases.upload_release_file(db, release_id, contents, file.filename, "cover")}


@router.post("/releases/{release_id}/audio")
@limiter.limit(upload_limit)
async def upload_audio(
    request: Request, release_id: int, file: UploadFile = File(...), db: Session = Depends(get_db)
):
    contents = await file.read()
    return {"success": True, "release": releases.upload_release_file(db, release_id, contents, file.filename, "audio")}


# tracks

@router.get("/releases/{release_id}/tracks")
def list_tracks(release_id: int, db: Session = Depends(get_db)):
    return {"success": True, "tracks": tracks.list_tracks(db, release_id)}


@router.post("/releases/{release_id}/tracks", status_code=201)
def create_track(release_id: int, data: TrackCreate, db: Session = Depends(get_db)):
    return {"success": True, "track": tracks.create_track(db, release_id, data)}


@router.put("/tracks/{track_id}")
@router.patch("/tracks/{track_id}")
def update_track(track_id: int, data: TrackUpdate, db: Session = Depends(get_db)):
    return {"success": True, "track": tracks.update_track(db, track_id, data)}


@router.delete("/tracks/{track_id}")
def delete_track(track_id: int, db: Session = Depends(get_db)):
    tracks.delete_track(db, track_id)
    return {"success": True, "message": "Track deleted"}


# royalty splits

@router.get("/releases/{release_id}/splits")
def get_splits(release_id: int, db: Session = Depends(get_db)):
    release = require_release(db, release_id)
    return {"success": True, **splits.splits_payload(release.splits)}


@router.put("/releases/{release_id}/splits")
def replace_splits(release_id: int, data: SplitsReplace, db: Session = Depends(get_db)):
    require_release(db, release_id)
    created, warnings = splits.replace_splits(db, "release_id", release_id, data.splits)
    return {"success": True, **splits.splits_payload(created, warnings)}
