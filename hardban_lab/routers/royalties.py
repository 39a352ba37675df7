import os
from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, Request, Response, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from hardban_lab.database import get_db
from hardban_lab.models import UserDB
from hardban_lab.ratelimit import limiter, upload_limit
from hardban_lab.schemas import RoyaltyCreate
from hardban_lab.security import require_roles
from hardban_lab.services import reports, royalties

router = APIRouter(prefix="/api/music/royalties", tags=["royalties"], dependencies=[Depends(require_roles())])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("")
def list_royalties(
    artist_id: Optional[int] = None,
    release_id: Optional[int] = None,
    status: Optional[Literal["pending", "paid"]] = None,
    period_start: Optional[date] = None,
    period_end: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, pagination = royalties.list_royalties(
        db, page, limit, artist_id=artist_id, release_id=release_id, status=status,
        period_start=period_start, period_end=period_end,
    )
    return {"success": True, "items": items, "pagination": pagination}


@router.post("", status_code=201)
def create_royalty(data: RoyaltyCreate, db: Session = Depends(get_db)):
    return {"success": True, "royalty": royalties.create_royalty(db, data)}


@router.get("/summary")
def royalty_summary(
    artist_id: Optional[int] = None,
    period_start: Optional[date] = None,
    period_end: Optional[date] = None,
    db: Session = Depends(get_db),
):
    return {"success": True, "summary": royalties.royalty_summary(db, artist_id, period_start, period_end)}


@router.post("/import")
@limiter.limit(upload_limit)
async def import_statements(
    request: Request,
    files: List[UploadFile] = File(...),
    platform: str = Form(...),
    period_start: date = Form(...),
    period_end: date = Form(...),
    db: Session = Depends(get_db),
    user: UserDB = Depends(require_roles()),
):
    uploads = [(f.filename, await f.read()) for f in files]
    result = reports.import_statements(db, uploads, platform, period_start, period_end, user)
    return {"success": True, **result}


@router.get("/statements.zip")
def download_statements_zip(
    background_tasks: BackgroundTasks,
    period_start: Optional[date] = None,
    period_end: Optional[date] = None,
    db: Session = Depends(get_db),
):
    zip_filename = reports.build_statements_zip(db, period_start, period_end)
    background_tasks.add_task(os.unlink, zip_filename)
    return FileResponse(zip_filename, media_type="application/zip", filename="statements.zip")


@router.get("/statements/{artist_id}.xlsx")
def download_artist_statement(
    artist_id: int,
    period_start: Optional[date] = None,
    period_end: Optional[date] = None,
    db: Session = Depends(get_db),
):
    filename, content = reports.artist_statement(db, artist_id, period_start, period_end)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/{royalty_id}/mark-paid")
def mark_paid(royalty_id: int, db: Session = Depends(get_db)):
    return {"success": True, "royalty": royalties.mark_paid(db, royalty_id)}
