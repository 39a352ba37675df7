from typing import Literal, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hardban_lab.database import get_db
from hardban_lab.models import UserDB
from hardban_lab.schemas import DeliveryUpdate, DistributionSubmit
from hardban_lab.security import require_roles
from hardban_lab.services import distribution

router = APIRouter(prefix="/api/music/distribution", tags=["distribution"], dependencies=[Depends(require_roles())])


@router.get("/channels")
def list_channels(status: Optional[Literal["active", "inactive"]] = None, db: Session = Depends(get_db)):
    return {"success": True, "channels": distribution.list_channels(db, status)}


@router.post("/releases/{release_id}", status_code=201)
def distribute_release(release_id: int, data: Optional[DistributionSubmit] = None,
                       db: Session = Depends(get_db), user: UserDB = Depends(require_roles())):
    channel_ids = data.channel_ids if data else None
    entries = distribution.submit_to_channels(db, release_id, channel_ids, user)
    return {"success": True, "entries": entries, "created": len(entries)}


@router.get("/releases/{release_id}/status")
def release_status(release_id: int, db: Session = Depends(get_db)):
    return {"success": True, **distribution.release_status(db, release_id)}


@router.patch("/entries/{entry_id}")
def update_entry(entry_id: int, data: DeliveryUpdate, db: Session = Depends(get_db)):
    entry = distribution.update_entry(db, entry_id, data.status, data.platform_url, data.error_message)
    return {"success": True, "entry": entry}
