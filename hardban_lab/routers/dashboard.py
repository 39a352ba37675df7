from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hardban_lab.database import get_db
from hardban_lab.security import require_roles
from hardban_lab.services import activities, analytics

router = APIRouter(tags=["dashboard"], dependencies=[Depends(require_roles())])


@router.get("/api/dashboard/stats")
def dashboard_stats(db: Session = Depends(get_db)):
    return {"success": True, "stats": analytics.dashboard_stats(db)}


@router.get("/api/activities/recent")
def recent_activities(limit: int = Query(6, ge=1, le=100), db: Session = Depends(get_db)):
    return {"success": True, "activities": activities.list_recent(db, limit)}
