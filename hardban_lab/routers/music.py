from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hardban_lab.database import get_db
from hardban_lab.schemas import MusicAnalyticsCreate, TaskCreate, TaskUpdate
from hardban_lab.security import require_roles
from hardban_lab.services import analytics, tasks

router = APIRouter(prefix="/api/music", tags=["music"], dependencies=[Depends(require_roles())])

MODULE = "music"


@router.get("/analytics/overview")
def analytics_overview(start: Optional[date] = None, end: Optional[date] = None, db: Session = Depends(get_db)):
    return {"success": True, **analytics.music_overview(db, start, end)}


@router.post("/analytics", status_code=201)
def record_analytics(data: MusicAnalyticsCreate, db: Session = Depends(get_db)):
    return {"success": True, "record": analytics.record_music(db, data)}


@router.get("/tasks")
def list_tasks(db: Session = Depends(get_db)):
    return tasks.list_tasks(db, MODULE)


@router.post("/tasks", status_code=201)
def create_task(data: TaskCreate, db: Session = Depends(get_db)):
    return tasks.create_task(db, MODULE, data.text, data.due_date)


@router.patch("/tasks/{task_id}")
def update_task(task_id: int, data: TaskUpdate, db: Session = Depends(get_db)):
    return tasks.set_completed(db, MODULE, task_id, data.completed)


@router.delete("/tasks/{task_id}")
def delete_task(task_id: int, db: Session = Depends(get_db)):
    tasks.delete_task(db, MODULE, task_id)
    return {"success": True, "message": "Task deleted"}
