import logging

from sqlalchemy.orm import Session

from hardban_lab import repositories
from hardban_lab.exceptions import NotFoundError
from hardban_lab.models import TaskDB

logger = logging.getLogger(__name__)


def serialize_task(task: TaskDB) -> dict:
    return {
        "id": task.id,
        "text": task.text,
        "completed": bool(task.completed),
        "due_date": task.due_date.isoformat() if task.due_date else "",
    }


def list_tasks(db: Session, module: str):
    rows = (
        repositories.tasks.query(db)
        .filter(TaskDB.module == module)
        .order_by(TaskDB.completed, TaskDB.due_date.is_(None), TaskDB.due_date, TaskDB.id)
        .all()
    )
    return [serialize_task(t) for t in rows]


def create_task(db: Session, module: str, text: str, due_date=None) -> dict:
    task = repositories.tasks.create(db, module=module, text=text, due_date=due_date, completed=False)
    logger.info(f"Added {module} task {task.id}")
    return serialize_task(task)


def _require_task(db: Session, module: str, task_id: int) -> TaskDB:
    task = repositories.tasks.query(db).filter(TaskDB.id == task_id, TaskDB.module == module).first()
    if not task:
        raise NotFoundError("Task not found")
    return task


def set_completed(db: Session, module: str, task_id: int, completed: bool) -> dict:
    task = _require_task(db, module, task_id)
    task = repositories.tasks.update(db, task, {"completed": completed})
    return serialize_task(task)


def delete_task(db: Session, module: str, task_id: int) -> None:
    task = _require_task(db, module, task_id)
    repositories.tasks.delete(db, task)
    logger.info(f"Deleted {module} task {task_id}")
