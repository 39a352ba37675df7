from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from sqlalchemy.orm import Session

from hardban_lab.database import get_db
from hardban_lab.models import UserDB
from hardban_lab.ratelimit import limiter, upload_limit
from hardban_lab.schemas import (
    AuthorCreate,
    AuthorUpdate,
    BookCreate,
    BookUpdate,
    ChapterCreate,
    ChapterOrder,
    ChapterUpdate,
    DeliveryUpdate,
    PublishingAnalyticsCreate,
    SplitsReplace,
    StoreSubmit,
    TaskCreate,
    TaskUpdate,
)
from hardban_lab.security import require_roles
from hardban_lab.services import analytics, authors, books, stores, tasks

router = APIRouter(prefix="/api/publishing", tags=["publishing"], dependencies=[Depends(require_roles())])

MODULE = "publishing"
BookStatus = Literal["draft", "review", "published", "archived"]


# authors

@router.get("/authors")
def list_authors(
    name: Optional[str] = None,
    status: Optional[Literal["active", "inactive"]] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, pagination = authors.list_authors(db, name, status, page, limit)
    return {"success": True, "items": items, "pagination": pagination}


@router.post("/authors", status_code=201)
def create_author(data: AuthorCreate, db: Session = Depends(get_db)):
    return {"success": True, "author": authors.create_author(db, data)}


@router.get("/authors/{author_id}")
def get_author(author_id: int, db: Session = Depends(get_db)):
    return {"success": True, "author": authors.get_author(db, author_id)}


@router.put("/authors/{author_id}")
@router.patch("/authors/{author_id}")
def update_author(author_id: int, data: AuthorUpdate, db: Session = Depends(get_db)):
    return {"success": True, "author": authors.update_author(db, author_id, data)}


@router.delete("/authors/{author_id}")
def delete_author(author_id: int, db: Session = Depends(get_db)):
    authors.delete_author(db, author_id)
    return {"success": True, "message": "Author deleted"}


# books

@router.get("/books")
def list_books(
    status: Optional[BookStatus] = None,
    author_id: Optional[int] = None,
    q: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, pagination = books.list_books(db, status, author_id, q, page, limit)
    return {"success": True, "items": items, "pagination": pagination}


@router.post("/books", status_code=201)
def create_book(data: BookCreate, db: Session = Depends(get_db), user: UserDB = Depends(require_roles())):
    return {"success": True, "book": books.create_book(db, data, user)}


@router.get("/books/{book_id}")
def get_book(book_id: int, db: Session = Depends(get_db)):
    return {"success": True, "book": books.get_book(db, book_id)}


@router.patch("/books/{book_id}")
@router.put("/books/{book_id}")
def update_book(book_id: int, data: BookUpdate, db: Session = Depends(get_db)):
    return {"success": True, "book": books.update_book(db, book_id, data)}


@router.delete("/books/{book_id}")
def delete_book(book_id: int, db: Session = Depends(get_db), _: UserDB = Depends(require_roles("admin"))):
    books.delete_book(db, book_id)
    return {"success": True, "message": "Book deleted"}


@router.post("/books/{book_id}/submit")
def submit_book(book_id: int, db: Session = Depends(get_db)):
    return {"success": True, "book": books.change_status(db, book_id, "submit")}


@router.post("/books/{book_id}/publish")
def publish_book(book_id: int, db: Session = Depends(get_db), user: UserDB = Depends(require_roles())):
    return {"success": True, "book": books.change_status(db, book_id, "publish", user)}


@router.post("/books/{book_id}/archive")
def archive_book(book_id: int, db: Session = Depends(get_db)):
    return {"success": True, "book": books.change_status(db, book_id, "archive")}


@router.post("/books/{book_id}/cover")
@limiter.limit(upload_limit)
async def upload_book_cover(
    request: Request, book_id: int, file: UploadFile = File(...), db: Session = Depends(get_db)
):
    contents = await file.read()
    return {"success": True, "book": books.upload_cover(db, book_id, contents, file.filename)}


@router.get("/books/{book_id}/splits")
def get_book_splits(book_id: int, db: Session = Depends(get_db)):
    return {"success": True, **books.book_splits(db, book_id)}


@router.put("/books/{book_id}/splits")
def replace_book_splits(book_id: int, data: SplitsReplace, db: Session = Depends(get_db)):
    return {"success": True, **books.replace_book_splits(db, book_id, data.splits)}


# chapters

@router.get("/books/{book_id}/chapters")
def list_chapters(book_id: int, db: Session = Depends(get_db)):
    return {"success": True, "chapters": books.list_chapters(db, book_id)}


@router.post("/books/{book_id}/chapters", status_code=201)
def create_chapter(book_id: int, data: ChapterCreate, db: Session = Depends(get_db)):
    return {"success": True, "chapter": books.create_chapter(db, book_id, data)}


@router.put("/books/{book_id}/chapters/order")
def reorder_chapters(book_id: int, data: ChapterOrder, db: Session = Depends(get_db)):
    return {"success": True, "chapters": books.reorder_chapters(db, book_id, data.chapter_ids)}


@router.patch("/chapters/{chapter_id}")
@router.put("/chapters/{chapter_id}")
def update_chapter(chapter_id: int, data: ChapterUpdate, db: Session = Depends(get_db)):
    return {"success": True, "chapter": books.update_chapter(db, chapter_id, data)}


@router.delete("/chapters/{chapter_id}")
def delete_chapter(chapter_id: int, db: Session = Depends(get_db)):
    books.delete_chapter(db, chapter_id)
    return {"success": True, "message": "Chapter deleted"}


# stores

@router.get("/stores")
def list_stores(status: Optional[Literal["active", "inactive"]] = None, db: Session = Depends(get_db)):
    return {"success": True, "stores": stores.list_stores(db, status)}


@router.get("/books/{book_id}/stores")
def book_stores(book_id: int, db: Session = Depends(get_db)):
    return {"success": True, "publications": stores.book_publications(db, book_id)}


@router.post("/books/{book_id}/stores", status_code=201)
def publish_to_stores(book_id: int, data: Optional[StoreSubmit] = None, db: Session = Depends(get_db)):
    store_ids = data.store_ids if data else None
    created = stores.publish_to_stores(db, book_id, store_ids)
    return {"success": True, "publications": created, "created": len(created)}


@router.patch("/store-publications/{publication_id}")
def update_publication(publication_id: int, data: DeliveryUpdate, db: Session = Depends(get_db)):
    publication = stores.update_publication(db, publication_id, data.status, data.platform_url, data.error_message)
    return {"success": True, "publication": publication}


# analytics

@router.get("/analytics/overview")
def analytics_overview(start: Optional[date] = None, end: Optional[date] = None, db: Session = Depends(get_db)):
    return {"success": True, **analytics.publishing_overview(db, start, end)}


@router.post("/analytics", status_code=201)
def record_analytics(data: PublishingAnalyticsCreate, db: Session = Depends(get_db)):
    return {"success": True, "record": analytics.record_publishing(db, data)}


# tasks

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
