import logging
import re
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from hardban_lab import repositories, storage
from hardban_lab.exceptions import ConflictError, NotFoundError, ValidationFailed
from hardban_lab.models import BookDB, ChapterDB, RoyaltySplitDB
from hardban_lab.repositories import paginate, row_to_dict
from hardban_lab.schemas import BookCreate, BookUpdate, ChapterCreate, ChapterUpdate
from hardban_lab.services.activities import record_activity
from hardban_lab.services.authors import require_author
from hardban_lab.services.splits import replace_splits, splits_payload, validate_splits

logger = logging.getLogger(__name__)

# action -> (required status, new status)
BOOK_TRANSITIONS = {
    "submit": ("draft", "review"),
    "publish": ("review", "published"),
    "archive": ("published", "archived"),
}
DEFAULT_RIGHTS = {"territorial": False, "translation": False, "adaptation": False, "audio": False, "drm": False}


def normalize_isbn(value):
    """Strip separators and verify the ISBN-10 or ISBN-13 check digit."""
    if value is None:
        return None
    isbn = re.sub(r"[\s-]", "", value).upper()
    if not isbn:
        return None

    if len(isbn) == 10 and re.match(r"^\d{9}[\dX]$", isbn):
        total = sum((10 - i) * (10 if ch == "X" else int(ch)) for i, ch in enumerate(isbn))
        if total % 11 == 0:
            return isbn
    elif len(isbn) == 13 and isbn.isdigit():
        total = sum(int(ch) * (1 if i % 2 == 0 else 3) for i, ch in enumerate(isbn))
        if total % 10 == 0:
            return isbn
    raise ValidationFailed("Invalid ISBN")


def word_count(content) -> int:
    return len(content.split()) if content else 0


def serialize_book(book) -> dict:
    data = book if isinstance(book, dict) else row_to_dict(book)
    return {
        "id": data["id"],
        "author_id": data["author_id"],
        "title": data["title"],
        "isbn": data["isbn"],
        "description": data["description"],
        "genre": data["genre"],
        "language": data["language"],
        "page_count": data["page_count"],
        "price": float(data["price"]) if data["price"] is not None else None,
        "keywords": data["keywords"],
        "cover_url": data["cover_url"],
        "status": data["status"],
        "rights": {**DEFAULT_RIGHTS, **(data["rights"] or {})},
        "sales": int(data["sales"] or 0),
        "revenue": float(data["revenue"] or 0),
        "published_date": data["published_date"],
        "created_at": data["created_at"],
        "updated_at": data["updated_at"],
    }


def serialize_chapter(chapter: ChapterDB) -> dict:
    return {
        "id": chapter.id,
        "book_id": chapter.book_id,
        "chapter_number": chapter.chapter_number,
        "title": chapter.title,
        "content": chapter.content,
        "word_count": chapter.word_count,
        "status": chapter.status,
        "created_at": chapter.created_at,
        "updated_at": chapter.updated_at,
    }


def require_book(db: Session, book_id: int) -> BookDB:
    book = repositories.books.get(db, book_id)
    if not book:
        raise NotFoundError("Book not found")
    return book


def _ordered_chapters(db: Session, book_id: int):
    return db.query(ChapterDB).filter(ChapterDB.book_id == book_id).order_by(ChapterDB.chapter_number).all()


def list_books(db: Session, status=None, author_id=None, q=None, page=1, limit=20):
    query = repositories.books.query(db)
    if status:
        query = query.filter(BookDB.status == status)
    if author_id is not None:
        query = query.filter(BookDB.author_id == author_id)
    if q:
        query = query.filter(BookDB.title.ilike(f"%{q}%"))
    items, pagination = paginate(query.order_by(BookDB.created_at.desc(), BookDB.id.desc()), page, limit)
    return [serialize_book(b) for b in items], pagination


def get_book(db: Session, book_id: int) -> dict:
    data = repositories.books.find_by_id(db, book_id)
    if data is None:
        raise NotFoundError("Book not found")
    book = serialize_book(data)
    author = repositories.authors.find_by_id(db, data["author_id"])
    chapters = _ordered_chapters(db, book_id)
    splits = db.query(RoyaltySplitDB).filter(RoyaltySplitDB.book_id == book_id).order_by(RoyaltySplitDB.id).all()

    book["author_name"] = author["name"] if author else None
    book["chapters"] = [serialize_chapter(c) for c in chapters]
    book["total_word_count"] = sum(c.word_count or 0 for c in chapters)
    payload = splits_payload(splits)
    book["splits"] = payload["splits"]
    book["label_share"] = payload["label_share"]
    return book


def _add_chapters(db: Session, book_id: int, chapters) -> None:
    for number, chapter in enumerate(chapters, start=1):
        repositories.chapters.create(
            db,
            commit=False,
            book_id=book_id,
            chapter_number=number,
            title=chapter.title,
            content=chapter.content,
            word_count=word_count(chapter.content),
        )


def create_book(db: Session, data: BookCreate, user=None) -> dict:
    require_author(db, data.author_id)
    values = data.model_dump(exclude={"chapters", "splits", "rights"})
    values["isbn"] = normalize_isbn(values.get("isbn"))
    values["rights"] = data.rights.model_dump() if data.rights else dict(DEFAULT_RIGHTS)
    if data.splits:
        validate_splits(data.splits)

    try:
        book = repositories.books.create(db, commit=False, status="draft", **values)
        if data.chapters:
            _add_chapters(db, book.id, data.chapters)
        if data.splits:
            replace_splits(db, "book_id", book.id, data.splits, commit=False)
        record_activity(db, "book_created", f"Book {book.title} created", user=user)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Failed to create book {data.title}", exc_info=True)
        raise

    logger.info(f"Created book {book.title} (id={book.id}) with {len(data.chapters or [])} chapters")
    return get_book(db, book.id)


def update_book(db: Session, book_id: int, data: BookUpdate) -> dict:
    book = require_book(db, book_id)
    values = data.model_dump(exclude_unset=True, exclude={"chapters", "splits", "rights"})
    if "isbn" in values:
        values["isbn"] = normalize_isbn(values["isbn"])
    if data.rights is not None:
        values["rights"] = data.rights.model_dump()
    if data.splits is not None:
        validate_splits(data.splits)

    try:
        repositories.books.update(db, book, values, commit=False)
        if data.chapters is not None:
            db.query(ChapterDB).filter(ChapterDB.book_id == book_id).delete(synchronize_session="fetch")
            _add_chapters(db, book_id, data.chapters)
        if data.splits is not None:
            replace_splits(db, "book_id", book_id, data.splits, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Failed to update book {book_id}", exc_info=True)
        raise

    repositories.chapters.cache.clear()
    logger.info(f"Updated book {book_id}: {sorted(values)}")
    return get_book(db, book_id)


def delete_book(db: Session, book_id: int) -> None:
    book = require_book(db, book_id)
    repositories.books.delete(db, book)
    logger.info(f"Deleted book {book_id}")


def change_status(db: Session, book_id: int, action: str, user=None) -> dict:
    book = require_book(db, book_id)
    required, target = BOOK_TRANSITIONS[action]
    if book.status != required:
        raise ConflictError(f"Only {required} books can be moved to {target}")
    if action == "submit" and not book.chapters:
        raise ValidationFailed("Book must have at least one chapter before review")

    values = {"status": target}
    if action == "publish":
        values["published_date"] = date.today()
    repositories.books.update(db, book, values, commit=False)
    if action == "publish":
        record_activity(db, "book_published", f"Book {book.title} published", user=user)
    db.commit()
    db.refresh(book)
    logger.info(f"Book {book_id} moved {required} -> {target}")
    return serialize_book(book)


def upload_cover(db: Session, book_id: int, contents: bytes, filename: str) -> dict:
    book = require_book(db, book_id)
    url = storage.save_upload(contents, filename, f"books/{book_id}", storage.IMAGE_EXTENSIONS)
    book = repositories.books.update(db, book, {"cover_url": url})
    return serialize_book(book)


def book_splits(db: Session, book_id: int) -> dict:
    require_book(db, book_id)
    splits = db.query(RoyaltySplitDB).filter(RoyaltySplitDB.book_id == book_id).order_by(RoyaltySplitDB.id).all()
    return splits_payload(splits)


def replace_book_splits(db: Session, book_id: int, entries) -> dict:
    require_book(db, book_id)
    created, warnings = replace_splits(db, "book_id", book_id, entries)
    return splits_payload(created, warnings)


# --- chapters ---

def list_chapters(db: Session, book_id: int):
    require_book(db, book_id)
    return [serialize_chapter(c) for c in _ordered_chapters(db, book_id)]


def _check_chapter_number_free(db: Session, book_id: int, number: int, chapter_id=None):
    query = db.query(ChapterDB).filter(ChapterDB.book_id == book_id, ChapterDB.chapter_number == number)
    if chapter_id is not None:
        query = query.filter(ChapterDB.id != chapter_id)
    if query.first():
        raise ConflictError(f"Chapter {number} already exists in this book")


def create_chapter(db: Session, book_id: int, data: ChapterCreate) -> dict:
    require_book(db, book_id)
    number = data.chapter_number
    if number is None:
        current = db.query(func.max(ChapterDB.chapter_number)).filter(ChapterDB.book_id == book_id).scalar()
        number = (current or 0) + 1
    else:
        _check_chapter_number_free(db, book_id, number)

    chapter = repositories.chapters.create(
        db,
        book_id=book_id,
        chapter_number=number,
        title=data.title,
        content=data.content,
        word_count=word_count(data.content),
        status=data.status,
    )
    logger.info(f"Added chapter {number} to book {book_id}")
    return serialize_chapter(chapter)


def require_chapter(db: Session, chapter_id: int) -> ChapterDB:
    chapter = repositories.chapters.get(db, chapter_id)
    if not chapter:
        raise NotFoundError("Chapter not found")
    return chapter


def update_chapter(db: Session, chapter_id: int, data: ChapterUpdate) -> dict:
    chapter = require_chapter(db, chapter_id)
    values = data.model_dump(exclude_unset=True)
    if "chapter_number" in values:
        _check_chapter_number_free(db, chapter.book_id, values["chapter_number"], chapter_id=chapter.id)
    if "content" in values:
        values["word_count"] = word_count(values["content"])
    chapter = repositories.chapters.update(db, chapter, values)
    return serialize_chapter(chapter)


def delete_chapter(db: Session, chapter_id: int) -> None:
    chapter = require_chapter(db, chapter_id)
    repositories.chapters.delete(db, chapter)
    logger.info(f"Deleted chapter {chapter_id}")


def reorder_chapters(db: Session, book_id: int, chapter_ids) -> list:
    require_book(db, book_id)
    chapters = {c.id: c for c in _ordered_chapters(db, book_id)}
    if len(chapter_ids) != len(set(chapter_ids)) or set(chapter_ids) != set(chapters):
        raise ValidationFailed("chapter_ids must list every chapter of the book exactly once")

    try:
        # move out of the way first, (book_id, chapter_number) is unique
        offset = len(chapter_ids) + max(c.chapter_number for c in chapters.values()) if chapters else 0
        for position, chapter_id in enumerate(chapter_ids, start=1):
            chapters[chapter_id].chapter_number = offset + position
        db.flush()
        for position, chapter_id in enumerate(chapter_ids, start=1):
            chapters[chapter_id].chapter_number = position
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Failed to reorder chapters of book {book_id}", exc_info=True)
        raise

    repositories.chapters.cache.clear()
    logger.info(f"Reordered {len(chapter_ids)} chapters of book {book_id}")
    return [serialize_chapter(c) for c in _ordered_chapters(db, book_id)]
