import logging

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from hardban_lab import repositories
from hardban_lab.exceptions import NotFoundError
from hardban_lab.models import AuthorDB, BookDB
from hardban_lab.repositories import paginate, row_to_dict
from hardban_lab.schemas import AuthorCreate, AuthorUpdate

logger = logging.getLogger(__name__)


def serialize_author(author) -> dict:
    data = author if isinstance(author, dict) else row_to_dict(author)
    return {
        "id": data["id"],
        "name": data["name"],
        "bio": data["bio"],
        "contact_email": data["contact_email"],
        "status": data["status"],
        "created_at": data["created_at"],
        "updated_at": data["updated_at"],
    }


def author_stats(db: Session, author_id: int) -> dict:
    total, published, sales, revenue = db.query(
        func.count(BookDB.id),
        func.coalesce(func.sum(case((BookDB.status == "published", 1), else_=0)), 0),
        func.coalesce(func.sum(BookDB.sales), 0),
        func.coalesce(func.sum(BookDB.revenue), 0),
    ).filter(BookDB.author_id == author_id).one()
    return {
        "total_books": total,
        "published_books": int(published or 0),
        "total_sales": int(sales or 0),
        "total_revenue": float(revenue or 0),
    }


def require_author(db: Session, author_id: int) -> AuthorDB:
    author = repositories.authors.get(db, author_id)
    if not author:
        raise NotFoundError("Author not found")
    return author


def list_authors(db: Session, name=None, status=None, page=1, limit=20):
    query = repositories.authors.query(db)
    if name:
        query = query.filter(AuthorDB.name.ilike(f"%{name}%"))
    if status:
        query = query.filter(AuthorDB.status == status)
    items, pagination = paginate(query.order_by(AuthorDB.name, AuthorDB.id), page, limit)
    return [serialize_author(a) for a in items], pagination


def get_author(db: Session, author_id: int) -> dict:
    data = repositories.authors.find_by_id(db, author_id)
    if data is None:
        raise NotFoundError("Author not found")
    author = serialize_author(data)
    author["stats"] = author_stats(db, author_id)
    return author


def create_author(db: Session, data: AuthorCreate) -> dict:
    author = repositories.authors.create(db, **data.model_dump())
    logger.info(f"Created author {author.name} (id={author.id})")
    return serialize_author(author)


def update_author(db: Session, author_id: int, data: AuthorUpdate) -> dict:
    author = require_author(db, author_id)
    author = repositories.authors.update(db, author, data.model_dump(exclude_unset=True))
    return serialize_author(author)


def delete_author(db: Session, author_id: int) -> None:
    author = require_author(db, author_id)
    repositories.authors.delete(db, author)
    logger.info(f"Deleted author {author_id} with their books")
