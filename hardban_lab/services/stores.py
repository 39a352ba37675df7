import logging
from datetime import datetime

from sqlalchemy.orm import Session, joinedload

from hardban_lab import repositories
from hardban_lab.exceptions import ConflictError, NotFoundError
from hardban_lab.models import PublishingStoreDB, StorePublicationDB
from hardban_lab.services.books import require_book
from hardban_lab.services.distribution import check_delivery_transition

logger = logging.getLogger(__name__)


def serialize_store(store: PublishingStoreDB) -> dict:
    return {"id": store.id, "name": store.name, "category": store.category, "status": store.status}


def serialize_publication(row: StorePublicationDB) -> dict:
    return {
        "id": row.id,
        "book_id": row.book_id,
        "store_id": row.store_id,
        "store": row.store.name if row.store else None,
        "status": row.status,
        "store_url": row.store_url,
        "error_message": row.error_message,
        "submitted_at": row.submitted_at,
        "live_at": row.live_at,
    }


def list_stores(db: Session, status: str = None):
    query = repositories.stores.query(db)
    if status:
        query = query.filter(PublishingStoreDB.status == status)
    return [serialize_store(s) for s in query.order_by(PublishingStoreDB.name).all()]


def book_publications(db: Session, book_id: int):
    require_book(db, book_id)
    rows = (
        db.query(StorePublicationDB)
        .options(joinedload(StorePublicationDB.store))
        .filter(StorePublicationDB.book_id == book_id)
        .order_by(StorePublicationDB.id)
        .all()
    )
    return [serialize_publication(r) for r in rows]


def publish_to_stores(db: Session, book_id: int, store_ids=None):
    book = require_book(db, book_id)
    if book.status not in ("review", "published"):
        raise ConflictError("Only books in review or published can be sent to stores")

    query = repositories.stores.query(db)
    if store_ids:
        stores = query.filter(PublishingStoreDB.id.in_(store_ids)).all()
        missing = set(store_ids) - {s.id for s in stores}
        if missing:
            raise NotFoundError(f"Publishing stores not found: {sorted(missing)}")
    else:
        stores = query.filter(PublishingStoreDB.status == "active").all()

    existing = {r.store_id for r in db.query(StorePublicationDB).filter(StorePublicationDB.book_id == book_id).all()}
    created = []
    for store in stores:
        if store.id not in existing:
            created.append(repositories.publications.create(
                db, commit=False, book_id=book_id, store_id=store.id, status="pending",
            ))
    db.commit()
    for row in created:
        db.refresh(row)
    logger.info(f"Queued book {book_id} on {len(created)} stores")
    return [serialize_publication(r) for r in created]


def update_publication(db: Session, publication_id: int, status: str, store_url=None, error_message=None) -> dict:
    row = repositories.publications.get(db, publication_id)
    if not row:
        raise NotFoundError("Store publication not found")
    check_delivery_transition(row.status, status)

    values = {"status": status}
    if store_url is not None:
        values["store_url"] = store_url
    if error_message is not None:
        values["error_message"] = error_message
    if status == "live":
        values["live_at"] = datetime.utcnow()
    row = repositories.publications.update(db, row, values)
    logger.info(f"Store publication {publication_id} is now {status}")
    return serialize_publication(row)
