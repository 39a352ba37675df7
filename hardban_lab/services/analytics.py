import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from hardban_lab import repositories
from hardban_lab.currency import format_currency, round_money, to_decimal
from hardban_lab.exceptions import NotFoundError
from hardban_lab.models import (
    ArtistDB,
    BookDB,
    DistributionChannelDB,
    MusicAnalyticsDB,
    PublishingAnalyticsDB,
    PublishingStoreDB,
    ReleaseDB,
)
from hardban_lab.schemas import MusicAnalyticsCreate, PublishingAnalyticsCreate
from hardban_lab.services.royalties import check_period

logger = logging.getLogger(__name__)

TOP_LIMIT = 5


def dashboard_stats(db: Session) -> dict:
    release_revenue = to_decimal(db.query(func.coalesce(func.sum(ReleaseDB.revenue), 0)).scalar())
    book_revenue = to_decimal(db.query(func.coalesce(func.sum(BookDB.revenue), 0)).scalar())
    total_revenue = release_revenue + book_revenue
    return {
        "active_artists": db.query(ArtistDB).filter(ArtistDB.status == "active").count(),
        "total_releases": db.query(ReleaseDB).filter(ReleaseDB.status == "live").count(),
        "published_books": db.query(BookDB).filter(BookDB.status == "published").count(),
        "total_revenue": float(round_money(total_revenue)),
        "total_revenue_formatted": format_currency(total_revenue, "USD"),
        "music_platforms": db.query(DistributionChannelDB).filter(DistributionChannelDB.status == "active").count(),
        "publishing_platforms": db.query(PublishingStoreDB).filter(PublishingStoreDB.status == "active").count(),
    }


def _in_period(query, column, start, end):
    check_period(start, end)
    if start:
        query = query.filter(column >= start)
    if end:
        query = query.filter(column <= end)
    return query


def music_overview(db: Session, start=None, end=None) -> dict:
    base = _in_period(db.query(MusicAnalyticsDB), MusicAnalyticsDB.date, start, end)
    totals = base.with_entities(
        func.coalesce(func.sum(MusicAnalyticsDB.streams), 0),
        func.coalesce(func.sum(MusicAnalyticsDB.revenue), 0),
    ).one()

    by_platform = (
        base.with_entities(
            MusicAnalyticsDB.platform,
            func.sum(MusicAnalyticsDB.streams),
            func.sum(MusicAnalyticsDB.revenue),
        )
        .group_by(MusicAnalyticsDB.platform)
        .order_by(MusicAnalyticsDB.platform)
        .all()
    )
    top = (
        base.join(ReleaseDB, MusicAnalyticsDB.release_id == ReleaseDB.id)
        .with_entities(
            ReleaseDB.id,
            ReleaseDB.title,
            func.sum(MusicAnalyticsDB.streams),
            func.sum(MusicAnalyticsDB.revenue),
        )
        .group_by(ReleaseDB.id, ReleaseDB.title)
        .order_by(func.sum(MusicAnalyticsDB.revenue).desc(), ReleaseDB.id)
        .limit(TOP_LIMIT)
        .all()
    )
    return {
        "total_streams": int(totals[0] or 0),
        "total_revenue": float(to_decimal(totals[1])),
        "by_platform": [
            {"platform": p, "streams": int(s or 0), "revenue": float(to_decimal(r))} for p, s, r in by_platform
        ],
        "top_releases": [
            {"release_id": i, "title": t, "streams": int(s or 0), "revenue": float(to_decimal(r))}
            for i, t, s, r in top
        ],
    }


def publishing_overview(db: Session, start=None, end=None) -> dict:
    base = _in_period(db.query(PublishingAnalyticsDB), PublishingAnalyticsDB.date, start, end)
    totals = base.with_entities(
        func.coalesce(func.sum(PublishingAnalyticsDB.sales), 0),
        func.coalesce(func.sum(PublishingAnalyticsDB.revenue), 0),
    ).one()

    by_store = (
        base.with_entities(
            PublishingAnalyticsDB.store,
            func.sum(PublishingAnalyticsDB.sales),
            func.sum(PublishingAnalyticsDB.revenue),
        )
        .group_by(PublishingAnalyticsDB.store)
        .order_by(PublishingAnalyticsDB.store)
        .all()
    )
    top = (
        base.join(BookDB, PublishingAnalyticsDB.book_id == BookDB.id)
        .with_entities(
            BookDB.id,
            BookDB.title,
            func.sum(PublishingAnalyticsDB.sales),
            func.sum(PublishingAnalyticsDB.revenue),
        )
        .group_by(BookDB.id, BookDB.title)
        .order_by(func.sum(PublishingAnalyticsDB.revenue).desc(), BookDB.id)
        .limit(TOP_LIMIT)
        .all()
    )
    return {
        "total_sales": int(totals[0] or 0),
        "total_revenue": float(to_decimal(totals[1])),
        "by_store": [
            {"store": s, "sales": int(n or 0), "revenue": float(to_decimal(r))} for s, n, r in by_store
        ],
        "top_books": [
            {"book_id": i, "title": t, "sales": int(n or 0), "revenue": float(to_decimal(r))}
            for i, t, n, r in top
        ],
    }


def record_music(db: Session, data: MusicAnalyticsCreate) -> dict:
    if not repositories.releases.get(db, data.release_id):
        raise NotFoundError("Release not found")
    row = repositories.music_analytics.create(db, **data.model_dump())
    logger.info(f"Recorded {row.streams} streams on {row.platform} for release {row.release_id}")
    return {
        "id": row.id,
        "release_id": row.release_id,
        "platform": row.platform,
        "date": row.date,
        "streams": int(row.streams),
        "revenue": float(row.revenue),
    }


def record_publishing(db: Session, data: PublishingAnalyticsCreate) -> dict:
    book = repositories.books.get(db, data.book_id)
    if not book:
        raise NotFoundError("Book not found")
    try:
        row = repositories.publishing_analytics.create(db, commit=False, **data.model_dump())
        repositories.books.update(db, book, {
            "sales": int(book.sales or 0) + data.sales,
            "revenue": round_money(to_decimal(book.revenue) + data.revenue),
        }, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Failed to record sales for book {data.book_id}", exc_info=True)
        raise
    db.refresh(row)
    logger.info(f"Recorded {row.sales} sales on {row.store} for book {row.book_id}")
    return {
        "id": row.id,
        "book_id": row.book_id,
        "store": row.store,
        "date": row.date,
        "sales": int(row.sales),
        "revenue": float(row.revenue),
    }
