import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import inspect
from sqlalchemy.orm import Query, Session

from hardban_lab import models
from hardban_lab.cache import TTLCache
from hardban_lab.config import settings

logger = logging.getLogger(__name__)

_registry: List["BaseRepository"] = []


def row_to_dict(obj) -> Dict[str, Any]:
    """Column values of an ORM row keyed by attribute name."""
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


def paginate(query: Query, page: int = 1, limit: int = 20) -> Tuple[list, Dict[str, Any]]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    total_pages = math.ceil(total / limit) if limit else 0
    return items, {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


def clear_all_caches() -> None:
    for repo in _registry:
        repo.cache.clear()


class BaseRepository:
    """Data access for one table with a TTL cache of single-row reads."""

    def __init__(self, model):
        self.model = model
        self.table = model.__tablename__
        self.cache = TTLCache(settings.cache_ttl_seconds)
        _registry.append(self)

    def _key(self, record_id) -> str:
        return f"{self.table}:{record_id}"

    def query(self, db: Session) -> Query:
        return db.query(self.model)

    def get(self, db: Session, record_id) -> Optional[Any]:
        """Live ORM row, for writes and relationship access."""
        return db.query(self.model).filter(self.model.id == record_id).first()

    def find_by_id(self, db: Session, record_id) -> Optional[Dict[str, Any]]:
        """Column values of one row, served from cache while fresh."""
        key = self._key(record_id)
        cached = self.cache.get(key)
        if cached is not None:
            return dict(cached)
        row = self.get(db, record_id)
        if row is None:
            return None
        data = row_to_dict(row)
        self.cache.set(key, data)
        return dict(data)

    def create(self, db: Session, commit: bool = True, **values):
        row = self.model(**values)
        db.add(row)
        if commit:
            db.commit()
            db.refresh(row)
        else:
            db.flush()
        self.cache.clear()
        return row

    def update(self, db: Session, row, values: Dict[str, Any], commit: bool = True):
        for field, value in values.items():
            setattr(row, field, value)
        if commit:
            db.commit()
            db.refresh(row)
        else:
            db.flush()
        self.cache.clear()
        return row

    def delete(self, db: Session, row, commit: bool = True) -> None:
        db.delete(row)
        if commit:
            db.commit()
        else:
            db.flush()
        # deletes cascade into other tables
        clear_all_caches()


users = BaseRepository(models.UserDB)
artists = BaseRepository(models.ArtistDB)
releases = BaseRepository(models.ReleaseDB)
tracks = BaseRepository(models.TrackDB)
splits = BaseRepository(models.RoyaltySplitDB)
royalties = BaseRepository(models.RoyaltyDB)
payouts = BaseRepository(models.PayoutDB)
channels = BaseRepository(models.DistributionChannelDB)
distributions = BaseRepository(models.DistributionReleaseDB)
music_analytics = BaseRepository(models.MusicAnalyticsDB)
authors = BaseRepository(models.AuthorDB)
books = BaseRepository(models.BookDB)
chapters = BaseRepository(models.ChapterDB)
stores = BaseRepository(models.PublishingStoreDB)
publications = BaseRepository(models.StorePublicationDB)
publishing_analytics = BaseRepository(models.PublishingAnalyticsDB)
activities = BaseRepository(models.ActivityDB)
tasks = BaseRepository(models.TaskDB)
