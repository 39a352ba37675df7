from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from hardban_lab.database import Base

USER_ROLES = ("user", "editor", "manager", "admin")
RECORD_STATUSES = ("active", "inactive")
RELEASE_TYPES = ("single", "ep", "album")
RELEASE_STATUSES = ("draft", "pending", "approved", "rejected", "live", "taken_down")
SPLIT_ROLES = ("artist", "producer", "songwriter", "performer", "other")
ROYALTY_STATUSES = ("pending", "paid")
PAYOUT_METHODS = ("bank_transfer", "paypal", "stripe", "wise")
PAYOUT_STATUSES = ("pending", "processing", "completed", "failed", "cancelled")
DELIVERY_STATUSES = ("pending", "processing", "live", "failed", "taken_down")
BOOK_STATUSES = ("draft", "review", "published", "archived")
CHAPTER_STATUSES = ("draft", "review", "published")
TASK_MODULES = ("music", "publishing")


def _in(column, values):
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class UserDB(Base):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint(_in("role", USER_ROLES), name="ck_users_role"),)

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(32), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(255))
    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ActivityDB(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(String(100), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    details = Column(Text)
    status = Column(String(50), default="success")
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("UserDB")


class TaskDB(Base):
    __tablename__ = "tasks"
    __table_args__ = (CheckConstraint(_in("module", TASK_MODULES), name="ck_tasks_module"),)

    id = Column(Integer, primary_key=True, index=True)
    module = Column(String(20), nullable=False, index=True)
    text = Column(Text, nullable=False)
    due_date = Column(Date)
    completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)


# --- music ---

class ArtistDB(Base):
    __tablename__ = "artists"
    __table_args__ = (CheckConstraint(_in("status", RECORD_STATUSES), name="ck_artists_status"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    stage_name = Column(String(100))
    biography = Column(Text)
    genres = Column(JSON, default=list)
    country = Column(String(2))
    profile_image = Column(String(500))
    social_links = Column(JSON, default=dict)
    contact_email = Column(String(255))
    status = Column(String(20), nullable=False, default="active")
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    releases = relationship("ReleaseDB", back_populates="artist", cascade="all, delete-orphan", passive_deletes=True)
    royalties = relationship("RoyaltyDB", back_populates="artist", cascade="all, delete-orphan", passive_deletes=True)
    payouts = relationship("PayoutDB", back_populates="artist", cascade="all, delete-orphan", passive_deletes=True)


class ReleaseDB(Base):
    __tablename__ = "releases"
    __table_args__ = (
        CheckConstraint(_in("release_type", RELEASE_TYPES), name="ck_releases_type"),
        CheckConstraint(_in("status", RELEASE_STATUSES), name="ck_releases_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    artist_id = Column(Integer, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False, index=True)
    release_type = Column(String(20), nullable=False, default="single")
    genre = Column(String(100))
    label = Column(String(255))
    upc = Column(String(13), unique=True, nullable=True)
    cover_url = Column(String(500))
    audio_url = Column(String(500))
    release_date = Column(Date, index=True)
    status = Column(String(20), nullable=False, default="draft", index=True)
    rejection_reason = Column(Text)
    submitted_at = Column(DateTime)
    reviewed_at = Column(DateTime)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    streams = Column(BigInteger, nullable=False, default=0)
    revenue = Column(Numeric(12, 2), nullable=False, default=0)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    artist = relationship("ArtistDB", back_populates="releases")
    tracks = relationship(
        "TrackDB", back_populates="release", cascade="all, delete-orphan",
        passive_deletes=True, order_by="TrackDB.track_number",
    )
    splits = relationship(
        "RoyaltySplitDB", back_populates="release", cascade="all, delete-orphan",
        passive_deletes=True, order_by="RoyaltySplitDB.id",
    )
    distributions = relationship(
        "DistributionReleaseDB", back_populates="release", cascade="all, delete-orphan", passive_deletes=True,
    )


class TrackDB(Base):
    __tablename__ = "tracks"
    __table_args__ = (
        UniqueConstraint("release_id", "track_number", name="uq_tracks_release_number"),
        CheckConstraint("track_number >= 1", name="ck_tracks_number"),
        CheckConstraint(
            "duration_seconds IS NULL OR duration_seconds BETWEEN 1 AND 7200", name="ck_tracks_duration",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    release_id = Column(Integer, ForeignKey("releases.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    track_number = Column(Integer, nullable=False)
    isrc = Column(String(12), unique=True, nullable=True)
    duration_seconds = Column(Integer)
    explicit = Column(Boolean, nullable=False, default=False)
    audio_url = Column(String(500))
    created_at = Column(DateTime, default=datetime.utcnow)

    release = relationship("ReleaseDB", back_populates="tracks")


class RoyaltySplitDB(Base):
    __tablename__ = "royalty_splits"
    __table_args__ = (
        CheckConstraint("percentage >= 0 AND percentage <= 100", name="ck_splits_percentage"),
        CheckConstraint(_in("role", SPLIT_ROLES), name="ck_splits_role"),
        CheckConstraint(
            "(release_id IS NOT NULL AND book_id IS NULL) OR (release_id IS NULL AND book_id IS NOT NULL)",
            name="ck_splits_owner",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    release_id = Column(Integer, ForeignKey("releases.id", ondelete="CASCADE"), nullable=True, index=True)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="artist")
    percentage = Column(Numeric(5, 2), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    release = relationship("ReleaseDB", back_populates="splits")
    book = relationship("BookDB", back_populates="splits")


class RoyaltyDB(Base):
    __tablename__ = "royalties"
    __table_args__ = (
        CheckConstraint(_in("status", ROYALTY_STATUSES), name="ck_royalties_status"),
        CheckConstraint("period_end >= period_start", name="ck_royalties_period"),
        CheckConstraint("artist_share >= 0 AND artist_share <= 100", name="ck_royalties_share"),
    )

    id = Column(Integer, primary_key=True, index=True)
    release_id = Column(Integer, ForeignKey("releases.id", ondelete="CASCADE"), nullable=False, index=True)
    artist_id = Column(Integer, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(String(100))
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    streams = Column(BigInteger, nullable=False, default=0)
    gross_revenue = Column(Numeric(12, 2), nullable=False, default=0)
    net_revenue = Column(Numeric(12, 2), nullable=False, default=0)
    artist_share = Column(Numeric(5, 2), nullable=False, default=50)
    artist_payout = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default="pending")
    payment_date = Column(Date)
    created_at = Column(DateTime, default=datetime.utcnow)

    release = relationship("ReleaseDB")
    artist = relationship("ArtistDB", back_populates="royalties")


class PayoutDB(Base):
    __tablename__ = "payouts"
    __table_args__ = (
        CheckConstraint(_in("status", PAYOUT_STATUSES), name="ck_payouts_status"),
        CheckConstraint(_in("method", PAYOUT_METHODS), name="ck_payouts_method"),
        CheckConstraint("amount > 0", name="ck_payouts_amount"),
    )

    id = Column(Integer, primary_key=True, index=True)
    artist_id = Column(Integer, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    method = Column(String(20), nullable=False)
    fee_amount = Column(Numeric(12, 2), nullable=False, default=0)
    net_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    reference = Column(String(40), unique=True)
    notes = Column(Text)
    error_message = Column(Text)
    requested_at = Column(DateTime, default=datetime.utcnow)
    processed_at = Column(DateTime)

    artist = relationship("ArtistDB", back_populates="payouts")


class DistributionChannelDB(Base):
    __tablename__ = "distribution_channels"
    __table_args__ = (CheckConstraint(_in("status", RECORD_STATUSES), name="ck_channels_status"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    category = Column(String(100))
    status = Column(String(20), nullable=False, default="active")
    integration_enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class DistributionReleaseDB(Base):
    __tablename__ = "distribution_releases"
    __table_args__ = (
        UniqueConstraint("release_id", "channel_id", name="uq_distribution_release_channel"),
        CheckConstraint(_in("status", DELIVERY_STATUSES), name="ck_distribution_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    release_id = Column(Integer, ForeignKey("releases.id", ondelete="CASCADE"), nullable=False, index=True)
    channel_id = Column(Integer, ForeignKey("distribution_channels.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    platform_url = Column(String(500))
    error_message = Column(Text)
    submitted_at = Column(DateTime, default=datetime.utcnow)
    live_at = Column(DateTime)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    release = relationship("ReleaseDB", back_populates="distributions")
    channel = relationship("DistributionChannelDB")


class MusicAnalyticsDB(Base):
    __tablename__ = "music_analytics"

    id = Column(Integer, primary_key=True, index=True)
    release_id = Column(Integer, ForeignKey("releases.id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(String(255), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    streams = Column(BigInteger, nullable=False, default=0)
    revenue = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    release = relationship("ReleaseDB")


# --- publishing ---

class AuthorDB(Base):
    __tablename__ = "authors"
    __table_args__ = (CheckConstraint(_in("status", RECORD_STATUSES), name="ck_authors_status"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    bio = Column(Text)
    contact_email = Column(String(255))
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    books = relationship("BookDB", back_populates="author", cascade="all, delete-orphan", passive_deletes=True)


class BookDB(Base):
    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint(_in("status", BOOK_STATUSES), name="ck_books_status"),
        CheckConstraint("price IS NULL OR price >= 0", name="ck_books_price"),
        CheckConstraint("page_count IS NULL OR page_count >= 1", name="ck_books_pages"),
    )

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, ForeignKey("authors.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False, index=True)
    isbn = Column(String(13))
    description = Column(Text)
    genre = Column(String(100))
    language = Column(String(2), nullable=False, default="en")
    page_count = Column(Integer)
    price = Column(Numeric(8, 2))
    keywords = Column(Text)
    cover_url = Column(String(500))
    status = Column(String(20), nullable=False, default="draft", index=True)
    rights = Column(JSON, default=dict)
    sales = Column(Integer, nullable=False, default=0)
    revenue = Column(Numeric(12, 2), nullable=False, default=0)
    published_date = Column(Date)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = relationship("AuthorDB", back_populates="books")
    chapters = relationship(
        "ChapterDB", back_populates="book", cascade="all, delete-orphan",
        passive_deletes=True, order_by="ChapterDB.chapter_number",
    )
    splits = relationship(
        "RoyaltySplitDB", back_populates="book", cascade="all, delete-orphan",
        passive_deletes=True, order_by="RoyaltySplitDB.id",
    )
    publications = relationship(
        "StorePublicationDB", back_populates="book", cascade="all, delete-orphan", passive_deletes=True,
    )


class ChapterDB(Base):
    __tablename__ = "book_chapters"
    __table_args__ = (
        UniqueConstraint("book_id", "chapter_number", name="uq_chapters_book_number"),
        CheckConstraint(_in("status", CHAPTER_STATUSES), name="ck_chapters_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    chapter_number = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text)
    word_count = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="draft")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    book = relationship("BookDB", back_populates="chapters")


class PublishingStoreDB(Base):
    __tablename__ = "publishing_stores"
    __table_args__ = (CheckConstraint(_in("status", RECORD_STATUSES), name="ck_stores_status"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    category = Column(String(100))
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, default=datetime.utcnow)


class StorePublicationDB(Base):
    __tablename__ = "store_publications"
    __table_args__ = (
        UniqueConstraint("book_id", "store_id", name="uq_store_publication"),
        CheckConstraint(_in("status", DELIVERY_STATUSES), name="ck_store_publication_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("publishing_stores.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    store_url = Column(String(500))
    error_message = Column(Text)
    submitted_at = Column(DateTime, default=datetime.utcnow)
    live_at = Column(DateTime)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    book = relationship("BookDB", back_populates="publications")
    store = relationship("PublishingStoreDB")


class PublishingAnalyticsDB(Base):
    __tablename__ = "publishing_analytics"

    id = Column(Integer, primary_key=True, index=True)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    store = Column(String(255), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    sales = Column(Integer, nullable=False, default=0)
    revenue = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    book = relationship("BookDB")
