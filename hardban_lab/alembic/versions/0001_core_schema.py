"""core schema: users, music catalogue, finance, distribution, publishing, dashboard

Revision ID: 0001_core_schema
Revises:
Create Date: 2024-06-03
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_core_schema"
down_revision = None
branch_labels = None
depends_on = None

DELIVERY_STATUSES = "'pending', 'processing', 'live', 'failed', 'taken_down'"


def created_at():
    return sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"))


def updated_at():
    return sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"))


def money(name):
    return sa.Column(name, sa.Numeric(12, 2), nullable=False, server_default="0")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=32), nullable=False, unique=True),
        sa.Column("email", sa.String(length=255), unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=255)),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login", sa.DateTime()),
        created_at(),
        updated_at(),
        sa.CheckConstraint("role IN ('user', 'editor', 'manager', 'admin')", name="ck_users_role"),
    )
    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("details", sa.Text()),
        sa.Column("status", sa.String(length=50), server_default="success"),
        created_at(),
    )
    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("module", sa.String(length=20), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("due_date", sa.Date()),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        created_at(),
        sa.CheckConstraint("module IN ('music', 'publishing')", name="ck_tasks_module"),
    )

    # music
    op.create_table(
        "artists",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("stage_name", sa.String(length=100)),
        sa.Column("biography", sa.Text()),
        sa.Column("genres", sa.JSON(), server_default=sa.text("'[]'")),
        sa.Column("country", sa.String(length=2)),
        sa.Column("profile_image", sa.String(length=500)),
        sa.Column("social_links", sa.JSON(), server_default=sa.text("'{}'")),
        sa.Column("contact_email", sa.String(length=255)),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        created_at(),
        updated_at(),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="ck_artists_status"),
    )
    op.create_table(
        "releases",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("artist_id", sa.Integer(), sa.ForeignKey("artists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("release_type", sa.String(length=20), nullable=False, server_default="single"),
        sa.Column("genre", sa.String(length=100)),
        sa.Column("label", sa.String(length=255)),
        sa.Column("upc", sa.String(length=13), unique=True),
        sa.Column("cover_url", sa.String(length=500)),
        sa.Column("audio_url", sa.String(length=500)),
        sa.Column("release_date", sa.Date()),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("rejection_reason", sa.Text()),
        sa.Column("submitted_at", sa.DateTime()),
        sa.Column("reviewed_at", sa.DateTime()),
        sa.Column("reviewed_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("streams", sa.BigInteger(), nullable=False, server_default="0"),
        money("revenue"),
        sa.Column("metadata", sa.JSON(), server_default=sa.text("'{}'")),
        created_at(),
        updated_at(),
        sa.CheckConstraint("release_type IN ('single', 'ep', 'album')", name="ck_releases_type"),
        sa.CheckConstraint(
            "status IN ('draft', 'pending', 'approved', 'rejected', 'live', 'taken_down')",
            name="ck_releases_status",
        ),
    )
    op.create_table(
        "tracks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("release_id", sa.Integer(), sa.ForeignKey("releases.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("track_number", sa.Integer(), nullable=False),
        sa.Column("isrc", sa.String(length=12), unique=True),
        sa.Column("duration_seconds", sa.Integer()),
        sa.Column("explicit", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("audio_url", sa.String(length=500)),
        created_at(),
        sa.UniqueConstraint("release_id", "track_number", name="uq_tracks_release_number"),
        sa.CheckConstraint("track_number >= 1", name="ck_tracks_number"),
        sa.CheckConstraint(
            "duration_seconds IS NULL OR duration_seconds BETWEEN 1 AND 7200", name="ck_tracks_duration",
        ),
    )
    op.create_table(
        "royalties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("release_id", sa.Integer(), sa.ForeignKey("releases.id", ondelete="CASCADE"), nullable=False),
        sa.Column("artist_id", sa.Integer(), sa.ForeignKey("artists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("platform", sa.String(length=100)),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("streams", sa.BigInteger(), nullable=False, server_default="0"),
        money("gross_revenue"),
        money("net_revenue"),
        sa.Column("artist_share", sa.Numeric(5, 2), nullable=False, server_default="50"),
        money("artist_payout"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("payment_date", sa.Date()),
        created_at(),
        sa.CheckConstraint("status IN ('pending', 'paid')", name="ck_royalties_status"),
        sa.CheckConstraint("period_end >= period_start", name="ck_royalties_period"),
        sa.CheckConstraint("artist_share >= 0 AND artist_share <= 100", name="ck_royalties_share"),
    )
    op.create_table(
        "payouts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("artist_id", sa.Integer(), sa.ForeignKey("artists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("method", sa.String(length=20), nullable=False),
        money("fee_amount"),
        sa.Column("net_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("reference", sa.String(length=40), unique=True),
        sa.Column("notes", sa.Text()),
        sa.Column("error_message", sa.Text()),
        sa.Column("requested_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("processed_at", sa.DateTime()),
        sa.CheckConstraint(
            "status IN ('pending', 'processing', 'completed', 'failed', 'cancelled')", name="ck_payouts_status",
        ),
        sa.CheckConstraint("method IN ('bank_transfer', 'paypal', 'stripe', 'wise')", name="ck_payouts_method"),
        sa.CheckConstraint("amount > 0", name="ck_payouts_amount"),
    )
    op.create_table(
        "distribution_channels",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("category", sa.String(length=100)),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("integration_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        created_at(),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="ck_channels_status"),
    )
    op.create_table(
        "distribution_releases",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("release_id", sa.Integer(), sa.ForeignKey("releases.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "channel_id", sa.Integer(), sa.ForeignKey("distribution_channels.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("platform_url", sa.String(length=500)),
        sa.Column("error_message", sa.Text()),
        sa.Column("submitted_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("live_at", sa.DateTime()),
        updated_at(),
        sa.UniqueConstraint("release_id", "channel_id", name="uq_distribution_release_channel"),
        sa.CheckConstraint(f"status IN ({DELIVERY_STATUSES})", name="ck_distribution_status"),
    )
    op.create_table(
        "music_analytics",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("release_id", sa.Integer(), sa.ForeignKey("releases.id", ondelete="CASCADE"), nullable=False),
        sa.Column("platform", sa.String(length=255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("streams", sa.BigInteger(), nullable=False, server_default="0"),
        money("revenue"),
        created_at(),
    )

    # publishing
    op.create_table(
        "authors",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("bio", sa.Text()),
        sa.Column("contact_email", sa.String(length=255)),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        created_at(),
        updated_at(),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="ck_authors_status"),
    )
    op.create_table(
        "books",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("author_id", sa.Integer(), sa.ForeignKey("authors.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("isbn", sa.String(length=13)),
        sa.Column("description", sa.Text()),
        sa.Column("genre", sa.String(length=100)),
        sa.Column("language", sa.String(length=2), nullable=False, server_default="en"),
        sa.Column("page_count", sa.Integer()),
        sa.Column("price", sa.Numeric(8, 2)),
        sa.Column("keywords", sa.Text()),
        sa.Column("cover_url", sa.String(length=500)),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("rights", sa.JSON(), server_default=sa.text("'{}'")),
        sa.Column("sales", sa.Integer(), nullable=False, server_default="0"),
        money("revenue"),
        sa.Column("published_date", sa.Date()),
        created_at(),
        updated_at(),
        sa.CheckConstraint("status IN ('draft', 'review', 'published', 'archived')", name="ck_books_status"),
        sa.CheckConstraint("price IS NULL OR price >= 0", name="ck_books_price"),
        sa.CheckConstraint("page_count IS NULL OR page_count >= 1", name="ck_books_pages"),
    )
    op.create_table(
        "book_chapters",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("book_id", sa.Integer(), sa.ForeignKey("books.id", ondelete="CASCADE"), nullable=False),
        sa.Column("chapter_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text()),
        sa.Column("word_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        created_at(),
        updated_at(),
        sa.UniqueConstraint("book_id", "chapter_number", name="uq_chapters_book_number"),
        sa.CheckConstraint("status IN ('draft', 'review', 'published')", name="ck_chapters_status"),
    )
    op.create_table(
        "royalty_splits",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("release_id", sa.Integer(), sa.ForeignKey("releases.id", ondelete="CASCADE")),
        sa.Column("book_id", sa.Integer(), sa.ForeignKey("books.id", ondelete="CASCADE")),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="artist"),
        sa.Column("percentage", sa.Numeric(5, 2), nullable=False),
        created_at(),
        sa.CheckConstraint("percentage >= 0 AND percentage <= 100", name="ck_splits_percentage"),
        sa.CheckConstraint(
            "role IN ('artist', 'producer', 'songwriter', 'performer', 'other')", name="ck_splits_role",
        ),
        sa.CheckConstraint(
            "(release_id IS NOT NULL AND book_id IS NULL) OR (release_id IS NULL AND book_id IS NOT NULL)",
            name="ck_splits_owner",
        ),
    )
    op.create_table(
        "publishing_stores",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("category", sa.String(length=100)),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        created_at(),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="ck_stores_status"),
    )
    op.create_table(
        "store_publications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("book_id", sa.Integer(), sa.ForeignKey("books.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "store_id", sa.Integer(), sa.ForeignKey("publishing_stores.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("store_url", sa.String(length=500)),
        sa.Column("error_message", sa.Text()),
        sa.Column("submitted_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("live_at", sa.DateTime()),
        updated_at(),
        sa.UniqueConstraint("book_id", "store_id", name="uq_store_publication"),
        sa.CheckConstraint(f"status IN ({DELIVERY_STATUSES})", name="ck_store_publication_status"),
    )
    op.create_table(
        "publishing_analytics",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("book_id", sa.Integer(), sa.ForeignKey("books.id", ondelete="CASCADE"), nullable=False),
        sa.Column("store", sa.String(length=255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("sales", sa.Integer(), nullable=False, server_default="0"),
        money("revenue"),
        created_at(),
    )

    op.create_index("idx_activities_created_at", "activities", ["created_at"])
    op.create_index("idx_tasks_module", "tasks", ["module"])
    op.create_index("idx_artists_name", "artists", ["name"])
    op.create_index("idx_releases_artist", "releases", ["artist_id"])
    op.create_index("idx_releases_status", "releases", ["status"])
    op.create_index("idx_releases_release_date", "releases", ["release_date"])
    op.create_index("idx_tracks_release", "tracks", ["release_id"])
    op.create_index("idx_splits_release", "royalty_splits", ["release_id"])
    op.create_index("idx_splits_book", "royalty_splits", ["book_id"])
    op.create_index("idx_royalties_artist", "royalties", ["artist_id"])
    op.create_index("idx_royalties_release", "royalties", ["release_id"])
    op.create_index("idx_royalties_period", "royalties", ["period_start", "period_end"])
    op.create_index("idx_payouts_artist", "payouts", ["artist_id"])
    op.create_index("idx_payouts_status", "payouts", ["status"])
    op.create_index("idx_distribution_release", "distribution_releases", ["release_id"])
    op.create_index("idx_music_analytics_release_date", "music_analytics", ["release_id", "date"])
    op.create_index("idx_books_author", "books", ["author_id"])
    op.create_index("idx_books_status", "books", ["status"])
    op.create_index("idx_chapters_book", "book_chapters", ["book_id"])
    op.create_index("idx_store_publications_book", "store_publications", ["book_id"])
    op.create_index("idx_publishing_analytics_book_date", "publishing_analytics", ["book_id", "date"])


def downgrade():
    for table in (
        "publishing_analytics",
        "store_publications",
        "publishing_stores",
        "royalty_splits",
        "book_chapters",
        "books",
        "authors",
        "music_analytics",
        "distribution_releases",
        "distribution_channels",
        "payouts",
        "royalties",
        "tracks",
        "releases",
        "artists",
        "tasks",
        "activities",
        "users",
    ):
        op.drop_table(table)
