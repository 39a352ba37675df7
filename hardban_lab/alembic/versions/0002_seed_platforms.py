"""default music distribution channels and publishing stores

Revision ID: 0002_seed_platforms
Revises: 0001_core_schema
Create Date: 2024-06-03
"""
from alembic import op
import sqlalchemy as sa

revision = "0002_seed_platforms"
down_revision = "0001_core_schema"
branch_labels = None
depends_on = None

CHANNELS = [
    ("Spotify", "streaming"),
    ("Apple Music", "streaming"),
    ("YouTube Music", "streaming"),
    ("Amazon Music", "streaming"),
    ("Deezer", "streaming"),
    ("Tidal", "streaming"),
    ("SoundCloud", "streaming"),
    ("Pandora", "streaming"),
    ("Audiomack", "streaming"),
    ("Bandcamp", "store"),
]

STORES = [
    ("Amazon Kindle", "ebook"),
    ("Apple Books", "ebook"),
    ("Google Play Books", "ebook"),
    ("Barnes & Noble", "ebook"),
    ("Kobo", "ebook"),
    ("Draft2Digital", "aggregator"),
    ("Smashwords", "aggregator"),
    ("Scribd", "subscription"),
    ("Lulu", "print"),
    ("IngramSpark", "print"),
]

channels = sa.table(
    "distribution_channels",
    sa.column("name", sa.String),
    sa.column("category", sa.String),
    sa.column("status", sa.String),
    sa.column("integration_enabled", sa.Boolean),
)
stores = sa.table(
    "publishing_stores",
    sa.column("name", sa.String),
    sa.column("category", sa.String),
    sa.column("status", sa.String),
)


def upgrade():
    op.bulk_insert(
        channels,
        [{"name": n, "category": c, "status": "active", "integration_enabled": True} for n, c in CHANNELS],
    )
    op.bulk_insert(stores, [{"name": n, "category": c, "status": "active"} for n, c in STORES])


def downgrade():
    op.execute(channels.delete().where(channels.c.name.in_([n for n, _ in CHANNELS])))
    op.execute(stores.delete().where(stores.c.name.in_([n for n, _ in STORES])))
