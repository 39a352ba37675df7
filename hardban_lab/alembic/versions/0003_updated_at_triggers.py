"""keep updated_at current on PostgreSQL for updates that bypass the ORM

Revision ID: 0003_updated_at_triggers
Revises: 0002_seed_platforms
Create Date: 2024-06-10
"""
from alembic import op

revision = "0003_updated_at_triggers"
down_revision = "0002_seed_platforms"
branch_labels = None
depends_on = None

TABLES = (
    "users",
    "artists",
    "releases",
    "distribution_releases",
    "authors",
    "books",
    "book_chapters",
    "store_publications",
)

SET_UPDATED_AT = """
CREATE OR REPLACE FUNCTION set_updated_at()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = CURRENT_TIMESTAMP;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql
"""


def upgrade():
    if op.get_context().dialect.name != "postgresql":
        return
    op.execute(SET_UPDATED_AT)
    for table in TABLES:
        op.execute(
            f"CREATE TRIGGER {table}_set_updated_at BEFORE UPDATE ON {table} "
            f"FOR EACH ROW EXECUTE FUNCTION set_updated_at()"
        )


def downgrade():
    if op.get_context().dialect.name != "postgresql":
        return
    for table in TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS {table}_set_updated_at ON {table}")
    op.execute("DROP FUNCTION IF EXISTS set_updated_at()")
