# create_tables.py
import logging

from hardban_lab import models  # noqa: F401  registers every table on Base.metadata
from hardban_lab.database import Base, engine

logger = logging.getLogger(__name__)


def reset_database(bind=None):
    """Drop and recreate every table from the ORM models. Development only."""
    bind = bind or engine
    Base.metadata.drop_all(bind=bind)
    Base.metadata.create_all(bind=bind)
    logger.info(f"Database reset complete on {bind.url.render_as_string(hide_password=True)}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    reset_database()
