import logging
import os

from sqlalchemy.orm import Session

from hardban_lab.database import SessionLocal
from hardban_lab.models import DistributionChannelDB, PublishingStoreDB, UserDB
from hardban_lab.security import hash_password

logger = logging.getLogger(__name__)

DEFAULT_CHANNELS = [
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

DEFAULT_STORES = [
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


def seed_platforms(db: Session) -> dict:
    """Insert the default channels and stores that are not there yet."""
    existing_channels = {name for (name,) in db.query(DistributionChannelDB.name).all()}
    existing_stores = {name for (name,) in db.query(PublishingStoreDB.name).all()}

    channels = [
        DistributionChannelDB(name=name, category=category, status="active", integration_enabled=True)
        for name, category in DEFAULT_CHANNELS if name not in existing_channels
    ]
    stores = [
        PublishingStoreDB(name=name, category=category, status="active")
        for name, category in DEFAULT_STORES if name not in existing_stores
    ]
    db.add_all(channels + stores)
    db.commit()
    logger.info(f"Seeded {len(channels)} channels and {len(stores)} stores")
    return {"channels": len(channels), "stores": len(stores)}


def seed_admin(db: Session, username: str, password: str):
    if db.query(UserDB).filter(UserDB.username == username).first():
        logger.info(f"Admin user {username} already exists")
        return None
    admin = UserDB(
        username=username,
        password_hash=hash_password(password),
        display_name="Administrator",
        role="admin",
    )
    db.add(admin)
    db.commit()
    logger.info(f"Created admin user {username}")
    return admin


def run(db: Session = None):
    own_session = db is None
    db = db or SessionLocal()
    try:
        result = seed_platforms(db)
        password = os.environ.get("ADMIN_PASSWORD")
        if password:
            seed_admin(db, os.environ.get("ADMIN_USERNAME", "admin"), password)
        else:
            logger.warning("ADMIN_PASSWORD not set, skipping admin user")
        return result
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
