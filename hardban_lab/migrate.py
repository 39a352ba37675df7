"""Apply pending Alembic revisions one at a time, each in its own transaction."""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.engine import Engine

from hardban_lab import database

logger = logging.getLogger(__name__)

SCRIPT_LOCATION = Path(__file__).parent / "alembic"
VERSIONS_DIR = SCRIPT_LOCATION / "versions"


class MigrationError(Exception):
    def __init__(self, version: str, cause: Exception):
        super().__init__(f"Migration {version} failed: {cause}")
        self.version = version
        self.cause = cause


def alembic_config(directory: Optional[Path] = None, url: Optional[str] = None) -> Config:
    config = Config()
    config.set_main_option("script_location", str(SCRIPT_LOCATION))
    config.set_main_option("version_path_separator", "os")
    config.set_main_option("version_locations", str(directory or VERSIONS_DIR))
    if url:
        config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def applied_versions(engine: Engine) -> set:
    with engine.connect() as conn:
        return set(MigrationContext.configure(conn).get_current_heads())


def pending_revisions(engine: Engine, directory: Optional[Path] = None) -> List[str]:
    """Revisions between the database's current head and the newest script, oldest first."""
    script = ScriptDirectory.from_config(alembic_config(directory))
    current = applied_versions(engine)
    pending = []
    for revision in script.walk_revisions():
        if revision.revision in current:
            break
        pending.append(revision.revision)
    return list(reversed(pending))


def run_migrations(engine: Engine, directory: Optional[Path] = None) -> List[str]:
    """Apply every pending revision and return the ones applied.

    Stops at the first failing revision; that revision is rolled back and
    MigrationError is raised. Revisions applied before it stay applied.
    """
    config = alembic_config(directory)
    applied = []
    for revision in pending_revisions(engine, directory):
        logger.info(f"Applying migration {revision}")
        try:
            with engine.begin() as conn:
                config.attributes["connection"] = conn
                command.upgrade(config, revision)
        except Exception as e:
            logger.error(f"Migration {revision} failed, rolled back", exc_info=True)
            raise MigrationError(revision, e) from e
        finally:
            config.attributes.pop("connection", None)
        applied.append(revision)

    if applied:
        logger.info(f"Applied {len(applied)} migrations: {', '.join(applied)}")
    else:
        logger.info("Database schema is up to date")
    return applied


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Apply pending database migrations")
    parser.add_argument("--dry-run", action="store_true", help="list pending revisions without applying them")
    parser.add_argument("--dir", type=Path, default=VERSIONS_DIR, help="directory holding the revision scripts")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    engine = database.engine

    if args.dry_run:
        pending = pending_revisions(engine, args.dir)
        for revision in pending:
            print(revision)
        logger.info(f"{len(pending)} pending migrations")
        return 0

    try:
        run_migrations(engine, args.dir)
    except MigrationError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
