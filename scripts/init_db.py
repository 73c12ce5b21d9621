#!/usr/bin/env python3
"""
Database initialization script for the boundary service.

Creates the schema on a fresh database and brings an existing one up to the
latest Alembic revision.
"""

import logging
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect

from app.database.engine import engine
from app.database.init_db import init_database
from app.logging_config import configure_logging
from app.services.config_service import config_service

logger = logging.getLogger("scripts.init_db")

BOUNDARY_TABLES = {"assignments", "boundary_proposals", "boundary_adjustment_logs", "notifications"}


def alembic_config() -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(project_root / "migrations"))
    cfg.set_main_option("sqlalchemy.url", config_service.get_setting("DB_URL", engine.url.render_as_string(hide_password=False)))
    return cfg


def check_database_exists() -> bool:
    """Check whether the boundary tables are already present."""
    try:
        existing = set(inspect(engine).get_table_names())
        return BOUNDARY_TABLES <= existing
    except Exception as e:
        logger.info(f"Database not found or unavailable: {e}")
        return False


def run_migrations(fresh: bool) -> bool:
    """Upgrade to head, or stamp head when the tables were just created."""
    try:
        cfg = alembic_config()
        head_rev = ScriptDirectory.from_config(cfg).get_current_head()

        if fresh:
            command.stamp(cfg, "head")
            logger.info(f"Fresh database stamped at revision {head_rev}")
            return True

        with engine.connect() as conn:
            current_rev = MigrationContext.configure(conn).get_current_revision()

        if current_rev != head_rev:
            logger.info(f"Applying migrations: {current_rev} -> {head_rev}")
            command.upgrade(cfg, "head")
            logger.info("Migrations applied")
        else:
            logger.info("Database is up to date")
        return True
    except Exception as e:
        logger.error(f"Error applying migrations: {e}")
        return False


def main():
    configure_logging()
    logger.info("Starting boundary database initialization")

    if check_database_exists():
        logger.info("Database already initialized")
        if not run_migrations(fresh=False):
            sys.exit(1)
    else:
        logger.info("Initializing a new database")
        try:
            init_database()
        except Exception as e:
            logger.error(f"Error creating tables: {e}")
            sys.exit(1)
        if not run_migrations(fresh=True):
            sys.exit(1)

    logger.info("Database initialization finished")


if __name__ == "__main__":
    main()
