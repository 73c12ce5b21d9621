"""
Database initialization script.
"""
import logging

from sqlmodel import SQLModel

from app.database.engine import engine

logger = logging.getLogger("app.database")


def init_database() -> None:
    """
    Create telemetry, assignment and boundary tables.
    """
    logger.info("Initializing database...")

    # Register table metadata
    import app.models.boundary  # noqa: F401
    import app.models.telemetry  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("Database tables created")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_database()
