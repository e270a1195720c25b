"""Database initialization utilities."""
from typing import Optional

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from leave_engine.core.logging import get_logger
from leave_engine.db.base import Base, import_models

logger = get_logger(__name__)


def _engine(bind: Optional[Engine]) -> Engine:
    if bind is not None:
        return bind
    from leave_engine.db.session import engine
    return engine


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Initialize the database by creating all tables.

    Note: This is suitable for development/testing only.
    """
    bind = _engine(bind)
    try:
        # Import all models to ensure they're registered
        import_models()

        existing_tables = set(inspect(bind).get_table_names())
        Base.metadata.create_all(bind=bind)

        created = set(Base.metadata.tables) - existing_tables
        if created:
            logger.info(f"Created {len(created)} database tables")
        else:
            logger.info(f"Database already initialized with {len(existing_tables)} tables")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


def drop_db(bind: Optional[Engine] = None) -> None:
    """
    Drop all database tables.

    WARNING: This will delete all data!
    """
    bind = _engine(bind)
    try:
        import_models()
        Base.metadata.drop_all(bind=bind)
        logger.warning("All database tables dropped")
    except Exception as e:
        logger.error(f"Error dropping database: {e}")
        raise


def reset_db(bind: Optional[Engine] = None) -> None:
    """
    Reset the database by dropping and recreating all tables.

    WARNING: This will delete all data!
    """
    logger.warning("Resetting database...")
    drop_db(bind)
    init_db(bind)
    logger.info("Database reset complete")
