"""Database connection helpers for the local address store."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from loguru import logger

from citysec_geocoder.config import Settings
from citysec_geocoder.models import Base


def get_engine(settings: Settings) -> Engine:
    """
    Create SQLAlchemy engine from settings.

    Args:
        settings: Application settings containing database URL

    Returns:
        SQLAlchemy Engine instance
    """
    logger.debug("Creating database engine with URL: {}", settings.database_url)
    engine = create_engine(settings.database_url, echo=False)
    return engine


def get_session(engine: Engine) -> Session:
    """
    Create a new database session.

    Args:
        engine: SQLAlchemy Engine instance

    Returns:
        New SQLAlchemy Session instance
    """
    return Session(engine)


def init_database(drop_tables: bool, settings: Settings) -> None:
    """
    Create the local address store tables.

    Intended for development and test databases; production stores are
    managed by the incident-management backend.

    Args:
        drop_tables: If True, drop the existing tables before creating them
        settings: Application settings containing database URL

    Raises:
        Exception: If database initialization fails
    """
    logger.info("Initializing database schema")

    engine = get_engine(settings)

    try:
        if drop_tables:
            logger.warning("Dropping local address store tables")
            Base.metadata.drop_all(engine)
            logger.info("All tables dropped")

        Base.metadata.create_all(engine)
        logger.info("Database tables created successfully")

    except Exception as e:
        logger.error("Failed to initialize database: {}", str(e))
        raise
    finally:
        engine.dispose()
