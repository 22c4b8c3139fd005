"""Database configuration and session management."""

from typing import Optional

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config.logging import get_logger
from ..config.settings import get_settings

logger = get_logger(__name__)

# Base class for all ORM models
Base = declarative_base()

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def _configure_sqlite(dbapi_connection, connection_record):
    """Enable WAL journaling and foreign keys on every SQLite connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def create_engine_from_settings() -> Engine:
    """Create database engine using application settings."""
    settings = get_settings()
    database_url = settings.get_database_url()

    logger.info(
        "Creating database engine",
        url_type="sqlite" if "sqlite" in database_url else "other",
        echo_sql=settings.database_echo_sql,
    )

    engine_kwargs = {
        "echo": settings.database_echo_sql,
        "pool_pre_ping": settings.database_pool_pre_ping,
        "pool_recycle": settings.database_pool_recycle,
    }

    if "sqlite" in database_url:
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": 30,
        }
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            # In-memory databases live on a single shared connection
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs.update(
            {
                "pool_size": 5,
                "max_overflow": 10,
            }
        )

    engine = create_engine(database_url, **engine_kwargs)

    if "sqlite" in database_url:
        event.listen(engine, "connect", _configure_sqlite)

    return engine


def get_engine() -> Engine:
    """Get the database engine, creating it if necessary."""
    global _engine

    if _engine is None:
        _engine = create_engine_from_settings()
        logger.info("Database engine initialized")

    return _engine


def get_session_factory() -> sessionmaker:
    """Get the session factory, creating it if necessary."""
    global _SessionLocal

    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
            expire_on_commit=False,  # Keep objects accessible after commit
        )
        logger.debug("Session factory created")

    return _SessionLocal


def create_tables():
    """Create all database tables."""
    # Register the ledger tables on Base.metadata
    from . import models  # noqa: F401

    logger.info("Creating database tables")
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables created successfully")


def drop_tables():
    """Drop all database tables."""
    from . import models  # noqa: F401

    logger.warning("Dropping all database tables")
    Base.metadata.drop_all(bind=get_engine())
    logger.warning("All database tables dropped")


def reset_database():
    """Reset database by dropping and recreating all tables."""
    logger.warning("Resetting database - dropping and recreating all tables")

    drop_tables()
    create_tables()

    logger.info("Database reset completed")


def check_database_health(session_factory: Optional[sessionmaker] = None) -> dict:
    """
    Check database connectivity and report ledger row counts.

    Returns:
        dict: Database health status
    """
    from .models import Portfolio, Position, Transaction

    try:
        session = (session_factory or get_session_factory())()
        try:
            health_check = session.execute(text("SELECT 1 as health_check")).scalar()
            ledger = {
                "portfolios": session.query(Portfolio).count(),
                "positions": session.query(Position).count(),
                "transactions": session.query(Transaction).count(),
            }
        finally:
            session.close()

        return {
            "status": "healthy",
            "connectivity": health_check == 1,
            "ledger": ledger,
        }

    except SQLAlchemyError as e:
        logger.error("Database health check failed", error=str(e), exc_info=True)
        return {
            "status": "unhealthy",
            "error": str(e),
            "connectivity": False,
        }
