"""Database module for SQLAlchemy ORM integration."""

from .database import (
    Base,
    check_database_health,
    create_tables,
    drop_tables,
    get_engine,
    get_session_factory,
    reset_database,
)
from .models import Portfolio, Position, Transaction
from .repositories import (
    PortfolioRepository,
    PositionRepository,
    TransactionRepository,
)

__all__ = [
    # Database components
    "Base",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session_factory",
    "reset_database",
    "check_database_health",
    # Models
    "Portfolio",
    "Position",
    "Transaction",
    # Repositories
    "PortfolioRepository",
    "PositionRepository",
    "TransactionRepository",
]
