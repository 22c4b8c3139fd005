"""Repository classes for ledger operations using SQLAlchemy ORM."""

from .base import BaseRepository
from .portfolio import PortfolioRepository
from .position import PositionRepository
from .transaction import TransactionRepository

__all__ = [
    "BaseRepository",
    "PortfolioRepository",
    "PositionRepository",
    "TransactionRepository",
]
