"""Paper trading ledger: portfolios, trades and valuation."""

from .models import (
    BUY,
    SELL,
    PortfolioSnapshot,
    PortfolioValuation,
    PositionSnapshot,
    PositionValuation,
    SellPreview,
    TradeResult,
    TransactionRecord,
)
from .portfolio_manager import PortfolioManager
from .service import PortfolioService, get_portfolio_service
from .trade_executor import TradeExecutor
from .valuation import apply_quotes, best_buy, best_sell, value_portfolio

__all__ = [
    "BUY",
    "SELL",
    "PortfolioService",
    "get_portfolio_service",
    "PortfolioManager",
    "TradeExecutor",
    "PortfolioSnapshot",
    "PortfolioValuation",
    "PositionSnapshot",
    "PositionValuation",
    "SellPreview",
    "TradeResult",
    "TransactionRecord",
    "apply_quotes",
    "best_buy",
    "best_sell",
    "value_portfolio",
]
