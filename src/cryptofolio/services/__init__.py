"""Service layer for business logic encapsulation."""

from .market import PriceFeed, get_price_feed
from .portfolio import PortfolioService, get_portfolio_service

__all__ = [
    "PortfolioService",
    "PriceFeed",
    "get_portfolio_service",
    "get_price_feed",
]
