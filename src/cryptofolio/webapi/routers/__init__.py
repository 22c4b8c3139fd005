"""API routers for Cryptofolio."""

from .market import router as market_router
from .portfolios import router as portfolios_router

__all__ = ["market_router", "portfolios_router"]
