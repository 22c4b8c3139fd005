"""FastAPI dependencies for the service layer."""

from ..ormdb.database import get_session_factory
from ..services.market import PriceFeed, get_price_feed
from ..services.portfolio import PortfolioService, get_portfolio_service


def get_service() -> PortfolioService:
    """Dependency to get the portfolio service instance."""
    return get_portfolio_service()


def get_feed() -> PriceFeed:
    """Dependency to get the shared price feed."""
    return get_price_feed()


def get_db_session_factory():
    """Dependency to get the session factory used for health checks."""
    return get_session_factory()
