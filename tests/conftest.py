"""Shared test configuration and fixtures."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock, patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

OBSERVED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_quote(symbol="BTC", price=60000.0, change_24h_pct=0.0, asset_id=None, name=None):
    """Build a Quote with sensible defaults."""
    from cryptofolio.services.market.models import Quote

    return Quote(
        id=asset_id or symbol.lower(),
        symbol=symbol,
        name=name or symbol.title(),
        price=price,
        change_24h_pct=change_24h_pct,
        market_cap=0.0,
        volume_24h=0.0,
        observed_at=OBSERVED_AT,
    )


def load_quotes(feed, quotes, last_updated=None):
    """Install a quote set on a PriceFeed as if a refresh had succeeded."""
    with feed._lock:
        feed._quotes = tuple(quotes)
        feed._last_updated = last_updated or datetime.now(timezone.utc)
        feed._error = None


@pytest.fixture
def isolated_db():
    """Create an isolated in-memory database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(
        autoflush=False, bind=engine, expire_on_commit=False
    )

    from cryptofolio.ormdb import models  # noqa: F401
    from cryptofolio.ormdb.database import Base

    Base.metadata.create_all(bind=engine)

    try:
        yield {"engine": engine, "session_factory": SessionLocal}
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(isolated_db):
    return isolated_db["session_factory"]


@pytest.fixture
def event_bus():
    """Fresh event bus so tests never see each other's subscriptions."""
    from cryptofolio.events import EventBus

    return EventBus("test")


@pytest.fixture
def test_settings():
    """Settings with file logging disabled and an in-memory database."""
    from cryptofolio.config.settings import Settings

    return Settings(
        environment="testing",
        database_url="sqlite://",
        log_file_enabled=False,
        starting_balance=100.0,
        fee_rate=0.001,
        default_buy_amount=10.0,
    )


@pytest.fixture
def coingecko_payload():
    """Representative simple/price response for three assets."""
    return {
        "bitcoin": {
            "usd": 60000.0,
            "usd_market_cap": 1180000000000.0,
            "usd_24h_vol": 25000000000.0,
            "usd_24h_change": -2.5,
            "last_updated_at": 1714564800,
        },
        "ethereum": {
            "usd": 3000.0,
            "usd_market_cap": 360000000000.0,
            "usd_24h_vol": 12000000000.0,
            "usd_24h_change": 1.25,
            "last_updated_at": 1714564800,
        },
        "solana": {
            "usd": 150.0,
            "usd_market_cap": 67000000000.0,
            "usd_24h_vol": 3000000000.0,
            "usd_24h_change": -4.0,
            "last_updated_at": 1714564800,
        },
    }


@pytest.fixture
def mock_coingecko_client(coingecko_payload):
    """Mock price source client returning the sample payload."""
    client = Mock()
    client.vs_currency = "usd"
    client.fetch_simple_prices = AsyncMock(return_value=coingecko_payload)
    return client


@pytest.fixture
def price_feed(mock_coingecko_client, event_bus):
    """Price feed preloaded with BTC, ETH and SOL quotes."""
    from cryptofolio.services.market.feed import PriceFeed

    feed = PriceFeed(
        client=mock_coingecko_client,
        asset_ids=["bitcoin", "ethereum", "solana"],
        refresh_interval_seconds=60,
        event_bus=event_bus,
    )
    load_quotes(
        feed,
        [
            make_quote("BTC", 60000.0, -2.5, asset_id="bitcoin", name="Bitcoin"),
            make_quote("ETH", 3000.0, 1.25, asset_id="ethereum", name="Ethereum"),
            make_quote("SOL", 150.0, -4.0, asset_id="solana", name="Solana"),
        ],
    )
    return feed


@pytest.fixture
def portfolio_service(test_settings, price_feed, session_factory, event_bus):
    """Portfolio service wired to the isolated database and test feed."""
    from cryptofolio.services.portfolio.service import PortfolioService

    return PortfolioService(
        settings=test_settings,
        price_feed=price_feed,
        session_factory=session_factory,
        event_bus=event_bus,
    )


@pytest.fixture(autouse=True)
def clean_lru_cache():
    """Clear LRU caches between tests to avoid state pollution."""
    yield

    from cryptofolio.config.settings import get_settings
    from cryptofolio.services.market.feed import get_price_feed
    from cryptofolio.services.portfolio.service import get_portfolio_service
    from cryptofolio.services.portfolio.valuation import _value_portfolio

    get_settings.cache_clear()
    get_price_feed.cache_clear()
    get_portfolio_service.cache_clear()
    _value_portfolio.cache_clear()


@pytest.fixture(autouse=True)
def block_price_source():
    """Prevent any real request to the price source."""
    with patch(
        "cryptofolio.services.market.client.aiohttp.ClientSession"
    ) as mock_client_session:
        mock_client_session.side_effect = RuntimeError(
            "Network access is disabled in tests"
        )
        yield mock_client_session


@pytest.fixture
def quote_factory():
    return make_quote


@pytest.fixture
def quote_loader():
    return load_quotes
