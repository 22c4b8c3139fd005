"""Polling price feed that keeps the latest quote set in memory."""

import threading
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...config.logging import get_logger
from ...config.settings import get_settings
from ...events import (
    EventBus,
    PriceFeedErrorEvent,
    QuotesRefreshedEvent,
    get_event_bus,
)
from ...exceptions import FeedUnavailable
from .client import CoinGeckoClient
from .models import Quote
from .normalize import normalize_quotes

logger = get_logger(__name__)


class PriceFeed:
    """
    Holds the most recent full quote set for the tracked assets.

    Each refresh replaces the set wholesale. A failed refresh keeps the
    previous quotes, records the error and returns normally so the polling
    loop keeps running.
    """

    def __init__(
        self,
        client: CoinGeckoClient,
        asset_ids: Sequence[str],
        refresh_interval_seconds: int = 60,
        event_bus: Optional[EventBus] = None,
    ):
        self.client = client
        self.asset_ids = list(asset_ids)
        self.refresh_interval_seconds = refresh_interval_seconds
        self.event_bus = event_bus
        self.logger = logger.bind(component="price_feed")

        self._lock = threading.Lock()
        self._quotes: Tuple[Quote, ...] = ()
        self._last_updated: Optional[datetime] = None
        self._error: Optional[str] = None

    @property
    def quotes(self) -> Tuple[Quote, ...]:
        with self._lock:
            return self._quotes

    @property
    def last_updated(self) -> Optional[datetime]:
        with self._lock:
            return self._last_updated

    @property
    def error(self) -> Optional[str]:
        with self._lock:
            return self._error

    @property
    def is_stale(self) -> bool:
        """True before the first success or when two intervals passed without one."""
        last_updated = self.last_updated
        if last_updated is None:
            return True
        max_age = timedelta(seconds=self.refresh_interval_seconds * 2)
        return datetime.now(timezone.utc) - last_updated > max_age

    def get_quote(self, symbol: str) -> Optional[Quote]:
        """Latest quote for a display symbol, if the feed has one."""
        symbol = symbol.upper()
        for quote in self.quotes:
            if quote.symbol == symbol:
                return quote
        return None

    def require_quote(self, symbol: str) -> Quote:
        """Latest quote for a symbol, raising FeedUnavailable when absent."""
        quote = self.get_quote(symbol)
        if quote is None:
            message = self.error or f"No quote available for {symbol.upper()}"
            raise FeedUnavailable(message, symbol=symbol.upper())
        return quote

    async def refresh(self) -> bool:
        """
        Fetch a fresh quote set and replace the current one.

        Returns:
            True if the quotes were replaced, False if stale quotes were kept
        """
        try:
            payload = await self.client.fetch_simple_prices(self.asset_ids)
            quotes = normalize_quotes(
                self.asset_ids, payload, vs_currency=self.client.vs_currency
            )
            if not quotes:
                raise FeedUnavailable("Price source returned no quotes")
        except FeedUnavailable as e:
            with self._lock:
                self._error = e.message
                stale_count = len(self._quotes)

            self.logger.warning(
                "Price refresh failed, keeping last quotes",
                error=e.message,
                stale_quote_count=stale_count,
            )
            if self.event_bus is not None:
                await self.event_bus.publish(
                    PriceFeedErrorEvent(
                        error_message=e.message, stale_quote_count=stale_count
                    )
                )
            return False

        with self._lock:
            self._quotes = tuple(quotes)
            self._last_updated = datetime.now(timezone.utc)
            self._error = None

        self.logger.info("Price refresh completed", quote_count=len(quotes))
        if self.event_bus is not None:
            await self.event_bus.publish(
                QuotesRefreshedEvent(
                    quote_count=len(quotes),
                    symbols=[q.symbol for q in quotes],
                )
            )
        return True

    def status(self) -> Dict[str, Any]:
        """Feed health summary for API responses."""
        last_updated = self.last_updated
        return {
            "quote_count": len(self.quotes),
            "last_updated": last_updated.isoformat() if last_updated else None,
            "error": self.error,
            "is_stale": self.is_stale,
            "refresh_interval_seconds": self.refresh_interval_seconds,
        }

    def quotes_as_dicts(self) -> List[Dict[str, Any]]:
        return [q.to_dict() for q in self.quotes]


@lru_cache()
def get_price_feed() -> PriceFeed:
    """
    Get the process-wide price feed built from settings.

    Returns:
        Shared PriceFeed instance
    """
    settings = get_settings()
    client = CoinGeckoClient(
        base_url=settings.coingecko_api_url,
        vs_currency=settings.vs_currency,
        timeout_seconds=settings.price_request_timeout_seconds,
    )
    return PriceFeed(
        client=client,
        asset_ids=settings.tracked_asset_ids,
        refresh_interval_seconds=settings.price_refresh_interval_seconds,
        event_bus=get_event_bus(),
    )
