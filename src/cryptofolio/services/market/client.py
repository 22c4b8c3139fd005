"""HTTP client for the CoinGecko price API."""

import asyncio
from typing import Any, Dict, Iterable

import aiohttp

from ...config.logging import get_logger
from ...exceptions import FeedUnavailable

logger = get_logger(__name__)


class CoinGeckoClient:
    """Fetches spot prices from the CoinGecko simple/price endpoint."""

    def __init__(
        self,
        base_url: str = "https://api.coingecko.com/api/v3",
        vs_currency: str = "usd",
        timeout_seconds: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.vs_currency = vs_currency
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.logger = logger.bind(component="coingecko_client")

    def _build_params(self, asset_ids: Iterable[str]) -> Dict[str, str]:
        return {
            "ids": ",".join(asset_ids),
            "vs_currencies": self.vs_currency,
            "include_24hr_change": "true",
            "include_market_cap": "true",
            "include_24hr_vol": "true",
            "include_last_updated_at": "true",
        }

    async def fetch_simple_prices(self, asset_ids: Iterable[str]) -> Dict[str, Any]:
        """
        Fetch price data for a set of asset ids.

        Args:
            asset_ids: CoinGecko asset identifiers

        Returns:
            Decoded JSON payload keyed by asset id

        Raises:
            FeedUnavailable: On transport errors, timeouts, non-200 responses
                or an undecodable body
        """
        url = f"{self.base_url}/simple/price"
        params = self._build_params(asset_ids)

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url, params=params) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        self.logger.warning(
                            "Price request rejected",
                            status=response.status,
                            body=error_text[:200],
                        )
                        raise FeedUnavailable(
                            f"Price source returned HTTP {response.status}"
                        )
                    payload = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise FeedUnavailable(f"Failed to fetch prices: {e}") from e

        if not isinstance(payload, dict):
            raise FeedUnavailable("Unexpected price payload format")

        return payload
