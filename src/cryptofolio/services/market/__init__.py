"""Market data: quote models, asset catalog and the polling price feed."""

from .catalog import ASSET_CATALOG, lookup_asset
from .client import CoinGeckoClient
from .feed import PriceFeed, get_price_feed
from .models import AssetInfo, Quote
from .normalize import normalize_quotes

__all__ = [
    "ASSET_CATALOG",
    "AssetInfo",
    "CoinGeckoClient",
    "PriceFeed",
    "Quote",
    "get_price_feed",
    "lookup_asset",
    "normalize_quotes",
]
