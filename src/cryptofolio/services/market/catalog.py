"""Static lookup of the curated asset list."""

from typing import Dict

from .models import AssetInfo

ASSET_CATALOG: Dict[str, AssetInfo] = {
    "bitcoin": AssetInfo(symbol="BTC", name="Bitcoin"),
    "ethereum": AssetInfo(symbol="ETH", name="Ethereum"),
    "binancecoin": AssetInfo(symbol="BNB", name="Binance Coin"),
    "solana": AssetInfo(symbol="SOL", name="Solana"),
    "ripple": AssetInfo(symbol="XRP", name="XRP"),
    "cardano": AssetInfo(symbol="ADA", name="Cardano"),
    "dogecoin": AssetInfo(symbol="DOGE", name="Dogecoin"),
    "polygon": AssetInfo(symbol="MATIC", name="Polygon"),
    "chainlink": AssetInfo(symbol="LINK", name="Chainlink"),
    "litecoin": AssetInfo(symbol="LTC", name="Litecoin"),
}


def lookup_asset(asset_id: str) -> AssetInfo:
    """Resolve an asset id to its display symbol and name.

    Unknown ids fall back to the upper-cased id as symbol and the
    capitalized id as name.
    """
    info = ASSET_CATALOG.get(asset_id)
    if info is not None:
        return info
    return AssetInfo(symbol=asset_id.upper(), name=asset_id.capitalize())
