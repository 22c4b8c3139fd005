"""Normalize CoinGecko simple/price payloads into Quote records."""

from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

from ...config.logging import get_logger
from .catalog import lookup_asset
from .models import Quote

logger = get_logger(__name__)


def _as_float(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _observed_at(raw: Mapping[str, Any], fallback: datetime) -> datetime:
    ts = raw.get("last_updated_at")
    if ts is None:
        return fallback
    try:
        return datetime.fromtimestamp(int(ts), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return fallback


def normalize_quotes(
    asset_ids: Iterable[str],
    payload: Mapping[str, Any],
    vs_currency: str = "usd",
    now: Optional[datetime] = None,
) -> List[Quote]:
    """
    Build one Quote per requested asset present in the payload.

    Args:
        asset_ids: Requested asset ids, in display order
        payload: Decoded simple/price response keyed by asset id
        vs_currency: Quote currency used in the request
        now: Fallback observation time for entries without last_updated_at

    Returns:
        Quotes in the order of asset_ids; ids missing a price are skipped
    """
    now = now or datetime.now(timezone.utc)
    quotes: List[Quote] = []

    for asset_id in asset_ids:
        raw = payload.get(asset_id)
        if not isinstance(raw, Mapping) or raw.get(vs_currency) is None:
            logger.warning("No price returned for asset", asset_id=asset_id)
            continue

        info = lookup_asset(asset_id)
        quotes.append(
            Quote(
                id=asset_id,
                symbol=info.symbol,
                name=info.name,
                price=_as_float(raw.get(vs_currency)),
                change_24h_pct=_as_float(raw.get(f"{vs_currency}_24h_change")),
                market_cap=_as_float(raw.get(f"{vs_currency}_market_cap")),
                volume_24h=_as_float(raw.get(f"{vs_currency}_24h_vol")),
                observed_at=_observed_at(raw, now),
            )
        )

    return quotes
