"""Data models for market quotes."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class Quote:
    """Price record for one asset in one refresh cycle."""

    id: str
    symbol: str
    name: str
    price: float
    change_24h_pct: float
    market_cap: float
    volume_24h: float
    observed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "change_24h_pct": self.change_24h_pct,
            "market_cap": self.market_cap,
            "volume_24h": self.volume_24h,
            "observed_at": self.observed_at.isoformat(),
        }


@dataclass(frozen=True)
class AssetInfo:
    """Display symbol and name for a price source asset id."""

    symbol: str
    name: str
