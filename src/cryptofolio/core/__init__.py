"""Background jobs run by the scheduler."""

from .price_refresh import refresh_prices, run_price_refresh_sync

__all__ = ["refresh_prices", "run_price_refresh_sync"]
