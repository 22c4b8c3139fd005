"""Periodic market refresh: new quotes, then repriced positions."""

import asyncio
from typing import Any, Dict

from ..config.logging import get_logger
from ..services.portfolio import get_portfolio_service

logger = get_logger(__name__)


async def refresh_prices() -> Dict[str, Any]:
    """Refresh the shared price feed and copy the new prices onto every position."""
    result = await get_portfolio_service().refresh_prices()
    logger.info(
        "Price refresh job finished",
        refreshed=result["refreshed"],
        positions_updated=result["positions_updated"],
        quote_count=result["quote_count"],
    )
    return result


def run_price_refresh_sync() -> None:
    """
    Synchronous wrapper for the async price refresh.

    The scheduler runs jobs on worker threads, so each run gets its own event loop.
    """
    try:
        asyncio.run(refresh_prices())
    except Exception as e:
        # Keep the interval job alive; the next tick retries
        logger.error("Error in price refresh job", error=str(e), exc_info=True)
