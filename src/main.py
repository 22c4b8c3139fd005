"""
Cryptofolio - Main application entry point.

A paper trading portfolio tracker that polls crypto market prices and
values simulated holdings against them.
"""

import asyncio
import sys

import uvicorn
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from cryptofolio.config.logging import get_logger
from cryptofolio.config.settings import get_settings
from cryptofolio.core.price_refresh import refresh_prices
from cryptofolio.ormdb.database import reset_database
from cryptofolio.scheduler import (
    add_price_refresh_job,
    list_scheduled_jobs,
    shutdown_scheduler,
    start_scheduler,
)
from cryptofolio.services.market import get_price_feed
from cryptofolio.utils.config import initialize_application


def print_quotes() -> None:
    """Print the current quote set as a table."""
    feed = get_price_feed()
    if not feed.quotes:
        print(f"No quotes available: {feed.error}")
        return

    print(f"{'SYMBOL':<8}{'PRICE':>16}{'24H %':>10}")
    for quote in feed.quotes:
        print(f"{quote.symbol:<8}{quote.price:>16,.4f}{quote.change_24h_pct:>9.2f}%")


def main() -> None:
    """Main application entry point."""
    initialize_application()

    logger = get_logger(__name__)
    logger.info("Starting Cryptofolio application")

    settings = get_settings()

    if "-reset-db" in sys.argv:
        # Wipes every portfolio, position and transaction
        logger.warning("Resetting ledger database")
        reset_database()
        return

    if "-refresh" in sys.argv:
        # One-shot refresh for checking the price source
        logger.info("Running single price refresh")
        asyncio.run(refresh_prices())
        print_quotes()
        return

    logger.info(
        "Starting server mode",
        refresh_interval_seconds=settings.price_refresh_interval_seconds,
        host=settings.endpoint_host,
        port=settings.endpoint_port,
    )

    if settings.scheduler_enabled:
        start_scheduler()
        add_price_refresh_job(interval_seconds=settings.price_refresh_interval_seconds)
        for job in list_scheduled_jobs():
            logger.info("Scheduled job", **job)

    try:
        uvicorn.run(
            "cryptofolio.webapi.app:app",
            host=settings.endpoint_host,
            port=settings.endpoint_port,
            reload=settings.api_reload,
            log_level=settings.api_log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
    finally:
        if settings.scheduler_enabled:
            logger.info("Shutting down scheduler")
            shutdown_scheduler()


if __name__ == "__main__":
    main()
