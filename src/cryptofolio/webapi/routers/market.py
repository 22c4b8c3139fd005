"""Market quote endpoints."""

from fastapi import APIRouter, Depends, Request

from ...config.logging import get_logger
from ...services.market import PriceFeed
from ...services.portfolio import PortfolioService, best_buy
from ..dependencies import get_feed, get_service
from ..models.responses import QuotesResponse, RefreshResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/market")


@router.get(
    "/quotes",
    response_model=QuotesResponse,
    summary="Get Market Quotes",
    description="Latest quote set for the tracked assets with feed freshness",
)
async def get_quotes(request: Request, feed: PriceFeed = Depends(get_feed)):
    """Return the in-memory quote set without contacting the price source."""
    request_id = getattr(request.state, "request_id", None)
    signal = best_buy(feed.quotes)

    return QuotesResponse(
        data={
            "quotes": feed.quotes_as_dicts(),
            "best_buy": signal.to_dict() if signal else None,
            **feed.status(),
        },
        request_id=request_id,
    )


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    summary="Refresh Market Quotes",
    description="Poll the price source now and reprice all held positions",
)
async def refresh_quotes(
    request: Request, service: PortfolioService = Depends(get_service)
):
    """
    Trigger an immediate price refresh.

    A failed refresh keeps the previous quotes and is reported in the
    response body rather than as an error status.
    """
    request_id = getattr(request.state, "request_id", None)

    logger.info("Manual price refresh requested", request_id=request_id)
    result = await service.refresh_prices()

    return RefreshResponse(
        data=result,
        message="Quotes refreshed" if result["refreshed"] else "Refresh failed",
        request_id=request_id,
    )
