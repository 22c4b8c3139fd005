"""FastAPI application for the paper trading portfolio tracker."""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config.logging import get_logger
from ..events import get_event_bus, register_default_handlers
from ..ormdb.database import create_tables
from ..services.market import get_price_feed
from .exceptions import setup_exception_handlers
from .health import router as health_router
from .models.responses import MessageResponse, StatusResponse
from .routers import market_router, portfolios_router

logger = get_logger(__name__)

RECENT_EVENTS_LIMIT = 20


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Cryptofolio API")

    create_tables()

    event_bus = get_event_bus()
    register_default_handlers(event_bus)
    logger.info("Event system initialized", event_bus_name=event_bus.name)

    # Prime the quote set so the first request has prices
    feed = get_price_feed()
    if not await feed.refresh():
        logger.warning("Initial price refresh failed", error=feed.error)

    logger.info("Cryptofolio API started successfully")

    yield

    # Shutdown
    logger.info("Cryptofolio API shutdown completed")


async def add_request_id_middleware(request: Request, call_next):
    """Add unique request ID to each request for tracking."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    logger.info(
        "Request started",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        query_params=str(request.query_params),
        remote_addr=request.client.host if request.client else None,
    )

    response = await call_next(request)

    response.headers["X-Request-ID"] = request_id

    logger.info(
        "Request completed",
        request_id=request_id,
        status_code=response.status_code,
        method=request.method,
        path=request.url.path,
    )

    return response


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Cryptofolio API",
        description="""
        Paper trading portfolio tracker for crypto assets.

        ## Features

        * **Market Quotes**: Periodically refreshed prices for a fixed asset set
        * **Paper Trading**: Buy with a cash amount, sell by quantity or percentage
        * **Valuation**: Per-position and portfolio P&L with buy and sell signals
        """,
        version=__version__,
        license_info={
            "name": "MIT",
        },
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.middleware("http")(add_request_id_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    app.include_router(health_router, prefix="/api/v1", tags=["Health & Status"])
    app.include_router(market_router, prefix="/api/v1", tags=["Market"])
    app.include_router(portfolios_router, prefix="/api/v1", tags=["Portfolios"])

    @app.get(
        "/",
        response_model=MessageResponse,
        summary="API Root Endpoint",
        description="Basic API information",
    )
    async def root(request: Request) -> MessageResponse:
        return MessageResponse.create(
            message="Cryptofolio API",
            request_id=request.state.request_id,
        )

    @app.get(
        "/api/v1/status",
        response_model=StatusResponse,
        summary="API Status",
        description="API status with event bus statistics and recent events",
    )
    async def api_status(request: Request) -> StatusResponse:
        event_bus = get_event_bus()

        status_data = {
            "api_version": __version__,
            "status": "operational",
            "event_bus": event_bus.get_statistics(),
            "recent_events": event_bus.get_event_history(limit=RECENT_EVENTS_LIMIT),
            "endpoints": {
                "health": "/api/v1/health",
                "quotes": "/api/v1/market/quotes",
                "portfolios": "/api/v1/portfolios/{owner_id}",
                "docs": "/docs",
            },
        }

        return StatusResponse.create(
            data=status_data, request_id=request.state.request_id
        )

    logger.info("FastAPI application created")
    return app


# Create the app instance
app = create_app()
