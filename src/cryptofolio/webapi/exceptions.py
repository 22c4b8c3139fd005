"""Error handling for the Cryptofolio API.

Every failure is rendered as the ErrorResponse envelope. Domain exceptions
carry their own status code; feed and store outages additionally advertise
when the next price refresh is due through Retry-After.
"""

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config.logging import get_logger
from ..config.settings import get_settings
from ..exceptions import CryptofolioException, FeedUnavailable, StoreUnavailable
from .models.responses import ErrorResponse

logger = get_logger(__name__)


def _error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    error: Dict[str, Any] = {
        "type": error_type,
        "message": message,
        "status_code": status_code,
    }
    if details is not None:
        error["details"] = details

    error_response = ErrorResponse(
        success=False,
        error=error,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(
        status_code=status_code, content=error_response.model_dump(), headers=headers
    )


async def cryptofolio_exception_handler(
    request: Request, exc: CryptofolioException
) -> JSONResponse:
    """Handle domain exceptions, mapping each to its status code."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Cryptofolio exception occurred",
        exception_type=type(exc).__name__,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        method=request.method,
    )

    headers = None
    if isinstance(exc, (FeedUnavailable, StoreUnavailable)):
        headers = {"Retry-After": str(get_settings().price_refresh_interval_seconds)}

    return _error_response(
        request,
        exc.status_code,
        type(exc).__name__,
        exc.message,
        details=exc.details,
        headers=headers,
    )


async def validation_exception_handler(request: Request, exc) -> JSONResponse:
    """Handle request body and Pydantic validation exceptions."""
    field_errors = {
        ".".join(str(loc) for loc in error["loc"]): error["msg"]
        for error in exc.errors()
    }

    logger.warning(
        "Validation error occurred",
        field_errors=field_errors,
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        method=request.method,
    )

    return _error_response(
        request,
        422,
        "ValidationError",
        "Request validation failed",
        details={"field_errors": field_errors},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle routing and HTTP exceptions such as unknown paths."""
    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        method=request.method,
    )

    return _error_response(request, exc.status_code, "HTTPException", str(exc.detail))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "Unexpected exception occurred",
        exception_type=type(exc).__name__,
        message=str(exc),
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    # Internal details stay in the log
    return _error_response(
        request, 500, "InternalServerError", "An unexpected error occurred"
    )


def setup_exception_handlers(app):
    """Register exception handlers with FastAPI app."""
    app.add_exception_handler(CryptofolioException, cryptofolio_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")
