"""Exception classes shared by the ledger, the price feed and the API."""

from typing import Any, Dict, Optional


class CryptofolioException(Exception):
    """Base exception for Cryptofolio application."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.request_id = request_id


class TradeValidationError(CryptofolioException):
    """Base class for rejected trade or balance intents."""


class InsufficientFunds(TradeValidationError):
    """Buy amount exceeds the available cash balance."""

    def __init__(self, requested: float, available: float):
        super().__init__(
            message=(
                f"Insufficient balance: requested {requested:.2f}, "
                f"available {available:.2f}"
            ),
            status_code=400,
            details={"requested": requested, "available": available},
        )


class InvalidAmount(TradeValidationError):
    """Non-positive trade amount or price, or a negative balance."""

    def __init__(self, message: str, amount: Optional[float] = None):
        super().__init__(
            message=message,
            status_code=422,
            details={"amount": amount},
        )


class InvalidQuantity(TradeValidationError):
    """Sell quantity is not positive or exceeds the held quantity."""

    def __init__(self, symbol: str, requested: float, held: float):
        super().__init__(
            message=(
                f"Invalid quantity for {symbol}: "
                f"have {held}, want to sell {requested}"
            ),
            status_code=422,
            details={"symbol": symbol, "requested": requested, "held": held},
        )


class NoSuchPosition(TradeValidationError):
    """Portfolio holds no position in the symbol."""

    def __init__(self, symbol: str):
        super().__init__(
            message=f"No position found for {symbol}",
            status_code=404,
            details={"symbol": symbol},
        )


class PortfolioNotFound(CryptofolioException):
    """No portfolio exists with the given identifier."""

    def __init__(self, identifier: str):
        super().__init__(
            message=f"Portfolio with identifier '{identifier}' not found",
            status_code=404,
            details={"resource": "portfolio", "identifier": identifier},
        )


class FeedUnavailable(CryptofolioException):
    """Price source failed or has no quote for the requested asset."""

    def __init__(self, message: str, symbol: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=503,
            details={"service": "price_feed", "symbol": symbol},
        )


class StoreUnavailable(CryptofolioException):
    """Ledger store operation failed."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            message=f"Ledger store {operation} failed: {message}",
            status_code=503,
            details={"operation": operation},
        )
