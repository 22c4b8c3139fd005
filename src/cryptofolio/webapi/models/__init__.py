"""API Models package for request/response schemas."""

from .ledger import (
    BalanceData,
    DashboardData,
    MarketStatusData,
    PortfolioSummaryData,
    PositionData,
    QuoteData,
    QuotesData,
    RefreshData,
    SellPreviewData,
    TradeResultData,
    TransactionData,
    TransactionsData,
    ValuedPositionData,
)
from .requests import BalanceUpdateRequest, BuyRequest, SellRequest
from .responses import (
    BalanceResponse,
    BaseResponse,
    DashboardResponse,
    ErrorResponse,
    HealthResponse,
    HealthStatus,
    MessageResponse,
    QuotesResponse,
    RefreshResponse,
    SellPreviewResponse,
    StatusResponse,
    SuccessResponse,
    TradeResponse,
    TransactionsResponse,
)

__all__ = [
    # Response models
    "BaseResponse",
    "SuccessResponse",
    "ErrorResponse",
    "HealthResponse",
    "HealthStatus",
    "MessageResponse",
    "StatusResponse",
    "QuotesResponse",
    "RefreshResponse",
    "DashboardResponse",
    "TransactionsResponse",
    "TradeResponse",
    "SellPreviewResponse",
    "BalanceResponse",
    # Ledger data models
    "QuoteData",
    "MarketStatusData",
    "QuotesData",
    "RefreshData",
    "PositionData",
    "ValuedPositionData",
    "TransactionData",
    "PortfolioSummaryData",
    "DashboardData",
    "TransactionsData",
    "TradeResultData",
    "SellPreviewData",
    "BalanceData",
    # Request models
    "BuyRequest",
    "SellRequest",
    "BalanceUpdateRequest",
]
