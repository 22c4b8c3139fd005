"""Response models for the Cryptofolio API."""

from datetime import datetime, timezone
from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .ledger import (
    BalanceData,
    DashboardData,
    QuotesData,
    RefreshData,
    SellPreviewData,
    TradeResultData,
    TransactionsData,
)

# Generic type for data responses
T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseResponse(BaseModel):
    """Base response model for all API responses."""

    success: bool = Field(..., description="Whether the request was successful")
    timestamp: datetime = Field(
        default_factory=_utcnow, description="Response timestamp"
    )
    request_id: Optional[str] = Field(
        None, description="Unique request identifier for tracking"
    )

    model_config = ConfigDict(
        use_enum_values=True,
        arbitrary_types_allowed=True,
    )

    @field_serializer("timestamp")
    def serialize_timestamp(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()


class SuccessResponse(BaseResponse, Generic[T]):
    """Generic success response with typed data."""

    success: bool = Field(True, description="Always true for success responses")
    data: T = Field(..., description="Response data")
    message: Optional[str] = Field(None, description="Optional success message")


class ErrorResponse(BaseResponse):
    """Error response model."""

    success: bool = Field(False, description="Always false for error responses")
    error: Dict[str, Any] = Field(..., description="Error details")


class HealthStatus(BaseModel):
    """Health status model."""

    status: str = Field(
        ..., description="Overall health status: healthy, degraded, unhealthy"
    )
    services: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict, description="Individual service statuses"
    )
    uptime_seconds: float = Field(..., description="Application uptime in seconds")
    version: Optional[str] = Field(None, description="Application version")


class HealthResponse(BaseResponse):
    """Health check response."""

    success: bool = Field(True, description="Always true for health responses")
    health: HealthStatus = Field(..., description="Detailed health information")


class MessageResponse(SuccessResponse[Dict[str, str]]):
    """Simple message response."""

    data: Dict[str, str] = Field(..., description="Message data")

    @classmethod
    def create(
        cls, message: str, request_id: Optional[str] = None
    ) -> "MessageResponse":
        """Create a simple message response."""
        return cls(
            success=True,
            data={"message": message},
            message=message,
            request_id=request_id,
        )


class StatusResponse(SuccessResponse[Dict[str, Any]]):
    """Generic status response."""

    data: Dict[str, Any] = Field(..., description="Status data")

    @classmethod
    def create(
        cls,
        data: Dict[str, Any],
        message: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> "StatusResponse":
        """Create a status response."""
        return cls(success=True, data=data, message=message, request_id=request_id)


class QuotesResponse(SuccessResponse[QuotesData]):
    """Response model for the market quote set."""

    data: QuotesData = Field(..., description="Quotes and feed freshness")


class RefreshResponse(SuccessResponse[RefreshData]):
    data: RefreshData = Field(..., description="Refresh outcome and feed freshness")


class DashboardResponse(SuccessResponse[DashboardData]):
    """Response model for a valued portfolio."""

    data: DashboardData = Field(..., description="Portfolio dashboard")


class TransactionsResponse(SuccessResponse[TransactionsData]):
    data: TransactionsData = Field(..., description="Transaction history")


class TradeResponse(SuccessResponse[TradeResultData]):
    """Response model for an executed buy or sell."""

    data: TradeResultData = Field(..., description="Trade result")


class SellPreviewResponse(SuccessResponse[SellPreviewData]):
    data: SellPreviewData = Field(..., description="Prospective sell proceeds")


class BalanceResponse(SuccessResponse[BalanceData]):
    data: BalanceData = Field(..., description="Updated cash balance")
