"""Data models for quotes, portfolios and trades returned by the API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class QuoteData(BaseModel):
    """Latest price record for one tracked asset."""

    id: str = Field(..., description="Price source asset id, e.g. bitcoin")
    symbol: str = Field(..., description="Display symbol, e.g. BTC")
    name: str
    price: float
    change_24h_pct: float = Field(..., description="Price change over 24h in percent")
    market_cap: float
    volume_24h: float
    observed_at: datetime


class MarketStatusData(BaseModel):
    """Freshness of the in-memory quote set."""

    quote_count: int
    last_updated: Optional[datetime] = None
    error: Optional[str] = Field(None, description="Last refresh failure, if any")
    is_stale: bool
    refresh_interval_seconds: int


class QuotesData(MarketStatusData):
    quotes: List[QuoteData]
    best_buy: Optional[QuoteData] = Field(
        None, description="Quote with the largest 24h drop"
    )


class RefreshData(MarketStatusData):
    refreshed: bool
    positions_updated: int


class PositionData(BaseModel):
    """Holding of one asset."""

    id: int
    symbol: str
    name: str
    quantity: float
    average_cost: float
    current_price: float
    total_invested: float = Field(..., description="Cost basis of the held quantity")
    updated_at: Optional[datetime] = None


class ValuedPositionData(PositionData):
    current_value: float
    unrealized_pnl: float
    unrealized_pnl_pct: float
    weight_pct: float = Field(..., description="Share of total portfolio value")


class TransactionData(BaseModel):
    """One entry of the append-only transaction log."""

    id: int
    kind: str = Field(..., description="buy or sell")
    symbol: str
    name: str
    quantity: float
    price: float
    gross_total: float
    fee: float
    created_at: Optional[datetime] = None


class PortfolioSummaryData(BaseModel):
    cash_balance: float
    total_invested: float
    total_current_value: float
    total_portfolio_value: float
    total_pnl: float
    total_pnl_pct: float
    change_24h: float = Field(..., description="Sum of unrealized P&L")
    change_24h_pct: float
    transaction_count: int
    updated_at: datetime


class DashboardData(BaseModel):
    """Portfolio valued at current prices with market signals."""

    owner_id: str
    portfolio_id: int
    summary: PortfolioSummaryData
    positions: List[ValuedPositionData]
    transactions: List[TransactionData] = Field(..., description="Newest first")
    best_buy: Optional[QuoteData] = None
    best_sell: Optional[PositionData] = Field(
        None, description="Profitable position with the highest P&L percent"
    )
    market: MarketStatusData


class TransactionsData(BaseModel):
    transactions: List[TransactionData]
    count: int


class TradeResultData(BaseModel):
    """Outcome of a committed buy or sell."""

    transaction: TransactionData
    position: Optional[PositionData] = Field(
        None, description="Remaining position, null when it was closed"
    )
    position_closed: bool
    cash_balance: float
    net_amount: float


class SellPreviewData(BaseModel):
    symbol: str
    quantity: float
    price: float
    gross_amount: float
    fee: float
    net_amount: float
    remaining_quantity: float


class BalanceData(BaseModel):
    owner_id: str
    cash_balance: float
