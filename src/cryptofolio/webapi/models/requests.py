"""Request models for the Cryptofolio API."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def _normalize_symbol(v: str) -> str:
    v = v.strip()
    if not v.isalnum():
        raise ValueError("Symbol must contain only letters and digits")
    return v.upper()


class BuyRequest(BaseModel):
    """Request model for buying an asset with a currency amount."""

    symbol: str = Field(
        ..., description="Asset symbol (e.g., BTC, ETH)", min_length=1, max_length=10
    )
    amount: Optional[float] = Field(
        None, description="Currency amount to spend, fee included", allow_inf_nan=False
    )

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v):
        return _normalize_symbol(v)


class SellRequest(BaseModel):
    """Request model for selling part or all of a position."""

    symbol: str = Field(
        ..., description="Asset symbol (e.g., BTC, ETH)", min_length=1, max_length=10
    )
    quantity: Optional[float] = Field(
        None, description="Units to sell", allow_inf_nan=False
    )
    percentage: Optional[float] = Field(
        None,
        description="Share of the holding to sell, 0 < p <= 100",
        allow_inf_nan=False,
    )

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v):
        return _normalize_symbol(v)

    @model_validator(mode="after")
    def validate_sell_size(self):
        """Exactly one of quantity or percentage must be given."""
        if (self.quantity is None) == (self.percentage is None):
            raise ValueError("Provide exactly one of quantity or percentage")
        return self


class BalanceUpdateRequest(BaseModel):
    """Request model for overriding the cash balance."""

    balance: float = Field(..., description="New cash balance", allow_inf_nan=False)
