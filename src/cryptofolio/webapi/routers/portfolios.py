"""Portfolio viewing and paper trading endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from ...config.logging import get_logger
from ...services.portfolio import PortfolioService
from ..dependencies import get_service
from ..models.requests import BalanceUpdateRequest, BuyRequest, SellRequest
from ..models.responses import (
    BalanceResponse,
    DashboardResponse,
    SellPreviewResponse,
    TradeResponse,
    TransactionsResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/portfolios")


@router.get(
    "/{owner_id}",
    response_model=DashboardResponse,
    summary="Get Portfolio",
    description="Portfolio summary, positions, recent transactions and signals",
)
async def get_portfolio(
    request: Request,
    owner_id: str,
    transaction_limit: int = Query(20, ge=0, le=500),
    service: PortfolioService = Depends(get_service),
):
    """
    Get an owner's portfolio valued at current prices.

    The portfolio is created with the starting balance on first access.
    """
    request_id = getattr(request.state, "request_id", None)

    logger.info("Portfolio requested", owner_id=owner_id, request_id=request_id)
    dashboard = await service.get_dashboard(owner_id, transaction_limit=transaction_limit)

    return DashboardResponse(data=dashboard, request_id=request_id)


@router.get(
    "/{owner_id}/transactions",
    response_model=TransactionsResponse,
    summary="Get Transactions",
    description="Transaction history, newest first",
)
async def get_transactions(
    request: Request,
    owner_id: str,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    service: PortfolioService = Depends(get_service),
):
    request_id = getattr(request.state, "request_id", None)

    transactions = await service.list_transactions(owner_id, limit=limit)

    return TransactionsResponse(
        data={
            "transactions": [t.to_dict() for t in transactions],
            "count": len(transactions),
        },
        request_id=request_id,
    )


@router.post(
    "/{owner_id}/buy",
    response_model=TradeResponse,
    summary="Buy Asset",
    description="Spend a currency amount on an asset at the current quote",
)
async def buy(
    request: Request,
    owner_id: str,
    buy_request: BuyRequest,
    service: PortfolioService = Depends(get_service),
):
    request_id = getattr(request.state, "request_id", None)

    logger.info(
        "Buy requested",
        owner_id=owner_id,
        symbol=buy_request.symbol,
        amount=buy_request.amount,
        request_id=request_id,
    )
    result = await service.buy(owner_id, buy_request.symbol, amount=buy_request.amount)

    return TradeResponse(
        data=result.to_dict(),
        message=f"Bought {result.transaction.quantity:.8f} {result.transaction.symbol}",
        request_id=request_id,
    )


@router.post(
    "/{owner_id}/sell",
    response_model=TradeResponse,
    summary="Sell Asset",
    description="Sell a quantity or a percentage of a held position",
)
async def sell(
    request: Request,
    owner_id: str,
    sell_request: SellRequest,
    service: PortfolioService = Depends(get_service),
):
    request_id = getattr(request.state, "request_id", None)

    logger.info(
        "Sell requested",
        owner_id=owner_id,
        symbol=sell_request.symbol,
        quantity=sell_request.quantity,
        percentage=sell_request.percentage,
        request_id=request_id,
    )
    result = await service.sell(
        owner_id,
        sell_request.symbol,
        quantity=sell_request.quantity,
        percentage=sell_request.percentage,
    )

    return TradeResponse(
        data=result.to_dict(),
        message=f"Sold {result.transaction.quantity:.8f} {result.transaction.symbol}",
        request_id=request_id,
    )


@router.post(
    "/{owner_id}/sell/preview",
    response_model=SellPreviewResponse,
    summary="Preview Sell",
    description="Proceeds of a prospective sell without executing it",
)
async def preview_sell(
    request: Request,
    owner_id: str,
    sell_request: SellRequest,
    service: PortfolioService = Depends(get_service),
):
    request_id = getattr(request.state, "request_id", None)

    preview = await service.preview_sell(
        owner_id,
        sell_request.symbol,
        quantity=sell_request.quantity,
        percentage=sell_request.percentage,
    )

    return SellPreviewResponse(data=preview.to_dict(), request_id=request_id)


@router.put(
    "/{owner_id}/balance",
    response_model=BalanceResponse,
    summary="Update Cash Balance",
    description="Overwrite the cash balance of a portfolio",
)
async def update_balance(
    request: Request,
    owner_id: str,
    balance_request: BalanceUpdateRequest,
    service: PortfolioService = Depends(get_service),
):
    request_id = getattr(request.state, "request_id", None)

    cash_balance = await service.update_balance(owner_id, balance_request.balance)

    return BalanceResponse(
        data={"owner_id": owner_id, "cash_balance": cash_balance},
        message="Balance updated",
        request_id=request_id,
    )
