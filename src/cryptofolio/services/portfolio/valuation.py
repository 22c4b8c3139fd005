"""Portfolio valuation: pure functions over position and quote snapshots.

Nothing here touches the database or the price feed. ``value_portfolio`` is
memoized on its (hashable, immutable) inputs, so repeated renders of an
unchanged snapshot reuse the previous result.
"""

from dataclasses import replace
from functools import lru_cache
from typing import Iterable, Optional, Sequence, Tuple

from ..market.models import Quote
from .models import PortfolioValuation, PositionSnapshot, PositionValuation


def _pct(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator * 100


def current_value(position: PositionSnapshot) -> float:
    return position.quantity * position.current_price


def unrealized_pnl(position: PositionSnapshot) -> float:
    return current_value(position) - position.total_invested


def unrealized_pnl_pct(position: PositionSnapshot) -> float:
    """Unrealized P&L relative to cost basis; 0 when nothing is invested."""
    return _pct(unrealized_pnl(position), position.total_invested)


def total_invested(positions: Iterable[PositionSnapshot]) -> float:
    return sum(p.total_invested for p in positions)


def total_current_value(positions: Iterable[PositionSnapshot]) -> float:
    return sum(current_value(p) for p in positions)


def change_24h(positions: Iterable[PositionSnapshot]) -> float:
    """Portfolio change figure reported as "24h".

    This is cumulative unrealized P&L across held positions, not a rolling
    24 hour delta: no historical valuation snapshot is stored to diff against.
    """
    return sum(unrealized_pnl(p) for p in positions)


def best_buy(quotes: Sequence[Quote]) -> Optional[Quote]:
    """Quote with the largest 24h drop (minimum change). First one wins ties."""
    best: Optional[Quote] = None
    for quote in quotes:
        if best is None or quote.change_24h_pct < best.change_24h_pct:
            best = quote
    return best


def best_sell(positions: Sequence[PositionSnapshot]) -> Optional[PositionSnapshot]:
    """Most profitable held position by unrealized P&L %, or None if none is in profit."""
    best: Optional[PositionSnapshot] = None
    best_pct = 0.0
    for position in positions:
        if unrealized_pnl(position) <= 0:
            continue
        pct = unrealized_pnl_pct(position)
        if best is None or pct > best_pct:
            best, best_pct = position, pct
    return best


@lru_cache(maxsize=256)
def _value_portfolio(
    cash_balance: float,
    positions: Tuple[PositionSnapshot, ...],
    quotes: Tuple[Quote, ...],
) -> PortfolioValuation:
    invested = total_invested(positions)
    held_value = total_current_value(positions)
    portfolio_value = cash_balance + held_value
    pnl = held_value - invested
    change = change_24h(positions)

    valuations = tuple(
        PositionValuation(
            position=p,
            current_value=current_value(p),
            unrealized_pnl=unrealized_pnl(p),
            unrealized_pnl_pct=unrealized_pnl_pct(p),
            weight_pct=_pct(current_value(p), portfolio_value),
        )
        for p in positions
    )

    return PortfolioValuation(
        cash_balance=cash_balance,
        total_invested=invested,
        total_current_value=held_value,
        total_portfolio_value=portfolio_value,
        total_pnl=pnl,
        total_pnl_pct=_pct(pnl, invested),
        change_24h=change,
        change_24h_pct=_pct(change, held_value),
        positions=valuations,
        best_buy=best_buy(quotes),
        best_sell=best_sell(positions),
    )


def value_portfolio(
    cash_balance: float,
    positions: Iterable[PositionSnapshot],
    quotes: Iterable[Quote] = (),
) -> PortfolioValuation:
    """
    Derive every portfolio metric from cash, positions and quotes.

    Args:
        cash_balance: Uninvested cash
        positions: Held positions with their last known prices
        quotes: Current quote set, used for the best-buy signal

    Returns:
        PortfolioValuation with totals, per-position metrics and signals
    """
    return _value_portfolio(float(cash_balance), tuple(positions), tuple(quotes))


def apply_quotes(
    positions: Iterable[PositionSnapshot], quotes: Iterable[Quote]
) -> Tuple[PositionSnapshot, ...]:
    """Return positions repriced from matching quotes; unmatched ones keep their price."""
    prices = {q.symbol: q.price for q in quotes}
    return tuple(
        replace(p, current_price=prices[p.symbol]) if p.symbol in prices else p
        for p in positions
    )
