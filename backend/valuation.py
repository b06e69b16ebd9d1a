from typing import Iterable

from config import DIVERSIFICATION_MAX, DIVERSIFICATION_POINTS_PER_LINE
from models import AllocationSlice, LinePL, PortfolioStats, Position, QuickStats, RankedPosition


def line_value(quantity: float, current_price: float) -> float:
    return quantity * current_price


def line_pl(quantity: float, average_cost: float, current_price: float) -> LinePL:
    """
    Unrealized P&L of one line.
    A zero cost basis reports 0% rather than infinity/NaN.
    """
    absolute = (current_price - average_cost) * quantity
    percent = (current_price - average_cost) / average_cost * 100 if average_cost > 0 else 0.0
    return LinePL(absolute=absolute, percent=percent)


def compute_portfolio_stats(positions: Iterable[Position], cash_balance: float = 0.0) -> PortfolioStats:
    total_value = 0.0
    total_cost = 0.0
    for p in positions:
        total_value += line_value(p.quantity, p.current_price)
        total_cost += p.quantity * p.average_cost

    total_pl = total_value - total_cost
    total_pl_percent = total_pl / total_cost * 100 if total_cost > 0 else 0.0

    return PortfolioStats(
        total_value=total_value,
        total_cost=total_cost,
        total_pl=total_pl,
        total_pl_percent=total_pl_percent,
        cash_balance=cash_balance,
    )


def compute_allocation(positions: list[Position]) -> list[AllocationSlice]:
    """
    Per-line market value and weight in the portfolio, largest first.
    Weights are 0 when the portfolio is worth nothing.
    """
    values = [(p.ticker, line_value(p.quantity, p.current_price)) for p in positions]
    total = sum(v for _, v in values)
    slices = [
        AllocationSlice(ticker=ticker, value=value, weight=value / total if total > 0 else 0.0)
        for ticker, value in values
    ]
    # sorted() is stable: equal values keep position order
    return sorted(slices, key=lambda s: s.value, reverse=True)


def compute_quick_stats(positions: list[Position]) -> QuickStats | None:
    if not positions:
        return None

    ranked = []
    for p in positions:
        pl = line_pl(p.quantity, p.average_cost, p.current_price)
        ranked.append(RankedPosition(
            ticker=p.ticker, name=p.name, pl_absolute=pl.absolute, pl_percent=pl.percent,
        ))
    ranked.sort(key=lambda r: r.pl_percent, reverse=True)

    return QuickStats(
        top=ranked[0],
        bottom=ranked[-1],
        diversification=min(len(positions) * DIVERSIFICATION_POINTS_PER_LINE, DIVERSIFICATION_MAX),
    )
