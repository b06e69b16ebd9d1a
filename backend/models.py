from dataclasses import asdict, dataclass
from datetime import datetime

from config import DEFAULT_CURRENCY


@dataclass(frozen=True)
class Position:
    id: str
    ticker: str
    name: str
    quantity: float
    average_cost: float
    current_price: float
    currency: str = DEFAULT_CURRENCY
    added_at: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class HistoryObservation:
    """Portfolio was worth `value` at `timestamp`. Append-only, one per calendar day."""
    timestamp: datetime
    value: float


@dataclass(frozen=True)
class LinePL:
    absolute: float
    percent: float


@dataclass(frozen=True)
class PortfolioStats:
    total_value: float
    total_cost: float
    total_pl: float
    total_pl_percent: float
    cash_balance: float = 0.0

    @property
    def total_with_cash(self) -> float:
        return self.total_value + self.cash_balance

    def to_dict(self) -> dict:
        d = asdict(self)
        d["total_with_cash"] = self.total_with_cash
        return d


@dataclass(frozen=True)
class AllocationSlice:
    ticker: str
    value: float
    weight: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class RankedPosition:
    ticker: str
    name: str
    pl_absolute: float
    pl_percent: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class QuickStats:
    top: RankedPosition
    bottom: RankedPosition
    diversification: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ReconstructedPoint:
    label: str
    timestamp_iso: str
    value: float
    absolute_change: float
    percent_change: float
    invested_basis: float
    profit: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class MetricsSummary:
    period_return_percent: float
    volatility_percent: float
    max_value: float
    min_value: float
    max_label: str
    min_label: str
    max_drawdown_percent: float
    best_day: ReconstructedPoint
    worst_day: ReconstructedPoint
    total_return_percent: float
    avg_daily_return_percent: float

    def to_dict(self) -> dict:
        return asdict(self)
