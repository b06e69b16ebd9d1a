import logging
import math
from datetime import date, datetime, timedelta, timezone
from typing import Iterable

from config import (
    BASE_VOLATILITY,
    DEFAULT_PERIOD,
    NOISE_CENTER,
    PERIOD_CONFIG,
    SYNTHETIC_FLOOR_RATIO,
    VOLATILITY_SPREAD,
    PeriodConfig,
)
from models import HistoryObservation, Position, ReconstructedPoint
from seeded_random import SeededRandom, seed_from_tickers
from valuation import compute_portfolio_stats

logger = logging.getLogger(__name__)


def resolve_period(period: str | None) -> PeriodConfig:
    """
    Map a period code to its (window_days, step_days, label_style).
    Unknown codes fall back to the 6M configuration instead of raising.
    """
    config = PERIOD_CONFIG.get(period or "")
    if config is None:
        logger.debug("Unrecognized period %r, using %s", period, DEFAULT_PERIOD)
        return PERIOD_CONFIG[DEFAULT_PERIOD]
    return config


def round2(x: float) -> float:
    # Half-up to 2 decimals (ties toward +inf), not banker's rounding
    return math.floor(x * 100 + 0.5) / 100


def day_key(ts: datetime) -> date:
    """Calendar day of a timestamp in local time. Naive timestamps are already local."""
    if ts.tzinfo is not None:
        ts = ts.astimezone()
    return ts.date()


def format_label(ts: datetime, label_style: str) -> str:
    if label_style == "weekday":
        return ts.strftime("%a")
    if label_style == "month_year":
        return ts.strftime("%b %y")
    return f"{ts.day} {ts.strftime('%b')}"


def build_observation_map(observations: Iterable[HistoryObservation]) -> dict[date, float]:
    """Day -> recorded value. If a day was logged twice, the later entry wins."""
    by_day: dict[date, float] = {}
    for obs in observations:
        by_day[day_key(obs.timestamp)] = obs.value
    return by_day


def local_wall_clock(ts: datetime) -> datetime:
    """Naive local wall-clock time. Naive input is already local."""
    if ts.tzinfo is not None:
        return ts.astimezone().replace(tzinfo=None)
    return ts


def target_dates(now: datetime, config: PeriodConfig) -> list[datetime]:
    """
    num_steps + 1 naive local dates ending at `now`, oldest first.
    Steps are whole calendar days on the wall clock, so a DST change
    inside the window keeps the time of day.
    """
    wall_now = local_wall_clock(now)
    num_steps = config.window_days // config.step_days
    return [wall_now - timedelta(days=i * config.step_days) for i in range(num_steps, -1, -1)]


def reconstruct_series(
    positions: list[Position],
    period: str | None,
    observations: Iterable[HistoryObservation],
    now: datetime | None = None,
) -> list[ReconstructedPoint]:
    """
    Evenly spaced portfolio values for the requested period.

    Days with a recorded observation use it verbatim. Other points are
    interpolated linearly from total cost (oldest) to current value (now),
    plus seeded noise floored at 70% of the baseline. The generator is
    seeded from the tickers, so identical holdings give identical series.

    Returns an empty list when there are no positions.
    """
    if not positions:
        return []

    config = resolve_period(period)
    if now is None:
        now = datetime.now(timezone.utc).astimezone()

    aware = now.tzinfo is not None
    dates = target_dates(now, config)
    num_steps = len(dates) - 1

    stats = compute_portfolio_stats(positions)
    current_value = stats.total_value
    total_cost = stats.total_cost

    rng = SeededRandom(seed_from_tickers(p.ticker for p in positions))
    recorded = build_observation_map(observations)

    points: list[ReconstructedPoint] = []
    for step, ts in enumerate(dates):
        value = recorded.get(ts.date())
        if value is None:
            progress = step / num_steps
            baseline = total_cost + (current_value - total_cost) * progress
            volatility = BASE_VOLATILITY * (1 + rng.next() * VOLATILITY_SPREAD)
            trend = (rng.next() - NOISE_CENTER) * volatility * baseline
            value = max(baseline * SYNTHETIC_FLOOR_RATIO, baseline + trend)

        prev_value = points[-1].value if points else value
        change = value - prev_value
        change_pct = change / prev_value * 100 if prev_value > 0 else 0.0

        points.append(ReconstructedPoint(
            label=format_label(ts, config.label_style),
            timestamp_iso=ts.astimezone().isoformat() if aware else ts.isoformat(),
            value=round2(value),
            absolute_change=round2(change),
            percent_change=round2(change_pct),
            invested_basis=total_cost,
            profit=round2(value - total_cost),
        ))

    return points
