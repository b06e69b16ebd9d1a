import logging
import math
from datetime import datetime, timezone

import db
from valuation import compute_portfolio_stats

logger = logging.getLogger(__name__)


def record_daily_snapshot(now: datetime | None = None) -> bool:
    """
    Append today's observation with the live total value.
    Skipped when there are no positions or today already has one.
    Returns True when a row was written.
    """
    positions = db.get_positions()
    if not positions:
        logger.info("No positions, daily snapshot skipped")
        return False

    if now is None:
        now = datetime.now(timezone.utc).astimezone()

    total_value = compute_portfolio_stats(positions).total_value
    recorded = db.insert_history_observation(now, total_value)
    if recorded:
        logger.info("Recorded daily snapshot for %s: %.2f", now.date().isoformat(), total_value)
    return recorded


def run_snapshot_job() -> None:
    """
    Scheduler entry point. Logs and swallows failures so the
    scheduler thread keeps running; the next tick retries.
    """
    try:
        record_daily_snapshot()
    except Exception:
        logger.exception("Daily snapshot job failed")


def apply_price_updates(prices: dict[str, float]) -> tuple[list[str], list[str]]:
    """
    Set current prices from a {ticker: price} mapping.

    Non-positive or non-finite prices are ignored with a warning, as are tickers
    not held. Positions missing from the mapping keep their last price.
    Returns: (updated tickers, held tickers left unchanged)
    """
    held = {p.ticker for p in db.get_positions()}
    valid: dict[str, float] = {}

    for ticker, price in prices.items():
        if ticker not in held:
            logger.warning("Price update for unknown ticker ignored: %s", ticker)
            continue
        if price is None or not math.isfinite(price) or price <= 0:
            logger.warning("Invalid price for %s ignored: %r", ticker, price)
            continue
        valid[ticker] = price

    if valid:
        db.update_current_prices(valid)

    updated = sorted(valid)
    unchanged = sorted(held - set(valid))
    return updated, unchanged
