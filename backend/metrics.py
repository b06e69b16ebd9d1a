import math

from models import MetricsSummary, ReconstructedPoint


def daily_returns(series: list[ReconstructedPoint]) -> list[float]:
    """Percent change between consecutive points; 0 where the previous value is not positive."""
    returns = []
    for prev, cur in zip(series, series[1:]):
        returns.append((cur.value - prev.value) / prev.value * 100 if prev.value > 0 else 0.0)
    return returns


def max_drawdown_percent(series: list[ReconstructedPoint]) -> float:
    """Largest percentage fall from the running peak. 0 for a non-decreasing series."""
    if not series:
        return 0.0
    peak = series[0].value
    worst = 0.0
    for point in series:
        if point.value > peak:
            peak = point.value
        drawdown = (peak - point.value) / peak * 100 if peak > 0 else 0.0
        if drawdown > worst:
            worst = drawdown
    return worst


def compute_metrics(
    series: list[ReconstructedPoint],
    current_value: float,
    total_cost: float,
) -> MetricsSummary | None:
    """
    Summary statistics over a reconstructed series.

    Returns None when the series has fewer than 2 points; callers must
    treat that as "insufficient data", not as zero metrics.

    period_return_percent uses the series endpoints, total_return_percent
    uses the live value and cost. Both are reported since they can differ.
    Volatility is the population standard deviation of the step returns,
    not annualized.
    """
    if len(series) < 2:
        return None

    first = series[0].value
    last = series[-1].value
    period_return = (last - first) / first * 100 if first > 0 else 0.0

    returns = daily_returns(series)
    avg_return = sum(returns) / len(returns)
    variance = sum((r - avg_return) ** 2 for r in returns) / len(returns)
    volatility = math.sqrt(variance)

    # max()/min() return the first extremum, so ties resolve left to right
    max_point = max(series, key=lambda p: p.value)
    min_point = min(series, key=lambda p: p.value)
    best_day = max(series, key=lambda p: p.percent_change)
    worst_day = min(series, key=lambda p: p.percent_change)

    total_return = (current_value - total_cost) / total_cost * 100 if total_cost > 0 else 0.0

    return MetricsSummary(
        period_return_percent=period_return,
        volatility_percent=volatility,
        max_value=max_point.value,
        min_value=min_point.value,
        max_label=max_point.label,
        min_label=min_point.label,
        max_drawdown_percent=max_drawdown_percent(series),
        best_day=best_day,
        worst_day=worst_day,
        total_return_percent=total_return,
        avg_daily_return_percent=avg_return,
    )
