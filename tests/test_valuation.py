import math
import pytest

from conftest import TEST_POSITIONS
from models import Position
from valuation import (
    compute_allocation,
    compute_portfolio_stats,
    compute_quick_stats,
    line_pl,
    line_value,
)


def _pos(ticker, quantity, average_cost, current_price):
    return Position(id=ticker.lower(), ticker=ticker, name=ticker,
                    quantity=quantity, average_cost=average_cost, current_price=current_price)


class TestLineValuation:
    def test_line_value(self):
        assert line_value(10, 110.0) == pytest.approx(1100.0)

    def test_line_pl_gain(self):
        pl = line_pl(10, 100.0, 120.0)
        assert pl.absolute == pytest.approx(200.0)
        assert pl.percent == pytest.approx(20.0)

    def test_line_pl_loss(self):
        pl = line_pl(4, 50.0, 40.0)
        assert pl.absolute == pytest.approx(-40.0)
        assert pl.percent == pytest.approx(-20.0)

    def test_zero_cost_reports_zero_percent(self):
        pl = line_pl(5, 0.0, 30.0)
        assert pl.percent == 0
        assert not math.isnan(pl.percent)
        assert not math.isinf(pl.percent)
        assert pl.absolute == pytest.approx(150.0)


class TestPortfolioStats:
    def test_totals(self):
        stats = compute_portfolio_stats(TEST_POSITIONS)
        assert stats.total_value == pytest.approx(3300.00, abs=1e-9)
        assert stats.total_cost == pytest.approx(3000.00, abs=1e-9)
        assert stats.total_pl == pytest.approx(300.00, abs=1e-9)
        assert stats.total_pl_percent == pytest.approx(10.0)

    def test_totals_match_sums(self):
        positions = [_pos("A", 3.3, 12.7, 14.1), _pos("B", 0.5, 99.99, 87.25), _pos("C", 7, 1.01, 1.5)]
        stats = compute_portfolio_stats(positions)
        assert stats.total_value == pytest.approx(sum(p.quantity * p.current_price for p in positions), abs=1e-9)
        assert stats.total_cost == pytest.approx(sum(p.quantity * p.average_cost for p in positions), abs=1e-9)

    def test_empty_portfolio_is_all_zero(self):
        stats = compute_portfolio_stats([])
        assert stats.total_value == 0
        assert stats.total_cost == 0
        assert stats.total_pl_percent == 0

    def test_zero_cost_guarded(self):
        stats = compute_portfolio_stats([_pos("FREE", 10, 0.0, 5.0)])
        assert stats.total_pl == pytest.approx(50.0)
        assert stats.total_pl_percent == 0

    def test_total_with_cash(self):
        stats = compute_portfolio_stats(TEST_POSITIONS, cash_balance=200.0)
        assert stats.total_with_cash == pytest.approx(3500.0)
        assert stats.to_dict()["total_with_cash"] == pytest.approx(3500.0)


class TestAllocation:
    def test_weights_sum_to_one(self):
        slices = compute_allocation(TEST_POSITIONS)
        assert sum(s.weight for s in slices) == pytest.approx(1.0)

    def test_each_weight_correct(self):
        # Each line is worth 1100 of 3300
        for s in compute_allocation(TEST_POSITIONS):
            assert s.weight == pytest.approx(1100 / 3300)

    def test_sorted_by_value_descending(self):
        positions = [_pos("SMALL", 1, 10, 10), _pos("BIG", 10, 10, 10), _pos("MID", 5, 10, 10)]
        assert [s.ticker for s in compute_allocation(positions)] == ["BIG", "MID", "SMALL"]

    def test_zero_total_gives_zero_weights(self):
        slices = compute_allocation([_pos("A", 0, 10, 10)])
        assert slices[0].weight == 0


class TestQuickStats:
    def test_none_without_positions(self):
        assert compute_quick_stats([]) is None

    def test_top_and_bottom(self):
        positions = [_pos("UP", 1, 100, 150), _pos("DOWN", 1, 100, 80), _pos("FLAT", 1, 100, 100)]
        qs = compute_quick_stats(positions)
        assert qs.top.ticker == "UP"
        assert qs.top.pl_percent == pytest.approx(50.0)
        assert qs.bottom.ticker == "DOWN"
        assert qs.bottom.pl_percent == pytest.approx(-20.0)

    def test_diversification_score(self):
        assert compute_quick_stats(TEST_POSITIONS).diversification == 30

    def test_diversification_capped_at_100(self):
        positions = [_pos(f"T{i}", 1, 1, 1) for i in range(12)]
        assert compute_quick_stats(positions).diversification == 100
