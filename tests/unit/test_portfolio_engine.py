"""
Unit tests for the portfolio engine.

Tests cover:
- Weighted-average cost through buys and sells
- Clamping of over-sells
- Same-date ordering (buys before sells)
- Average price before a given transaction
- Position enrichment and fallbacks
- Portfolio summary
"""

from decimal import Decimal

import pytest

from fii_tracker.domain.models import MarketDataRecord
from fii_tracker.services.portfolio_engine import (
    PositionMetrics,
    aggregate_positions,
    average_price_before,
    build_positions,
    portfolio_summary,
)

from tests.conftest import buy, sell


# =============================================================================
# WEIGHTED AVERAGE COST
# =============================================================================


class TestWeightedAverageCost:
    """Tests for the running cost basis."""

    def test_reference_sequence(self):
        """
        GIVEN buy 100@10.00 +5 costs, buy 50@12.00, sell 60
        WHEN each transaction is applied in order
        THEN avg is 10.05, then 10.70 and stays 10.70 after the sell
        """
        m = PositionMetrics()

        m.apply(buy("MXRF11", 100, "10.00", "2024-01-02", costs="5"))
        assert m.quantity == Decimal("100")
        assert m.average_cost == Decimal("10.05")

        m.apply(buy("MXRF11", 50, "12.00", "2024-01-03"))
        assert m.total_cost == Decimal("1605")
        assert m.quantity == Decimal("150")
        assert m.average_cost == Decimal("10.70")

        m.apply(sell("MXRF11", 60, "11.00", "2024-01-04"))
        assert m.total_cost == Decimal("963")
        assert m.quantity == Decimal("90")
        assert m.average_cost == Decimal("10.70")

    @pytest.mark.parametrize("sell_price", ["1.00", "10.70", "50.00"])
    def test_sell_never_changes_average(self, sell_price):
        """
        GIVEN an open position
        WHEN selling part of it at any price
        THEN the average cost is unchanged
        """
        m = PositionMetrics()
        m.apply(buy("HGLG11", 10, "150", "2024-01-02"))
        m.apply(buy("HGLG11", 10, "170", "2024-01-03"))
        before = m.average_cost

        m.apply(sell("HGLG11", 5, sell_price, "2024-01-04"))

        assert m.average_cost == before

    def test_oversell_is_clamped_to_zero(self):
        """
        GIVEN 10 shares held
        WHEN selling 25
        THEN quantity, cost and average all reset to zero
        """
        m = PositionMetrics()
        m.apply(buy("KNRI11", 10, "150", "2024-01-02"))

        m.apply(sell("KNRI11", 25, "160", "2024-01-03"))

        assert m.quantity == Decimal("0")
        assert m.total_cost == Decimal("0")
        assert m.average_cost == Decimal("0")

    def test_sell_with_nothing_held_stays_zero(self):
        m = PositionMetrics()
        m.apply(sell("KNRI11", 5, "160", "2024-01-03"))
        assert m.quantity == Decimal("0")

    def test_rebuy_after_full_exit_starts_fresh_average(self):
        """
        GIVEN a position that was fully sold
        WHEN buying again
        THEN the average is the new buy price only
        """
        m = PositionMetrics()
        m.apply(buy("VISC11", 10, "100", "2024-01-02"))
        m.apply(sell("VISC11", 10, "120", "2024-01-03"))
        m.apply(buy("VISC11", 5, "110", "2024-01-04"))

        assert m.quantity == Decimal("5")
        assert m.average_cost == Decimal("110")


# =============================================================================
# AGGREGATION
# =============================================================================


class TestAggregatePositions:
    """Tests for ledger replay into positions."""

    def test_final_quantity_is_clamped_sum(self):
        """
        GIVEN buys of 10 and 5 and sells of 30 (out of order in the list)
        WHEN aggregating
        THEN the position is closed and dropped
        """
        txns = [
            sell("MXRF11", 30, "10", "2024-02-01"),
            buy("MXRF11", 10, "10", "2024-01-01"),
            buy("MXRF11", 5, "10", "2024-01-15"),
        ]

        assert aggregate_positions(txns) == {}

    def test_replays_in_date_order_regardless_of_insertion(self):
        txns = [
            sell("MXRF11", 50, "11", "2024-03-01"),
            buy("MXRF11", 100, "10", "2024-01-01"),
        ]

        result = aggregate_positions(txns)

        assert result["MXRF11"].quantity == Decimal("50")
        assert result["MXRF11"].average_cost == Decimal("10")

    def test_same_date_buy_applies_before_sell(self):
        """
        GIVEN a sell listed before a buy on the same date
        WHEN aggregating
        THEN the buy is applied first and the sell is not clamped
        """
        txns = [
            sell("HGLG11", 5, "160", "2024-01-10"),
            buy("HGLG11", 10, "150", "2024-01-10"),
        ]

        result = aggregate_positions(txns)

        assert result["HGLG11"].quantity == Decimal("5")

    def test_multiple_tickers_are_independent(self):
        txns = [
            buy("MXRF11", 100, "10", "2024-01-01"),
            buy("HGLG11", 10, "150", "2024-01-01"),
            sell("MXRF11", 100, "11", "2024-01-05"),
        ]

        result = aggregate_positions(txns)

        assert list(result) == ["HGLG11"]


class TestAveragePriceBefore:
    """Tests for average cost right before a transaction."""

    def test_returns_average_before_target(self):
        first = buy("MXRF11", 100, "10", "2024-01-01")
        second = buy("MXRF11", 100, "12", "2024-01-02")
        target = sell("MXRF11", 50, "13", "2024-01-03")

        assert average_price_before([first, second, target], target) == Decimal("11")

    def test_zero_when_nothing_held(self):
        target = buy("MXRF11", 100, "10", "2024-01-01")
        other = buy("HGLG11", 1, "150", "2023-12-01")

        assert average_price_before([other, target], target) == Decimal("0")


# =============================================================================
# POSITIONS AND SUMMARY
# =============================================================================


class TestBuildPositions:
    """Tests for position enrichment."""

    def test_missing_market_data_falls_back_to_average_cost(self):
        """
        GIVEN no cached market data
        WHEN building positions
        THEN price equals the average cost and yields are zero
        """
        positions = build_positions([buy("MXRF11", 100, "10", "2024-01-01", costs="5")])

        p = positions[0]
        assert p.current_price == Decimal("10.05")
        assert p.market_value == Decimal("1005")
        assert p.yield_on_cost == Decimal("0")
        assert p.segment == "Papel"

    def test_enriches_with_market_data(self):
        """
        GIVEN cached price 12 and DY 12% for an average cost of 10
        WHEN building positions
        THEN market value uses the price and yield on cost is 14.4%
        """
        record = MarketDataRecord(
            ticker="MXRF11",
            current_price=Decimal("12"),
            dy=Decimal("12"),
            pvp=Decimal("1.05"),
            sector="Recebíveis",
        )

        p = build_positions([buy("MXRF11", 100, "10", "2024-01-01")], {"MXRF11": record})[0]

        assert p.market_value == Decimal("1200")
        assert p.total_invested == Decimal("1000")
        assert p.yield_on_cost == Decimal("14.4")
        assert p.segment == "Recebíveis"
        assert p.pvp == Decimal("1.05")

    def test_unknown_ticker_gets_default_segment(self):
        p = build_positions([buy("ZZZZ11", 1, "100", "2024-01-01")])[0]
        assert p.segment == "Outros"


class TestPortfolioSummary:
    def test_totals_and_projected_income(self):
        records = {
            "MXRF11": MarketDataRecord(ticker="MXRF11", current_price=Decimal("10"), dy=Decimal("12")),
        }
        positions = build_positions(
            [
                buy("MXRF11", 100, "10", "2024-01-01"),
                buy("HGLG11", 10, "150", "2024-01-01"),
            ],
            records,
        )

        summary = portfolio_summary(positions)

        assert summary.position_count == 2
        assert summary.total_invested == Decimal("2500")
        assert summary.total_market_value == Decimal("2500")
        assert summary.projected_annual_income == Decimal("120")
        assert summary.yield_on_cost == Decimal("4.8")

    def test_empty_portfolio(self):
        summary = portfolio_summary([])
        assert summary.position_count == 0
        assert summary.yield_on_cost == Decimal("0")
