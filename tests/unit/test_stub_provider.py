"""
Unit tests for the offline stub sources.

Tests cover:
- Deterministic prices and synthetic history
- Lite mode
- Monthly dividends paid up to today
- Usage accounting
"""

import asyncio
from datetime import date
from decimal import Decimal

from fii_tracker.providers import StubFundamentalsSource, StubQuoteSource

TODAY = date(2024, 6, 14)


def today():
    return TODAY


class TestStubQuoteSource:
    def test_known_ticker_price_and_history(self):
        source = StubQuoteSource(today=today, history_days=3)

        result = asyncio.run(source.fetch_quotes(["MXRF11"]))

        q = result.quotes["MXRF11"]
        assert q.current_price == Decimal("10.45")
        assert [p.date for p in q.price_history] == ["2024-06-11", "2024-06-12", "2024-06-13"]
        assert result.usage.request_count == 1
        assert result.usage.bytes_received > 0

    def test_unknown_ticker_price_is_stable(self):
        source = StubQuoteSource(today=today)

        first = source.price_for("ABCD11")
        second = source.price_for("abcd11")

        assert first == second
        assert Decimal("5") <= first < Decimal("155")

    def test_price_override(self):
        source = StubQuoteSource(prices={"mxrf11": "11.11"}, today=today)
        assert source.price_for("MXRF11") == Decimal("11.11")

    def test_lite_mode_skips_history(self):
        source = StubQuoteSource(today=today)

        result = asyncio.run(source.fetch_quotes(["HGLG11"], lite=True))

        assert result.quotes["HGLG11"].price_history == ()

    def test_empty_request_costs_nothing(self):
        result = asyncio.run(StubQuoteSource(today=today).fetch_quotes([]))
        assert result.quotes == {}
        assert result.usage.request_count == 0


class TestStubFundamentalsSource:
    def test_dividends_are_monthly_and_already_paid(self):
        """
        GIVEN today is 2024-06-14
        WHEN fetching twelve months of stub fundamentals
        THEN June's payment (on the 15th) is not yet included
        """
        source = StubFundamentalsSource(today=today)

        data = asyncio.run(source.fetch_fundamentals(["MXRF11"])).data["MXRF11"]

        events = data.dividends
        assert len(events) == 11
        assert events[-1].ex_date == "2024-04-30"
        assert events[-1].payment_date == "2024-05-15"
        assert events[0].ex_date == "2023-06-30"
        assert all(e.value_per_share == Decimal("0.10") for e in events)

    def test_fields(self):
        source = StubFundamentalsSource(today=today)

        data = asyncio.run(source.fetch_fundamentals(["HGLG11", "ZZZZ11"])).data

        assert data["HGLG11"].fields["sector"] == "Logística"
        assert data["HGLG11"].fields["dy"] == Decimal("12")
        assert data["HGLG11"].fields["last_dividend"] == Decimal("1.60")
        assert "sector" not in data["ZZZZ11"].fields
