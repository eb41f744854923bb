"""
Unit tests for the yfinance sources.

yfinance is replaced by an in-process fake, so no network calls are made.

Tests cover:
- Quote and history normalisation
- Fundamentals and trailing dividend yield
- Retry on transient failures, no retry on auth failures
- Skipping tickers that fail for other reasons
- Error translation
"""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from fii_tracker.core.exceptions import AuthError, ProviderError, TransientError
from fii_tracker.core.retry import RetryPolicy
from fii_tracker.providers import yfinance_provider
from fii_tracker.providers.yfinance_provider import (
    YFinanceFundamentalsSource,
    YFinanceQuoteSource,
    translate_error,
)


class HTTPFailure(Exception):
    def __init__(self, status_code: int):
        super().__init__(f"HTTP {status_code}")
        self.response = type("Response", (), {"status_code": status_code})()


class FakeTicker:
    def __init__(self, info=None, closes=None, dividends=None, error=None):
        self._info = info or {}
        self._closes = closes or {}
        self.dividends = dividends or {}
        self._error = error
        self.history_calls = 0

    @property
    def info(self):
        if self._error is not None:
            raise self._error
        return self._info

    def history(self, period):
        self.history_calls += 1
        return {"Close": self._closes}


class FakeYFinance:
    """Module-like object exposing Ticker(symbol)."""

    def __init__(self, tickers):
        self.tickers = tickers
        self.requested: list[str] = []

    def Ticker(self, symbol):
        self.requested.append(symbol)
        return self.tickers[symbol]


class NoSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def install_fake(monkeypatch):
    def install(tickers):
        fake = FakeYFinance(tickers)
        monkeypatch.setattr(yfinance_provider, "_get_yf", lambda: fake)
        return fake

    return install


class TestQuoteSource:
    def test_quotes_and_history(self, install_fake):
        fake = install_fake(
            {
                "MXRF11.SA": FakeTicker(
                    info={
                        "currentPrice": 10.5,
                        "previousClose": 10.4,
                        "regularMarketChangePercent": 0.96,
                    },
                    closes={datetime(2024, 6, 12): 10.4, datetime(2024, 6, 13): 10.45},
                )
            }
        )
        source = YFinanceQuoteSource(retry_policy=RetryPolicy(sleep=NoSleep()))

        result = asyncio.run(source.fetch_quotes(["mxrf11"]))

        q = result.quotes["MXRF11"]
        assert fake.requested == ["MXRF11.SA"]
        assert q.current_price == Decimal("10.5")
        assert q.previous_close == Decimal("10.4")
        assert [(p.date, p.price) for p in q.price_history] == [
            ("2024-06-12", Decimal("10.4")),
            ("2024-06-13", Decimal("10.45")),
        ]
        assert result.usage.request_count == 1
        assert result.usage.bytes_sent == len("MXRF11.SA")

    def test_falls_back_to_regular_market_price(self, install_fake):
        install_fake({"HGLG11.SA": FakeTicker(info={"regularMarketPrice": 160.2})})
        source = YFinanceQuoteSource(retry_policy=RetryPolicy(sleep=NoSleep()))

        result = asyncio.run(source.fetch_quotes(["HGLG11"], lite=True))

        assert result.quotes["HGLG11"].current_price == Decimal("160.2")

    def test_lite_mode_skips_history(self, install_fake):
        ticker = FakeTicker(info={"currentPrice": 10})
        install_fake({"MXRF11.SA": ticker})
        source = YFinanceQuoteSource(retry_policy=RetryPolicy(sleep=NoSleep()))

        asyncio.run(source.fetch_quotes(["MXRF11"], lite=True))

        assert ticker.history_calls == 0

    def test_nan_price_is_dropped(self, install_fake):
        install_fake({"MXRF11.SA": FakeTicker(info={"currentPrice": float("nan")})})
        source = YFinanceQuoteSource(retry_policy=RetryPolicy(sleep=NoSleep()))

        result = asyncio.run(source.fetch_quotes(["MXRF11"], lite=True))

        assert result.quotes["MXRF11"].current_price is None

    def test_ticker_failing_with_unknown_error_is_skipped(self, install_fake):
        install_fake(
            {
                "MXRF11.SA": FakeTicker(error=KeyError("currentPrice")),
                "HGLG11.SA": FakeTicker(info={"currentPrice": 160}),
            }
        )
        source = YFinanceQuoteSource(retry_policy=RetryPolicy(sleep=NoSleep()))

        result = asyncio.run(source.fetch_quotes(["MXRF11", "HGLG11"], lite=True))

        assert list(result.quotes) == ["HGLG11"]

    def test_transient_failure_is_retried_then_raised(self, install_fake):
        """
        GIVEN yfinance answering 503 on every call
        WHEN fetching under a two-attempt policy
        THEN the batch is tried twice and a TransientError propagates
        """
        fake = install_fake({"MXRF11.SA": FakeTicker(error=HTTPFailure(503))})
        sleep = NoSleep()
        source = YFinanceQuoteSource(
            retry_policy=RetryPolicy(max_attempts=2, initial_delay=0.5, sleep=sleep)
        )

        with pytest.raises(TransientError):
            asyncio.run(source.fetch_quotes(["MXRF11"], lite=True))

        assert fake.requested == ["MXRF11.SA", "MXRF11.SA"]
        assert sleep.delays == [0.5]

    def test_auth_failure_is_not_retried(self, install_fake):
        fake = install_fake({"MXRF11.SA": FakeTicker(error=HTTPFailure(401))})
        source = YFinanceQuoteSource(retry_policy=RetryPolicy(sleep=NoSleep()))

        with pytest.raises(AuthError):
            asyncio.run(source.fetch_quotes(["MXRF11"], lite=True))

        assert fake.requested == ["MXRF11.SA"]


class TestFundamentalsSource:
    def test_fundamentals_and_trailing_yield(self, install_fake):
        """
        GIVEN two dividends of 0.10 in the last year, one older, price 10
        WHEN fetching fundamentals
        THEN DY is 2% and every event is reported with payment = ex-date
        """
        now = datetime.now()
        old = now - timedelta(days=500)
        recent = [now - timedelta(days=60), now - timedelta(days=30)]
        install_fake(
            {
                "MXRF11.SA": FakeTicker(
                    info={"currentPrice": 10, "priceToBook": 1.03, "category": "Papel"},
                    dividends={old: 0.5, recent[0]: 0.1, recent[1]: 0.1},
                )
            }
        )
        source = YFinanceFundamentalsSource(retry_policy=RetryPolicy(sleep=NoSleep()))

        data = asyncio.run(source.fetch_fundamentals(["MXRF11"])).data["MXRF11"]

        assert data.fields["dy"] == Decimal("2")
        assert data.fields["pvp"] == Decimal("1.03")
        assert data.fields["sector"] == "Papel"
        assert data.fields["last_dividend"] == Decimal("0.1")
        assert len(data.dividends) == 3
        assert all(e.ex_date == e.payment_date for e in data.dividends)

    def test_no_dividends_means_no_yield(self, install_fake):
        install_fake({"HGLG11.SA": FakeTicker(info={"currentPrice": 160, "sector": "Logística"})})
        source = YFinanceFundamentalsSource(retry_policy=RetryPolicy(sleep=NoSleep()))

        data = asyncio.run(source.fetch_fundamentals(["HGLG11"])).data["HGLG11"]

        assert "dy" not in data.fields
        assert data.dividends == ()


class TestTranslateError:
    def test_timeout_is_transient(self):
        assert isinstance(translate_error("yf", asyncio.TimeoutError()), TransientError)

    @pytest.mark.parametrize("status, expected", [(429, TransientError), (503, TransientError), (403, AuthError)])
    def test_http_status(self, status, expected):
        assert isinstance(translate_error("yf", HTTPFailure(status)), expected)

    def test_rate_limit_message_is_transient(self):
        error = translate_error("yf", Exception("Too Many Requests. Rate limited. Try after a while."))
        assert isinstance(error, TransientError)

    def test_other_errors_are_generic(self):
        error = translate_error("yf", ValueError("no data"))
        assert type(error) is ProviderError
        assert error.message == "no data"

    def test_provider_errors_pass_through(self):
        original = AuthError("yf", "nope")
        assert translate_error("yf", original) is original
