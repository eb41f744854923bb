"""
Live market data from Yahoo Finance via yfinance.

B3 tickers are queried with the ".SA" suffix. yfinance is blocking, so each
batch runs in a worker thread under a timeout. Rate limiting, server errors
and timeouts are TransientError (retried by the RetryPolicy); other HTTP 4xx
are AuthError. A ticker that fails for any other reason is skipped.
Byte counters are estimates from request and normalised payload sizes.
"""

import asyncio
import json
import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from fii_tracker.core.exceptions import (
    AuthError,
    ParseError,
    ProviderError,
    TransientError,
    classify_http_status,
)
from fii_tracker.core.retry import RetryPolicy
from fii_tracker.core.timezone import now_market
from fii_tracker.domain.models import SourceUsage
from fii_tracker.providers.market_data_provider import (
    FundamentalsFetchResult,
    QuoteFetchResult,
)
from fii_tracker.providers.schemas import parse_fundamentals, parse_quotes

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_SECONDS = 20
DEFAULT_HISTORY_PERIOD = "1y"

_TRANSIENT_MARKERS = ("too many requests", "rate limit", "overloaded", "timed out")


# Lazy import so tests can patch before import
def _get_yf():
    import yfinance as yf
    return yf


def translate_error(source: str, exc: BaseException) -> ProviderError:
    """Map an exception raised inside yfinance to a provider error."""
    if isinstance(exc, ProviderError):
        return exc
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return TransientError(source, f"{source} timed out")
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return classify_http_status(source, status, str(exc))
    text = str(exc).lower()
    if any(marker in text for marker in _TRANSIENT_MARKERS):
        return TransientError(source, str(exc))
    return ProviderError(source, str(exc) or exc.__class__.__name__)


def _number(value: Any) -> Optional[str]:
    """Stringify a numeric value so the parser sees an exact decimal."""
    if value is None:
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return str(number) if number.is_finite() else None


class _YFinanceSource:
    name = "yfinance"

    def __init__(
        self,
        suffix: str = ".SA",
        retry_policy: Optional[RetryPolicy] = None,
        timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    ):
        self._suffix = suffix
        self._retry = retry_policy or RetryPolicy()
        self._timeout = timeout_seconds

    def _symbol(self, ticker: str) -> str:
        ticker = ticker.upper()
        return ticker if ticker.endswith(self._suffix) else f"{ticker}{self._suffix}"

    def _collect(self, tickers: list[str], build_item) -> list[dict]:
        yf = _get_yf()
        payload = []
        for ticker in tickers:
            try:
                item = build_item(yf.Ticker(self._symbol(ticker)), ticker)
            except Exception as e:
                error = translate_error(self.name, e)
                if isinstance(error, (AuthError, TransientError)):
                    raise error from e
                logger.debug("Skipping %s on %s: %s", ticker, self.name, error.message)
                continue
            if item is not None:
                payload.append(item)
        return payload

    async def _download(self, tickers: list[str], build_item) -> list[dict]:
        async def attempt() -> list[dict]:
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(self._collect, tickers, build_item),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError as e:
                raise translate_error(self.name, e) from e

        return await self._retry.run(attempt)

    def _usage(self, tickers: list[str], payload: list[dict]) -> SourceUsage:
        request = ",".join(self._symbol(t) for t in tickers)
        return SourceUsage(
            request_count=len(tickers),
            bytes_sent=len(request.encode("utf-8")),
            bytes_received=len(json.dumps(payload, default=str).encode("utf-8")),
        )


class YFinanceQuoteSource(_YFinanceSource):
    """Current quote and daily closing history per ticker."""

    name = "yfinance-quotes"

    def __init__(self, *args, history_period: str = DEFAULT_HISTORY_PERIOD, **kwargs):
        super().__init__(*args, **kwargs)
        self._history_period = history_period

    def _quote_item(self, yf_ticker, ticker: str, lite: bool) -> Optional[dict]:
        info = yf_ticker.info
        if not isinstance(info, dict):
            return None
        # Price: currentPrice preferred, then regularMarketPrice
        price = info.get("currentPrice")
        if price is None:
            price = info.get("regularMarketPrice")
        prev_close = info.get("previousClose") or info.get("regularMarketPreviousClose")
        change = info.get("regularMarketChangePercent")

        item: dict[str, Any] = {
            "symbol": ticker,
            "regularMarketPrice": _number(price),
            "regularMarketPreviousClose": _number(prev_close),
            "regularMarketChangePercent": _number(change),
        }
        if not lite:
            history = yf_ticker.history(period=self._history_period)
            item["historicalDataPrice"] = [
                {"date": ts.date().isoformat(), "close": _number(close)}
                for ts, close in history["Close"].items()
            ]
        return item

    async def fetch_quotes(self, tickers: list[str], lite: bool = False) -> QuoteFetchResult:
        if not tickers:
            return QuoteFetchResult()
        payload = await self._download(
            tickers, lambda yf_ticker, ticker: self._quote_item(yf_ticker, ticker, lite)
        )
        usage = self._usage(tickers, payload)
        try:
            quotes = parse_quotes(self.name, payload)
        except ParseError as e:
            logger.warning("Discarding %s response: %s", self.name, e.message)
            return QuoteFetchResult(usage=usage)
        return QuoteFetchResult(quotes=quotes, usage=usage)


class YFinanceFundamentalsSource(_YFinanceSource):
    """
    Fundamentals and dividend history per ticker.

    Yahoo only publishes ex-dates, so the payment date is reported equal to
    the ex-date. DY is the trailing twelve months of dividends over price.
    """

    name = "yfinance-fundamentals"

    def _fundamentals_item(self, yf_ticker, ticker: str) -> Optional[dict]:
        info = yf_ticker.info
        if not isinstance(info, dict):
            return None
        dividends = yf_ticker.dividends
        events = []
        for ts, value in dividends.items():
            ex_date = ts.date().isoformat()
            events.append({"exDate": ex_date, "paymentDate": ex_date, "value": _number(value)})

        price = info.get("currentPrice") or info.get("regularMarketPrice")
        dy = None
        if price and events:
            cutoff = (now_market().date() - timedelta(days=365)).isoformat()
            trailing = sum(
                (Decimal(e["value"]) for e in events if e["value"] and e["exDate"] >= cutoff),
                Decimal("0"),
            )
            try:
                dy = _number(trailing / Decimal(str(price)) * 100)
            except (InvalidOperation, ZeroDivisionError):
                dy = None

        return {
            "ticker": ticker,
            "sector": info.get("sector") or info.get("category"),
            "dy": dy,
            "pvp": _number(info.get("priceToBook")),
            "lastDividend": events[-1]["value"] if events else None,
            "dividendsHistory": events,
        }

    async def fetch_fundamentals(self, tickers: list[str]) -> FundamentalsFetchResult:
        if not tickers:
            return FundamentalsFetchResult()
        payload = await self._download(tickers, self._fundamentals_item)
        usage = self._usage(tickers, payload)
        try:
            data = parse_fundamentals(self.name, payload)
        except ParseError as e:
            logger.warning("Discarding %s response: %s", self.name, e.message)
            return FundamentalsFetchResult(usage=usage)
        return FundamentalsFetchResult(data=data, usage=usage)
