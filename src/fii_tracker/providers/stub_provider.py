"""
Deterministic offline market data sources.

Used when no live feed is configured and in tests. Payloads are built in the
same raw shape a live feed returns and go through the same validating parse.
"""

import json
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Optional

from fii_tracker.core.exceptions import ParseError
from fii_tracker.core.timezone import now_market
from fii_tracker.constants import STATIC_FII_SECTORS
from fii_tracker.domain.models import SourceUsage
from fii_tracker.providers.market_data_provider import (
    FundamentalsFetchResult,
    QuoteFetchResult,
)
from fii_tracker.providers.schemas import parse_fundamentals, parse_quotes

logger = logging.getLogger(__name__)

STUB_HISTORY_DAYS = 30
STUB_DIVIDEND_MONTHS = 12

# Deterministic prices for common FIIs
_STUB_PRICES: dict[str, Decimal] = {
    "MXRF11": Decimal("10.45"),
    "HGLG11": Decimal("160.20"),
    "KNRI11": Decimal("158.90"),
    "VISC11": Decimal("112.35"),
    "XPML11": Decimal("109.80"),
    "BTLG11": Decimal("101.15"),
    "KNCR11": Decimal("103.60"),
    "CPTS11": Decimal("8.05"),
}


def _stable_base_price(ticker: str) -> Decimal:
    """Same ticker, same price: 5.00 to 154.99 derived from the symbol."""
    seed = sum(ord(c) * (i + 1) for i, c in enumerate(ticker))
    return Decimal(500 + seed % 15000) / Decimal(100)


def _usage(request: str, payload: object) -> SourceUsage:
    return SourceUsage(
        request_count=1,
        bytes_sent=len(request.encode("utf-8")),
        bytes_received=len(json.dumps(payload, default=str).encode("utf-8")),
    )


class StubQuoteSource:
    """
    Quotes from a fixed price table, with a flat synthetic history.

    Unknown tickers get a price derived from the symbol itself.
    """

    name = "stub-quotes"

    def __init__(
        self,
        prices: Optional[dict[str, Decimal]] = None,
        today: Optional[Callable[[], date]] = None,
        history_days: int = STUB_HISTORY_DAYS,
    ):
        self._prices = dict(_STUB_PRICES)
        self._prices.update({k.upper(): Decimal(str(v)) for k, v in (prices or {}).items()})
        self._today = today or (lambda: now_market().date())
        self._history_days = history_days

    def price_for(self, ticker: str) -> Decimal:
        return self._prices.get(ticker.upper(), _stable_base_price(ticker.upper()))

    def build_payload(self, tickers: list[str], lite: bool) -> list[dict]:
        today = self._today()
        payload = []
        for ticker in tickers:
            price = self.price_for(ticker)
            item = {
                "symbol": ticker,
                "regularMarketPrice": str(price),
                "regularMarketPreviousClose": str(price),
                "regularMarketChangePercent": "0",
            }
            if not lite:
                item["historicalDataPrice"] = [
                    {"date": (today - timedelta(days=n)).isoformat(), "close": str(price)}
                    for n in range(self._history_days, 0, -1)
                ]
            payload.append(item)
        return payload

    async def fetch_quotes(self, tickers: list[str], lite: bool = False) -> QuoteFetchResult:
        if not tickers:
            return QuoteFetchResult()
        payload = self.build_payload(tickers, lite)
        usage = _usage(f"quote/{','.join(tickers)}?lite={lite}", payload)
        try:
            quotes = parse_quotes(self.name, payload)
        except ParseError as e:
            logger.warning("Discarding %s response: %s", self.name, e.message)
            return QuoteFetchResult(usage=usage)
        return QuoteFetchResult(quotes=quotes, usage=usage)


class StubFundamentalsSource:
    """Fundamentals with a monthly dividend of 1% of the stub price."""

    name = "stub-fundamentals"

    def __init__(
        self,
        quote_source: Optional[StubQuoteSource] = None,
        today: Optional[Callable[[], date]] = None,
        months: int = STUB_DIVIDEND_MONTHS,
    ):
        self._quotes = quote_source or StubQuoteSource(today=today)
        self._today = today or (lambda: now_market().date())
        self._months = months

    def _dividends(self, price: Decimal) -> list[dict]:
        today = self._today()
        value = (price / Decimal(100)).quantize(Decimal("0.01"))
        events = []
        year, month = today.year, today.month
        for _ in range(self._months):
            ex = date(year, month, 1) - timedelta(days=1)
            payment = date(year, month, 15)
            if payment <= today:
                events.append(
                    {
                        "exDate": ex.isoformat(),
                        "paymentDate": payment.isoformat(),
                        "value": str(value),
                        "isProvisioned": False,
                    }
                )
            month -= 1
            if month == 0:
                year, month = year - 1, 12
        return events

    def build_payload(self, tickers: list[str]) -> list[dict]:
        payload = []
        for ticker in tickers:
            price = self._quotes.price_for(ticker)
            dividends = self._dividends(price)
            payload.append(
                {
                    "ticker": ticker,
                    "sector": STATIC_FII_SECTORS.get(ticker.upper()),
                    "dy": "12",
                    "pvp": "1",
                    "lastDividend": dividends[0]["value"] if dividends else None,
                    "dividendsHistory": dividends,
                }
            )
        return payload

    async def fetch_fundamentals(self, tickers: list[str]) -> FundamentalsFetchResult:
        if not tickers:
            return FundamentalsFetchResult()
        payload = self.build_payload(tickers)
        usage = _usage(f"fundamentals/{','.join(tickers)}", payload)
        try:
            data = parse_fundamentals(self.name, payload)
        except ParseError as e:
            logger.warning("Discarding %s response: %s", self.name, e.message)
            return FundamentalsFetchResult(usage=usage)
        return FundamentalsFetchResult(data=data, usage=usage)
