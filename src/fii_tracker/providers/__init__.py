"""Market data providers module."""

from fii_tracker.providers.market_data_provider import (
    FundamentalsData,
    FundamentalsFetchResult,
    FundamentalsSource,
    QuoteData,
    QuoteFetchResult,
    QuoteSource,
)
from fii_tracker.providers.stub_provider import StubFundamentalsSource, StubQuoteSource
from fii_tracker.providers.yfinance_provider import (
    YFinanceFundamentalsSource,
    YFinanceQuoteSource,
)

__all__ = [
    "FundamentalsData",
    "FundamentalsFetchResult",
    "FundamentalsSource",
    "QuoteData",
    "QuoteFetchResult",
    "QuoteSource",
    "StubFundamentalsSource",
    "StubQuoteSource",
    "YFinanceFundamentalsSource",
    "YFinanceQuoteSource",
]
