"""Market data source protocols and result types."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional, Protocol

from fii_tracker.domain.models import DividendEvent, PricePoint, SourceUsage


@dataclass(frozen=True)
class QuoteData:
    """Normalised quote for one ticker. None means "not provided or malformed"."""

    current_price: Optional[Decimal] = None
    previous_close: Optional[Decimal] = None
    change_percent: Optional[Decimal] = None
    price_history: tuple[PricePoint, ...] = ()


@dataclass(frozen=True)
class FundamentalsData:
    """
    Normalised fundamentals for one ticker.

    `fields` only holds keys the provider actually sent with a valid value,
    so merging it never blanks out cached data.
    """

    fields: dict[str, Any] = field(default_factory=dict)
    dividends: tuple[DividendEvent, ...] = ()


@dataclass
class QuoteFetchResult:
    quotes: dict[str, QuoteData] = field(default_factory=dict)
    usage: SourceUsage = field(default_factory=SourceUsage)


@dataclass
class FundamentalsFetchResult:
    data: dict[str, FundamentalsData] = field(default_factory=dict)
    usage: SourceUsage = field(default_factory=SourceUsage)


class QuoteSource(Protocol):
    """
    Protocol for quote feeds.

    Raises AuthError / TransientError / ProviderError on failure. Tickers the
    feed does not know are omitted from the result.
    """

    name: str

    async def fetch_quotes(self, tickers: list[str], lite: bool = False) -> QuoteFetchResult:
        """Fetch quotes; lite mode skips price history."""
        ...


class FundamentalsSource(Protocol):
    """Protocol for fundamentals and dividend-history feeds."""

    name: str

    async def fetch_fundamentals(self, tickers: list[str]) -> FundamentalsFetchResult:
        """Fetch fundamentals and dividend events per ticker."""
        ...
