"""Market data cache models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class PricePoint:
    """Closing price of a ticker on a calendar date."""

    date: str
    price: Decimal


@dataclass(frozen=True)
class DividendEvent:
    """
    A dividend declared for a ticker.

    ex_date decides entitlement; payment_date decides when the cash is income.
    Provisioned events are announced but not yet paid.
    """

    ex_date: str
    payment_date: str
    value_per_share: Decimal
    is_provisioned: bool = False


@dataclass(frozen=True)
class MarketDataRecord:
    """
    Cached market data for one ticker.

    Owned by the market data syncer and updated field by field (copy-on-write);
    a partial fetch never drops fields it did not refresh.
    """

    ticker: str
    current_price: Optional[Decimal] = None
    previous_close: Optional[Decimal] = None
    change_percent: Optional[Decimal] = None
    price_history: tuple[PricePoint, ...] = ()
    dividends_history: dict[str, DividendEvent] = field(default_factory=dict)

    # Fundamentals
    sector: Optional[str] = None
    administrator: Optional[str] = None
    dy: Optional[Decimal] = None
    pvp: Optional[Decimal] = None
    vacancy_rate: Optional[Decimal] = None
    daily_liquidity: Optional[Decimal] = None
    shareholders: Optional[int] = None
    last_dividend: Optional[Decimal] = None
    next_payment_date: Optional[str] = None

    last_updated: Optional[datetime] = None
    last_fundamental_update: Optional[datetime] = None

    @property
    def has_dividend_history(self) -> bool:
        return bool(self.dividends_history)

    def dividend_events(self) -> list[DividendEvent]:
        """Dividend events ordered by ex-date ascending."""
        return [self.dividends_history[k] for k in sorted(self.dividends_history)]


FUNDAMENTAL_FIELDS = (
    "sector",
    "administrator",
    "dy",
    "pvp",
    "vacancy_rate",
    "daily_liquidity",
    "shareholders",
    "last_dividend",
    "next_payment_date",
)
