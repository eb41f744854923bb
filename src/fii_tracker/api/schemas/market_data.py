"""Pydantic schemas for market data endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from fii_tracker.domain.models import MarketDataRecord


class RefreshOutcomeResponse(BaseModel):
    """What a refresh call did."""

    model_config = {"from_attributes": True}

    ran: bool
    skipped_reason: Optional[str] = None
    quotes_ok: Optional[bool] = None
    fundamentals_ok: Optional[bool] = None
    fundamentals_requested: bool
    errors: list[str]


class RefreshStateResponse(BaseModel):
    model_config = {"from_attributes": True}

    in_progress: bool
    is_refreshing: bool
    last_sync: Optional[datetime] = None
    last_error: Optional[str] = None


class SourceUsageResponse(BaseModel):
    model_config = {"from_attributes": True}

    request_count: int
    bytes_sent: int
    bytes_received: int


class UsageStatsResponse(BaseModel):
    model_config = {"from_attributes": True}

    quotes: SourceUsageResponse
    fundamentals: SourceUsageResponse


class DividendEventResponse(BaseModel):
    model_config = {"from_attributes": True}

    ex_date: str
    payment_date: str
    value_per_share: Decimal
    is_provisioned: bool


class MarketDataResponse(BaseModel):
    """Cached market data for one ticker."""

    ticker: str
    current_price: Optional[Decimal] = None
    previous_close: Optional[Decimal] = None
    change_percent: Optional[Decimal] = None
    sector: Optional[str] = None
    administrator: Optional[str] = None
    dy: Optional[Decimal] = None
    pvp: Optional[Decimal] = None
    vacancy_rate: Optional[Decimal] = None
    daily_liquidity: Optional[Decimal] = None
    shareholders: Optional[int] = None
    last_dividend: Optional[Decimal] = None
    next_payment_date: Optional[str] = None
    price_history_points: int
    dividends: list[DividendEventResponse]
    last_updated: Optional[datetime] = None
    last_fundamental_update: Optional[datetime] = None

    @classmethod
    def from_domain(cls, record: MarketDataRecord) -> "MarketDataResponse":
        return cls(
            ticker=record.ticker,
            current_price=record.current_price,
            previous_close=record.previous_close,
            change_percent=record.change_percent,
            sector=record.sector,
            administrator=record.administrator,
            dy=record.dy,
            pvp=record.pvp,
            vacancy_rate=record.vacancy_rate,
            daily_liquidity=record.daily_liquidity,
            shareholders=record.shareholders,
            last_dividend=record.last_dividend,
            next_payment_date=record.next_payment_date,
            price_history_points=len(record.price_history),
            dividends=[DividendEventResponse.model_validate(e) for e in record.dividend_events()],
            last_updated=record.last_updated,
            last_fundamental_update=record.last_fundamental_update,
        )
