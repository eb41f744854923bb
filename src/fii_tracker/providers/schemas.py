"""
Validating parse of raw provider payloads.

Every payload crosses this boundary before it reaches the cache. Fields that
fail validation are dropped (treated as absent) instead of propagated; a
record without a usable ticker is skipped; a payload that is not a list of
records raises ParseError.
"""

import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from fii_tracker.core.exceptions import ParseError, ValidationError as AppValidationError
from fii_tracker.core.timezone import parse_iso_date
from fii_tracker.domain.models import DividendEvent, PricePoint
from fii_tracker.providers.market_data_provider import FundamentalsData, QuoteData


def _coerce_date(value: Any) -> str:
    """Accept epoch seconds or ISO strings; return YYYY-MM-DD or raise ValueError."""
    if isinstance(value, bool):
        raise ValueError("boolean is not a date")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError("non-finite timestamp")
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc).date().isoformat()
        except (OverflowError, OSError) as e:
            raise ValueError(str(e)) from None
    try:
        return parse_iso_date(value)
    except AppValidationError as e:
        raise ValueError(e.message) from None


def _coerce_number(value: Any) -> Any:
    # Decimal(str(x)) keeps 10.95 as 10.95 instead of its binary expansion
    if isinstance(value, float):
        return str(value)
    return value


class _PayloadModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PricePointPayload(_PayloadModel):
    date: str
    close: Decimal = Field(ge=0)

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, value: Any) -> Any:
        return _coerce_date(value)

    @field_validator("close", mode="before")
    @classmethod
    def _close(cls, value: Any) -> Any:
        return _coerce_number(value)


class DividendPayload(_PayloadModel):
    ex_date: str = Field(alias="exDate")
    payment_date: str = Field(alias="paymentDate")
    value: Decimal = Field(ge=0)
    is_provisioned: bool = Field(False, alias="isProvisioned")

    @field_validator("ex_date", "payment_date", mode="before")
    @classmethod
    def _dates(cls, value: Any) -> Any:
        return _coerce_date(value)

    @field_validator("value", mode="before")
    @classmethod
    def _value(cls, value: Any) -> Any:
        return _coerce_number(value)


class QuotePayload(_PayloadModel):
    symbol: str = Field(min_length=1)
    current_price: Optional[Decimal] = Field(None, ge=0, alias="regularMarketPrice")
    previous_close: Optional[Decimal] = Field(None, ge=0, alias="regularMarketPreviousClose")
    change_percent: Optional[Decimal] = Field(None, alias="regularMarketChangePercent")
    historical_prices: Optional[list[Any]] = Field(None, alias="historicalDataPrice")

    @field_validator(
        "current_price", "previous_close", "change_percent", "historical_prices", mode="wrap"
    )
    @classmethod
    def _drop_malformed(cls, value: Any, handler) -> Any:
        try:
            return handler(_coerce_number(value))
        except ValidationError:
            return None


class FundamentalsPayload(_PayloadModel):
    ticker: str = Field(min_length=1)
    sector: Optional[str] = None
    administrator: Optional[str] = None
    dy: Optional[Decimal] = Field(None, ge=0)
    pvp: Optional[Decimal] = Field(None, ge=0)
    vacancy_rate: Optional[Decimal] = Field(None, ge=0, alias="vacancyRate")
    daily_liquidity: Optional[Decimal] = Field(None, ge=0, alias="dailyLiquidity")
    shareholders: Optional[int] = Field(None, ge=0)
    last_dividend: Optional[Decimal] = Field(None, ge=0, alias="lastDividend")
    next_payment_date: Optional[str] = Field(None, alias="nextPaymentDate")
    dividends: Optional[list[Any]] = Field(None, alias="dividendsHistory")

    @field_validator(
        "sector",
        "administrator",
        "dy",
        "pvp",
        "vacancy_rate",
        "daily_liquidity",
        "shareholders",
        "last_dividend",
        "next_payment_date",
        "dividends",
        mode="wrap",
    )
    @classmethod
    def _drop_malformed(cls, value: Any, handler, info: ValidationInfo) -> Any:
        if info.field_name == "next_payment_date" and value is not None:
            try:
                value = _coerce_date(value)
            except ValueError:
                return None
        try:
            return handler(_coerce_number(value))
        except ValidationError:
            return None


def _finite(value: Optional[Decimal]) -> Optional[Decimal]:
    return value if value is not None and value.is_finite() else None


def _parse_price_history(items: Optional[list[Any]]) -> tuple[PricePoint, ...]:
    points: dict[str, PricePoint] = {}
    for item in items or []:
        try:
            parsed = PricePointPayload.model_validate(item)
        except ValidationError:
            continue
        if not parsed.close.is_finite():
            continue
        points[parsed.date] = PricePoint(date=parsed.date, price=parsed.close)
    return tuple(points[d] for d in sorted(points))


def _parse_dividends(items: Optional[list[Any]]) -> tuple[DividendEvent, ...]:
    events: dict[str, DividendEvent] = {}
    for item in items or []:
        try:
            parsed = DividendPayload.model_validate(item)
        except ValidationError:
            continue
        if not parsed.value.is_finite():
            continue
        events[parsed.ex_date] = DividendEvent(
            ex_date=parsed.ex_date,
            payment_date=parsed.payment_date,
            value_per_share=parsed.value,
            is_provisioned=parsed.is_provisioned,
        )
    return tuple(events[k] for k in sorted(events))


def _require_list(source: str, payload: Any) -> list[Any]:
    if not isinstance(payload, list):
        raise ParseError(source, f"{source} payload is not a list of records")
    return payload


def parse_quotes(source: str, payload: Any) -> dict[str, QuoteData]:
    """Validate a list of raw quote records into QuoteData by ticker."""
    result: dict[str, QuoteData] = {}
    for item in _require_list(source, payload):
        try:
            parsed = QuotePayload.model_validate(item)
        except ValidationError:
            continue
        result[parsed.symbol.strip().upper()] = QuoteData(
            current_price=_finite(parsed.current_price),
            previous_close=_finite(parsed.previous_close),
            change_percent=_finite(parsed.change_percent),
            price_history=_parse_price_history(parsed.historical_prices),
        )
    return result


def parse_fundamentals(source: str, payload: Any) -> dict[str, FundamentalsData]:
    """Validate a list of raw fundamentals records into FundamentalsData by ticker."""
    result: dict[str, FundamentalsData] = {}
    for item in _require_list(source, payload):
        try:
            parsed = FundamentalsPayload.model_validate(item)
        except ValidationError:
            continue
        fields = parsed.model_dump(exclude_none=True, exclude={"ticker", "dividends"})
        fields = {
            k: v for k, v in fields.items() if not isinstance(v, Decimal) or v.is_finite()
        }
        result[parsed.ticker.strip().upper()] = FundamentalsData(
            fields=fields,
            dividends=_parse_dividends(parsed.dividends),
        )
    return result
