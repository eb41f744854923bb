"""JSON-compatible encoding of domain objects for the key-value store."""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from dateutil import parser as date_parser

from fii_tracker.domain.models import (
    Transaction,
    TransactionType,
    PricePoint,
    DividendEvent,
    MarketDataRecord,
    FUNDAMENTAL_FIELDS,
    SourceUsage,
    ApiUsageStats,
)

_DECIMAL_FIELDS = {
    "current_price",
    "previous_close",
    "change_percent",
    "dy",
    "pvp",
    "vacancy_rate",
    "daily_liquidity",
    "last_dividend",
}


def _dec(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _dt(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return date_parser.isoparse(value)
    except (TypeError, ValueError):
        return None


def _str_or_none(value: Any) -> Optional[str]:
    return None if value is None else str(value)


# Transactions


def transaction_to_dict(txn: Transaction) -> dict:
    return {
        "id": txn.txn_id,
        "ticker": txn.ticker,
        "type": txn.txn_type.value,
        "quantity": str(txn.quantity),
        "price": str(txn.price),
        "date": txn.date,
        "costs": str(txn.costs),
        "notes": txn.notes,
    }


def transaction_from_dict(data: dict) -> Transaction:
    """Decode a stored transaction. Raises KeyError/ValueError on unusable rows."""
    return Transaction(
        txn_id=str(data["id"]),
        ticker=str(data["ticker"]),
        txn_type=TransactionType(data["type"]),
        quantity=Decimal(str(data["quantity"])),
        price=Decimal(str(data["price"])),
        date=str(data["date"]),
        costs=Decimal(str(data.get("costs") or "0")),
        notes=data.get("notes"),
    )


# Market data


def dividend_to_dict(event: DividendEvent) -> dict:
    return {
        "ex_date": event.ex_date,
        "payment_date": event.payment_date,
        "value": str(event.value_per_share),
        "is_provisioned": event.is_provisioned,
    }


def dividend_from_dict(data: dict) -> DividendEvent:
    return DividendEvent(
        ex_date=str(data["ex_date"]),
        payment_date=str(data["payment_date"]),
        value_per_share=Decimal(str(data["value"])),
        is_provisioned=bool(data.get("is_provisioned", False)),
    )


def record_to_dict(record: MarketDataRecord) -> dict:
    data: dict[str, Any] = {
        "ticker": record.ticker,
        "current_price": _str_or_none(record.current_price),
        "previous_close": _str_or_none(record.previous_close),
        "change_percent": _str_or_none(record.change_percent),
        "price_history": [{"date": p.date, "price": str(p.price)} for p in record.price_history],
        "dividends_history": [dividend_to_dict(e) for e in record.dividend_events()],
        "last_updated": record.last_updated.isoformat() if record.last_updated else None,
        "last_fundamental_update": (
            record.last_fundamental_update.isoformat() if record.last_fundamental_update else None
        ),
    }
    for name in FUNDAMENTAL_FIELDS:
        value = getattr(record, name)
        data[name] = str(value) if isinstance(value, Decimal) else value
    return data


def record_from_dict(data: dict) -> MarketDataRecord:
    """Decode a cached record, dropping fields that no longer parse."""
    history = []
    for point in data.get("price_history") or []:
        price = _dec(point.get("price"))
        if point.get("date") and price is not None:
            history.append(PricePoint(date=str(point["date"]), price=price))

    dividends: dict[str, DividendEvent] = {}
    for raw in data.get("dividends_history") or []:
        try:
            event = dividend_from_dict(raw)
        except (KeyError, TypeError, ValueError, InvalidOperation):
            continue
        dividends[event.ex_date] = event

    fields: dict[str, Any] = {}
    for name in FUNDAMENTAL_FIELDS:
        value = data.get(name)
        if name in _DECIMAL_FIELDS:
            value = _dec(value)
        elif name == "shareholders":
            value = int(value) if isinstance(value, (int, float)) else None
        fields[name] = value

    return MarketDataRecord(
        ticker=str(data["ticker"]),
        current_price=_dec(data.get("current_price")),
        previous_close=_dec(data.get("previous_close")),
        change_percent=_dec(data.get("change_percent")),
        price_history=tuple(history),
        dividends_history=dividends,
        last_updated=_dt(data.get("last_updated")),
        last_fundamental_update=_dt(data.get("last_fundamental_update")),
        **fields,
    )


# Usage stats


def usage_to_dict(stats: ApiUsageStats) -> dict:
    def _one(usage: SourceUsage) -> dict:
        return {
            "request_count": usage.request_count,
            "bytes_sent": usage.bytes_sent,
            "bytes_received": usage.bytes_received,
        }

    return {"quotes": _one(stats.quotes), "fundamentals": _one(stats.fundamentals)}


def usage_from_dict(data: Optional[dict]) -> ApiUsageStats:
    if not data:
        return ApiUsageStats()

    def _one(raw: Optional[dict]) -> SourceUsage:
        raw = raw or {}
        return SourceUsage(
            request_count=int(raw.get("request_count", 0)),
            bytes_sent=int(raw.get("bytes_sent", 0)),
            bytes_received=int(raw.get("bytes_received", 0)),
        )

    return ApiUsageStats(quotes=_one(data.get("quotes")), fundamentals=_one(data.get("fundamentals")))
