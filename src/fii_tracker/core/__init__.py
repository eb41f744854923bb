"""Core utilities and shared functionality."""

from fii_tracker.core.timezone import (
    now_market,
    to_market,
    today_iso,
    parse_iso_date,
    month_key,
    MARKET_TZ,
    market_tz,
)
from fii_tracker.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    ProviderError,
    AuthError,
    TransientError,
    ParseError,
    classify_http_status,
)
from fii_tracker.core.retry import RetryPolicy, with_retry

__all__ = [
    "now_market",
    "to_market",
    "today_iso",
    "parse_iso_date",
    "month_key",
    "MARKET_TZ",
    "market_tz",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "ProviderError",
    "AuthError",
    "TransientError",
    "ParseError",
    "classify_http_status",
    "RetryPolicy",
    "with_retry",
]
