"""Domain layer - pure business models with no external dependencies."""

from fii_tracker.domain.models import (
    Transaction,
    TransactionType,
    DataSource,
    PricePoint,
    DividendEvent,
    MarketDataRecord,
    SourceUsage,
    ApiUsageStats,
    RefreshState,
)

__all__ = [
    "Transaction",
    "TransactionType",
    "DataSource",
    "PricePoint",
    "DividendEvent",
    "MarketDataRecord",
    "SourceUsage",
    "ApiUsageStats",
    "RefreshState",
]
