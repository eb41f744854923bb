"""Domain models package."""

from fii_tracker.domain.models.enums import TransactionType, DataSource, NotificationType
from fii_tracker.domain.models.transaction import Transaction, sort_transactions
from fii_tracker.domain.models.market_data import (
    PricePoint,
    DividendEvent,
    MarketDataRecord,
    FUNDAMENTAL_FIELDS,
)
from fii_tracker.domain.models.sync_state import SourceUsage, ApiUsageStats, RefreshState

__all__ = [
    "TransactionType",
    "DataSource",
    "NotificationType",
    "Transaction",
    "sort_transactions",
    "PricePoint",
    "DividendEvent",
    "MarketDataRecord",
    "FUNDAMENTAL_FIELDS",
    "SourceUsage",
    "ApiUsageStats",
    "RefreshState",
]
