"""Enumerations for domain models."""

from enum import Enum


class TransactionType(str, Enum):
    """Types of ledger transactions."""

    BUY = "BUY"
    SELL = "SELL"


class DataSource(str, Enum):
    """The two independent market-data feeds."""

    QUOTES = "quotes"
    FUNDAMENTALS = "fundamentals"


class NotificationType(str, Enum):
    """Kinds of generated portfolio notifications."""

    DIVIDEND = "dividend"
    PRICE = "price"
    NEWS = "news"
