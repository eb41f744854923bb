"""View models for portfolio, income and evolution outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fii_tracker.domain.models.enums import NotificationType


@dataclass
class Position:
    """A live holding derived from the ledger, optionally enriched with market data."""

    ticker: str
    quantity: Decimal
    weighted_average_cost: Decimal
    current_price: Optional[Decimal] = None
    market_value: Optional[Decimal] = None
    total_invested: Decimal = field(default_factory=lambda: Decimal("0"))
    segment: str = "Outros"
    dy: Optional[Decimal] = None
    pvp: Optional[Decimal] = None
    yield_on_cost: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass
class PortfolioSummary:
    """Portfolio-level totals."""

    total_invested: Decimal = field(default_factory=lambda: Decimal("0"))
    total_market_value: Decimal = field(default_factory=lambda: Decimal("0"))
    yield_on_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    projected_annual_income: Decimal = field(default_factory=lambda: Decimal("0"))
    position_count: int = 0


@dataclass
class MonthlyIncome:
    """Dividend income recognised in a payment month (YYYY-MM)."""

    month: str
    total: Decimal


@dataclass
class PayerSummary:
    """Per-ticker dividend history summary."""

    ticker: str
    total_paid: Decimal = field(default_factory=lambda: Decimal("0"))
    count: int = 0
    last_ex_date: Optional[str] = None
    next_payment_date: Optional[str] = None
    is_provisioned: bool = False
    average_monthly: Decimal = field(default_factory=lambda: Decimal("0"))
    projected_amount: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass
class IncomeReport:
    """Full dividend income breakdown."""

    monthly: list[MonthlyIncome] = field(default_factory=list)
    full_history: list[MonthlyIncome] = field(default_factory=list)
    annual_distribution: dict[str, dict[str, Decimal]] = field(default_factory=dict)
    total_received: Decimal = field(default_factory=lambda: Decimal("0"))
    payers: list[PayerSummary] = field(default_factory=list)


@dataclass(frozen=True)
class EvolutionPoint:
    """Market value of one ticker's holding on a date."""

    date: str
    value: Decimal


@dataclass(frozen=True)
class PortfolioEvolutionPoint:
    """Portfolio-level market value and invested cost on a date."""

    date: str
    market_value: Decimal
    invested: Decimal


@dataclass
class Notification:
    """A generated portfolio notification."""

    id: int
    type: NotificationType
    title: str
    description: str
    date: datetime
    read: bool = False
    related_ticker: Optional[str] = None


@dataclass
class ImportSummary:
    """Summary of a bulk transaction import."""

    imported_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class RefreshOutcome:
    """What a refresh call did."""

    ran: bool
    skipped_reason: Optional[str] = None
    quotes_ok: Optional[bool] = None
    fundamentals_ok: Optional[bool] = None
    fundamentals_requested: bool = False
    errors: list[str] = field(default_factory=list)
