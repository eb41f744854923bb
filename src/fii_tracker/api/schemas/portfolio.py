"""Pydantic schemas for portfolio, income and evolution endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from fii_tracker.domain.models import NotificationType


class PositionResponse(BaseModel):
    """A single open position."""

    model_config = {"from_attributes": True}

    ticker: str
    quantity: Decimal
    weighted_average_cost: Decimal
    current_price: Optional[Decimal] = None
    market_value: Optional[Decimal] = None
    total_invested: Decimal
    segment: str
    dy: Optional[Decimal] = None
    pvp: Optional[Decimal] = None
    yield_on_cost: Decimal


class PositionsResponse(BaseModel):
    positions: list[PositionResponse]


class PortfolioSummaryResponse(BaseModel):
    """Portfolio-level totals."""

    model_config = {"from_attributes": True}

    total_invested: Decimal
    total_market_value: Decimal
    yield_on_cost: Decimal
    projected_annual_income: Decimal
    position_count: int


class MonthlyIncomeResponse(BaseModel):
    model_config = {"from_attributes": True}

    month: str
    total: Decimal


class PayerSummaryResponse(BaseModel):
    model_config = {"from_attributes": True}

    ticker: str
    total_paid: Decimal
    count: int
    last_ex_date: Optional[str] = None
    next_payment_date: Optional[str] = None
    is_provisioned: bool
    average_monthly: Decimal
    projected_amount: Decimal


class IncomeReportResponse(BaseModel):
    """Dividend income breakdown."""

    model_config = {"from_attributes": True}

    monthly: list[MonthlyIncomeResponse]
    full_history: list[MonthlyIncomeResponse]
    annual_distribution: dict[str, dict[str, Decimal]]
    total_received: Decimal
    payers: list[PayerSummaryResponse]


class EvolutionPointResponse(BaseModel):
    model_config = {"from_attributes": True}

    date: str
    value: Decimal


class TickerEvolutionResponse(BaseModel):
    """Per-ticker value series keyed by ticker."""

    series: dict[str, list[EvolutionPointResponse]]


class PortfolioEvolutionPointResponse(BaseModel):
    model_config = {"from_attributes": True}

    date: str
    market_value: Decimal
    invested: Decimal


class NotificationResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    type: NotificationType
    title: str
    description: str
    date: datetime
    read: bool
    related_ticker: Optional[str] = None
