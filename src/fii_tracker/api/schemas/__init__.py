"""Pydantic schemas for API request/response."""

from fii_tracker.api.schemas.transaction import (
    TransactionCreateRequest,
    TransactionUpdateRequest,
    TransactionResponse,
    TransactionListResponse,
    ImportSummaryResponse,
    AveragePriceResponse,
)
from fii_tracker.api.schemas.portfolio import (
    PositionResponse,
    PositionsResponse,
    PortfolioSummaryResponse,
    MonthlyIncomeResponse,
    PayerSummaryResponse,
    IncomeReportResponse,
    EvolutionPointResponse,
    TickerEvolutionResponse,
    PortfolioEvolutionPointResponse,
    NotificationResponse,
)
from fii_tracker.api.schemas.market_data import (
    RefreshOutcomeResponse,
    RefreshStateResponse,
    SourceUsageResponse,
    UsageStatsResponse,
    DividendEventResponse,
    MarketDataResponse,
)

__all__ = [
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    "TransactionResponse",
    "TransactionListResponse",
    "ImportSummaryResponse",
    "AveragePriceResponse",
    "PositionResponse",
    "PositionsResponse",
    "PortfolioSummaryResponse",
    "MonthlyIncomeResponse",
    "PayerSummaryResponse",
    "IncomeReportResponse",
    "EvolutionPointResponse",
    "TickerEvolutionResponse",
    "PortfolioEvolutionPointResponse",
    "NotificationResponse",
    "RefreshOutcomeResponse",
    "RefreshStateResponse",
    "SourceUsageResponse",
    "UsageStatsResponse",
    "DividendEventResponse",
    "MarketDataResponse",
]
