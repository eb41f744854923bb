"""View models for service outputs."""

from fii_tracker.domain.views.portfolio import (
    Position,
    PortfolioSummary,
    MonthlyIncome,
    PayerSummary,
    IncomeReport,
    EvolutionPoint,
    PortfolioEvolutionPoint,
    Notification,
    ImportSummary,
    RefreshOutcome,
)

__all__ = [
    "Position",
    "PortfolioSummary",
    "MonthlyIncome",
    "PayerSummary",
    "IncomeReport",
    "EvolutionPoint",
    "PortfolioEvolutionPoint",
    "Notification",
    "ImportSummary",
    "RefreshOutcome",
]
