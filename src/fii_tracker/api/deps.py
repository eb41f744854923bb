"""Dependency injection for FastAPI."""

from fastapi import Depends

from fii_tracker.app_context import AppContext, get_app_context
from fii_tracker.services import PortfolioService


def get_context() -> AppContext:
    """Provide the process-wide AppContext (overridden in tests)."""
    return get_app_context()


def get_portfolio_service(context: AppContext = Depends(get_context)) -> PortfolioService:
    """Provide the PortfolioService facade."""
    return context.portfolio
