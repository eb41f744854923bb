"""
Pytest configuration and fixtures for FII tracker tests.

This module provides:
- In-memory key-value stores (dict-backed and SQLite)
- Factory helpers for transactions and market data
- A controllable clock in Sao Paulo time
- Scriptable fake quote and fundamentals sources
- Service, context and API client fixtures
"""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from fii_tracker.api.deps import get_context
from fii_tracker.app_context import AppContext, set_app_context
from fii_tracker.config.settings import Settings, reset_settings, set_settings
from fii_tracker.core.timezone import MARKET_TZ
from fii_tracker.domain.models import (
    DividendEvent,
    PricePoint,
    SourceUsage,
    Transaction,
    TransactionType,
)
from fii_tracker.main import app
from fii_tracker.providers.market_data_provider import (
    FundamentalsData,
    FundamentalsFetchResult,
    QuoteData,
    QuoteFetchResult,
)
from fii_tracker.repositories import InMemoryKeyValueStore
from fii_tracker.repositories.sqlalchemy import SqlAlchemyKeyValueStore
from fii_tracker.repositories.sqlalchemy.database import Base

# Import ORM models to register them with Base before creating tables
from fii_tracker.repositories.sqlalchemy import orm_models  # noqa: F401
from fii_tracker.services import LedgerService, MarketDataSyncer, PortfolioService


# =============================================================================
# TIME HELPERS
# =============================================================================


def sp_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 11,
    minute: int = 0,
) -> datetime:
    """Create a localized datetime in America/Sao_Paulo."""
    return MARKET_TZ.localize(datetime(year, month, day, hour, minute))


class MutableClock:
    """Callable clock that tests move forward explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def fixed_now() -> datetime:
    """Friday 2024-06-14 11:00 in Sao Paulo (market open)."""
    return sp_datetime(2024, 6, 14, 11, 0)


@pytest.fixture
def clock(fixed_now: datetime) -> MutableClock:
    return MutableClock(fixed_now)


# =============================================================================
# FACTORY HELPERS
# =============================================================================


_txn_counter = 0


def make_txn(
    ticker: str,
    txn_type: str,
    quantity,
    price,
    date: str,
    costs="0",
    txn_id: Optional[str] = None,
) -> Transaction:
    """Build a Transaction with Decimal fields from loose input."""
    global _txn_counter
    _txn_counter += 1
    return Transaction(
        txn_id=txn_id or f"t{_txn_counter}",
        ticker=ticker,
        txn_type=TransactionType(txn_type),
        quantity=Decimal(str(quantity)),
        price=Decimal(str(price)),
        date=date,
        costs=Decimal(str(costs)),
    )


def buy(ticker: str, quantity, price, date: str, costs="0", txn_id: Optional[str] = None):
    return make_txn(ticker, "BUY", quantity, price, date, costs, txn_id)


def sell(ticker: str, quantity, price, date: str, txn_id: Optional[str] = None):
    return make_txn(ticker, "SELL", quantity, price, date, "0", txn_id)


def dividend(ex_date: str, payment_date: str, value, provisioned: bool = False) -> DividendEvent:
    return DividendEvent(
        ex_date=ex_date,
        payment_date=payment_date,
        value_per_share=Decimal(str(value)),
        is_provisioned=provisioned,
    )


def quote(price, history: tuple = ()) -> QuoteData:
    return QuoteData(
        current_price=Decimal(str(price)),
        previous_close=Decimal(str(price)),
        change_percent=Decimal("0"),
        price_history=tuple(PricePoint(d, Decimal(str(p))) for d, p in history),
    )


# =============================================================================
# FAKE SOURCES
# =============================================================================


class FakeQuoteSource:
    """
    Scriptable quote source.

    Records every call; raises `error` if set; waits on `gate` (when set)
    before answering so tests can hold a fetch in flight.
    """

    name = "fake-quotes"

    def __init__(
        self,
        quotes: Optional[dict[str, QuoteData]] = None,
        error: Optional[Exception] = None,
        usage: Optional[SourceUsage] = None,
    ):
        self.quotes = quotes or {}
        self.error = error
        self.usage = usage or SourceUsage(request_count=1, bytes_sent=10, bytes_received=100)
        self.gate: Optional[asyncio.Event] = None
        self.calls: list[tuple[list[str], bool]] = []

    async def fetch_quotes(self, tickers: list[str], lite: bool = False) -> QuoteFetchResult:
        self.calls.append((list(tickers), lite))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return QuoteFetchResult(
            quotes={t: q for t, q in self.quotes.items() if t in tickers},
            usage=self.usage,
        )


class FakeFundamentalsSource:
    """Scriptable fundamentals source."""

    name = "fake-fundamentals"

    def __init__(
        self,
        data: Optional[dict[str, FundamentalsData]] = None,
        error: Optional[Exception] = None,
        usage: Optional[SourceUsage] = None,
    ):
        self.data = data or {}
        self.error = error
        self.usage = usage or SourceUsage(request_count=1, bytes_sent=20, bytes_received=200)
        self.gate: Optional[asyncio.Event] = None
        self.calls: list[list[str]] = []

    async def fetch_fundamentals(self, tickers: list[str]) -> FundamentalsFetchResult:
        self.calls.append(list(tickers))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return FundamentalsFetchResult(
            data={t: d for t, d in self.data.items() if t in tickers},
            usage=self.usage,
        )


@pytest.fixture
def quote_source() -> FakeQuoteSource:
    return FakeQuoteSource(
        quotes={
            "MXRF11": quote("10.50", (("2024-06-12", "10.40"), ("2024-06-13", "10.45"))),
            "HGLG11": quote("160.00", (("2024-06-13", "159.00"),)),
        }
    )


@pytest.fixture
def fundamentals_source() -> FakeFundamentalsSource:
    return FakeFundamentalsSource(
        data={
            "MXRF11": FundamentalsData(
                fields={"sector": "Papel", "dy": Decimal("12.5"), "pvp": Decimal("1.02")},
                dividends=(dividend("2024-05-31", "2024-06-14", "0.10"),),
            ),
            "HGLG11": FundamentalsData(
                fields={"sector": "Logística", "dy": Decimal("9"), "pvp": Decimal("1.20")},
                dividends=(dividend("2024-05-31", "2024-06-14", "1.10"),),
            ),
        }
    )


# =============================================================================
# STORE AND SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def memory_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_store(test_session) -> SqlAlchemyKeyValueStore:
    return SqlAlchemyKeyValueStore(test_session)


@pytest.fixture
def ledger(memory_store) -> LedgerService:
    return LedgerService(memory_store)


@pytest.fixture
def syncer(memory_store, quote_source, fundamentals_source, clock) -> MarketDataSyncer:
    return MarketDataSyncer(
        store=memory_store,
        quote_source=quote_source,
        fundamentals_source=fundamentals_source,
        clock=clock,
    )


@pytest.fixture
def portfolio_service(ledger, syncer, clock) -> PortfolioService:
    return PortfolioService(ledger=ledger, syncer=syncer, clock=clock)


# =============================================================================
# API FIXTURES
# =============================================================================


@pytest.fixture
def app_context(memory_store, quote_source, fundamentals_source, clock) -> AppContext:
    return AppContext(
        store=memory_store,
        quote_source=quote_source,
        fundamentals_source=fundamentals_source,
        clock=clock,
    )


@pytest.fixture
def client(app_context: AppContext) -> TestClient:
    """Provide FastAPI test client backed by an in-memory context."""
    set_settings(Settings(database_url="sqlite:///:memory:", refresh_interval_seconds=0))
    set_app_context(app_context)
    app.dependency_overrides[get_context] = lambda: app_context
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    set_app_context(None)
    reset_settings()
