"""
Market data synchronisation.

The syncer owns the market data cache, the API usage counters and the
refresh state. A refresh cycle fetches quotes (always) and fundamentals
(when due) concurrently, merges whatever succeeded and records what failed.
Source failures never escape a refresh. A cycle whose result cannot be saved
is discarded and leaves the in-memory state untouched.
"""

import asyncio
import dataclasses
import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from dateutil import parser as date_parser

from fii_tracker.core.exceptions import AppError
from fii_tracker.core.timezone import now_market
from fii_tracker.domain.models import (
    FUNDAMENTAL_FIELDS,
    ApiUsageStats,
    DataSource,
    MarketDataRecord,
    PricePoint,
    RefreshState,
)
from fii_tracker.domain.views import RefreshOutcome
from fii_tracker.providers.market_data_provider import (
    FundamentalsData,
    FundamentalsFetchResult,
    FundamentalsSource,
    QuoteData,
    QuoteFetchResult,
    QuoteSource,
)
from fii_tracker.repositories.codec import (
    record_from_dict,
    record_to_dict,
    usage_from_dict,
    usage_to_dict,
)
from fii_tracker.repositories.protocols import KeyValueStore

logger = logging.getLogger(__name__)

MARKET_DATA_KEY = "market_data"
LAST_SYNC_KEY = "last_sync"
USAGE_STATS_KEY = "api_usage_stats"

DEFAULT_QUOTE_TTL = timedelta(minutes=15)
DEFAULT_FUNDAMENTALS_TTL = timedelta(hours=24)
DEFAULT_PRICE_HISTORY_LIMIT = 365

SKIP_IN_PROGRESS = "in_progress"
SKIP_FRESH = "fresh"
SKIP_NO_TICKERS = "no_tickers"
SKIP_STORAGE_FAILED = "storage_failed"

STORAGE_ERROR_PREFIX = "storage"

Clock = Callable[[], datetime]


def _describe(exc: BaseException) -> str:
    if isinstance(exc, AppError):
        return exc.message
    return str(exc) or exc.__class__.__name__


def _unique_tickers(tickers: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for ticker in tickers:
        key = (ticker or "").strip().upper()
        if key:
            seen.setdefault(key, None)
    return list(seen)


class MarketDataSyncer:
    """
    Stateful orchestrator for market data.

    At most one refresh runs at a time; a second caller is skipped, not
    queued. The cache is replaced wholesale on every merge (records are
    frozen), so readers never observe a half-merged record.
    """

    def __init__(
        self,
        store: KeyValueStore,
        quote_source: QuoteSource,
        fundamentals_source: FundamentalsSource,
        quote_ttl: timedelta = DEFAULT_QUOTE_TTL,
        fundamentals_ttl: timedelta = DEFAULT_FUNDAMENTALS_TTL,
        price_history_limit: int = DEFAULT_PRICE_HISTORY_LIMIT,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._quotes = quote_source
        self._fundamentals = fundamentals_source
        self._quote_ttl = quote_ttl
        self._fundamentals_ttl = fundamentals_ttl
        self._price_history_limit = price_history_limit
        self._clock = clock or now_market

        self._cache: dict[str, MarketDataRecord] = self._load_cache()
        self._usage: ApiUsageStats = usage_from_dict(store.get(USAGE_STATS_KEY))
        self._state = RefreshState(last_sync=self._load_last_sync())

    # Persistence

    def _load_cache(self) -> dict[str, MarketDataRecord]:
        cache: dict[str, MarketDataRecord] = {}
        for ticker, raw in (self._store.get(MARKET_DATA_KEY, {}) or {}).items():
            try:
                cache[ticker] = record_from_dict(raw)
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning("Dropping unreadable cached market data for %s", ticker)
        return cache

    def _load_last_sync(self) -> Optional[datetime]:
        raw = self._store.get(LAST_SYNC_KEY)
        if not raw:
            return None
        try:
            return date_parser.isoparse(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring unreadable last sync timestamp: %r", raw)
            return None

    def _persist(
        self,
        cache: dict[str, MarketDataRecord],
        last_sync: Optional[datetime],
        usage: ApiUsageStats,
    ) -> None:
        records = {ticker: record_to_dict(r) for ticker, r in cache.items()}
        self._store.set(MARKET_DATA_KEY, records)
        self._store.set(LAST_SYNC_KEY, last_sync.isoformat() if last_sync else None)
        self._store.set(USAGE_STATS_KEY, usage_to_dict(usage))

    # Read side

    @property
    def state(self) -> RefreshState:
        return dataclasses.replace(self._state)

    def get_market_data(self) -> dict[str, MarketDataRecord]:
        return dict(self._cache)

    def get_record(self, ticker: str) -> Optional[MarketDataRecord]:
        return self._cache.get((ticker or "").strip().upper())

    def price_histories(self) -> dict[str, tuple[PricePoint, ...]]:
        return {ticker: r.price_history for ticker, r in self._cache.items()}

    def get_usage_stats(self) -> ApiUsageStats:
        return self._usage

    def reset_usage_stats(self) -> None:
        self._usage = ApiUsageStats()
        self._store.set(USAGE_STATS_KEY, usage_to_dict(self._usage))

    def clear_cache(self) -> None:
        """Drop all cached market data and the last sync timestamp."""
        self._cache = {}
        self._state.last_sync = None
        self._store.delete(MARKET_DATA_KEY)
        self._store.delete(LAST_SYNC_KEY)

    # Staleness

    def is_quote_stale(self, now: Optional[datetime] = None) -> bool:
        last_sync = self._state.last_sync
        if last_sync is None:
            return True
        return (now or self._clock()) - last_sync >= self._quote_ttl

    def needs_fundamentals(self, tickers: Iterable[str], now: Optional[datetime] = None) -> bool:
        """
        True when any ticker has no fundamentals yet, a fundamentals timestamp
        older than the TTL, or no dividend history.
        """
        now = now or self._clock()
        for ticker in tickers:
            record = self._cache.get(ticker)
            if record is None or not record.has_dividend_history:
                return True
            updated = record.last_fundamental_update
            if updated is None or now - updated >= self._fundamentals_ttl:
                return True
        return False

    def should_refresh_on_mount(self, has_transactions: bool) -> bool:
        return has_transactions and self.is_quote_stale()

    # Refresh

    async def refresh(
        self,
        tickers: Iterable[str],
        force: bool = False,
        silent: bool = False,
        lite: bool = False,
    ) -> RefreshOutcome:
        """
        Run one refresh cycle for the tracked tickers.

        Skipped when another refresh is running, or (unless forced) when the
        last sync is younger than the quote TTL. `silent` hides the visual
        refreshing flag; `lite` asks for quotes without price history.
        """
        if self._state.in_progress:
            logger.debug("Refresh skipped: another refresh is in progress")
            return RefreshOutcome(ran=False, skipped_reason=SKIP_IN_PROGRESS)

        now = self._clock()
        if not force and not self.is_quote_stale(now):
            return RefreshOutcome(ran=False, skipped_reason=SKIP_FRESH)

        self._state.in_progress = True
        self._state.is_refreshing = not silent
        try:
            tickers = _unique_tickers(tickers)
            if not tickers:
                return RefreshOutcome(ran=False, skipped_reason=SKIP_NO_TICKERS)
            with_fundamentals = force or self.needs_fundamentals(tickers, now)
            return await self._run_cycle(tickers, with_fundamentals, lite, stamp_sync=True)
        finally:
            self._state.in_progress = False
            self._state.is_refreshing = False

    async def refresh_single(self, ticker: str) -> RefreshOutcome:
        """Fetch quotes and fundamentals for one ticker, ignoring the TTL."""
        if self._state.in_progress:
            return RefreshOutcome(ran=False, skipped_reason=SKIP_IN_PROGRESS)

        self._state.in_progress = True
        try:
            tickers = _unique_tickers([ticker])
            if not tickers:
                return RefreshOutcome(ran=False, skipped_reason=SKIP_NO_TICKERS)
            return await self._run_cycle(tickers, True, lite=False, stamp_sync=False)
        finally:
            self._state.in_progress = False

    async def _run_cycle(
        self, tickers: list[str], with_fundamentals: bool, lite: bool, stamp_sync: bool
    ) -> RefreshOutcome:
        logger.info(
            "Refreshing %d tickers (fundamentals=%s, lite=%s)",
            len(tickers),
            with_fundamentals,
            lite,
        )
        jobs = [self._quotes.fetch_quotes(list(tickers), lite)]
        if with_fundamentals:
            jobs.append(self._fundamentals.fetch_fundamentals(list(tickers)))
        results = await asyncio.gather(*jobs, return_exceptions=True)

        now = self._clock()
        outcome = RefreshOutcome(ran=True, fundamentals_requested=with_fundamentals)
        # Staged locally; committed only once persisted.
        cache = self._cache
        usage = self._usage

        quotes = results[0]
        if isinstance(quotes, Exception):
            outcome.quotes_ok = False
            outcome.errors.append(f"{DataSource.QUOTES.value}: {_describe(quotes)}")
            logger.warning("Quote refresh failed: %s", _describe(quotes))
        elif isinstance(quotes, BaseException):
            raise quotes
        else:
            usage = usage.add(DataSource.QUOTES, quotes.usage)
            cache = merge_quotes(cache, quotes.quotes, now, self._price_history_limit)
            outcome.quotes_ok = True

        if with_fundamentals:
            fundamentals = results[1]
            if isinstance(fundamentals, Exception):
                outcome.fundamentals_ok = False
                outcome.errors.append(
                    f"{DataSource.FUNDAMENTALS.value}: {_describe(fundamentals)}"
                )
                logger.warning("Fundamentals refresh failed: %s", _describe(fundamentals))
            elif isinstance(fundamentals, BaseException):
                raise fundamentals
            else:
                usage = usage.add(DataSource.FUNDAMENTALS, fundamentals.usage)
                cache = merge_fundamentals(cache, fundamentals.data, now)
                outcome.fundamentals_ok = True

        last_sync = now if stamp_sync else self._state.last_sync
        try:
            self._persist(cache, last_sync, usage)
        except Exception as exc:
            logger.exception("Discarding refresh: market data could not be saved")
            self._state.last_error = f"{STORAGE_ERROR_PREFIX}: {_describe(exc)}"
            return RefreshOutcome(
                ran=False,
                skipped_reason=SKIP_STORAGE_FAILED,
                fundamentals_requested=with_fundamentals,
                errors=outcome.errors + [self._state.last_error],
            )

        self._cache = cache
        self._usage = usage
        self._state.last_sync = last_sync
        self._state.last_error = "; ".join(outcome.errors) or None
        return outcome


def merge_quotes(
    cache: dict[str, MarketDataRecord],
    quotes: dict[str, QuoteData],
    now: datetime,
    price_history_limit: int = DEFAULT_PRICE_HISTORY_LIMIT,
) -> dict[str, MarketDataRecord]:
    """
    Return a new cache with quote fields overwritten.

    Price history is replaced only by a non-empty list, keeping the newest
    `price_history_limit` points. Fields the quote did not carry are kept.
    """
    merged = dict(cache)
    for ticker, quote in quotes.items():
        existing = merged.get(ticker) or MarketDataRecord(ticker=ticker)
        changes: dict = {"last_updated": now}
        for name in ("current_price", "previous_close", "change_percent"):
            value = getattr(quote, name)
            if value is not None:
                changes[name] = value
        if quote.price_history:
            changes["price_history"] = tuple(quote.price_history[-price_history_limit:])
        merged[ticker] = dataclasses.replace(existing, **changes)
    return merged


def merge_fundamentals(
    cache: dict[str, MarketDataRecord],
    data: dict[str, FundamentalsData],
    now: datetime,
) -> dict[str, MarketDataRecord]:
    """
    Return a new cache with fundamentals overlaid.

    Only keys present in the payload are written. Dividend events merge by
    ex-date, a new event replacing a cached one with the same ex-date. A
    ticker whose payload carried nothing usable is left as it was.
    """
    merged = dict(cache)
    for ticker, fundamentals in data.items():
        changes: dict = {
            name: value
            for name, value in fundamentals.fields.items()
            if name in FUNDAMENTAL_FIELDS and value is not None
        }
        if not changes and not fundamentals.dividends:
            continue
        existing = merged.get(ticker) or MarketDataRecord(ticker=ticker)
        dividends = dict(existing.dividends_history)
        for event in fundamentals.dividends:
            dividends[event.ex_date] = event
        changes["dividends_history"] = dividends
        changes["last_fundamental_update"] = now
        merged[ticker] = dataclasses.replace(existing, **changes)
    return merged
