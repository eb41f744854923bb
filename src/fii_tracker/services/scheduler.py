"""Periodic silent market data refresh during B3 trading hours."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional

from fii_tracker.core.timezone import now_market, to_market
from fii_tracker.domain.views import RefreshOutcome

logger = logging.getLogger(__name__)

SATURDAY = 5


@dataclass(frozen=True)
class Environment:
    """Whether the client is currently visible and online."""

    visible: bool = True
    online: bool = True


RefreshFn = Callable[..., Awaitable[RefreshOutcome]]


class RefreshScheduler:
    """
    Ticks a silent, non-forced refresh while the market is open.

    The clock and environment are injected so ticks are testable without
    waiting on real timers.
    """

    def __init__(
        self,
        refresh: RefreshFn,
        clock: Optional[Callable[[], datetime]] = None,
        open_hour: int = 10,
        close_hour: int = 18,
    ):
        self._refresh = refresh
        self._clock = clock or now_market
        self._open_hour = open_hour
        self._close_hour = close_hour

    def is_market_hours(self, now: Optional[datetime] = None) -> bool:
        local = to_market(now or self._clock())
        if local.weekday() >= SATURDAY:
            return False
        return self._open_hour <= local.hour < self._close_hour

    def should_tick(self, env: Environment) -> bool:
        return env.visible and env.online and self.is_market_hours()

    async def tick(self, env: Environment) -> Optional[RefreshOutcome]:
        """Run one silent refresh if allowed; None when the tick was suppressed."""
        if not self.should_tick(env):
            return None
        return await self._refresh(force=False, silent=True)

    async def run(
        self,
        env_fn: Callable[[], Environment],
        interval: float,
        stop_event: asyncio.Event,
    ) -> None:
        """Tick every `interval` seconds until `stop_event` is set."""
        while not stop_event.is_set():
            try:
                await self.tick(env_fn())
            except Exception:
                logger.exception("Scheduled refresh failed")
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue
