"""Usage statistics and refresh state for the market data syncer."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from fii_tracker.domain.models.enums import DataSource


@dataclass(frozen=True)
class SourceUsage:
    """Traffic counters for one data source. Monotonic until reset."""

    request_count: int = 0
    bytes_sent: int = 0
    bytes_received: int = 0

    def __add__(self, other: "SourceUsage") -> "SourceUsage":
        return SourceUsage(
            request_count=self.request_count + other.request_count,
            bytes_sent=self.bytes_sent + other.bytes_sent,
            bytes_received=self.bytes_received + other.bytes_received,
        )


@dataclass(frozen=True)
class ApiUsageStats:
    """Usage counters per data source."""

    quotes: SourceUsage = field(default_factory=SourceUsage)
    fundamentals: SourceUsage = field(default_factory=SourceUsage)

    def add(self, source: DataSource, usage: SourceUsage) -> "ApiUsageStats":
        if source == DataSource.QUOTES:
            return ApiUsageStats(quotes=self.quotes + usage, fundamentals=self.fundamentals)
        return ApiUsageStats(quotes=self.quotes, fundamentals=self.fundamentals + usage)


@dataclass
class RefreshState:
    """
    Process-wide refresh status.

    in_progress is the at-most-one-refresh guard; is_refreshing is the visual
    flag and stays False for silent refreshes.
    """

    in_progress: bool = False
    is_refreshing: bool = False
    last_sync: Optional[datetime] = None
    last_error: Optional[str] = None
