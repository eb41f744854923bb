"""
Unit tests for market time helpers.

Tests cover:
- Market timezone taken from settings
- Scheduler market hours following the configured timezone
- Rejection of unknown timezone names
- ISO date normalisation
"""

from datetime import datetime

import pytest
import pytz
from pydantic import ValidationError as SettingsValidationError

from fii_tracker.config.settings import Settings, reset_settings, set_settings
from fii_tracker.core.exceptions import ValidationError
from fii_tracker.core.timezone import market_tz, now_market, parse_iso_date, to_market
from fii_tracker.services.scheduler import RefreshScheduler

# Monday 2024-06-10 21:30 UTC: 18:30 in Sao Paulo, 17:30 in New York
MONDAY_EVENING_UTC = pytz.utc.localize(datetime(2024, 6, 10, 21, 30))


@pytest.fixture
def new_york_settings():
    set_settings(Settings(market_timezone="America/New_York"))
    yield
    reset_settings()


async def _never_called(**kwargs):
    raise AssertionError("refresh should not run")


class TestMarketTimezone:
    def test_defaults_to_sao_paulo(self):
        reset_settings()
        assert market_tz().zone == "America/Sao_Paulo"
        assert now_market().tzinfo.zone == "America/Sao_Paulo"

    def test_follows_configured_timezone(self, new_york_settings):
        assert now_market().tzinfo.zone == "America/New_York"
        assert to_market(MONDAY_EVENING_UTC).hour == 17

    def test_naive_datetime_is_localized(self, new_york_settings):
        local = to_market(datetime(2024, 6, 10, 12, 0))
        assert local.tzinfo.zone == "America/New_York"
        assert local.hour == 12

    def test_scheduler_uses_configured_timezone(self, new_york_settings):
        """
        GIVEN the market timezone set to New York
        WHEN it is 17:30 there (18:30 in Sao Paulo)
        THEN the scheduler still considers the market open
        """
        scheduler = RefreshScheduler(_never_called, clock=lambda: MONDAY_EVENING_UTC)
        assert scheduler.is_market_hours() is True

    def test_scheduler_default_timezone_is_closed_at_same_instant(self):
        reset_settings()
        scheduler = RefreshScheduler(_never_called, clock=lambda: MONDAY_EVENING_UTC)
        assert scheduler.is_market_hours() is False

    def test_unknown_timezone_is_rejected(self):
        with pytest.raises(SettingsValidationError):
            Settings(market_timezone="Mars/Olympus_Mons")


class TestParseIsoDate:
    @pytest.mark.parametrize(
        "value",
        ["2024-03-05", "2024-03-05T10:00:00Z", " 2024-03-05 "],
    )
    def test_normalises(self, value):
        assert parse_iso_date(value) == "2024-03-05"

    @pytest.mark.parametrize("value", ["", "not a date", None, 20240305])
    def test_rejects(self, value):
        with pytest.raises(ValidationError):
            parse_iso_date(value)
