"""Shared fixtures."""
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest


@pytest.fixture
def sydney():
    # Clocks jump from 02:00 to 03:00 on 2026-10-04.
    try:
        return ZoneInfo("Australia/Sydney")
    except ZoneInfoNotFoundError:
        pytest.skip("IANA time zone data not available")
