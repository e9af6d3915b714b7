# src/ratekeeper/shared/clock.py
"""
Clock - Injectable Source of "Now"

All cache expiry, staleness and "yesterday" calculations read the time through
a clock callable so tests can pin it. The system clock returns a timezone-aware
datetime in the local zone: market hours are a local-time notion, and the
calendar day used for historical series is the local day.

Files that USE this module:
- ratekeeper.application.* (rate cache, historical cache, rate service)
- ratekeeper.adapters.providers.mock (synthetic series anchored on today)
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current local time as an aware datetime."""
    return datetime.now().astimezone()


def yesterday(clock: Clock) -> date:
    """Most recent day the historical endpoint can serve."""
    return clock().date() - timedelta(days=1)
