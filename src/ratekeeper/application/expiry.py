# src/ratekeeper/application/expiry.py
"""
Expiry Policy - Market-Hours Aware Cache Lifetimes

Currency markets move faster while they trade, so the latest-rate cache
expires sooner on weekdays between the opening and closing hour (local time)
than at night or on weekends. A separate, shorter staleness threshold decides
when a still-valid cache is refreshed in the background.

Files that USE this module:
- ratekeeper.application.rate_cache (RateCache asks the policy for thresholds)

Files that this module USES:
- ratekeeper.config (threshold settings)
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ratekeeper.config import Settings


@dataclass(frozen=True)
class ExpiryPolicy:
    market_hours_expiry: timedelta = timedelta(hours=1)
    off_hours_expiry: timedelta = timedelta(hours=2)
    stale_threshold: timedelta = timedelta(minutes=30)
    market_open_hour: int = 8
    market_close_hour: int = 20

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExpiryPolicy":
        return cls(
            market_hours_expiry=settings.market_hours_expiry,
            off_hours_expiry=settings.off_hours_expiry,
            stale_threshold=settings.stale_threshold,
            market_open_hour=settings.market_open_hour,
            market_close_hour=settings.market_close_hour,
        )

    def is_market_hours(self, now: datetime) -> bool:
        """Weekday (Mon-Fri) and open <= hour < close, in now's timezone."""
        if now.weekday() >= 5:
            return False
        return self.market_open_hour <= now.hour < self.market_close_hour

    def expiry_threshold(self, now: datetime) -> timedelta:
        return self.market_hours_expiry if self.is_market_hours(now) else self.off_hours_expiry
