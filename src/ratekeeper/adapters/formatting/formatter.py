# src/ratekeeper/adapters/formatting/formatter.py
"""
Formatter - Human-Readable Rates, Ages and Status

This module turns service results into short plain-text strings for
collaborators: the cache age shown next to an offline indicator, rate and
conversion lines, history summaries, and the source mode description.

Files that USE this module:
- ratekeeper.application.rate_service (cache_age_description)
- ratekeeper.app (CLI output)
- tests.test_formatter (unit tests)

Files that this module USES:
- ratekeeper.domain.models (ServiceStatus, HistoricalPoint)
- ratekeeper.application.series_stats (SeriesStats, for history summaries)
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from ratekeeper.domain.models import HistoricalPoint, ServiceStatus

if TYPE_CHECKING:
    from ratekeeper.application.series_stats import SeriesStats

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def describe_cache_age(last_updated: Optional[datetime], now: datetime) -> str:
    """
    Describe how long ago rates were updated.

    Returns:
        "Unknown" if never updated, "just now" under a minute, "Nm ago" under
        an hour, "Nh ago" under a day, otherwise the day as "Mon D"
    """
    if last_updated is None:
        return "Unknown"

    seconds = (now - last_updated).total_seconds()
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    # month names fixed to English, independent of process locale
    local = last_updated.astimezone(now.tzinfo) if now.tzinfo else last_updated
    return f"{_MONTHS[local.month - 1]} {local.day}"


def _fmt_rate(rate: float) -> str:
    """Four decimals for ordinary rates, more for tiny ones (e.g. IRR->USD)."""
    if rate == 0:
        return "0"
    if abs(rate) < 0.01:
        return f"{rate:.8f}".rstrip("0")
    return f"{rate:.4f}"


def format_rate_line(from_code: str, to_code: str, rate: Optional[float]) -> str:
    if rate is None:
        return f"1 {from_code} = N/A {to_code}"
    return f"1 {from_code} = {_fmt_rate(rate)} {to_code}"


def format_conversion(amount: float, from_code: str, to_code: str, result: Optional[float]) -> str:
    if result is None:
        return f"{amount:,.2f} {from_code} = N/A {to_code}"
    return f"{amount:,.2f} {from_code} = {result:,.2f} {to_code}"


def format_status(status: ServiceStatus, now: datetime) -> str:
    """
    One-line freshness indicator, e.g. "Online · updated 5m ago".
    """
    state = "Offline" if status.is_offline else "Online"
    if status.is_mock:
        state = f"{state} (mock data)"
    return f"{state} · updated {describe_cache_age(status.last_updated, now)}"


def mode_description(is_mock: bool) -> str:
    return "Mock mode (no API calls)" if is_mock else "Live mode (real API)"


def format_history(points: List[HistoricalPoint], stats: Optional["SeriesStats"] = None) -> str:
    """
    Format a historical series as one "YYYY-MM-DD  rate" line per point,
    followed by a high/low/trend summary when stats are given.
    """
    if not points:
        return "No historical data"
    lines = [f"{p.date.isoformat()}  {_fmt_rate(p.rate)}" for p in points]
    if stats is not None:
        lines.append("")
        lines.append(
            f"High {_fmt_rate(stats.high)} · Low {_fmt_rate(stats.low)} · "
            f"Mid {_fmt_rate(stats.midpoint)}"
        )
        if stats.week_trend_pct is not None:
            lines.append(f"7-day trend {stats.week_trend_pct:+.2f}% · volatility {stats.volatility_pct:.2f}%")
        lines.append(f"Rating: {stats.rating.replace('_', ' ')}")
    return "\n".join(lines)
