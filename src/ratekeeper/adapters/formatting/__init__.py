# src/ratekeeper/adapters/formatting/__init__.py
"""
Formatting Adapters - Text Output

This package contains formatters for presenting service results.
"""

from ratekeeper.adapters.formatting.formatter import (
    describe_cache_age,
    format_conversion,
    format_history,
    format_rate_line,
    format_status,
    mode_description,
)

__all__ = [
    "describe_cache_age",
    "format_conversion",
    "format_history",
    "format_rate_line",
    "format_status",
    "mode_description",
]
