# src/ratekeeper/adapters/providers/currencyapi.py
"""
currencyapi.com Provider - Remote Rate Source

This module implements the HTTP client for the currencyapi.com v3 API:
latest rates for a base currency, a single historical day for a pair, and a
date range for a pair. Every failure is mapped to one of the four
RateSourceError kinds so the rate service can decide how to fall back.

Caching is not done here; the application layer owns all caches.

Files that USE this module:
- ratekeeper.app (builds the remote source for the rate service)
- ratekeeper.application.rate_service (default remote source)
- tests.test_providers (unit tests)

Files that this module USES:
- ratekeeper.adapters.providers.base (RateSource interface)
- ratekeeper.config (settings for API configuration)
- ratekeeper.domain.errors (error taxonomy)
"""
import logging
from datetime import date
from typing import Any, Dict, Optional

import requests

from ratekeeper.adapters.providers.base import RateSource
from ratekeeper.config import Settings, settings as default_settings
from ratekeeper.domain.errors import (
    DecodingError,
    HttpStatusError,
    InvalidRequestError,
    TransportError,
)
from ratekeeper.domain.models import RateTable

log = logging.getLogger(__name__)


def _rate_value(raw: Any) -> Optional[float]:
    """
    Extract a positive rate from either {"code": "EUR", "value": 0.9} or a bare number.

    Returns:
        The rate, or None if missing, non-numeric or non-positive
    """
    if isinstance(raw, dict):
        raw = raw.get("value")
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def _parse_currencies(block: Any) -> RateTable:
    """
    Parse a currency block into a rate table, dropping invalid entries.

    Raises:
        DecodingError: If the block is not a mapping
    """
    if not isinstance(block, dict):
        raise DecodingError(f"expected a currency mapping, got {type(block).__name__}")
    table: RateTable = {}
    for code, raw in block.items():
        value = _rate_value(raw)
        if value is None:
            log.warning("Dropping invalid rate for %s: %r", code, raw)
            continue
        table[str(code).upper()] = value
    return table


class CurrencyApiSource(RateSource):
    name = "currencyapi"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the currencyapi.com source.

        Args:
            api_key: Optional API key (defaults to settings.api_key)
            base_url: Optional API root (defaults to settings.api_base_url)
            timeout: Optional HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
            settings: Settings instance to read defaults from

        A missing key is not an error here; requests fail with
        InvalidRequestError so mock-only setups can still construct the source.
        """
        cfg = settings or default_settings
        self.api_key = cfg.api_key if api_key is None else api_key
        self.base_url = (base_url or cfg.api_base_url).rstrip("/")
        self.timeout = timeout or cfg.http_timeout_seconds

    def _get(self, endpoint: str, params: Dict[str, str]) -> Dict[str, Any]:
        """
        Perform one GET request and return the decoded JSON object.

        Raises:
            InvalidRequestError: Missing API key or malformed URL
            TransportError: Connectivity failure or timeout
            HttpStatusError: Non-2xx status
            DecodingError: Invalid JSON or non-object body
        """
        if not self.api_key:
            log.error("currencyapi request to /%s without API key", endpoint)
            raise InvalidRequestError("CURRENCYAPI_KEY is not configured")

        url = f"{self.base_url}/{endpoint}"
        query = {"apikey": self.api_key}
        query.update(params)
        try:
            log.info("Fetching %s from currencyapi (%s)", endpoint, ", ".join(f"{k}={v}" for k, v in params.items()))
            resp = requests.get(url, params=query, timeout=self.timeout)
        except (
            requests.exceptions.InvalidURL,
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
        ) as e:
            log.error("currencyapi request could not be built: %s", e)
            raise InvalidRequestError(f"Invalid API URL: {e}") from e
        except requests.exceptions.Timeout as e:
            log.warning("currencyapi timeout after %d seconds, will trigger fallback", self.timeout)
            raise TransportError(f"currencyapi timeout after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            log.warning("currencyapi request failed (network/connection error), will trigger fallback: %s", e)
            raise TransportError(f"currencyapi request failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            log.warning("currencyapi returned HTTP %d for /%s", resp.status_code, endpoint)
            raise HttpStatusError(resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            log.error("currencyapi returned invalid JSON: %s", e)
            raise DecodingError(f"currencyapi returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            log.error("currencyapi returned non-object JSON: %r", data)
            raise DecodingError("currencyapi returned non-object JSON")
        return data

    def latest_rates(self, base: str) -> RateTable:
        """
        Get the latest rate table for base.

        Expects: {"meta": {...}, "data": {"EUR": {"code": "EUR", "value": 0.92}, ...}}

        Returns:
            Rate table with table[base] == 1.0
        """
        data = self._get("latest", {"base_currency": base})
        if "data" not in data:
            log.error("currencyapi latest response missing 'data': %s", data)
            raise DecodingError("currencyapi response missing 'data' field")
        table = _parse_currencies(data["data"])
        if not table:
            raise DecodingError("currencyapi returned an empty rate table")
        table[base] = 1.0
        log.info("currencyapi latest: %d rates for base %s", len(table), base)
        return table

    def historical_rate(self, day: date, base: str, target: str) -> float:
        data = self._get(
            "historical",
            {"date": day.isoformat(), "base_currency": base, "currencies": target},
        )
        try:
            block = data["data"]
        except KeyError:
            raise DecodingError("currencyapi historical response missing 'data' field")
        table = _parse_currencies(block)
        if target not in table:
            raise DecodingError(f"currencyapi historical response has no rate for {target} on {day}")
        return table[target]

    def historical_range(self, start: date, end: date, base: str, target: str) -> Dict[date, float]:
        """
        Get day -> rate for a pair over [start, end].

        Accepts the list form
            {"data": [{"datetime": "2024-05-01T23:59:59Z", "currencies": {"EUR": {...}}}]}
        and the date-keyed form
            {"data": {"2024-05-01": {"EUR": 0.92}}}
        """
        if start > end:
            log.error("currencyapi range requested with start %s after end %s", start, end)
            raise InvalidRequestError(f"range start {start} is after end {end}")

        data = self._get(
            "range",
            {
                "datetime_start": f"{start.isoformat()}T00:00:00Z",
                "datetime_end": f"{end.isoformat()}T23:59:59Z",
                "base_currency": base,
                "currencies": target,
            },
        )
        if "data" not in data:
            raise DecodingError("currencyapi range response missing 'data' field")

        block = data["data"]
        if isinstance(block, list):
            entries = []
            for item in block:
                if not isinstance(item, dict):
                    raise DecodingError("currencyapi range entry is not an object")
                entries.append((item.get("datetime") or item.get("date"), item.get("currencies")))
        elif isinstance(block, dict):
            entries = list(block.items())
        else:
            raise DecodingError("currencyapi range 'data' has unexpected type")

        result: Dict[date, float] = {}
        for raw_day, currencies in entries:
            try:
                day = date.fromisoformat(str(raw_day)[:10])
            except ValueError as e:
                raise DecodingError(f"currencyapi range has invalid date {raw_day!r}") from e
            if day < start or day > end:
                continue
            value = _parse_currencies(currencies).get(target)
            if value is not None:
                result[day] = value
        log.info("currencyapi range %s..%s %s->%s: %d days", start, end, base, target, len(result))
        return result
