# src/ratekeeper/app.py
"""
Application Entry Point - Composition Root and CLI

This module wires settings, logging, the file store and the rate sources into
a RateService and exposes it as a small command-line tool:

    python -m ratekeeper rates
    python -m ratekeeper convert 100 EUR GBP
    python -m ratekeeper rate USD JPY
    python -m ratekeeper history GBP EUR --days 14
    python -m ratekeeper refresh
    python -m ratekeeper clear-cache

Add --mock to use mock data instead of the live API.

Files that USE this module:
- python -m ratekeeper (module entry point)
- ratekeeper console script

Files that this module USES:
- ratekeeper.shared.logging_conf (setup_logging for logging configuration)
- ratekeeper.config (settings)
- ratekeeper.application.rate_service (RateService)
- ratekeeper.adapters.persistence.file_store (JsonFileStore)
- ratekeeper.adapters.formatting.formatter (output formatting)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations for forward references

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from ratekeeper.adapters.formatting.formatter import (
    format_conversion,
    format_history,
    format_rate_line,
    format_status,
    mode_description,
)
from ratekeeper.adapters.persistence.file_store import JsonFileStore
from ratekeeper.application.rate_service import RateService
from ratekeeper.application.series_stats import summarize
from ratekeeper.config import Settings, settings as default_settings
from ratekeeper.domain.errors import RatesUnavailableError
from ratekeeper.shared.logging_conf import setup_logging
from ratekeeper.shared.validators import validate_amount

log = logging.getLogger(__name__)


def build_service(settings: Settings) -> RateService:
    """Build a RateService persisting to settings.data_dir."""
    store = JsonFileStore(settings.data_dir)
    return RateService(settings=settings, store=store)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ratekeeper", description="Cached exchange rates and conversions")
    parser.add_argument("--mock", action="store_true", help="use mock data instead of the live API")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("rates", help="print the latest rate table")

    convert = sub.add_parser("convert", help="convert an amount")
    convert.add_argument("amount")
    convert.add_argument("from_code")
    convert.add_argument("to_code")

    rate = sub.add_parser("rate", help="print the rate between two currencies")
    rate.add_argument("from_code")
    rate.add_argument("to_code")

    history = sub.add_parser("history", help="print daily rates ending yesterday")
    history.add_argument("from_code")
    history.add_argument("to_code")
    history.add_argument("--days", type=int, default=14)

    sub.add_parser("refresh", help="fetch the latest rates ignoring the cache")
    sub.add_parser("clear-cache", help="delete cached rates")
    return parser


async def _run(service: RateService, args: argparse.Namespace) -> int:
    """Execute one CLI command and return the process exit code."""
    try:
        if args.command in ("rates", "refresh"):
            if args.command == "refresh":
                rates = await service.force_refresh()
            else:
                rates = await service.fetch_latest_rates()
            for code in sorted(rates):
                print(format_rate_line(service.base_currency, code, rates[code]))

        elif args.command == "convert":
            amount = validate_amount(args.amount)
            if amount is None:
                print(f"Invalid amount: {args.amount}", file=sys.stderr)
                return 2
            result = await service.convert(amount, args.from_code, args.to_code)
            print(format_conversion(amount, args.from_code.upper(), args.to_code.upper(), result))
            if result is None:
                return 1

        elif args.command == "rate":
            result = await service.get_rate(args.from_code, args.to_code)
            print(format_rate_line(args.from_code.upper(), args.to_code.upper(), result))
            if result is None:
                return 1

        elif args.command == "history":
            if args.days < 1:
                print("--days must be at least 1", file=sys.stderr)
                return 2
            points = await service.fetch_historical_rates(args.from_code, args.to_code, args.days)
            if not points:
                print("No historical data")
                return 1
            print(format_history(points, summarize(points)))

        elif args.command == "clear-cache":
            service.clear_cache()
            print("Cache cleared")
            return 0

    except RatesUnavailableError as e:
        print(f"Rates unavailable: {e}", file=sys.stderr)
        return 1
    finally:
        await service.aclose()

    print(format_status(service.status, service.now()))
    return 0


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    """
    CLI entry point.

    Args:
        argv: Arguments (defaults to sys.argv[1:])
        settings: Settings instance (defaults to the module-level settings)

    Returns:
        Process exit code
    """
    cfg = settings or default_settings
    args = _build_parser().parse_args(argv)

    setup_logging(
        level=cfg.log_level,
        log_file=cfg.log_file,
        log_dir=cfg.log_dir,
        max_bytes=cfg.log_max_bytes,
        backup_count=cfg.log_backup_count,
        log_stdout=cfg.log_stdout,
    )

    service = build_service(cfg)
    if args.mock:
        service.set_mock_mode(True)
    log.info("%s, base currency %s", mode_description(service.is_mock_mode), service.base_currency)

    return asyncio.run(_run(service, args))


if __name__ == "__main__":
    sys.exit(main())
