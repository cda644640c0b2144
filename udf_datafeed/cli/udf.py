"""udf CLI entrypoint.

Subcommands: config, search, resolve, bars.

Loads a market snapshot (JSON) into the in-memory provider, runs one datafeed
operation and prints the host-facing result as JSON on stdout.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

import orjson

from udf_datafeed.adapters.memory_provider import InMemoryMarketDataProvider
from udf_datafeed.adapters.telemetry.jsonl import JsonlTelemetry
from udf_datafeed.config.config_loader import SettingsLoader
from udf_datafeed.datafeed import UDFCompatibleDatafeed
from udf_datafeed.errors.errors import DatafeedError
from udf_datafeed.types.types import SymbolInfo

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    """
    Return the top-level CLI argument parser.
    """
    p = argparse.ArgumentParser(prog="udf")
    sub = p.add_subparsers(dest="command", required=True)

    def add_common(sp: argparse.ArgumentParser) -> None:
        """Add arguments shared across all subcommands."""
        sp.add_argument("--markets", type=Path, required=True, help="Market snapshot JSON file")
        sp.add_argument("--settings", type=Path, required=False, help="Adapter settings TOML")
        sp.add_argument(
            "--set",
            dest="overrides",
            action="append",  # builds a Python list (overrides) containing each key=value
            default=[],
            metavar="KEY=VALUE",
            help="Override a settings entry, e.g. datafeed.supports_search=false (may be repeated)",
        )
        sp.add_argument("--telemetry", type=Path, required=False, help="JSONL telemetry sink")
        sp.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    cfg = sub.add_parser("config", help="Print the datafeed configuration")
    add_common(cfg)

    search = sub.add_parser("search", help="Search symbols")
    add_common(search)
    search.add_argument("query", nargs="?", default="", help="Ticker text to search for")
    search.add_argument("--type", dest="symbol_type", default="", help="Symbol type filter")

    resolve = sub.add_parser("resolve", help="Resolve one symbol")
    add_common(resolve)
    resolve.add_argument("symbol", help="Symbol identifier")

    bars = sub.add_parser("bars", help="Fetch historical bars for a symbol")
    add_common(bars)
    bars.add_argument("symbol", help="Symbol identifier")
    bars.add_argument("--from", dest="range_start", type=int, required=True, help="Unix seconds")
    bars.add_argument("--to", dest="range_end", type=int, required=True, help="Unix seconds")
    return p


def _emit(payload: Any) -> None:
    sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8") + "\n")


def _build_datafeed(args: argparse.Namespace) -> UDFCompatibleDatafeed:
    loader = SettingsLoader()
    settings = loader.load_settings(
        str(args.settings) if args.settings else None, overrides=args.overrides
    )
    telemetry = JsonlTelemetry(args.telemetry) if args.telemetry else None

    # Register before the markets load so the handshake runs through the signal
    provider = InMemoryMarketDataProvider.from_json_file(args.markets, loaded=False)
    datafeed = UDFCompatibleDatafeed(provider, settings, telemetry=telemetry)
    provider.mark_loaded()
    return datafeed


def _resolve(datafeed: UDFCompatibleDatafeed, symbol: str) -> tuple[Optional[SymbolInfo], str]:
    resolved: list[SymbolInfo] = []
    errors: list[str] = []
    datafeed.resolve_symbol(symbol, resolved.append, errors.append)
    if resolved:
        return resolved[0], ""
    return None, errors[0] if errors else "unresolved"


def run(args: argparse.Namespace) -> int:
    """Execute one subcommand against a freshly built datafeed."""
    datafeed = _build_datafeed(args)

    if args.command == "config":
        configs: list[Any] = []
        datafeed.on_ready(configs.append)
        _emit(configs[0].to_udf())
        return EXIT_OK

    if args.command == "search":
        found: list[Any] = []
        datafeed.search_symbols(args.query, args.symbol_type, found.append)
        _emit([r.to_udf() for r in found[0]])
        return EXIT_OK

    info, reason = _resolve(datafeed, args.symbol)
    if info is None:
        _emit({"error": reason, "symbol": args.symbol})
        return EXIT_NOT_FOUND

    if args.command == "resolve":
        _emit(info.to_udf())
        return EXIT_OK

    outcome: dict[str, Any] = {}

    def _on_data(bars: list[dict[str, Any]], meta: dict[str, Any]) -> None:
        outcome.update({"bars": bars, "meta": meta})

    def _on_error(message: str) -> None:
        outcome["error"] = message

    datafeed.get_bars(info, "D", args.range_start, args.range_end, _on_data, _on_error)
    _emit(outcome)
    return EXIT_NOT_FOUND if "error" in outcome else EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return run(args)
    except (DatafeedError, FileNotFoundError, ValueError) as e:
        logger.error(f"udf {args.command} failed: {e}")
        sys.stderr.write(f"error: {e}\n")
        return EXIT_USAGE


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
