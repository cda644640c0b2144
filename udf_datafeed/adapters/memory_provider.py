"""
In-memory market-data provider.

Holds a market -> submarket -> symbol tree and per-symbol bar frames, and
serves them through the ``MarketDataProvider`` port. Snapshots are plain
mappings or JSON files:

    {
        "symbol_types": ["Forex", "Random"],
        "markets": [
            {"name": "Forex", "submarkets": [
                {"name": "Major Pairs", "symbols": [
                    {"symbol": "frxEURUSD", "symbol_display": "EUR/USD"}
                ]}
            ]}
        ],
        "bars": {"frxEURUSD": [{"time": 1700000000, "open": 1.1, ...}]}
    }
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Mapping, NoReturn, Optional

import orjson
import polars as pl

from udf_datafeed.errors.errors import ProviderError
from udf_datafeed.ports.market_data import Bar, OnBars, OnError, OnRealtime
from udf_datafeed.types.aliases import ListenerGuid, Symbol, UnixSeconds
from udf_datafeed.types.types import MarketSymbol, SymbolInfo

logger = logging.getLogger(__name__)

BAR_SCHEMA: dict[str, Any] = {
    "time": pl.Int64,
    "open": pl.Float64,
    "high": pl.Float64,
    "low": pl.Float64,
    "close": pl.Float64,
    "volume": pl.Float64,
}


def _empty_bars() -> pl.DataFrame:
    return pl.DataFrame(schema=BAR_SCHEMA)


def _check_markets(markets: list[Mapping[str, Any]]) -> None:
    """
    Validate the market -> submarket -> symbol tree shape.

    Raises:
        ProviderError: On the first malformed node, naming its position
    """

    def _fail(message: str) -> NoReturn:
        raise ProviderError(message, component="InMemoryMarketDataProvider")

    for i, market in enumerate(markets):
        if not isinstance(market, Mapping):
            _fail(f"markets[{i}] must be an object")
        submarkets = market.get("submarkets", [])
        if not isinstance(submarkets, list):
            _fail(f"markets[{i}].submarkets must be a list")
        for j, submarket in enumerate(submarkets):
            if not isinstance(submarket, Mapping):
                _fail(f"markets[{i}].submarkets[{j}] must be an object")
            leaves = submarket.get("symbols", [])
            if not isinstance(leaves, list):
                _fail(f"markets[{i}].submarkets[{j}].symbols must be a list")
            for k, leaf in enumerate(leaves):
                where = f"markets[{i}].submarkets[{j}].symbols[{k}]"
                if not isinstance(leaf, Mapping):
                    _fail(f"{where} must be an object")
                symbol = leaf.get("symbol")
                if not isinstance(symbol, str) or not symbol:
                    _fail(f"{where} has no symbol identifier")


class InMemoryMarketDataProvider:
    """
    Reference provider backed by in-process data.

    The "markets loaded" signal fires once, on ``mark_loaded()``. Callbacks
    registered after that are called immediately.

    Raises:
        ProviderError: If the market tree is malformed
    """

    def __init__(
        self,
        markets: Optional[list[Mapping[str, Any]]] = None,
        symbol_types: Optional[list[str]] = None,
        bars: Optional[Mapping[Symbol, Any]] = None,
        name: str = "memory_provider",
    ) -> None:
        self._name = name
        self._markets: list[Mapping[str, Any]] = list(markets or [])
        _check_markets(self._markets)
        if symbol_types is None:
            # Fall back to market names in tree order
            symbol_types = list(dict.fromkeys(str(m.get("name", "")) for m in self._markets))
        self._symbol_types: list[str] = list(symbol_types)
        self._bars: dict[Symbol, pl.DataFrame] = {}
        for symbol, rows in (bars or {}).items():
            self.set_bars(symbol, rows)

        self._loaded = False
        self._loaded_callbacks: list[Callable[[], None]] = []
        self._type_requests = 0

        # symbol -> last served range (start, end)
        self._served_ranges: dict[Symbol, tuple[UnixSeconds, UnixSeconds]] = {}
        # guid -> (symbol, callback)
        self._subscriptions: dict[ListenerGuid, tuple[Symbol, OnRealtime]] = {}

    # --- Construction helpers ---

    @classmethod
    def from_snapshot(
        cls, snapshot: Mapping[str, Any], *, loaded: bool = True
    ) -> InMemoryMarketDataProvider:
        markets = snapshot.get("markets")
        if not isinstance(markets, list):
            raise ProviderError(
                "Snapshot must contain a 'markets' list",
                component="InMemoryMarketDataProvider",
            )
        provider = cls(
            markets=markets,
            symbol_types=snapshot.get("symbol_types"),
            bars=snapshot.get("bars"),
        )
        if loaded:
            provider.mark_loaded()
        return provider

    @classmethod
    def from_json_file(cls, path: Path | str, *, loaded: bool = True) -> InMemoryMarketDataProvider:
        path = Path(path)
        try:
            snapshot = orjson.loads(path.read_bytes())
        except FileNotFoundError as e:
            raise ProviderError(f"Snapshot file not found: {path}", source=str(path)) from e
        except orjson.JSONDecodeError as e:
            raise ProviderError(f"Snapshot is not valid JSON: {e}", source=str(path)) from e
        if not isinstance(snapshot, Mapping):
            raise ProviderError("Snapshot root must be an object", source=str(path))
        return cls.from_snapshot(snapshot, loaded=loaded)

    def set_bars(self, symbol: Symbol, rows: Any) -> None:
        """Replace the bars of ``symbol`` (list of dicts or a DataFrame), sorted by time."""
        if isinstance(rows, pl.DataFrame):
            frame = rows
        elif not rows:
            frame = _empty_bars()
        else:
            frame = pl.DataFrame(rows)
        missing = set(BAR_SCHEMA) - set(frame.columns)
        if missing:
            raise ProviderError(
                f"Bars for {symbol} are missing columns: {sorted(missing)}",
                component="InMemoryMarketDataProvider",
            )
        self._bars[symbol] = frame.select(
            [pl.col(c).cast(t) for c, t in BAR_SCHEMA.items()]
        ).sort("time")

    # --- Readiness ---

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def type_requests(self) -> int:
        """How often the symbol type list was requested."""
        return self._type_requests

    def get_symbol_type_list(self) -> list[str]:
        self._type_requests += 1
        return list(self._symbol_types)

    def on_markets_loaded(self, callback: Callable[[], None]) -> None:
        if self._loaded:
            callback()
        else:
            self._loaded_callbacks.append(callback)

    def mark_loaded(self) -> None:
        """Fire the one-time markets loaded signal."""
        if self._loaded:
            return
        self._loaded = True
        callbacks, self._loaded_callbacks = self._loaded_callbacks, []
        logger.debug(f"[{self._name}] Markets loaded, notifying {len(callbacks)} listener(s)")
        for callback in callbacks:
            callback()

    # --- Market tree ---

    def for_each_symbol(self, visitor: Callable[[MarketSymbol], None]) -> None:
        for market in self._markets:
            market_name = str(market.get("name", ""))
            for submarket in market.get("submarkets", []):
                submarket_name = str(submarket.get("name", ""))
                for leaf in submarket.get("symbols", []):
                    symbol = str(leaf["symbol"])
                    visitor(
                        MarketSymbol(
                            market=market_name,
                            submarket=submarket_name,
                            symbol=symbol,
                            display_symbol=str(
                                leaf.get("symbol_display", leaf.get("display_name", symbol))
                            ),
                        )
                    )

    # --- Bars ---

    def reset_table_data(self, symbol_info: SymbolInfo) -> None:
        self._served_ranges.pop(symbol_info.name, None)

    def served_range(self, symbol: Symbol) -> Optional[tuple[UnixSeconds, UnixSeconds]]:
        return self._served_ranges.get(symbol)

    def get_bars(
        self,
        symbol_info: SymbolInfo,
        range_start: UnixSeconds,
        range_end: UnixSeconds,
        on_data: OnBars,
        on_error: OnError,
    ) -> None:
        frame = self._bars.get(symbol_info.name)
        if frame is None:
            on_error(f"no data for {symbol_info.name}")
            return

        window = frame.filter(pl.col("time").is_between(range_start, range_end, closed="both"))
        self._served_ranges[symbol_info.name] = (range_start, range_end)
        bars: list[Bar] = window.to_dicts()
        on_data(bars, {"noData": not bars})

    # --- Realtime ---

    def subscribe_bars(
        self, symbol_info: SymbolInfo, on_realtime: OnRealtime, listener_guid: ListenerGuid
    ) -> None:
        self._subscriptions[listener_guid] = (symbol_info.name, on_realtime)
        logger.debug(f"[{self._name}] Subscribed {listener_guid} to {symbol_info.name}")

    def unsubscribe_bars(self, listener_guid: ListenerGuid) -> None:
        if self._subscriptions.pop(listener_guid, None) is None:
            logger.debug(f"[{self._name}] Unknown listener {listener_guid}")

    def subscribers(self, symbol: Symbol) -> list[ListenerGuid]:
        return [guid for guid, (sym, _) in self._subscriptions.items() if sym == symbol]

    def push_bar(self, symbol: Symbol, bar: Bar) -> int:
        """Deliver a realtime bar to every listener of ``symbol``."""
        delivered = 0
        for sym, callback in list(self._subscriptions.values()):
            if sym == symbol:
                callback(bar)
                delivered += 1
        return delivered
