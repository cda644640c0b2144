"""MarketDataProvider Port Interface.

Contract: the market-data provider behind the datafeed. It enumerates symbol
types, announces once that its market tree is loaded, exposes that tree leaf
by leaf, and serves historical and realtime bars.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol

from udf_datafeed.types.aliases import ListenerGuid, UnixSeconds
from udf_datafeed.types.types import MarketSymbol, SymbolInfo

Bar = dict[str, Any]
OnBars = Callable[[list[Bar], dict[str, Any]], None]
OnRealtime = Callable[[Bar], None]
OnError = Callable[[str], None]


class MarketDataProvider(Protocol):
    def get_symbol_type_list(self) -> list[str]:
        """Return the known symbol type names (may be empty until loaded)."""
        ...

    def on_markets_loaded(self, callback: Callable[[], None]) -> None:
        """Call ``callback`` once the market tree is available."""
        ...

    def for_each_symbol(self, visitor: Callable[[MarketSymbol], None]) -> None:
        """Visit every leaf of the market tree in tree order."""
        ...

    def reset_table_data(self, symbol_info: SymbolInfo) -> None:
        """Forget any cached range state for the symbol."""
        ...

    def get_bars(
        self,
        symbol_info: SymbolInfo,
        range_start: UnixSeconds,
        range_end: UnixSeconds,
        on_data: OnBars,
        on_error: OnError,
    ) -> None: ...

    def subscribe_bars(
        self, symbol_info: SymbolInfo, on_realtime: OnRealtime, listener_guid: ListenerGuid
    ) -> None: ...

    def unsubscribe_bars(self, listener_guid: ListenerGuid) -> None: ...
