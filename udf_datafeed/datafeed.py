"""
UDF-compatible datafeed facade.

The public operation surface handed to the charting host. Each call is
either answered immediately or deferred until the lifecycle controller
reports the milestone it depends on:

- ``on_ready``       needs the configuration
- ``resolve_symbol`` needs initialization to be finished
- ``search_symbols`` answers ``[]`` while there is no configuration

Bar retrieval and realtime subscriptions are forwarded to the provider.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from udf_datafeed.catalog.search import UNKNOWN_SYMBOL, find_in_market_tree, scan_market_tree
from udf_datafeed.config.configs import DatafeedConfiguration
from udf_datafeed.config.settings import AdapterSettings
from udf_datafeed.core.bus import EventBus
from udf_datafeed.core.controller import ConfigurationLifecycleController
from udf_datafeed.ports.market_data import MarketDataProvider, OnBars, OnError, OnRealtime
from udf_datafeed.ports.telemetry import Telemetry
from udf_datafeed.types.aliases import ListenerGuid, Resolution, UnixSeconds
from udf_datafeed.types.topics import T_BARS_REQUEST_FAILED, T_RESOLVE_FAILED
from udf_datafeed.types.types import ReadinessState, SearchQuery, SearchResult, SymbolInfo

logger = logging.getLogger(__name__)

PostProcessHook = Callable[[SymbolInfo], SymbolInfo]
OnResolved = Callable[[SymbolInfo], None]
OnSearchResult = Callable[[list[SearchResult]], None]


class UDFCompatibleDatafeed:
    """
    Datafeed adapter between a charting host and a market-data provider.

    Usage:
        provider = InMemoryMarketDataProvider.from_json_file("markets.json")
        datafeed = UDFCompatibleDatafeed(provider)

        datafeed.on_ready(lambda cfg: print(cfg.to_udf()))
        datafeed.resolve_symbol("frxEURUSD", on_resolved, on_error)
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        settings: Optional[AdapterSettings] = None,
        *,
        post_process_symbol_info: Optional[PostProcessHook] = None,
        telemetry: Optional[Telemetry] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        """
        Initialize the datafeed and start the provider handshake.

        Args:
            provider: Market-data provider collaborator
            settings: Adapter settings (defaults when omitted)
            post_process_symbol_info: Applied to every resolved SymbolInfo
            telemetry: Optional structured event sink
            bus: Event bus shared with the controller

        Raises:
            ConfigurationError: If the provider is already loaded and the
                configuration is invalid
        """
        self._provider = provider
        self._settings = settings or AdapterSettings()
        self._name = self._settings.name
        self._post_process = post_process_symbol_info
        self._telemetry = telemetry
        self._controller = ConfigurationLifecycleController(
            provider, self._settings, bus=bus, telemetry=telemetry
        )

    @property
    def controller(self) -> ConfigurationLifecycleController:
        return self._controller

    @property
    def configuration(self) -> Optional[DatafeedConfiguration]:
        return self._controller.configuration

    @property
    def state(self) -> ReadinessState:
        return self._controller.state

    @property
    def supported_resolutions(self) -> tuple[Resolution, ...]:
        return self._controller.supported_resolutions

    # --- Configuration ---

    def on_ready(self, callback: Callable[[DatafeedConfiguration], None]) -> None:
        """Hand the configuration to ``callback`` now, or once it exists."""
        self._controller.configuration_ready.then(callback)

    # --- Search ---

    def search_symbols(
        self,
        user_input: str,
        symbol_type: str,
        on_result_ready: OnSearchResult,
        exchange: str = "",
    ) -> None:
        """
        Search symbols by name. Exchange is accepted but not filtered on.

        Raises:
            SearchUnavailableError: If the local index exists without a catalog
        """
        configuration = self._controller.configuration
        if configuration is None:
            on_result_ready([])
            return

        query = SearchQuery(ticker=user_input or "", type=symbol_type or "", exchange=exchange)
        max_results = self._settings.max_search_results

        index = self._controller.search_index
        if index is not None:
            results = index.search(query, max_results)
        else:
            results = scan_market_tree(
                self._provider, query, self._controller.supported_resolutions, max_results
            )

        logger.debug(
            f"[{self._name}] Search {query.ticker!r}/{query.type!r}: {len(results)} hit(s)"
        )
        on_result_ready(results)

    # --- Resolve ---

    def resolve_symbol(
        self,
        symbol_name: str,
        on_resolved: OnResolved,
        on_error: OnError,
    ) -> None:
        """
        Resolve ``symbol_name`` to a SymbolInfo. Exchange is not considered.

        Called before initialization finished, the call re-dispatches itself
        with the same arguments once it has.
        """
        if not self._controller.is_initialized:
            self._controller.initialization_finished.then(
                lambda _: self.resolve_symbol(symbol_name, on_resolved, on_error)
            )
            return

        def _on_result_ready(info: SymbolInfo) -> None:
            if self._post_process is not None:
                info = self._post_process(info)
            on_resolved(info)

        def _on_failed(reason: str) -> None:
            logger.debug(f"[{self._name}] Cannot resolve {symbol_name!r}: {reason}")
            self._log_event(T_RESOLVE_FAILED, symbol=symbol_name, reason=reason)
            on_error(reason)

        catalog = self._controller.catalog
        configuration = self._controller.configuration
        group_request = configuration is not None and configuration.supports_group_request
        if group_request and catalog is not None:
            catalog.resolve(symbol_name, _on_result_ready, _on_failed)
            return

        info = find_in_market_tree(
            self._provider, symbol_name, self._controller.supported_resolutions
        )
        if info is None:
            _on_failed(UNKNOWN_SYMBOL)
        else:
            _on_result_ready(info)

    # --- Bars ---

    def get_bars(
        self,
        symbol_info: SymbolInfo,
        resolution: Resolution,
        range_start: UnixSeconds,
        range_end: UnixSeconds,
        on_data: OnBars,
        on_error: OnError,
    ) -> None:
        """
        Fetch historical bars from the provider.

        ``resolution`` is not forwarded; the provider tracks the chart's
        actual resolution itself. Provider failures are logged, not raised.
        """
        try:
            self._provider.reset_table_data(symbol_info)
            self._provider.get_bars(symbol_info, range_start, range_end, on_data, on_error)
        except Exception as e:
            logger.exception(f"[{self._name}] Bars request for {symbol_info.name} failed: {e}")
            self._log_event(
                T_BARS_REQUEST_FAILED,
                symbol=symbol_info.name,
                error=str(e),
                error_type=type(e).__name__,
            )

    def subscribe_bars(
        self,
        symbol_info: SymbolInfo,
        resolution: Resolution,
        on_realtime: OnRealtime,
        listener_guid: ListenerGuid,
    ) -> None:
        self._provider.subscribe_bars(symbol_info, on_realtime, listener_guid)

    def unsubscribe_bars(self, listener_guid: ListenerGuid) -> None:
        self._provider.unsubscribe_bars(listener_guid)

    # --- Inert host operations ---

    def get_marks(
        self,
        symbol_info: SymbolInfo,
        range_start: UnixSeconds,
        range_end: UnixSeconds,
        on_data: Callable[[list[Any]], None],
        resolution: Resolution,
    ) -> None:
        on_data([])

    def calculate_history_depth(
        self, resolution: Resolution, resolution_back: str, interval_back: int
    ) -> None:
        return None

    def get_quotes(
        self,
        symbols: list[str],
        on_data: Callable[[list[Any]], None],
        on_error: OnError,
    ) -> None:
        logger.warning(f"[{self._name}] get_quotes is not supported; returning no quotes")
        on_data([])

    def subscribe_quotes(
        self,
        symbols: list[str],
        fast_symbols: list[str],
        on_realtime: Callable[[list[Any]], None],
        listener_guid: ListenerGuid,
    ) -> None:
        pass

    def unsubscribe_quotes(self, listener_guid: ListenerGuid) -> None:
        pass

    # --- Async conveniences ---

    async def ready(self) -> DatafeedConfiguration:
        """Await the configuration."""
        return await self._controller.configuration_ready.wait()

    async def resolve(self, symbol_name: str) -> Optional[SymbolInfo]:
        """Await initialization and resolve; None when the symbol is unknown."""
        await self._controller.initialization_finished.wait()
        resolved: list[SymbolInfo] = []
        self.resolve_symbol(symbol_name, resolved.append, lambda _reason: None)
        return resolved[0] if resolved else None

    async def search(self, user_input: str, symbol_type: str = "") -> list[SearchResult]:
        """Await the configuration and search."""
        await self._controller.configuration_ready.wait()
        found: list[list[SearchResult]] = []
        self.search_symbols(user_input, symbol_type, found.append)
        return found[0] if found else []

    def _log_event(self, event: str, **fields: Any) -> None:
        if self._telemetry is not None:
            self._telemetry.log(event, component=self._name, **fields)

