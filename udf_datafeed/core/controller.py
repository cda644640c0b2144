"""
Configuration lifecycle controller.

Owns the one-time handshake with the market-data provider and everything
derived from it: the configuration, the symbol catalog and the search index.
Consumers wait on two milestones published on the event bus:

    [UNINITIALIZED] --markets loaded--> build configuration
                                      |
                     (group request) populate catalog --+
                     (otherwise) -----------------------+--> [INITIALIZATION_FINISHED]
                                      |
                         configuration_ready milestone resolves

INITIALIZATION_FINISHED is terminal.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import orjson

from udf_datafeed.catalog.search import SymbolSearchIndex
from udf_datafeed.catalog.storage import SymbolCatalog
from udf_datafeed.config.configs import DatafeedConfiguration, build_supported_resolutions
from udf_datafeed.config.settings import AdapterSettings
from udf_datafeed.core.bus import EventBus, Milestone
from udf_datafeed.ports.market_data import MarketDataProvider
from udf_datafeed.ports.telemetry import Telemetry
from udf_datafeed.types.aliases import Resolution
from udf_datafeed.types.topics import (
    E_CONFIGURATION_READY,
    E_INITIALIZED,
    T_CONFIGURATION_READY,
    T_INITIALIZATION_FINISHED,
)
from udf_datafeed.types.types import ReadinessState

logger = logging.getLogger(__name__)


class ConfigurationLifecycleController:
    """
    Drives the datafeed from UNINITIALIZED to INITIALIZATION_FINISHED.

    The controller registers with the provider on construction. Everything
    else happens when the provider reports its markets as loaded.

    Usage:
        controller = ConfigurationLifecycleController(provider, settings)
        controller.configuration_ready.then(lambda cfg: ...)
        controller.initialization_finished.then(lambda _: ...)
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        settings: Optional[AdapterSettings] = None,
        *,
        bus: Optional[EventBus] = None,
        telemetry: Optional[Telemetry] = None,
    ) -> None:
        """
        Initialize the controller and start the provider handshake.

        Args:
            provider: Market-data provider collaborator
            settings: Adapter settings (defaults when omitted)
            bus: Event bus for milestone announcements
            telemetry: Optional structured event sink
        """
        self._provider = provider
        self._settings = settings or AdapterSettings()
        self._name = self._settings.name
        self._bus = bus or EventBus()
        self._telemetry = telemetry

        # State
        self._state = ReadinessState.UNINITIALIZED
        self._configuration: Optional[DatafeedConfiguration] = None
        self._catalog: Optional[SymbolCatalog] = None
        self._search_index: Optional[SymbolSearchIndex] = None
        self._supported_resolutions: tuple[Resolution, ...] = build_supported_resolutions()

        # Milestones
        self.configuration_ready: Milestone[DatafeedConfiguration] = Milestone(
            self._bus, E_CONFIGURATION_READY
        )
        self.initialization_finished: Milestone[ReadinessState] = Milestone(
            self._bus, E_INITIALIZED
        )

        # Trigger market data load; the answer is read again once markets are in
        self._provider.get_symbol_type_list()
        self._provider.on_markets_loaded(self._on_markets_loaded)

    @property
    def state(self) -> ReadinessState:
        return self._state

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def configuration(self) -> Optional[DatafeedConfiguration]:
        return self._configuration

    @property
    def catalog(self) -> Optional[SymbolCatalog]:
        return self._catalog

    @property
    def search_index(self) -> Optional[SymbolSearchIndex]:
        return self._search_index

    @property
    def supported_resolutions(self) -> tuple[Resolution, ...]:
        """Resolution tuple shared by every resolved symbol."""
        return self._supported_resolutions

    @property
    def is_initialized(self) -> bool:
        return self._state == ReadinessState.INITIALIZATION_FINISHED

    def _on_markets_loaded(self) -> None:
        """Build the configuration from defaults, settings and provider symbol types."""
        if self._configuration is not None:
            logger.warning(f"[{self._name}] Markets loaded again; configuration is kept")
            return

        symbol_types = list(self._provider.get_symbol_type_list())
        configuration = DatafeedConfiguration.from_mapping(
            self._settings.datafeed
        ).with_symbol_types(symbol_types)
        self.setup_with_configuration(configuration)

    def setup_with_configuration(self, configuration: DatafeedConfiguration) -> None:
        """
        Install ``configuration`` and build the catalog it asks for.

        A failed catalog build leaves the controller UNINITIALIZED, without
        configuration, catalog or search index.

        Raises:
            ConfigurationError: Propagated from configuration validation
            ProviderError: If the provider's market tree is malformed
        """
        self._configuration = configuration
        self._state = ReadinessState.CONFIGURATION_READY

        try:
            if not configuration.supports_search:
                # Bound to the catalog reference, which is None without group request
                self._search_index = SymbolSearchIndex(self._catalog_for(configuration))

            if configuration.supports_group_request:
                self._ensure_catalog().populate(self._provider)
        except Exception:
            logger.exception(f"[{self._name}] Catalog build failed; configuration discarded")
            self._configuration = None
            self._catalog = None
            self._search_index = None
            self._state = ReadinessState.UNINITIALIZED
            raise

        self._on_initialized()
        self.configuration_ready.resolve(configuration)
        self._log_event(T_CONFIGURATION_READY, supports_search=configuration.supports_search)

        if self._settings.enable_logging:
            logger.info(
                f"[{self._name}] Initialized with "
                f"{orjson.dumps(configuration.to_udf()).decode('utf-8')}"
            )

    def _ensure_catalog(self) -> SymbolCatalog:
        if self._catalog is None:
            self._catalog = SymbolCatalog(self._supported_resolutions, name=f"{self._name}_catalog")
        return self._catalog

    def _catalog_for(self, configuration: DatafeedConfiguration) -> Optional[SymbolCatalog]:
        return self._ensure_catalog() if configuration.supports_group_request else None

    def _on_initialized(self) -> None:
        if self._state == ReadinessState.INITIALIZATION_FINISHED:
            logger.warning(f"[{self._name}] Initialization already finished")
            return

        self._state = ReadinessState.INITIALIZATION_FINISHED
        logger.debug(f"[{self._name}] Initialization finished")
        self.initialization_finished.resolve(self._state)
        self._log_event(
            T_INITIALIZATION_FINISHED,
            symbols=len(self._catalog) if self._catalog is not None else None,
        )

    def _log_event(self, event: str, **fields: Any) -> None:
        if self._telemetry is not None:
            self._telemetry.log(event, component=self._name, **fields)

    def describe(self) -> Mapping[str, Any]:
        """Snapshot of the controller state."""
        return {
            "state": self._state.value,
            "configuration": self._configuration.to_udf() if self._configuration else None,
            "symbols": len(self._catalog) if self._catalog is not None else None,
            "search_index": self._search_index is not None,
        }
