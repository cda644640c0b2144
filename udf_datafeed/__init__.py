"""
UDF-compatible datafeed adapter.

Exposes configuration readiness, symbol search, symbol resolution, historical
bars and realtime bar subscriptions to a charting host, backed by a
market-data provider.

Components:
- UDFCompatibleDatafeed: Host-facing operation surface
- ConfigurationLifecycleController: One-time provider handshake and readiness milestones
- SymbolCatalog: Symbol set built once in group-request mode
- SymbolSearchIndex: Prefix search over the catalog
- EventBus / Milestone: Fire-and-clear pub/sub and single-resolution values

Usage:
    from udf_datafeed import InMemoryMarketDataProvider, UDFCompatibleDatafeed

    provider = InMemoryMarketDataProvider.from_json_file("markets.json")
    datafeed = UDFCompatibleDatafeed(provider)
    datafeed.resolve_symbol("frxEURUSD", on_resolved, on_error)
"""

from udf_datafeed.adapters.memory_provider import InMemoryMarketDataProvider
from udf_datafeed.catalog.metadata import symbol_metadata
from udf_datafeed.catalog.search import SymbolSearchIndex
from udf_datafeed.catalog.storage import SymbolCatalog
from udf_datafeed.config.configs import DatafeedConfiguration, build_supported_resolutions
from udf_datafeed.config.settings import AdapterSettings
from udf_datafeed.core.bus import EventBus, Milestone
from udf_datafeed.core.controller import ConfigurationLifecycleController
from udf_datafeed.datafeed import UDFCompatibleDatafeed
from udf_datafeed.errors.errors import (
    CatalogError,
    ConfigurationError,
    DatafeedError,
    ProviderError,
    SearchUnavailableError,
)
from udf_datafeed.types.types import (
    MarketSymbol,
    ReadinessState,
    SearchQuery,
    SearchResult,
    SymbolInfo,
    SymbolMetadata,
)

__all__ = [
    # Main entry point
    "UDFCompatibleDatafeed",
    "AdapterSettings",
    "InMemoryMarketDataProvider",
    # Components
    "ConfigurationLifecycleController",
    "SymbolCatalog",
    "SymbolSearchIndex",
    "EventBus",
    "Milestone",
    "DatafeedConfiguration",
    "build_supported_resolutions",
    "symbol_metadata",
    # Types
    "ReadinessState",
    "MarketSymbol",
    "SymbolInfo",
    "SymbolMetadata",
    "SearchQuery",
    "SearchResult",
    # Errors
    "DatafeedError",
    "ConfigurationError",
    "SearchUnavailableError",
    "CatalogError",
    "ProviderError",
]
