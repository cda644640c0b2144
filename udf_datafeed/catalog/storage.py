"""
Symbol catalog for group-request mode.

The catalog is filled once from the provider's full market tree and is
read-only afterwards. Resolution is an exact key lookup; fuzzy matching
belongs to the search index.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from udf_datafeed.catalog.metadata import symbol_metadata
from udf_datafeed.errors.errors import CatalogError
from udf_datafeed.ports.market_data import MarketDataProvider
from udf_datafeed.types.aliases import Resolution, Symbol
from udf_datafeed.types.types import MarketSymbol, SymbolInfo

logger = logging.getLogger(__name__)

INVALID_SYMBOL = "invalid symbol"


def symbol_info_from_leaf(leaf: MarketSymbol, resolutions: tuple[Resolution, ...]) -> SymbolInfo:
    """Derive the host-facing SymbolInfo for one leaf of the market tree."""
    metadata = symbol_metadata(leaf.market)
    return SymbolInfo(
        name=leaf.symbol,
        base_name=leaf.symbol,
        full_name=leaf.symbol,
        description=leaf.display_symbol,
        type=leaf.market,
        legs=(leaf.symbol,),
        pricescale=metadata.pricescale,
        minmov=metadata.minmov,
        session=metadata.session,
        supported_resolutions=resolutions,
    )


class SymbolCatalog:
    """
    In-memory set of known symbols.

    Lifecycle:
        [empty] --populate()--> [built]  (terminal; a second populate raises)

    Symbols are keyed by identifier and, when it differs, by display name.
    ``symbols`` lists identifiers only, sorted ascending.
    """

    def __init__(self, resolutions: tuple[Resolution, ...], name: str = "catalog") -> None:
        self._resolutions = resolutions
        self._name = name
        self._symbols_info: dict[str, SymbolInfo] = {}
        self._symbols_list: list[Symbol] = []
        self._seen: set[Symbol] = set()
        self._built = False

    @property
    def is_built(self) -> bool:
        return self._built

    @property
    def symbols(self) -> tuple[Symbol, ...]:
        """Sorted identifiers, each exactly once."""
        return tuple(self._symbols_list)

    def __len__(self) -> int:
        return len(self._symbols_list)

    def __contains__(self, key: object) -> bool:
        return key in self._symbols_info

    def populate(
        self,
        provider: MarketDataProvider,
        on_complete: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Walk the provider's market tree once and index every leaf.

        Raises:
            CatalogError: If the catalog was already built
            ProviderError: Propagated from a malformed market tree
        """
        if self._built:
            raise CatalogError(
                "Symbol catalog is read-only once built",
                symbols=len(self._symbols_list),
                component="SymbolCatalog",
            )

        aliases: dict[str, SymbolInfo] = {}
        try:
            provider.for_each_symbol(lambda leaf: self._add(leaf, aliases))
        except Exception:
            # A failed walk leaves the catalog empty and unbuilt
            self._symbols_info.clear()
            self._symbols_list.clear()
            self._seen.clear()
            raise

        # Aliases never shadow a primary identifier
        for alias, info in aliases.items():
            self._symbols_info.setdefault(alias, info)

        self._symbols_list.sort()
        self._built = True
        logger.info(f"[{self._name}] Built catalog with {len(self._symbols_list)} symbols")

        if on_complete is not None:
            on_complete()

    def _add(self, leaf: MarketSymbol, aliases: dict[str, SymbolInfo]) -> None:
        if leaf.symbol in self._seen:
            logger.warning(f"[{self._name}] Duplicate symbol {leaf.symbol!r} skipped")
            return

        info = symbol_info_from_leaf(leaf, self._resolutions)
        self._symbols_info[leaf.symbol] = info
        self._symbols_list.append(leaf.symbol)
        self._seen.add(leaf.symbol)
        if leaf.display_symbol and leaf.display_symbol != leaf.symbol:
            aliases.setdefault(leaf.display_symbol, info)

    def get(self, key: str) -> Optional[SymbolInfo]:
        return self._symbols_info.get(key)

    def resolve(
        self,
        symbol_name: str,
        on_resolved: Callable[[SymbolInfo], None],
        on_error: Callable[[str], None],
    ) -> None:
        """Exact lookup by identifier or display name. Exchange is not considered."""
        info = self._symbols_info.get(symbol_name)
        if info is None:
            on_error(INVALID_SYMBOL)
        else:
            on_resolved(info)
