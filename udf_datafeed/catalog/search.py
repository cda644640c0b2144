"""
Symbol search.

Two read paths exist:
- ``SymbolSearchIndex``: prefix search over a built ``SymbolCatalog``.
- ``scan_market_tree`` / ``find_in_market_tree``: unindexed scans of the
  provider's live market tree, used when no catalog exists.

The live scan matches substrings anywhere in the identifier or display
symbol while the index only matches identifier prefixes. The difference is
kept on purpose.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from udf_datafeed.catalog.storage import SymbolCatalog, symbol_info_from_leaf
from udf_datafeed.errors.errors import SearchUnavailableError
from udf_datafeed.ports.market_data import MarketDataProvider
from udf_datafeed.types.aliases import Resolution
from udf_datafeed.types.types import MarketSymbol, SearchQuery, SearchResult, SymbolInfo

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 30
UNKNOWN_SYMBOL = "unknown_symbol"


class SymbolSearchIndex:
    """
    Prefix search over the catalog's sorted identifiers.

    Cannot work without a catalog: searching with ``catalog=None`` raises
    ``SearchUnavailableError``.
    """

    def __init__(self, catalog: Optional[SymbolCatalog]) -> None:
        self._catalog = catalog

    @property
    def is_available(self) -> bool:
        return self._catalog is not None

    def search(
        self, query: SearchQuery, max_results: int = DEFAULT_MAX_RESULTS
    ) -> list[SearchResult]:
        if self._catalog is None:
            raise SearchUnavailableError(
                "Cannot use local symbol search when no groups information is available",
                component="SymbolSearchIndex",
            )

        results: list[SearchResult] = []
        if max_results <= 0:
            return results

        for symbol_name in self._catalog.symbols:
            item = self._catalog.get(symbol_name)
            if item is None:
                continue
            if query.type and item.type != query.type:
                continue
            if query.ticker and not item.name.startswith(query.ticker):
                continue

            results.append(SearchResult.from_symbol_info(item))
            if len(results) >= max_results:
                break

        return results


class _StopScan(Exception):
    """Ends a market tree traversal early."""


def _walk(provider: MarketDataProvider, visitor: Callable[[MarketSymbol], bool]) -> None:
    """Visit leaves until ``visitor`` returns False."""

    def _visit(leaf: MarketSymbol) -> None:
        if not visitor(leaf):
            raise _StopScan

    try:
        provider.for_each_symbol(_visit)
    except _StopScan:
        pass


def scan_market_tree(
    provider: MarketDataProvider,
    query: SearchQuery,
    resolutions: tuple[Resolution, ...],
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[SearchResult]:
    """
    One-shot scan of the live tree.

    A leaf matches when its market name contains ``query.type`` and its
    identifier or display symbol contains ``query.ticker``.
    """
    results: list[SearchResult] = []
    if max_results <= 0:
        return results

    def _match(leaf: MarketSymbol) -> bool:
        if query.type not in leaf.market:
            return True
        if query.ticker in leaf.symbol or query.ticker in leaf.display_symbol:
            results.append(
                SearchResult(
                    symbol=leaf.symbol,
                    full_name=leaf.symbol,
                    description=leaf.display_symbol,
                    exchange="",
                    type=leaf.market,
                    ticker=leaf.symbol,
                    supported_resolutions=resolutions,
                )
            )
        return len(results) < max_results

    _walk(provider, _match)
    return results


def find_in_market_tree(
    provider: MarketDataProvider,
    symbol_name: str,
    resolutions: tuple[Resolution, ...],
) -> Optional[SymbolInfo]:
    """
    Resolve against the live tree: the first exact identifier match, else the
    first identifier containing ``symbol_name``.

    Looking for an exact match first means "R_10" finds R_10 even when R_100
    comes earlier in tree order; a plain first-substring lookup would return
    R_100. An empty name resolves to nothing rather than to the first leaf.
    """
    if not symbol_name:
        return None

    candidate: list[MarketSymbol] = []
    exact: list[MarketSymbol] = []

    def _match(leaf: MarketSymbol) -> bool:
        if leaf.symbol == symbol_name:
            exact.append(leaf)
            return False
        if not candidate and symbol_name in leaf.symbol:
            candidate.append(leaf)
        return True

    _walk(provider, _match)

    leaf = exact[0] if exact else (candidate[0] if candidate else None)
    if leaf is None:
        return None
    return symbol_info_from_leaf(leaf, resolutions)
