"""
Tests for SymbolCatalog population and lookups.
"""

from typing import Any

import pytest

from udf_datafeed.adapters.memory_provider import InMemoryMarketDataProvider
from udf_datafeed.catalog.storage import INVALID_SYMBOL, SymbolCatalog, symbol_info_from_leaf
from udf_datafeed.errors.errors import CatalogError, ProviderError
from udf_datafeed.types.types import MarketSymbol

RESOLUTIONS = ("1", "60", "D")


def _tree(*symbols: tuple[str, str], market: str = "Forex") -> InMemoryMarketDataProvider:
    leaves = [{"symbol": s, "symbol_display": d} for s, d in symbols]
    snapshot: dict[str, Any] = {
        "markets": [{"name": market, "submarkets": [{"name": "Main", "symbols": leaves}]}]
    }
    return InMemoryMarketDataProvider.from_snapshot(snapshot)


@pytest.fixture
def catalog() -> SymbolCatalog:
    return SymbolCatalog(RESOLUTIONS)


class TestSymbolInfoFromLeaf:
    def test_fields_follow_leaf(self):
        leaf = MarketSymbol("Forex", "Major Pairs", "frxEURUSD", "EUR/USD")

        info = symbol_info_from_leaf(leaf, RESOLUTIONS)

        assert info.name == info.ticker == info.base_name == info.full_name == "frxEURUSD"
        assert info.description == "EUR/USD"
        assert info.type == "Forex"
        assert info.legs == ("frxEURUSD",)
        assert info.timezone == "UTC"
        assert info.supported_resolutions is RESOLUTIONS
        assert (info.pricescale, info.minmov, info.session) == (100000, 1, "2200-2159:123456")

    def test_capability_flags(self):
        info = symbol_info_from_leaf(MarketSymbol("Random", "V", "R_100", "Vol 100"), RESOLUTIONS)

        assert info.has_intraday and info.has_no_volume
        assert info.has_daily and info.has_weekly_and_monthly
        assert not info.has_fractional_volume
        assert not info.has_empty_bars
        assert info.volume_precision == 0
        assert info.session == "24x7"

    def test_empty_market_omits_metadata_from_udf(self):
        info = symbol_info_from_leaf(MarketSymbol("", "", "X", "X"), RESOLUTIONS)

        record = info.to_udf()
        assert "pricescale" not in record
        assert "minmov" not in record
        assert "session" not in record
        assert record["ticker"] == "X"


class TestPopulate:
    def test_identifiers_sorted(self, catalog):
        catalog.populate(_tree(("USDJPY", "USD/JPY"), ("EURUSD", "EUR/USD"), ("EURGBP", "EUR/GBP")))

        assert catalog.symbols == ("EURGBP", "EURUSD", "USDJPY")
        assert catalog.is_built
        assert len(catalog) == 3

    def test_display_names_are_aliases_not_identifiers(self, catalog):
        catalog.populate(_tree(("frxEURUSD", "EUR/USD")))

        assert "EUR/USD" in catalog
        assert catalog.get("EUR/USD") is catalog.get("frxEURUSD")
        assert catalog.symbols == ("frxEURUSD",)

    def test_alias_never_shadows_identifier(self, catalog):
        # The second leaf's display name equals the first leaf's identifier
        catalog.populate(_tree(("AAA", "First"), ("BBB", "AAA")))

        assert catalog.get("AAA").name == "AAA"
        assert catalog.get("AAA").description == "First"

    def test_alias_never_shadows_later_identifier(self, catalog):
        catalog.populate(_tree(("BBB", "AAA"), ("AAA", "First")))

        assert catalog.get("AAA").description == "First"

    def test_duplicate_identifiers_skipped(self, catalog, caplog):
        catalog.populate(_tree(("AAA", "First"), ("AAA", "Second")))

        assert catalog.symbols == ("AAA",)
        assert catalog.get("AAA").description == "First"
        assert "Duplicate symbol" in caplog.text

    def test_on_complete_called_after_build(self, catalog):
        seen: list[bool] = []

        catalog.populate(_tree(("AAA", "A")), on_complete=lambda: seen.append(catalog.is_built))

        assert seen == [True]

    def test_second_populate_raises(self, catalog):
        catalog.populate(_tree(("AAA", "A")))

        with pytest.raises(CatalogError) as exc_info:
            catalog.populate(_tree(("BBB", "B")))

        assert exc_info.value.symbols == 1
        assert catalog.symbols == ("AAA",)

    def test_empty_tree_builds_empty_catalog(self, catalog):
        catalog.populate(InMemoryMarketDataProvider.from_snapshot({"markets": []}))

        assert catalog.is_built
        assert len(catalog) == 0
        assert catalog.symbols == ()


class TestResolve:
    @pytest.fixture
    def built(self, catalog):
        catalog.populate(_tree(("frxEURUSD", "EUR/USD"), ("frxUSDJPY", "USD/JPY")))
        return catalog

    def test_resolve_by_identifier(self, built):
        resolved, errors = [], []

        built.resolve("frxUSDJPY", resolved.append, errors.append)

        assert [i.name for i in resolved] == ["frxUSDJPY"]
        assert errors == []

    def test_resolve_by_display_name(self, built):
        resolved = []

        built.resolve("EUR/USD", resolved.append, pytest.fail)

        assert resolved[0].name == "frxEURUSD"

    def test_resolve_is_exact(self, built):
        resolved, errors = [], []

        built.resolve("frxEUR", resolved.append, errors.append)

        assert resolved == []
        assert errors == [INVALID_SYMBOL]


class _BrokenTree:
    """Market tree that fails after handing out its first leaves."""

    def __init__(self, good: int) -> None:
        self._good = good

    def for_each_symbol(self, visitor) -> None:
        for i in range(self._good):
            visitor(MarketSymbol("Forex", "Main", f"SYM{i}", f"Sym {i}"))
        raise ProviderError("tree went away", source="test")


class TestFailedPopulate:
    def test_failed_walk_leaves_catalog_empty(self, catalog):
        completed: list[bool] = []

        with pytest.raises(ProviderError):
            catalog.populate(_BrokenTree(good=2), on_complete=lambda: completed.append(True))

        assert not catalog.is_built
        assert len(catalog) == 0
        assert catalog.get("SYM0") is None
        assert "Sym 0" not in catalog
        assert completed == []

    def test_populate_again_after_failure(self, catalog):
        with pytest.raises(ProviderError):
            catalog.populate(_BrokenTree(good=1))

        catalog.populate(_tree(("SYM0", "Sym 0")))

        assert catalog.symbols == ("SYM0",)
