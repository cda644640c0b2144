import pytest

from udf_datafeed.catalog.metadata import (
    CONTINUOUS_SESSION,
    DEFAULT_MINMOV,
    DEFAULT_PRICESCALE,
    DEFAULT_SESSION,
    FOREX_PRICESCALE,
    symbol_metadata,
)
from udf_datafeed.types.types import SymbolMetadata


@pytest.mark.parametrize(
    "symbol_type, expected",
    [
        ("Forex", SymbolMetadata(FOREX_PRICESCALE, DEFAULT_MINMOV, DEFAULT_SESSION)),
        ("Random", SymbolMetadata(DEFAULT_PRICESCALE, DEFAULT_MINMOV, CONTINUOUS_SESSION)),
        ("Stocks", SymbolMetadata(DEFAULT_PRICESCALE, DEFAULT_MINMOV, DEFAULT_SESSION)),
        ("Commodities", SymbolMetadata(10000, 1, "2200-2159:123456")),
    ],
)
def test_metadata_by_type(symbol_type, expected):
    assert symbol_metadata(symbol_type) == expected


@pytest.mark.parametrize("symbol_type", ["", None])
def test_empty_type_has_no_metadata(symbol_type):
    metadata = symbol_metadata(symbol_type)

    assert metadata.is_empty
    assert metadata == SymbolMetadata(None, None, None)


def test_type_match_is_case_sensitive():
    assert symbol_metadata("forex").pricescale == DEFAULT_PRICESCALE
    assert symbol_metadata("random").session == DEFAULT_SESSION
