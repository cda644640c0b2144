import copy
from typing import Any, Callable

import pytest

from udf_datafeed.adapters.memory_provider import InMemoryMarketDataProvider
from udf_datafeed.config.settings import AdapterSettings

FX_SNAPSHOT: dict[str, Any] = {
    "symbol_types": ["Forex"],
    "markets": [
        {
            "name": "Forex",
            "submarkets": [
                {
                    "name": "Major Pairs",
                    "symbols": [
                        {"symbol": "USDJPY", "symbol_display": "USD/JPY"},
                        {"symbol": "EURUSD", "symbol_display": "EUR/USD"},
                        {"symbol": "EURGBP", "symbol_display": "EUR/GBP"},
                    ],
                }
            ],
        }
    ],
}

MIXED_SNAPSHOT: dict[str, Any] = {
    "symbol_types": ["Forex", "Random", "Stocks"],
    "markets": [
        {
            "name": "Forex",
            "submarkets": [
                {
                    "name": "Major Pairs",
                    "symbols": [
                        {"symbol": "frxUSDJPY", "symbol_display": "USD/JPY"},
                        {"symbol": "frxEURUSD", "symbol_display": "EUR/USD"},
                    ],
                },
                {
                    "name": "Minor Pairs",
                    "symbols": [{"symbol": "frxEURNZD", "symbol_display": "EUR/NZD"}],
                },
            ],
        },
        {
            "name": "Random",
            "submarkets": [
                {
                    "name": "Volatility Indices",
                    "symbols": [
                        {"symbol": "R_100", "symbol_display": "Volatility 100 Index"},
                        {"symbol": "R_50", "symbol_display": "Volatility 50 Index"},
                    ],
                }
            ],
        },
        {
            "name": "Stocks",
            "submarkets": [
                {
                    "name": "Europe",
                    "symbols": [{"symbol": "EUNXT", "symbol_display": "Euronext"}],
                }
            ],
        },
    ],
    "bars": {
        "frxEURUSD": [
            {"time": 300, "open": 1.3, "high": 1.4, "low": 1.2, "close": 1.35, "volume": 0},
            {"time": 100, "open": 1.1, "high": 1.2, "low": 1.0, "close": 1.15, "volume": 0},
            {"time": 200, "open": 1.2, "high": 1.3, "low": 1.1, "close": 1.25, "volume": 0},
        ]
    },
}

GROUP_SETTINGS = AdapterSettings(
    datafeed={"supports_search": False, "supports_group_request": True}
)


@pytest.fixture
def make_provider() -> Callable[..., InMemoryMarketDataProvider]:
    """Factory for fresh providers; unloaded unless asked otherwise."""

    def _make(
        snapshot: dict[str, Any] = MIXED_SNAPSHOT, loaded: bool = False
    ) -> InMemoryMarketDataProvider:
        return InMemoryMarketDataProvider.from_snapshot(copy.deepcopy(snapshot), loaded=loaded)

    return _make


@pytest.fixture
def group_settings() -> AdapterSettings:
    return GROUP_SETTINGS.model_copy(deep=True)


@pytest.fixture
def fx_snapshot() -> dict[str, Any]:
    return copy.deepcopy(FX_SNAPSHOT)


@pytest.fixture
def mixed_snapshot() -> dict[str, Any]:
    return copy.deepcopy(MIXED_SNAPSHOT)
