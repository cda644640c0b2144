"""
Shared types, enums, and data structures for the datafeed adapter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from udf_datafeed.types.aliases import Resolution, Symbol, UdfRecord

# -------- Enums --------


class ReadinessState(str, Enum):
    """Lifecycle of the datafeed. Transitions only move forward."""

    UNINITIALIZED = "uninitialized"
    CONFIGURATION_READY = "configuration_ready"
    INITIALIZATION_FINISHED = "initialization_finished"


# -------- Configuration pieces --------


@dataclass(frozen=True, slots=True)
class SymbolType:
    """Entry of the host's symbol type filter."""

    name: str
    value: str

    def to_udf(self) -> UdfRecord:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True, slots=True)
class Exchange:
    """Entry of the host's exchange filter."""

    value: str
    name: str
    desc: str = ""

    def to_udf(self) -> UdfRecord:
        return {"value": self.value, "name": self.name, "desc": self.desc}


# -------- Provider tree --------


@dataclass(frozen=True, slots=True)
class MarketSymbol:
    """Leaf record of the provider's market -> submarket -> symbol tree."""

    market: str
    submarket: str
    symbol: Symbol
    display_symbol: str


@dataclass(frozen=True, slots=True)
class SymbolMetadata:
    """Price and session metadata derived from a symbol type."""

    pricescale: Optional[int] = None
    minmov: Optional[int] = None
    session: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.pricescale is None and self.minmov is None and self.session is None


# -------- Symbol info --------


@dataclass(frozen=True)
class SymbolInfo:
    """
    Everything the host needs to know about one tradable instrument.

    ``name`` and ``ticker`` always carry the same value. ``supported_resolutions``
    is the adapter-wide resolution tuple, shared by every instance.
    """

    name: Symbol
    description: str
    type: str
    pricescale: Optional[int]
    minmov: Optional[int]
    session: Optional[str]
    supported_resolutions: tuple[Resolution, ...]
    timezone: str = "UTC"
    base_name: Optional[Symbol] = None
    full_name: Optional[Symbol] = None
    exchange: str = ""
    listed_exchange: str = ""
    legs: tuple[Symbol, ...] = field(default_factory=tuple)
    has_intraday: bool = True
    has_no_volume: bool = True
    has_daily: bool = True
    has_weekly_and_monthly: bool = True
    has_fractional_volume: bool = False
    has_empty_bars: bool = False
    volume_precision: int = 0

    @property
    def ticker(self) -> Symbol:
        return self.name

    def to_udf(self) -> UdfRecord:
        """Serialize to the dict shape the charting host expects."""
        record: UdfRecord = {
            "name": self.name,
            "ticker": self.ticker,
            "base_name": self.base_name or self.name,
            "full_name": self.full_name or self.name,
            "description": self.description,
            "type": self.type,
            "exchange": self.exchange,
            "listed_exchange": self.listed_exchange,
            "legs": list(self.legs) or [self.name],
            "timezone": self.timezone,
            "supported_resolutions": list(self.supported_resolutions),
            "has_intraday": self.has_intraday,
            "has_no_volume": self.has_no_volume,
            "has_daily": self.has_daily,
            "has_weekly_and_monthly": self.has_weekly_and_monthly,
            "has_fractional_volume": self.has_fractional_volume,
            "has_empty_bars": self.has_empty_bars,
            "volume_precision": self.volume_precision,
        }
        # Missing metadata stays absent rather than null
        for key in ("pricescale", "minmov", "session"):
            value = getattr(self, key)
            if value is not None:
                record[key] = value
        return record


# -------- Search --------


@dataclass(frozen=True, slots=True)
class SearchQuery:
    """User input of a symbol search. Empty strings match everything."""

    ticker: str = ""
    type: str = ""
    exchange: str = ""


@dataclass(frozen=True, slots=True)
class SearchResult:
    symbol: Symbol
    full_name: Symbol
    description: str
    exchange: str
    type: str
    ticker: Symbol
    supported_resolutions: tuple[Resolution, ...]

    @classmethod
    def from_symbol_info(cls, info: SymbolInfo) -> SearchResult:
        return cls(
            symbol=info.name,
            full_name=info.full_name or info.name,
            description=info.description,
            exchange=info.exchange,
            type=info.type,
            ticker=info.name,
            supported_resolutions=info.supported_resolutions,
        )

    def to_udf(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "full_name": self.full_name,
            "description": self.description,
            "exchange": self.exchange,
            "params": [],
            "type": self.type,
            "ticker": self.ticker,
            "supported_resolutions": list(self.supported_resolutions),
        }
