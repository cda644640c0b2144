"""
Configuration types for the datafeed adapter.

``DatafeedConfiguration`` is what the charting host receives from ``on_ready``.
It is immutable once built and validated on construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from pydantic import TypeAdapter, ValidationError

from udf_datafeed.errors.errors import ConfigurationError
from udf_datafeed.types.aliases import Resolution, UdfRecord
from udf_datafeed.types.types import Exchange, SymbolType

# Resolutions advertised in the configuration handshake
DEFAULT_SUPPORTED_RESOLUTIONS: tuple[Resolution, ...] = (
    "1",
    "3",
    "5",
    "15",
    "30",
    "45",
    "60",
    "120",
    "180",
    "240",
    "D",
    "2D",
    "3D",
)

DEFAULT_SYMBOL_TYPES: tuple[SymbolType, ...] = (
    SymbolType(name="Randoms", value="Random"),
    SymbolType(name="Commodities", value="Commodities"),
    SymbolType(name="Forex", value="Forex"),
    SymbolType(name="Stocks", value="Stocks"),
    SymbolType(name="Indices", value="Indices"),
)

# @obsolete field names still accepted from older hosts: legacy -> canonical
LEGACY_FIELDS: dict[str, str] = {
    "supportedResolutions": "supported_resolutions",
    "symbolsTypes": "symbols_types",
}


def build_supported_resolutions() -> tuple[Resolution, ...]:
    """
    Resolutions attached to every symbol: each minute up to 59, each hour up
    to 23 (in minutes), then 1 to 3 days.
    """
    minutes = [str(m) for m in range(1, 60)]
    hours = [str(h * 60) for h in range(1, 24)]
    days = ["D"] + [f"{d}D" for d in range(2, 4)]
    return tuple(minutes + hours + days)


def normalize_legacy_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    """
    Promote legacy field names to their canonical names and drop the legacy key.

    The canonical key wins when both are present and non-empty.
    """
    data = dict(raw)
    for legacy, canonical in LEGACY_FIELDS.items():
        legacy_value = data.pop(legacy, None)
        if not data.get(canonical) and legacy_value is not None:
            data[canonical] = legacy_value
    return data


_FLAG = TypeAdapter(bool)


def _parse_flag(name: str, value: Any) -> bool:
    """Lax boolean parsing: true/false, 1/0, yes/no, on/off (any case)."""
    try:
        return _FLAG.validate_python(value)
    except ValidationError as e:
        raise ConfigurationError(
            f"{name} must be a boolean",
            field=name,
            value=value,
        ) from e


def _coerce_symbol_types(values: Iterable[Any]) -> tuple[SymbolType, ...]:
    out: list[SymbolType] = []
    for item in values:
        if isinstance(item, SymbolType):
            out.append(item)
        elif isinstance(item, Mapping):
            out.append(SymbolType(name=str(item["name"]), value=str(item["value"])))
        else:
            out.append(SymbolType(name=str(item), value=str(item)))
    return tuple(out)


def _coerce_exchanges(values: Iterable[Any]) -> tuple[Exchange, ...]:
    out: list[Exchange] = []
    for item in values:
        if isinstance(item, Exchange):
            out.append(item)
        elif isinstance(item, Mapping):
            out.append(
                Exchange(
                    value=str(item["value"]),
                    name=str(item.get("name", item["value"])),
                    desc=str(item.get("desc", "")),
                )
            )
        else:
            out.append(Exchange(value=str(item), name=str(item)))
    return tuple(out)


@dataclass(frozen=True)
class DatafeedConfiguration:
    """
    Immutable configuration handed to the charting host.

    Example:
        config = DatafeedConfiguration(
            supports_search=False,
            supports_group_request=True,
        )
    """

    supports_search: bool = True
    supports_group_request: bool = False
    supports_marks: bool = True
    supported_resolutions: tuple[Resolution, ...] = DEFAULT_SUPPORTED_RESOLUTIONS
    symbols_types: tuple[SymbolType, ...] = DEFAULT_SYMBOL_TYPES
    exchanges: tuple[Exchange, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.supports_search and not self.supports_group_request:
            raise ConfigurationError(
                "Unsupported datafeed configuration. "
                "Must either support search, or support group request",
                field="supports_search",
                value=self.supports_search,
            )
        if not self.supported_resolutions:
            raise ConfigurationError(
                "supported_resolutions must not be empty",
                field="supported_resolutions",
            )

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> DatafeedConfiguration:
        """Build from a loose mapping, accepting legacy field names."""
        data = normalize_legacy_fields(raw)
        known = {
            "supports_search",
            "supports_group_request",
            "supports_marks",
            "supported_resolutions",
            "symbols_types",
            "exchanges",
        }
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                "Unknown configuration fields",
                field=",".join(sorted(unknown)),
            )

        kwargs: dict[str, Any] = {}
        for flag in ("supports_search", "supports_group_request", "supports_marks"):
            if flag in data:
                kwargs[flag] = _parse_flag(flag, data[flag])
        if data.get("supported_resolutions") is not None:
            kwargs["supported_resolutions"] = tuple(str(r) for r in data["supported_resolutions"])
        if data.get("symbols_types") is not None:
            kwargs["symbols_types"] = _coerce_symbol_types(data["symbols_types"])
        # A missing exchange list means "no exchanges"
        kwargs["exchanges"] = _coerce_exchanges(data.get("exchanges") or ())
        return cls(**kwargs)

    def with_symbol_types(self, names: Iterable[str]) -> DatafeedConfiguration:
        """Copy with symbol types replaced by a plain provider enumeration."""
        return DatafeedConfiguration(
            supports_search=self.supports_search,
            supports_group_request=self.supports_group_request,
            supports_marks=self.supports_marks,
            supported_resolutions=self.supported_resolutions,
            symbols_types=tuple(SymbolType(name=n, value=n) for n in names),
            exchanges=self.exchanges,
        )

    def to_udf(self) -> UdfRecord:
        return {
            "supports_search": self.supports_search,
            "supports_group_request": self.supports_group_request,
            "supports_marks": self.supports_marks,
            "supported_resolutions": list(self.supported_resolutions),
            "symbols_types": [t.to_udf() for t in self.symbols_types],
            "exchanges": [e.to_udf() for e in self.exchanges],
        }
