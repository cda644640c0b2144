from __future__ import annotations

from typing import Optional

from udf_datafeed.types.types import SymbolMetadata

DEFAULT_PRICESCALE = 10000
FOREX_PRICESCALE = 100000
DEFAULT_MINMOV = 1
# Forex market hours, Monday to Saturday
DEFAULT_SESSION = "2200-2159:123456"
CONTINUOUS_SESSION = "24x7"


def symbol_metadata(symbol_type: Optional[str]) -> SymbolMetadata:
    """
    Price scale, minimum move and session for a symbol type.

    Empty or missing types yield empty metadata.
    """
    # TODO: read pricescale/session per symbol once the provider's market tree carries them
    if not symbol_type:
        return SymbolMetadata()

    pricescale = DEFAULT_PRICESCALE
    session = DEFAULT_SESSION
    if symbol_type == "Forex":
        pricescale = FOREX_PRICESCALE
    elif symbol_type == "Random":
        session = CONTINUOUS_SESSION

    return SymbolMetadata(pricescale=pricescale, minmov=DEFAULT_MINMOV, session=session)
