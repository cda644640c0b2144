"""Telemetry Port Interface.

Contract: log structured lifecycle events of the datafeed.
"""
from __future__ import annotations
from typing import Protocol, Any

class Telemetry(Protocol):
    def log(self, event: str, **fields: Any) -> None: ...
