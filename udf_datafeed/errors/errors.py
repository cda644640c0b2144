"""
Custom exceptions for the datafeed adapter.

Exception hierarchy:
- DatafeedError (base)
  - ConfigurationError: Invalid datafeed configuration or settings
  - SearchUnavailableError: Local search used without a symbol catalog
  - CatalogError: Illegal catalog mutation
  - ProviderError: Malformed provider data

Data-not-found conditions (unknown symbols) are reported through callbacks
and never raised.
"""

from __future__ import annotations

from typing import Any, Optional


class DatafeedError(Exception):
    """Base exception for all datafeed errors."""

    def __init__(
        self,
        message: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.component = component
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.component:
            parts.append(f"[component={self.component}]")
        if self.details:
            parts.append(f"[details={self.details}]")
        return " ".join(parts)


class ConfigurationError(DatafeedError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.field = field
        self.value = value
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, component=component, details=details)


class SearchUnavailableError(DatafeedError):
    """Raised when the local search index is used without group data."""


class CatalogError(DatafeedError):
    """Raised when the symbol catalog is mutated after it was built."""

    def __init__(
        self,
        message: str,
        *,
        symbols: Optional[int] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.symbols = symbols
        details = details or {}
        if symbols is not None:
            details["symbols"] = symbols
        super().__init__(message, component=component, details=details)


class ProviderError(DatafeedError):
    """Raised when provider data cannot be parsed."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.source = source
        details = details or {}
        if source:
            details["source"] = source
        super().__init__(message, component=component, details=details)
