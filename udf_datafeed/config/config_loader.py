"""
Purpose:
    - Load adapter settings from a TOML file
    - Apply dotted ``KEY=VALUE`` overrides on top
    - Validate the merged result into ``AdapterSettings``
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from udf_datafeed.config.settings import AdapterSettings
from udf_datafeed.core.utility import deep_merge, insert_path, parse_override_value
from udf_datafeed.errors.errors import ConfigurationError

logger = logging.getLogger(__name__)


def parse_overrides(pairs: Iterable[str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}

    for item in pairs:
        key, sep, value = item.partition("=")
        if sep == "":
            raise ValueError(f"--set requires KEY=VALUE format (got {item!r})")

        insert_path(overrides, key, parse_override_value(value))
    return overrides


class SettingsLoader:
    """
    Settings loader; reads TOML files relative to ``base_dir``.
    """

    def __init__(self, base_dir: str = ".") -> None:
        self._base_dir = base_dir

    def load(self, file_name: str) -> dict[str, Any]:
        path = Path(file_name)
        if not path.is_absolute():
            path = Path(self._base_dir) / file_name

        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")

        with path.open("rb") as f:
            return tomllib.load(f)

    def load_settings(
        self,
        file_name: Optional[str] = None,
        overrides: Optional[Iterable[str]] = None,
    ) -> AdapterSettings:
        pairs = list(overrides or [])
        data: dict[str, Any] = self.load(file_name) if file_name else {}
        if pairs:
            data = deep_merge(data, parse_overrides(pairs))

        try:
            settings = AdapterSettings.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid adapter settings: {e.error_count()} error(s)",
                component="SettingsLoader",
                details={"errors": [err["loc"] for err in e.errors()]},
            ) from e

        logger.debug(
            "settings_loaded",
            extra={
                "event": "settings_loaded",
                "source": file_name or "<defaults>",
                "overrides": len(pairs),
            },
        )
        return settings
