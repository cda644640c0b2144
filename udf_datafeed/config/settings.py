from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AdapterSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = Field(default="udf_datafeed", description="Component name used in log lines")
    max_search_results: int = Field(default=30, ge=1, description="Hard cap on search results")
    enable_logging: bool = Field(
        default=False, description="Log the resolved configuration after the handshake"
    )
    # Raw datafeed configuration overrides; legacy field names are accepted here
    # and normalized during the handshake.
    datafeed: dict[str, Any] = Field(
        default_factory=dict, description="Overrides for the host configuration"
    )
