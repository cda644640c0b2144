"""JSON Lines Telemetry adapter.

Implements the Telemetry port by appending structured JSON objects (one per
line) to a file. Every record carries the event name, a UTC timestamp and
the datafeed session it belongs to.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional


class JsonlTelemetry:
    _REDACTION_TOKEN = "***REDACTED***"
    _DEFAULT_SECRET_KEYS = frozenset(
        {
            "api_key",
            "api_secret",
            "secret",
            "password",
            "token",
            "auth_token",
        }
    )

    def __init__(
        self,
        sink_path: Path,
        session_id: Optional[str] = None,
        secret_keys: Iterable[str] = _DEFAULT_SECRET_KEYS,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._session_id = session_id or str(uuid.uuid4())
        self._sink_path = sink_path if isinstance(sink_path, Path) else Path(sink_path)
        self._secret_keys = frozenset(k.lower() for k in secret_keys)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def session_id(self) -> str:
        return self._session_id

    def log(self, event: str, **fields: Any) -> None:
        sanitized_fields, redacted = self._sanitize_fields(fields)

        record: dict[str, Any] = {
            "event": event,
            "ts_utc": self._clock().isoformat(),
            "session_id": self._session_id,
            **sanitized_fields,
        }
        if redacted:
            record["redacted_fields"] = sorted(redacted)

        self._write_record(record)

    def _sanitize_fields(self, fields: Mapping[str, Any]) -> tuple[dict[str, Any], set[str]]:
        # Key match is case-insensitive (API_KEY, Token, ...)
        redacted = {key for key in fields if key.lower() in self._secret_keys}
        sanitized = {
            key: self._REDACTION_TOKEN if key in redacted else value
            for key, value in fields.items()
        }
        return sanitized, redacted

    def _write_record(self, record: Mapping[str, Any]) -> None:
        payload = json.dumps(
            record, sort_keys=True, separators=(",", ":"), ensure_ascii=True, default=str
        )
        self._sink_path.parent.mkdir(parents=True, exist_ok=True)
        with self._sink_path.open("a", encoding="utf-8") as handle:
            handle.write(payload + "\n")
