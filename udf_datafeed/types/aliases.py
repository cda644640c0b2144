from typing import Any

# -------- Aliases (clarify intent) --------
UnixSeconds = int
Symbol = str
Resolution = str  # e.g., "1", "60", "D", "2D"
ListenerGuid = str
UdfRecord = dict[str, Any]
