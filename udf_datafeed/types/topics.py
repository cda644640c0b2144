"""
Centralized event names for the datafeed event bus.

Kept apart from the bus so the controller, facade and tests can share them
without importing each other.
"""

# Lifecycle milestones
E_CONFIGURATION_READY = "configuration_ready"
E_INITIALIZED = "initialized"

# Telemetry event names
T_CONFIGURATION_READY = "configuration_ready"
T_INITIALIZATION_FINISHED = "initialization_finished"
T_RESOLVE_FAILED = "resolve_failed"
T_BARS_REQUEST_FAILED = "bars_request_failed"
