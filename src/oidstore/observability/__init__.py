"""oidstore Observability module.

Provides the OpenTelemetry tracing baseline.
"""

from oidstore.observability.tracing import configure_tracing, get_current_trace_id

__all__ = ["configure_tracing", "get_current_trace_id"]
