"""OpenTelemetry tracing for oidstore.

Tracing is off unless OIDSTORE_OTEL_ENABLED is truthy. Once enabled, object
store operations and gateway requests (except the health probe) emit spans
under a resource that names this service and its version.

Environment Variables:
    OIDSTORE_OTEL_ENABLED: "1"/"true"/"yes" turns tracing on
    OIDSTORE_REQUIRE_OTEL: Fail startup if tracing cannot be configured
    OIDSTORE_OTEL_SERVICE_NAME: service.name resource attribute (default: "oidstore")
    OIDSTORE_OTEL_EXPORTER: "otlp" or "console" (default: "otlp")
    OIDSTORE_OTEL_EXPORTER_OTLP_ENDPOINT: Collector endpoint (exporter default if unset)
    OIDSTORE_OTEL_EXPORTER_OTLP_PROTOCOL: "grpc" or "http" (default: "grpc")
    OIDSTORE_OTEL_RESOURCE_ATTRS: Extra resource attributes as "k=v,k2=v2"
    OIDSTORE_OTEL_TEST_CAPTURE: Keep finished spans in memory for tests
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from opentelemetry import trace

from oidstore import __version__

if TYPE_CHECKING:
    from fastapi import FastAPI
    from opentelemetry.sdk.trace import ReadableSpan, TracerProvider

logger = logging.getLogger(__name__)

OIDSTORE_OTEL_ENABLED_ENV: Final[str] = "OIDSTORE_OTEL_ENABLED"
OIDSTORE_REQUIRE_OTEL_ENV: Final[str] = "OIDSTORE_REQUIRE_OTEL"

DEFAULT_SERVICE_NAME: Final[str] = "oidstore"
EXPORTERS: Final[tuple[str, ...]] = ("otlp", "console")
OTLP_PROTOCOLS: Final[tuple[str, ...]] = ("grpc", "http")

# Matched against the full request URL; a PUT to a repository named "health"
# shares the path and is excluded as well.
HEALTH_URL_PATTERN: Final[str] = r"^[a-z]+://[^/]+/health(\?.*)?$"

_provider: TracerProvider | None = None
_span_capture: Any = None  # InMemorySpanExporter once capture is attached


class TracingConfigError(Exception):
    """Raised when tracing settings are invalid or the SDK cannot start."""


@dataclass(frozen=True)
class TracingConfig:
    """Tracing settings (immutable).

    Attributes:
        service_name: Reported as the service.name resource attribute.
        exporter: "otlp" or "console".
        otlp_protocol: "grpc" or "http".
        otlp_endpoint: Collector endpoint, or None for the exporter default.
        extra_resource_attributes: Additional (key, value) resource pairs.
        capture: Keep spans in memory instead of exporting them.
    """

    service_name: str = DEFAULT_SERVICE_NAME
    exporter: str = "otlp"
    otlp_protocol: str = "grpc"
    otlp_endpoint: str | None = None
    extra_resource_attributes: tuple[tuple[str, str], ...] = ()
    capture: bool = False

    def resource_attributes(self) -> dict[str, str]:
        attributes = {"service.name": self.service_name, "service.version": __version__}
        attributes.update(self.extra_resource_attributes)
        return attributes


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes")


def _env_choice(name: str, default: str, allowed: tuple[str, ...]) -> str:
    value = os.environ.get(name, "").strip().lower() or default
    if value not in allowed:
        raise TracingConfigError(f"{name} must be one of: {', '.join(allowed)}, got '{value}'")
    return value


def parse_resource_attributes(raw: str) -> tuple[tuple[str, str], ...]:
    """Parse "k=v,k2=v2" into (key, value) pairs; blank segments are skipped.

    Raises:
        TracingConfigError: If a segment has no "=" or an empty key.
    """
    pairs: list[tuple[str, str]] = []
    for segment in raw.split(","):
        segment = segment.strip()
        if not segment:
            continue
        key, sep, value = segment.partition("=")
        if not sep or not key.strip():
            raise TracingConfigError(f"Malformed resource attribute '{segment}'")
        pairs.append((key.strip(), value.strip()))
    return tuple(pairs)


def is_tracing_enabled() -> bool:
    """Return True when OIDSTORE_OTEL_ENABLED is truthy."""
    return _env_flag(OIDSTORE_OTEL_ENABLED_ENV)


def load_tracing_config() -> TracingConfig:
    """Load tracing settings from OIDSTORE_OTEL_* environment variables.

    Raises:
        TracingConfigError: If an exporter, protocol or resource attribute is invalid.
    """
    endpoint = os.environ.get("OIDSTORE_OTEL_EXPORTER_OTLP_ENDPOINT", "").strip()
    return TracingConfig(
        service_name=os.environ.get("OIDSTORE_OTEL_SERVICE_NAME", "").strip()
        or DEFAULT_SERVICE_NAME,
        exporter=_env_choice("OIDSTORE_OTEL_EXPORTER", "otlp", EXPORTERS),
        otlp_protocol=_env_choice("OIDSTORE_OTEL_EXPORTER_OTLP_PROTOCOL", "grpc", OTLP_PROTOCOLS),
        otlp_endpoint=endpoint or None,
        extra_resource_attributes=parse_resource_attributes(
            os.environ.get("OIDSTORE_OTEL_RESOURCE_ATTRS", "")
        ),
        capture=_env_flag("OIDSTORE_OTEL_TEST_CAPTURE"),
    )


def _otlp_exporter(config: TracingConfig) -> Any:
    kwargs: dict[str, Any] = {}
    if config.otlp_endpoint:
        kwargs["endpoint"] = config.otlp_endpoint

    if config.otlp_protocol == "http":
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter as HttpSpanExporter,
        )

        return HttpSpanExporter(**kwargs)

    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
        OTLPSpanExporter as GrpcSpanExporter,
    )

    return GrpcSpanExporter(**kwargs)


def _install_provider(config: TracingConfig) -> TracerProvider:
    """Create the process-wide TracerProvider with the configured exporter."""
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import (
        BatchSpanProcessor,
        ConsoleSpanExporter,
        SimpleSpanProcessor,
    )

    provider = TracerProvider(resource=Resource.create(config.resource_attributes()))
    if not config.capture:
        if config.exporter == "console":
            provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        else:
            provider.add_span_processor(BatchSpanProcessor(_otlp_exporter(config)))

    trace.set_tracer_provider(provider)
    logger.info(
        "Tracing configured: service=%s exporter=%s",
        config.service_name,
        "in-memory" if config.capture else config.exporter,
    )
    return provider


def _attach_span_capture(provider: TracerProvider) -> Any:
    from opentelemetry.sdk.trace.export import SimpleSpanProcessor
    from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

    exporter = InMemorySpanExporter()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return exporter


def configure_tracing() -> bool:
    """Install tracing for this process if it is enabled.

    Safe to call once per app; the TracerProvider is installed at most once
    per process and later calls reuse it.

    Returns:
        True if tracing is active, False if disabled or configuration failed.

    Raises:
        TracingConfigError: If OIDSTORE_REQUIRE_OTEL is set and configuration fails.
    """
    global _provider, _span_capture

    if not is_tracing_enabled():
        logger.debug("Tracing disabled (%s not set)", OIDSTORE_OTEL_ENABLED_ENV)
        return False

    try:
        config = load_tracing_config()
        if _provider is None:
            _provider = _install_provider(config)
        if config.capture and _span_capture is None:
            _span_capture = _attach_span_capture(_provider)
    except Exception as e:
        logger.error("Failed to configure tracing: %s", e)
        if _env_flag(OIDSTORE_REQUIRE_OTEL_ENV):
            raise TracingConfigError(f"Tracing is required but configuration failed: {e}") from e
        return False

    return True


def instrument_fastapi(app: FastAPI) -> None:
    """Add request spans to the gateway, skipping the health probe."""
    if not is_tracing_enabled():
        return

    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

    FastAPIInstrumentor.instrument_app(app, excluded_urls=HEALTH_URL_PATTERN)


def get_current_trace_id() -> str | None:
    """Return the active trace ID as 32 hex characters, or None outside a span."""
    ctx = trace.get_current_span().get_span_context()
    if not ctx.is_valid:
        return None
    return format(ctx.trace_id, "032x")


def get_test_spans() -> list[ReadableSpan]:
    """Return spans kept by OIDSTORE_OTEL_TEST_CAPTURE (empty if capture is off)."""
    if _span_capture is None:
        return []
    return list(_span_capture.get_finished_spans())


def clear_test_spans() -> None:
    if _span_capture is not None:
        _span_capture.clear()
