"""oidstore object storage OpenTelemetry tracing integration.

Provides the tracing decorator used by ObjectStore operations.

Span attributes never include payload bytes or filesystem paths. Repository
names are stripped as the store strips them and exported as a SHA256 hash.
"""

from __future__ import annotations

import functools
import hashlib
import logging
from collections.abc import Callable
from typing import Any, TypeVar, cast

from oidstore.observability.tracing import is_tracing_enabled

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def traced_storage_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace storage operations with OpenTelemetry.

    Args:
        operation: Operation name (e.g., "put", "get").

    Returns:
        Decorated function that emits OTel spans when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, repository: str, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return func(self, repository, *args, **kwargs)

            try:
                from opentelemetry import trace
            except ImportError:
                return func(self, repository, *args, **kwargs)

            tracer = trace.get_tracer("oidstore.object_store")
            span_name = f"oidstore.object_store.{operation}"

            with tracer.start_as_current_span(span_name) as span:
                repository_sha256 = hashlib.sha256(repository.strip().encode("utf-8")).hexdigest()
                span.set_attribute("oidstore.repository_sha256", repository_sha256)
                span.set_attribute("storage.backend", getattr(self, "backend_name", "unknown"))

                if operation == "get" and args and isinstance(args[0], str):
                    span.set_attribute("oidstore.object_oid", args[0])

                try:
                    result = func(self, repository, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

                if result is not None:
                    _add_result_attributes(span, result)

                return result

        return cast(F, wrapper)

    return decorator


def _add_result_attributes(span: Any, result: Any) -> None:
    """Add result-based attributes to span safely.

    Only adds the oid and size, never content.
    """
    try:
        from oidstore.storage.models import PutResult

        if isinstance(result, PutResult):
            span.set_attribute("oidstore.object_oid", result.oid)
            span.set_attribute("oidstore.object_size_bytes", result.size)
        elif isinstance(result, bytes):
            span.set_attribute("oidstore.object_size_bytes", len(result))

    except Exception as e:
        logger.debug("Failed to add result attributes to span: %s", e)
