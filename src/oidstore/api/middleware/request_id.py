"""Request ID middleware for oidstore API.

Ensures every request has a request ID, echoed in the response and made
available to log records through RequestIdLogFilter.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from oidstore.observability.tracing import get_current_trace_id

REQUEST_ID_HEADER = "X-Request-Id"
MAX_REQUEST_ID_LENGTH = 128

_current_request_id: ContextVar[str | None] = ContextVar("oidstore_request_id", default=None)


def get_request_id() -> str | None:
    """Return the request ID of the request being handled, if any."""
    return _current_request_id.get()


class RequestIdLogFilter(logging.Filter):
    """Logging filter that stamps records with the request and trace IDs.

    Either is "-" when unavailable, so format strings can always use
    %(request_id)s and %(trace_id)s.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        record.trace_id = get_current_trace_id() or "-"
        return True


def _accept_incoming(value: str | None) -> str | None:
    """Return a usable caller-supplied request ID, or None."""
    if value is None:
        return None
    value = value.strip()
    if not value or len(value) > MAX_REQUEST_ID_LENGTH or not value.isprintable():
        return None
    return value


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware that attaches a request ID to every request.

    Behavior:
    - A non-empty, printable X-Request-Id header of at most 128 characters is reused.
    - Otherwise a uuid4 is generated.
    - The ID is set on request.state.request_id, bound for log records, and
      returned in the X-Request-Id response header.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process the request and attach request ID."""
        request_id = _accept_incoming(request.headers.get(REQUEST_ID_HEADER))
        if request_id is None:
            request_id = str(uuid.uuid4())

        request.state.request_id = request_id
        token = _current_request_id.set(request_id)
        try:
            response: Response = await call_next(request)
        finally:
            _current_request_id.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
