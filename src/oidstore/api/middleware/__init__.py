"""oidstore API middleware package."""

from oidstore.api.middleware.request_id import RequestIdMiddleware

__all__ = ["RequestIdMiddleware"]
