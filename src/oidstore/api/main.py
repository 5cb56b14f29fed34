"""oidstore FastAPI application factory.

This module provides the create_app() factory for bootstrapping the oidstore API.
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from oidstore import __version__
from oidstore.api.errors import (
    OidStoreHttpError,
    generic_exception_handler,
    http_exception_handler,
    object_storage_error_handler,
    oidstore_http_error_handler,
    request_validation_error_handler,
)
from oidstore.api.middleware.request_id import RequestIdMiddleware
from oidstore.api.routes.health import router as health_router
from oidstore.api.routes.objects import router as objects_router
from oidstore.observability.tracing import configure_tracing, instrument_fastapi
from oidstore.storage.config import create_object_store
from oidstore.storage.errors import ObjectStorageError
from oidstore.storage.object_store import ObjectStore


def create_app(object_store: ObjectStore | None = None) -> FastAPI:
    """Create and configure the oidstore FastAPI application.

    This factory:
    - Binds one ObjectStore to app.state for all request handlers
    - Configures OpenTelemetry tracing (no-op unless enabled)
    - Registers RequestIdMiddleware and the error envelope handlers
    - Mounts the health and object routers

    Args:
        object_store: Store to serve. If None, builds one from
            OIDSTORE_OBJECT_STORE_* environment variables.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="oidstore API",
        description="Content-addressable object store",
        version=__version__,
    )

    app.state.object_store = object_store if object_store is not None else create_object_store()

    configure_tracing()

    app.add_middleware(RequestIdMiddleware)

    instrument_fastapi(app)

    app.add_exception_handler(OidStoreHttpError, oidstore_http_error_handler)
    app.add_exception_handler(ObjectStorageError, object_storage_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health_router)
    app.include_router(objects_router)

    return app
