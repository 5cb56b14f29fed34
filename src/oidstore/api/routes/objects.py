"""Object routes for oidstore API.

Provides the content-addressed object endpoints:
- PUT /{repository} (putObject): store the raw request body, return its oid
- GET /store/{repository}/{oid} (getObject): return the stored bytes

Store errors propagate to the ObjectStorageError handler, which maps them to
400 (invalid repository, duplicate), 404 (not found) or 503 (backend failure).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect

from oidstore.api.errors import OidStoreHttpError
from oidstore.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Objects"])

OBJECT_MEDIA_TYPE = "application/octet-stream"


class PutObjectResponse(BaseModel):
    """Response body for PUT /{repository}."""

    oid: str
    size: int


def get_object_store(request: Request) -> ObjectStore:
    """Return the ObjectStore bound to the application.

    Raises:
        OidStoreHttpError: 503 if the application has no store configured.
    """
    store = getattr(request.app.state, "object_store", None)
    if store is None:
        raise OidStoreHttpError(
            status_code=503,
            code="SERVICE_UNAVAILABLE",
            message="Object store not configured",
        )
    return store


@router.put(
    "/{repository}",
    status_code=201,
    response_model=PutObjectResponse,
    operation_id="putObject",
)
async def put_object(repository: str, request: Request) -> PutObjectResponse:
    """Store the request body under a repository.

    Args:
        repository: Repository namespace from the path.
        request: The incoming request; its body is the object content.

    Returns:
        PutObjectResponse with the oid and size (HTTP 201).

    Raises:
        OidStoreHttpError: 503 if the request body cannot be read.
    """
    store = get_object_store(request)

    try:
        payload = await request.body()
    except ClientDisconnect as e:
        logger.warning("Failed to read request body for repository=%r", repository)
        raise OidStoreHttpError(
            status_code=503,
            code="SERVICE_UNAVAILABLE",
            message="Failed to read request body",
        ) from e

    result = await run_in_threadpool(store.put, repository, payload)
    return PutObjectResponse(oid=result.oid, size=result.size)


@router.get("/store/{repository}/{oid}", operation_id="getObject")
async def get_object(repository: str, oid: str, request: Request) -> Response:
    """Return the bytes stored under (repository, oid).

    Args:
        repository: Repository namespace from the path.
        oid: Object id returned by a previous PUT.
        request: The incoming request.

    Returns:
        Raw stored bytes (HTTP 200).
    """
    store = get_object_store(request)
    payload = await run_in_threadpool(store.get, repository, oid)
    return Response(content=payload, media_type=OBJECT_MEDIA_TYPE)
