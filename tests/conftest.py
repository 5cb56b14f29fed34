"""Pytest configuration and fixtures for oidstore tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from oidstore.api.main import create_app
from oidstore.storage import ObjectStore

OIDSTORE_ENV_VARS = (
    "OIDSTORE_OBJECT_STORE_BACKEND",
    "OIDSTORE_OBJECT_STORE_BASE_DIR",
    "OIDSTORE_OTEL_ENABLED",
    "OIDSTORE_REQUIRE_OTEL",
    "OIDSTORE_OTEL_TEST_CAPTURE",
    "OIDSTORE_OTEL_SERVICE_NAME",
    "OIDSTORE_OTEL_EXPORTER",
    "OIDSTORE_OTEL_EXPORTER_OTLP_ENDPOINT",
    "OIDSTORE_OTEL_EXPORTER_OTLP_PROTOCOL",
    "OIDSTORE_OTEL_RESOURCE_ATTRS",
)


@pytest.fixture(autouse=True)
def clean_oidstore_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test without oidstore environment configuration."""
    for name in OIDSTORE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_storage_dir() -> Iterator[Path]:
    """Create a temporary directory for filesystem backend tests."""
    with tempfile.TemporaryDirectory(prefix="oidstore_test_storage_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store() -> ObjectStore:
    """Return an ObjectStore with a fresh in-memory backend."""
    return ObjectStore()


@pytest.fixture
def client(store: ObjectStore) -> TestClient:
    """Create a test client serving the in-memory store."""
    return TestClient(create_app(object_store=store))
