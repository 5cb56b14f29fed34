"""Tests for the oidstore ObjectStore contract.

Every test runs against both the in-memory and the filesystem backend:
- Round-trip: put then get returns identical bytes
- Write-once: a second identical put raises DuplicateObjectError
- Namespace isolation: an oid stored in repo A is not visible in repo B
- Repository validation: empty and whitespace-only names are rejected
- Concurrency: N racing identical puts yield exactly one success
"""

from __future__ import annotations

import os
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from oidstore.hashing import compute_oid
from oidstore.storage import (
    DuplicateObjectError,
    FilesystemObjectBackend,
    InMemoryObjectBackend,
    InvalidRepositoryError,
    ObjectNotFoundError,
    ObjectStore,
    PutResult,
)

HELLO_OID = "LPJNul-wow4m6DsqxbninhsWHlwfp0JecwQzYpOLmCQ"


@pytest.fixture(params=["memory", "filesystem"])
def any_store(request: pytest.FixtureRequest, temp_storage_dir: Path) -> ObjectStore:
    """ObjectStore over each available backend."""
    if request.param == "filesystem":
        return ObjectStore(FilesystemObjectBackend(base_dir=temp_storage_dir))
    return ObjectStore(InMemoryObjectBackend())


class TestPut:
    """Tests for ObjectStore.put."""

    def test_hello_scenario(self, any_store: ObjectStore) -> None:
        """put("myrepo", "hello") returns the known oid and size 5."""
        result = any_store.put("myrepo", b"hello")

        assert result == PutResult(oid=HELLO_OID, size=5)
        assert result.to_dict() == {"oid": HELLO_OID, "size": 5}

    def test_oid_matches_hasher(self, any_store: ObjectStore) -> None:
        """The returned oid is compute_oid of the payload."""
        data = os.urandom(512)

        result = any_store.put("repo", data)

        assert result.oid == compute_oid(data)
        assert result.size == 512

    def test_empty_payload(self, any_store: ObjectStore) -> None:
        """Empty payloads are storable."""
        result = any_store.put("repo", b"")

        assert result.size == 0
        assert any_store.get("repo", result.oid) == b""

    @pytest.mark.parametrize("repository", ["", " ", "   ", "\t\n"])
    def test_rejects_blank_repository(self, any_store: ObjectStore, repository: str) -> None:
        """Empty or whitespace-only repositories raise InvalidRepositoryError."""
        with pytest.raises(InvalidRepositoryError):
            any_store.put(repository, b"payload")

    def test_repository_whitespace_is_stripped(self, any_store: ObjectStore) -> None:
        """Leading and trailing whitespace does not create a new namespace."""
        result = any_store.put("  myrepo  ", b"hello")

        assert any_store.get("myrepo", result.oid) == b"hello"

        with pytest.raises(DuplicateObjectError):
            any_store.put("myrepo", b"hello")


class TestWriteOnce:
    """Tests for duplicate detection."""

    def test_second_identical_put_raises_duplicate(self, any_store: ObjectStore) -> None:
        """Same repo and same bytes fail the second time."""
        first = any_store.put("repo", b"same bytes")

        with pytest.raises(DuplicateObjectError) as exc_info:
            any_store.put("repo", b"same bytes")

        assert exc_info.value.oid == first.oid
        assert exc_info.value.repository == "repo"

    def test_duplicate_does_not_corrupt_first_write(self, any_store: ObjectStore) -> None:
        """The original bytes survive a rejected duplicate."""
        result = any_store.put("repo", b"original")

        with pytest.raises(DuplicateObjectError):
            any_store.put("repo", b"original")

        assert any_store.get("repo", result.oid) == b"original"

    def test_same_content_in_different_repositories(self, any_store: ObjectStore) -> None:
        """Identical content may be stored once per repository."""
        a = any_store.put("repoA", b"shared")
        b = any_store.put("repoB", b"shared")

        assert a.oid == b.oid


class TestGet:
    """Tests for ObjectStore.get."""

    def test_round_trip_binary(self, any_store: ObjectStore) -> None:
        """Bytes come back unchanged, including every byte value."""
        data = bytes(range(256)) * 4

        result = any_store.put("repo", data)

        assert any_store.get("repo", result.oid) == data

    def test_round_trip_many(self, any_store: ObjectStore) -> None:
        """Several payloads round-trip independently."""
        payloads = [os.urandom(n) for n in (1, 10, 100, 1000, 64 * 1024)]
        oids = [any_store.put("repo", p).oid for p in payloads]

        for oid, payload in zip(oids, payloads, strict=True):
            assert any_store.get("repo", oid) == payload

    def test_missing_oid_raises_not_found(self, any_store: ObjectStore) -> None:
        """A never-written oid raises ObjectNotFoundError."""
        with pytest.raises(ObjectNotFoundError) as exc_info:
            any_store.get("repo", HELLO_OID)

        assert exc_info.value.repository == "repo"
        assert exc_info.value.oid == HELLO_OID

    def test_namespace_isolation(self, any_store: ObjectStore) -> None:
        """An oid stored in repoA is not found in repoB."""
        result = any_store.put("repoA", b"payload")

        with pytest.raises(ObjectNotFoundError):
            any_store.get("repoB", result.oid)

    def test_separator_in_repository_does_not_alias(self, any_store: ObjectStore) -> None:
        """Repository names containing ':' do not collide with other keys."""
        result = any_store.put("a:b", b"payload")

        with pytest.raises(ObjectNotFoundError):
            any_store.get("a", f"b:{result.oid}")
        with pytest.raises(ObjectNotFoundError):
            any_store.get("a:b:", result.oid)

        assert any_store.get("a:b", result.oid) == b"payload"

    @pytest.mark.parametrize(
        "oid",
        ["", "not-an-oid", "../../etc/passwd", HELLO_OID + "x", HELLO_OID[:-1] + "="],
    )
    def test_malformed_oid_raises_not_found(self, any_store: ObjectStore, oid: str) -> None:
        """Malformed oids never match and raise ObjectNotFoundError."""
        any_store.put("repo", b"hello")

        with pytest.raises(ObjectNotFoundError):
            any_store.get("repo", oid)

    @pytest.mark.parametrize("repository", ["", "   "])
    def test_blank_repository_raises_not_found(
        self, any_store: ObjectStore, repository: str
    ) -> None:
        """A blank repository can never hold objects."""
        with pytest.raises(ObjectNotFoundError):
            any_store.get(repository, HELLO_OID)

    def test_get_strips_repository(self, any_store: ObjectStore) -> None:
        """get normalizes the repository the same way put does."""
        result = any_store.put("myrepo", b"hello")

        assert any_store.get(" myrepo\t", result.oid) == b"hello"


class TestConcurrency:
    """Tests for concurrent put/get behavior."""

    def test_concurrent_identical_puts_one_success(self, any_store: ObjectStore) -> None:
        """Of N racing identical puts exactly one succeeds."""
        workers = 16
        barrier = threading.Barrier(workers)
        payload = b"racing payload"

        def attempt() -> str:
            barrier.wait()
            try:
                any_store.put("race", payload)
            except DuplicateObjectError:
                return "duplicate"
            return "stored"

        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda _: attempt(), range(workers)))

        assert outcomes.count("stored") == 1
        assert outcomes.count("duplicate") == workers - 1
        assert any_store.get("race", compute_oid(payload)) == payload

    def test_concurrent_distinct_puts_all_succeed(self, any_store: ObjectStore) -> None:
        """Racing puts of different content all succeed and are readable."""
        payloads = [f"payload-{i}".encode() for i in range(32)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda p: any_store.put("repo", p), payloads))

        for result, payload in zip(results, payloads, strict=True):
            assert any_store.get("repo", result.oid) == payload

    def test_read_after_write_across_threads(self, any_store: ObjectStore) -> None:
        """A successful put is visible to gets from other threads."""
        result = any_store.put("repo", b"visible")

        with ThreadPoolExecutor(max_workers=4) as pool:
            reads = list(pool.map(lambda _: any_store.get("repo", result.oid), range(8)))

        assert reads == [b"visible"] * 8


class TestStoreProperties:
    """Tests for store construction."""

    def test_default_backend_is_memory(self) -> None:
        store = ObjectStore()

        assert store.backend_name == "memory"
        assert isinstance(store.backend, InMemoryObjectBackend)

    def test_memory_backend_counts_objects(self) -> None:
        backend = InMemoryObjectBackend()
        store = ObjectStore(backend)

        store.put("repo", b"one")
        store.put("repo", b"two")
        with pytest.raises(DuplicateObjectError):
            store.put("repo", b"two")

        assert len(backend) == 2
