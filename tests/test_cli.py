"""Tests for the oidstore CLI."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from oidstore import cli
from oidstore.api.middleware.request_id import RequestIdLogFilter
from oidstore.storage import BackendKind, ObjectStoreConfigError

HELLO_OID = "LPJNul-wow4m6DsqxbninhsWHlwfp0JecwQzYpOLmCQ"


def _serve_args(*extra: str) -> Any:
    return cli.create_parser().parse_args(["serve", *extra])


class TestParser:
    """Tests for argument parsing."""

    def test_serve_defaults(self) -> None:
        args = _serve_args()

        assert args.host == "127.0.0.1"
        assert args.port == 1234
        assert args.backend is None
        assert args.base_dir is None
        assert args.log_level == "info"

    def test_serve_rejects_unknown_log_level(self) -> None:
        with pytest.raises(SystemExit):
            _serve_args("--log-level", "loud")

    def test_hash_requires_paths(self) -> None:
        with pytest.raises(SystemExit):
            cli.create_parser().parse_args(["hash"])

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert cli.main([]) == 0
        assert "oidstore" in capsys.readouterr().out


class TestResolveStoreConfig:
    """Tests for merging CLI flags over the environment."""

    def test_defaults_to_memory(self) -> None:
        config = cli.resolve_store_config(_serve_args())

        assert config.backend is BackendKind.MEMORY
        assert config.base_dir is None

    def test_base_dir_implies_filesystem(self, temp_storage_dir: Path) -> None:
        config = cli.resolve_store_config(_serve_args("--base-dir", str(temp_storage_dir)))

        assert config.backend is BackendKind.FILESYSTEM
        assert config.base_dir == temp_storage_dir

    def test_explicit_backend_wins_over_base_dir(self, temp_storage_dir: Path) -> None:
        config = cli.resolve_store_config(
            _serve_args("--backend", "memory", "--base-dir", str(temp_storage_dir))
        )

        assert config.backend is BackendKind.MEMORY

    def test_flag_overrides_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OIDSTORE_OBJECT_STORE_BACKEND", "filesystem")

        config = cli.resolve_store_config(_serve_args("--backend", "memory"))

        assert config.backend is BackendKind.MEMORY

    def test_unknown_backend_raises(self) -> None:
        with pytest.raises(ObjectStoreConfigError):
            cli.resolve_store_config(_serve_args("--backend", "tape"))


class TestServe:
    """Tests for the serve command without binding a socket."""

    @pytest.fixture(autouse=True)
    def quiet_logging(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cli, "configure_logging", lambda level: None)

    def test_serve_runs_uvicorn_with_app(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[dict[str, Any]] = []

        def fake_run(app: Any, **kwargs: Any) -> None:
            calls.append({"app": app, **kwargs})

        monkeypatch.setattr("uvicorn.run", fake_run)

        assert cli.main(["serve", "--port", "8099"]) == 0

        (call,) = calls
        assert call["port"] == 8099
        assert call["host"] == "127.0.0.1"
        assert call["app"].state.object_store.backend_name == "memory"

    def test_serve_bad_backend_exits_2(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("uvicorn.run", lambda *a, **k: pytest.fail("server started"))

        assert cli.main(["serve", "--backend", "tape"]) == 2

    def test_unexpected_error_exits_1(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        def boom(app: Any, **kwargs: Any) -> None:
            raise RuntimeError("port in use")

        monkeypatch.setattr("uvicorn.run", boom)

        assert cli.main(["serve"]) == 1
        assert json.loads(capsys.readouterr().out)["code"] == "INTERNAL_ERROR"


class TestHash:
    """Tests for the hash command."""

    def test_hash_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = tmp_path / "hello.txt"
        path.write_bytes(b"hello")

        assert cli.main(["hash", str(path)]) == 0

        assert json.loads(capsys.readouterr().out) == [
            {"path": str(path), "oid": HELLO_OID, "size": 5}
        ]

    def test_unreadable_file_exits_2(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        good = tmp_path / "hello.txt"
        good.write_bytes(b"hello")
        missing = tmp_path / "missing.bin"

        assert cli.main(["hash", str(good), str(missing)]) == 2

        results = json.loads(capsys.readouterr().out)
        assert results[0]["oid"] == HELLO_OID
        assert results[1]["path"] == str(missing)
        assert "error" in results[1]


class TestRequestIdLogFilter:
    """Tests for request ID stamping on log records."""

    def test_outside_request_uses_dash(self) -> None:
        record = logging.LogRecord("oidstore", logging.INFO, __file__, 1, "msg", None, None)

        assert RequestIdLogFilter().filter(record) is True
        assert getattr(record, "request_id") == "-"
        assert getattr(record, "trace_id") == "-"
