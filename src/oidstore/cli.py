"""oidstore CLI.

Usage:
    python -m oidstore serve [--host HOST] [--port PORT] [--backend NAME]
                             [--base-dir PATH] [--log-level LEVEL]
    python -m oidstore hash PATH [PATH ...]

Exit codes:
    0: Success
    1: Internal error (unexpected)
    2: Invalid configuration or unreadable input
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from oidstore.api.middleware.request_id import RequestIdLogFilter
from oidstore.hashing import compute_oid
from oidstore.storage.config import (
    BackendKind,
    ObjectStoreConfig,
    ObjectStoreConfigError,
    load_object_store_config,
    parse_backend_kind,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 1234
LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s trace=%(trace_id)s] %(name)s: %(message)s"
LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


def configure_logging(level: str) -> None:
    """Configure root logging with request ID correlation."""
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdLogFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)


def _output_json(data: Any) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2))


def resolve_store_config(args: argparse.Namespace) -> ObjectStoreConfig:
    """Merge CLI flags over the environment configuration.

    Raises:
        ObjectStoreConfigError: If the backend name is unknown.
    """
    config = load_object_store_config()
    backend = config.backend
    base_dir = config.base_dir

    if args.backend is not None:
        backend = parse_backend_kind(args.backend)
    if args.base_dir is not None:
        base_dir = Path(args.base_dir)
        if args.backend is None:
            backend = BackendKind.FILESYSTEM

    return ObjectStoreConfig(backend=backend, base_dir=base_dir)


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the HTTP gateway under uvicorn."""
    configure_logging(args.log_level)

    try:
        config = resolve_store_config(args)
    except ObjectStoreConfigError as e:
        logger.error("%s", e)
        return 2

    import uvicorn

    from oidstore.api.main import create_app
    from oidstore.storage.config import create_object_store

    app = create_app(object_store=create_object_store(config))
    logger.info(
        "listening on %s:%d (backend=%s)", args.host, args.port, config.backend.value
    )
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level, log_config=None)
    return 0


def cmd_hash(args: argparse.Namespace) -> int:
    """Print the oid and size of each file, as the server would compute them."""
    results: list[dict[str, Any]] = []
    exit_code = 0

    for raw_path in args.paths:
        path = Path(raw_path)
        try:
            data = path.read_bytes()
        except OSError as e:
            results.append({"path": raw_path, "error": f"Cannot read input: {e}"})
            exit_code = 2
            continue
        results.append({"path": raw_path, "oid": compute_oid(data), "size": len(data)})

    _output_json(results)
    return exit_code


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="oidstore",
        description="oidstore - content-addressable object store",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Host to bind to (default: {DEFAULT_HOST})",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port to listen on (default: {DEFAULT_PORT})",
    )
    serve_parser.add_argument(
        "--backend",
        default=None,
        help="Storage backend: memory or filesystem (default: OIDSTORE_OBJECT_STORE_BACKEND)",
    )
    serve_parser.add_argument(
        "--base-dir",
        default=None,
        metavar="PATH",
        help="Filesystem backend directory (implies --backend filesystem)",
    )
    serve_parser.add_argument(
        "--log-level",
        default="info",
        choices=LOG_LEVELS,
        help="Log level (default: info)",
    )

    hash_parser = subparsers.add_parser("hash", help="Print the oid of local files")
    hash_parser.add_argument("paths", nargs="+", metavar="PATH", help="Files to hash")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Exit codes:
        0: Success
        1: Internal error (unexpected)
        2: Invalid configuration or unreadable input
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        if args.command == "serve":
            return cmd_serve(args)
        if args.command == "hash":
            return cmd_hash(args)
        return 0

    except Exception as e:
        logger.exception("Unexpected error")
        _output_json({"code": "INTERNAL_ERROR", "message": str(e)})
        return 1


if __name__ == "__main__":
    sys.exit(main())
