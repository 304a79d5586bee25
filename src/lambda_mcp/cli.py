"""Command-line entry point: serve an engine over HTTP with uvicorn.

Usage:
    lambda-mcp serve examples.code_review_server:engine --port 8080
    lambda-mcp serve mypkg.engines:make_engine --per-invocation
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from typing import Any

from lambda_mcp.config import BridgeSettings, configure_logging
from lambda_mcp.http import HttpBridge, create_app

logger = logging.getLogger(__name__)


def load_target(target: str) -> Any:
    """Import ``module:attribute`` and return the attribute.

    Raises:
        ValueError: If the target is not in ``module:attribute`` form.
        ImportError: If the module cannot be imported.
        AttributeError: If the attribute does not exist.
    """
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Expected 'module:attribute', got {target!r}")
    module = importlib.import_module(module_name)
    obj: Any = module
    for part in attribute.split("."):
        obj = getattr(obj, part)
    return obj


def build_bridge(target: Any, settings: BridgeSettings) -> HttpBridge:
    """Build a bridge from an engine instance, or from a factory when sessions are not reused."""
    if settings.reuse_session:
        engine = target() if isinstance(target, type) else target
        return HttpBridge(engine, response_timeout=settings.response_timeout)
    if not callable(target):
        raise TypeError("--per-invocation needs a callable that returns a new engine")
    return HttpBridge(engine_factory=target, response_timeout=settings.response_timeout)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lambda-mcp", description="Serve a JSON-RPC engine over one-shot HTTP.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Serve an engine with uvicorn")
    serve.add_argument("target", help="Engine as module:attribute")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--path", default=None)
    serve.add_argument("--response-timeout", type=float, default=None)
    serve.add_argument("--log-level", default=None)
    serve.add_argument(
        "--per-invocation",
        action="store_true",
        help=(
            "Treat target as an engine factory and build a fresh engine per request, "
            "so concurrent requests never share a transport"
        ),
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> BridgeSettings:
    """Environment settings, overridden by whatever was given on the command line."""
    overrides: dict[str, Any] = {
        "host": args.host,
        "port": args.port,
        "path": args.path,
        "response_timeout": args.response_timeout,
        "log_level": args.log_level,
    }
    if args.per_invocation:
        overrides["reuse_session"] = False
    return BridgeSettings(**{key: value for key, value in overrides.items() if value is not None})


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)
    configure_logging(settings)

    try:
        target = load_target(args.target)
        bridge = build_bridge(target, settings)
    except (ValueError, ImportError, AttributeError, TypeError) as exc:
        logger.error("Cannot load engine %r: %s", args.target, exc)
        return 2

    import uvicorn

    app = create_app(bridge, path=settings.path)
    logger.info("Serving %s on http://%s:%d%s", args.target, settings.host, settings.port, settings.path)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
