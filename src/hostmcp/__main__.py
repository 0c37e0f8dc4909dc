# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Run a hostmcp server from the command line.

    python -m hostmcp --port 37650 --enable browser_open --enable browser_navigate

``--driver package.module:factory`` points at a callable returning a browser
driver; without it every browser tool reports that no driver is configured.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import importlib
from typing import Any

import anyio

from .catalog import BrowserDriver, build_registry
from .config import ServerConfig
from .server import LifecycleController, LifecycleError
from .utils import get_logger, setup_logger


def _load_driver(target: str) -> BrowserDriver:
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise argparse.ArgumentTypeError(f"--driver expects 'module:factory', got {target!r}")
    factory: Any = getattr(importlib.import_module(module_name), attr)
    return factory() if callable(factory) else factory


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hostmcp", description="Serve host tools over MCP streamable HTTP.")
    parser.add_argument("--host", default=None, help="Interface to bind (default: HOSTMCP_HOST or 127.0.0.1)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: HOSTMCP_PORT or 37650)")
    parser.add_argument(
        "--enable",
        action="append",
        default=[],
        metavar="NAME",
        help="Expose only the named tool; repeat for more. Default exposes every tool.",
    )
    parser.add_argument("--driver", default=None, metavar="MODULE:FACTORY", help="Browser driver factory to import")
    parser.add_argument("--log-level", default=None, help="Log level (default: HOSTMCP_LOG_LEVEL or info)")
    parser.add_argument("--json-logs", action="store_true", help="Emit structured JSON log lines")
    return parser


async def _run(config: ServerConfig, enabled: Sequence[str], driver: BrowserDriver | None) -> None:
    logger = get_logger("hostmcp.cli")
    controller = LifecycleController(build_registry(driver=driver, config=config), config=config)
    logger.info(await controller.start(config.port, enabled))
    try:
        await anyio.sleep_forever()
    finally:
        with anyio.CancelScope(shield=True):
            if controller.status().running:
                logger.info(await controller.stop())


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = ServerConfig.from_env(host=args.host, port=args.port, log_level=args.log_level)
    setup_logger(level=config.log_level.upper(), use_json=args.json_logs or None, force=True)
    logger = get_logger("hostmcp.cli")

    driver = _load_driver(args.driver) if args.driver else None
    try:
        anyio.run(_run, config, args.enable, driver)
    except KeyboardInterrupt:
        return 0
    except LifecycleError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
