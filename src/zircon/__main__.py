"""zircon entrypoint. Loads config, connects and runs the dispatch loop."""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path

from loguru import logger

from zircon import __version__
from zircon.app import App
from zircon.config import Config, cfg, load_config_with_env
from zircon.core.errors import ZirconConfigurationError, ZirconError
from zircon.host import HostAPI


def setup_logging(verbose: bool = False, log_file: str | Path | None = None) -> None:
    """Configure loguru. Replace default logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "INFO",
        format=(
            "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
            "<cyan>{name}</cyan> | {message}"
        ),
    )
    if log_file:
        logger.add(log_file, level="TRACE" if verbose else "DEBUG", enqueue=True)


def reload_config(config_path: Path) -> Config:
    """Load config from path and update global cfg."""
    data = load_config_with_env(config_path)
    cfg.reload(data)
    return cfg


def main() -> None:
    """Main entrypoint."""
    parser = argparse.ArgumentParser(description="zircon: bouncer-aware IRC client")
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)

    if not args.config.exists():
        logger.error("Config file not found: {}", args.config)
        sys.exit(1)

    try:
        config = reload_config(args.config)
    except ZirconConfigurationError as exc:
        logger.error("Invalid config {}: {}", args.config, exc)
        sys.exit(1)
    logger.info("Config loaded from {}", args.config)

    log_file = args.log_file or config.log_file
    if log_file:
        setup_logging(args.verbose, log_file)

    try:
        asyncio.run(_run(config))
    except ZirconConfigurationError as exc:
        logger.error("Invalid connection config: {}", exc)
        sys.exit(1)
    except ZirconError as exc:
        logger.error("zircon stopped: {}", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        pass


async def _run(config: Config) -> None:
    """Async run loop. Wire host capabilities, post connects and dispatch."""
    app = App(
        event_queue_size=config.event_queue_size,
        write_queue_size=config.write_queue_size,
        tls_verify=config.tls_verify,
    )
    loop = asyncio.get_running_loop()
    host = HostAPI(app)
    host.bind(loop)

    connections = config.connections
    for entry in connections:
        host.connect(entry)
    if not connections:
        logger.warning("No connections configured")

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, app.stop)

    await app.run()
    logger.info("zircon shut down")


if __name__ == "__main__":
    main()
