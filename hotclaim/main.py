#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from .config import CONFIG_PATH, load_config
from .errors import ConfigLoadError
from .logging_setup import setup_logging
from .scheduler import BatchScheduler
from .types import Config

logger = logging.getLogger(__name__)


def install_signal_handlers(stop_evt: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_evt.set)


async def serve(cfg: Config, stop_evt: Optional[asyncio.Event] = None) -> None:
    """Фоновый воркер гоняет проходы, основной корутин ждёт сигнала."""
    if stop_evt is None:
        stop_evt = asyncio.Event()
        install_signal_handlers(stop_evt)

    scheduler = BatchScheduler(cfg, stop_evt)
    worker = asyncio.create_task(scheduler.run())
    # упавший воркер тоже должен отпустить main
    worker.add_done_callback(lambda _t: stop_evt.set())

    await stop_evt.wait()
    logger.info("Shutting down...")
    await worker
    logger.info("Stopped")


def main(argv: Optional[list[str]] = None) -> None:
    p = argparse.ArgumentParser(description="HOT claimer — periodic multi-account claims")
    p.add_argument(
        "--config",
        type=Path,
        default=CONFIG_PATH,
        help=f"Путь к JSON-конфигу (по умолчанию {CONFIG_PATH})",
    )
    args = p.parse_args(argv)

    setup_logging()
    try:
        cfg = load_config(args.config)
    except ConfigLoadError as e:
        logger.critical("Cannot start: %s", e)
        sys.exit(1)
    setup_logging(cfg.log_level)

    asyncio.run(serve(cfg))


if __name__ == "__main__":
    main()
