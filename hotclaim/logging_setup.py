from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_initialized = False


def setup_logging(level: str = "INFO") -> None:
    """Один stdout-хендлер на весь процесс; повторный вызов меняет только уровень."""
    global _initialized
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if _initialized:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    # aiohttp сыпет отладкой на каждый запрос
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    _initialized = True
