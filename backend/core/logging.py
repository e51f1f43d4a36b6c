# backend/core/logging.py

import logging
import sys


DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Third-party loggers kept at WARNING or above regardless of LOG_LEVEL
NOISY_LOGGERS = ("uvicorn.access", "websockets", "httpx")


def resolve_level(name: str | None) -> int:
    """Map a level name such as ``"debug"`` to its constant; INFO when unknown."""
    if not name:
        return logging.INFO
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(level_name: str | None = None) -> int:
    """
    Configure logging for the room server.

    Room lifecycle (created, joined, left, destroyed) logs at INFO. Each
    keystroke preview and ignored off-turn event only shows at DEBUG, so
    ``LOG_LEVEL=DEBUG`` is the way to watch a conversation live.

    A stdout handler is added only when nobody (uvicorn, pytest) has
    configured the root logger yet; the level is applied either way.

    Returns:
        The level the root logger was set to
    """
    level = resolve_level(level_name)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return level


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)
