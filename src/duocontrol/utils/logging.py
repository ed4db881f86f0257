"""Logging setup for duocontrol.

Both processes (Host and panel) log through the ``duocontrol`` logger
hierarchy; this module attaches its handlers once per process.
"""

from __future__ import annotations

import logging
import sys

from duocontrol.config.settings import LoggingConfig

LOGGER_NAME = "duocontrol"


class _OwnedHandler:
    """Marker mixin for handlers installed by ``setup_logging``."""


class _ConsoleHandler(_OwnedHandler, logging.StreamHandler):
    pass


class _LogFileHandler(_OwnedHandler, logging.FileHandler):
    pass


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Configure the ``duocontrol`` logger from ``config``.

    Safe to call more than once: handlers from a previous call are closed
    and replaced, so a second call (e.g. after ``--verbose`` changes the
    level) never duplicates output. Handlers added by other code are left
    alone.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    config = config or LoggingConfig()
    app_logger = logging.getLogger(LOGGER_NAME)
    app_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in [h for h in app_logger.handlers if isinstance(h, _OwnedHandler)]:
        app_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)
    handlers: list[logging.Handler] = [_ConsoleHandler(sys.stderr)]
    if config.file:
        handlers.append(_LogFileHandler(config.file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        app_logger.addHandler(handler)

    app_logger.debug("Logging initialized at %s level", config.level.upper())
    return app_logger
