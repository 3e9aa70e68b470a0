"""Logging helpers for the PHP review engine.

All modules obtain their logger through ``get_logger()`` so the package
shares a single logger hierarchy. The library installs a ``NullHandler``
only; applications call ``configure_logging()`` to see output.
"""

import logging
import sys

LOGGER_NAME = "php_review"
DEFAULT_FORMAT = "[%(name)s %(levelname)s] %(asctime)s - %(message)s"

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str | None = None) -> logging.Logger:
    """Get the package logger or one of its children.

    Args:
        name: Optional child name (e.g. "engine.runner")

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)


def configure_logging(
    level: int | str = logging.INFO,
    stream=None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Attach a stream handler to the package logger.

    Calling this more than once replaces the previously attached handler
    instead of stacking duplicates.

    Args:
        level: Logging level name or number
        stream: Target stream, defaults to stderr
        fmt: Log record format string

    Returns:
        The configured package logger
    """
    logger = get_logger()
    for handler in list(logger.handlers):
        if getattr(handler, "_php_review_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    handler._php_review_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


__all__ = ["LOGGER_NAME", "configure_logging", "get_logger"]
