"""Logging for the ``revenue_analysis`` package.

Entrypoints call :func:`configure_logging` once; library modules only call
``get_logger("revenue_analysis.<module>")`` and never add handlers. Until the
package logger is configured it carries a ``NullHandler`` and propagates to
the root logger, so host applications (and pytest's ``caplog``) still see
records.

Levels come from the ``level`` argument or ``REVENUE_ANALYSIS_LOG_LEVEL``
(name such as ``"DEBUG"`` or a number), defaulting to ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "revenue_analysis"
LEVEL_ENV_VAR = "REVENUE_ANALYSIS_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# The one handler installed by configure_logging(), if any.
_handler: logging.Handler | None = None


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or the env var when ``None``) into a numeric level."""

    raw: int | str | None = level if level is not None else os.getenv(LEVEL_ENV_VAR)
    if isinstance(raw, int):
        return raw
    if not raw or not raw.strip():
        return logging.INFO
    name = raw.strip().upper()
    if name.isdigit():
        return int(name)
    mapping = logging.getLevelNamesMapping()
    return mapping.get(name, logging.INFO)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
    force: bool = False,
) -> logging.Logger:
    """Install a single ``StreamHandler`` on the package logger.

    Repeated calls are no-ops unless ``force`` is true, in which case the
    previously installed handler is replaced. ``stream`` defaults to the
    current ``sys.stderr``. Returns the package logger.
    """

    global _handler
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is not None and not force:
        return pkg_logger

    for h in list(pkg_logger.handlers):
        if h is _handler or isinstance(h, logging.NullHandler):
            pkg_logger.removeHandler(h)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    handler.setLevel(resolved)

    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(resolved)
    pkg_logger.propagate = False
    _handler = handler
    return pkg_logger


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["DEFAULT_FORMAT", "configure_logging", "get_logger", "resolve_level"]
