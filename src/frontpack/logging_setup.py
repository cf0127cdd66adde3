"""Centralized logging configuration for frontpack."""

from __future__ import annotations

import logging
import os
from typing import Final

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["configure_logging", "console"]

_LOG_LEVEL_ENV: Final[str] = "FRONTPACK_LOG_LEVEL"
_DEFAULT_LEVEL_NAME: Final[str] = "INFO"
_MANAGED_ATTR: Final[str] = "_frontpack_managed"

console = Console()


def _resolve_level(level_name: str | None = None) -> int:
    """Return the logging level requested explicitly or via environment variable."""
    name = (level_name or os.getenv(_LOG_LEVEL_ENV, _DEFAULT_LEVEL_NAME)).upper()
    return getattr(logging, name, logging.INFO)


def configure_logging(level_name: str | None = None) -> None:
    """Install a single Rich handler on the root logger.

    Calling this again only updates the level of the handler installed the
    first time.
    """
    root_logger = logging.getLogger()
    level = _resolve_level(level_name)

    managed = [handler for handler in root_logger.handlers if getattr(handler, _MANAGED_ATTR, False)]
    if not managed:
        root_logger.handlers.clear()
        handler = RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            markup=True,
            log_time_format="[%Y-%m-%d %H:%M:%S]",
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        setattr(handler, _MANAGED_ATTR, True)
        root_logger.addHandler(handler)

    root_logger.setLevel(level)
    logging.captureWarnings(True)
