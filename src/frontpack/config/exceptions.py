"""Custom exceptions for configuration handling."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from frontpack.exceptions import FrontpackError


class ConfigError(FrontpackError):
    """Base exception for all configuration-related errors."""


class ConfigLoadError(ConfigError):
    """Raised when a configuration file cannot be read or parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load or parse config at '{path}': {reason}")


class ConfigValidationError(ConfigError):
    """Raised when the configuration fails validation."""

    def __init__(self, errors: Sequence[dict[str, Any]] | None = None) -> None:
        self.errors = list(errors or [])
        super().__init__(f"Configuration validation failed with {len(self.errors)} error(s).")


class MissingEntryError(ConfigError):
    """Raised when a build is requested without one of the three entry points."""

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"No '{field_name}' configured; set it under [build] or pass it on the command line.")
