"""Centralized exceptions for frontpack builds."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class FrontpackError(Exception):
    """Base exception for all frontpack errors."""


class ResolutionError(FrontpackError):
    """Raised when an entry point, import or asset path does not exist."""

    def __init__(self, path: str | Path, referrer: str | Path | None = None) -> None:
        self.path = str(path)
        self.referrer = str(referrer) if referrer is not None else None
        message = f"Could not resolve '{self.path}'"
        if self.referrer:
            message += f" (referenced from '{self.referrer}')"
        super().__init__(message)


class CollaboratorError(FrontpackError):
    """Raised when a bundler, inliner or token replacer fails on its input."""

    def __init__(self, collaborator: str, reason: str) -> None:
        self.collaborator = collaborator
        self.reason = reason
        super().__init__(f"{collaborator} failed: {reason}")


class NameCollisionError(FrontpackError):
    """Raised when two distinct sources would be written under the same file name."""

    def __init__(self, final_name: str, paths: Sequence[str]) -> None:
        self.final_name = final_name
        self.paths = tuple(paths)
        super().__init__(
            f"Output name '{final_name}' is claimed by more than one source: {', '.join(self.paths)}"
        )


class WriteError(FrontpackError):
    """Raised when an output file cannot be written."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Failed to write '{self.path}': {reason}")


class StreamConsumedError(FrontpackError):
    """Raised when a content stream is used after ownership moved on."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Content stream '{name}' was already consumed by a later stage.")
