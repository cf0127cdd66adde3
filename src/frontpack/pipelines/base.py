"""Shared pieces of the script, style and markup pipelines."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from frontpack.exceptions import ResolutionError
from frontpack.streams.sourcemap import SourceMap

ROOT_SEPARATOR = "/"


@dataclass(frozen=True, slots=True)
class PipelineOptions:
    """Collaborator configuration handed to each pipeline constructor.

    ``root_path`` is the base for root-relative references; ``extensions`` are
    the file suffixes a collaborator follows when a reference omits one.
    """

    root_path: Path
    extensions: tuple[str, ...] = ()

    def with_root(self, root_path: Path | str | None) -> PipelineOptions:
        if root_path is None:
            return self
        return PipelineOptions(root_path=Path(root_path), extensions=self.extensions)


@dataclass(frozen=True, slots=True)
class BundledArtifact:
    """Combined text produced by a collaborator, with its source map."""

    text: str
    source_map: SourceMap


class ModuleBundler(Protocol):
    def bundle(self, entry: Path, options: PipelineOptions) -> BundledArtifact: ...


class StyleInliner(Protocol):
    def bundle(self, entry: Path, options: PipelineOptions) -> BundledArtifact: ...


def final_name(path: str | Path) -> str:
    """Return the flat output name of ``path``: everything after the last ``/``."""
    text = str(path)
    return text[text.rfind(ROOT_SEPARATOR) + 1 :]


def is_root_relative(reference: str) -> bool:
    return reference.startswith(ROOT_SEPARATOR)


def resolve_root_relative(reference: str, root_path: Path) -> Path:
    """Prefix a root-relative reference with ``root_path``; leave others as given."""
    if is_root_relative(reference):
        return Path(str(root_path) + reference)
    return Path(reference)


def resolve_entry(entry: str | Path) -> Path:
    """Resolve an entry file against the working directory, failing if missing."""
    path = Path(entry)
    if not path.is_file():
        raise ResolutionError(path)
    return path.resolve()


def display_name(path: Path, root_path: Path) -> str:
    """Name a source file for maps: root-relative when under ``root_path``."""
    try:
        relative = path.resolve().relative_to(root_path.resolve())
    except ValueError:
        return path.as_posix()
    return posixpath.join(ROOT_SEPARATOR, relative.as_posix())


__all__ = [
    "BundledArtifact",
    "ModuleBundler",
    "PipelineOptions",
    "StyleInliner",
    "display_name",
    "final_name",
    "is_root_relative",
    "resolve_entry",
    "resolve_root_relative",
]
