"""Scoped output sinks for content streams and copied assets."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING

from frontpack.exceptions import WriteError
from frontpack.streams.content import ContentStream, ResourceKind

if TYPE_CHECKING:
    from frontpack.assets.relocator import AssetCopyStream
    from frontpack.streams.sourcemap import SourceMap

logger = logging.getLogger(__name__)

_PARTIAL_SUFFIX = ".partial"


@dataclass(frozen=True, slots=True)
class WriteResult:
    """Files produced for one content stream."""

    path: Path
    map_path: Path | None


def source_mapping_comment(kind: ResourceKind, map_name: str) -> str:
    """Return the trailer that points an artifact at its map (empty for markup)."""
    if kind is ResourceKind.SCRIPT:
        return f"\n//# sourceMappingURL={map_name}\n"
    if kind is ResourceKind.STYLE:
        return f"\n/*# sourceMappingURL={map_name} */\n"
    return ""


class StreamWriter:
    """Acquire the output files for one artifact and its adjacent map.

    Writes land in ``.partial`` files. On a clean exit they are renamed into
    place; on any exception they are removed, so a crashed build never leaves
    a truncated artifact under its final name.
    """

    def __init__(self, directory: Path, name: str) -> None:
        self.directory = directory
        self.path = directory / name
        self.map_path = directory / f"{name}.map"
        self._pending: list[tuple[Path, Path]] = []

    def __enter__(self) -> StreamWriter:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WriteError(self.directory, str(exc)) from exc
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self._discard()
            return
        try:
            for partial, final in self._pending:
                os.replace(partial, final)
        except OSError as error:
            self._discard()
            raise WriteError(self.path, str(error)) from error
        self._pending.clear()

    def _discard(self) -> None:
        for partial, _final in self._pending:
            partial.unlink(missing_ok=True)
        self._pending.clear()

    def _write_text(self, target: Path, text: str) -> None:
        partial = target.with_name(target.name + _PARTIAL_SUFFIX)
        self._pending.append((partial, target))
        try:
            partial.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise WriteError(target, str(exc)) from exc

    def write(self, text: str, source_map: SourceMap, kind: ResourceKind) -> WriteResult:
        """Write the map first, then the content with its mapping comment."""
        self._write_text(self.map_path, source_map.to_json())
        self._write_text(self.path, text + source_mapping_comment(kind, self.map_path.name))
        return WriteResult(path=self.path, map_path=self.map_path)


def write_stream(stream: ContentStream, directory: Path) -> WriteResult:
    """Consume ``stream`` and write it (plus ``.map``) into ``directory``."""
    text, source_map = stream.consume()
    with StreamWriter(directory, stream.name) as writer:
        result = writer.write(text, source_map, stream.kind)
    logger.debug("Wrote %s and %s", result.path, result.map_path)
    return result


def copy_assets(copy_stream: AssetCopyStream, directory: Path) -> list[Path]:
    """Copy every asset byte-for-byte into ``directory`` under its final name."""
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WriteError(directory, str(exc)) from exc

    copied: list[Path] = []
    for reference in copy_stream:
        target = directory / reference.resolved_final_name
        partial = target.with_name(target.name + _PARTIAL_SUFFIX)
        try:
            shutil.copyfile(reference.source_path, partial)
            os.replace(partial, target)
        except OSError as exc:
            partial.unlink(missing_ok=True)
            raise WriteError(target, str(exc)) from exc
        copied.append(target)
    logger.debug("Copied %d asset(s) into %s", len(copied), directory)
    return copied


__all__ = [
    "StreamWriter",
    "WriteResult",
    "copy_assets",
    "source_mapping_comment",
    "write_stream",
]
