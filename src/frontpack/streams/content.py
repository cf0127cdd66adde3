"""In-flight artifacts passed from one pipeline stage to the next."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

from frontpack.exceptions import StreamConsumedError
from frontpack.streams.sourcemap import SourceMap

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    """Resource type carried by a stream; decides how its map is referenced."""

    SCRIPT = "script"
    STYLE = "style"
    MARKUP = "markup"


class ContentStream:
    """Text of one artifact plus its source map, owned by one stage at a time.

    Every transformation returns a new stream and marks this one consumed, so a
    stage that still holds an old reference cannot keep mutating the artifact
    after handing it on.
    """

    def __init__(self, name: str, kind: ResourceKind, text: str, source_map: SourceMap) -> None:
        self.name = name
        self.kind = kind
        self._text = text
        self._source_map = source_map
        self._source_map.file = name
        self._consumed = False

    def __repr__(self) -> str:
        state = "consumed" if self._consumed else f"{len(self._text)} chars"
        return f"ContentStream({self.name!r}, {self.kind.value}, {state})"

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def text(self) -> str:
        self._ensure_owned()
        return self._text

    @property
    def source_map(self) -> SourceMap:
        self._ensure_owned()
        return self._source_map

    def _ensure_owned(self) -> None:
        if self._consumed:
            raise StreamConsumedError(self.name)

    def _hand_off(self, text: str, source_map: SourceMap, name: str | None = None) -> ContentStream:
        self._consumed = True
        return ContentStream(name or self.name, self.kind, text, source_map)

    def transform(self, func: Callable[[str, SourceMap], tuple[str, SourceMap]]) -> ContentStream:
        """Run ``func`` over text and map and hand ownership to the result."""
        self._ensure_owned()
        text, source_map = func(self._text, self._source_map)
        return self._hand_off(text, source_map)

    def replace_literal(self, pattern: str, replacement: str) -> ContentStream:
        """Replace every literal occurrence of ``pattern``, keeping the map aligned.

        Neither argument may span lines: the rewrite only moves columns, never
        generated lines, which keeps every mapping valid.
        """
        self._ensure_owned()
        if not pattern:
            msg = "Literal rewrite pattern must not be empty"
            raise ValueError(msg)
        if "\n" in pattern or "\n" in replacement:
            msg = f"Literal rewrite may not span lines: {pattern!r} -> {replacement!r}"
            raise ValueError(msg)
        if pattern not in self._text:
            return self._hand_off(self._text, self._source_map)

        source_map = self._source_map.copy()
        delta = len(replacement) - len(pattern)
        lines = self._text.split("\n")
        for index, line in enumerate(lines):
            if pattern not in line:
                continue
            if delta:
                ends = _occurrence_ends(line, pattern)
                source_map.remap_columns(
                    index,
                    lambda column, ends=ends: column + delta * sum(1 for end in ends if end <= column),
                )
            lines[index] = line.replace(pattern, replacement)
        return self._hand_off("\n".join(lines), source_map)

    def rename(self, name: str) -> ContentStream:
        self._ensure_owned()
        return self._hand_off(self._text, self._source_map, name=name)

    def consume(self) -> tuple[str, SourceMap]:
        """Take the final text and map; the stream cannot be used afterwards."""
        self._ensure_owned()
        self._consumed = True
        logger.debug("Stream %s consumed for writing", self.name)
        return self._text, self._source_map


def _occurrence_ends(line: str, pattern: str) -> list[int]:
    ends = []
    start = line.find(pattern)
    while start != -1:
        ends.append(start + len(pattern))
        start = line.find(pattern, start + len(pattern))
    return ends


__all__ = ["ContentStream", "ResourceKind"]
