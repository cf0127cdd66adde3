"""Revision 3 source maps for combined artifacts.

Segments are stored per generated line as
``(generated_column, source_index, original_line, original_column)`` and only
VLQ-encoded when the map is serialized. Keeping them decoded lets later stages
(literal rewrites) shift columns without re-parsing the ``mappings`` string.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

Segment = tuple[int, int, int, int]

_BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_BASE64_INDEX = {char: index for index, char in enumerate(_BASE64_ALPHABET)}
_VLQ_SHIFT = 5
_VLQ_CONTINUATION = 1 << _VLQ_SHIFT
_VLQ_MASK = _VLQ_CONTINUATION - 1


def encode_vlq(value: int) -> str:
    """Encode one signed integer as a base64 VLQ string."""
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    encoded = []
    while True:
        digit = vlq & _VLQ_MASK
        vlq >>= _VLQ_SHIFT
        if vlq:
            digit |= _VLQ_CONTINUATION
        encoded.append(_BASE64_ALPHABET[digit])
        if not vlq:
            return "".join(encoded)


def decode_mappings(mappings: str) -> list[list[Segment]]:
    """Decode a ``mappings`` string back into absolute per-line segments."""
    lines: list[list[Segment]] = []
    source, original_line, original_column = 0, 0, 0
    for raw_line in mappings.split(";"):
        generated_column = 0
        segments: list[Segment] = []
        for raw_segment in filter(None, raw_line.split(",")):
            values = _decode_vlq_values(raw_segment)
            generated_column += values[0]
            if len(values) >= 4:
                source += values[1]
                original_line += values[2]
                original_column += values[3]
                segments.append((generated_column, source, original_line, original_column))
        lines.append(segments)
    return lines


def _decode_vlq_values(segment: str) -> list[int]:
    values = []
    shift = 0
    accumulator = 0
    for char in segment:
        digit = _BASE64_INDEX[char]
        accumulator += (digit & _VLQ_MASK) << shift
        if digit & _VLQ_CONTINUATION:
            shift += _VLQ_SHIFT
            continue
        negative = accumulator & 1
        accumulator >>= 1
        values.append(-accumulator if negative else accumulator)
        shift = 0
        accumulator = 0
    return values


@dataclass
class SourceMap:
    """Mutable source map owned by exactly one content stream."""

    file: str = ""
    sources: list[str] = field(default_factory=list)
    sources_content: list[str | None] = field(default_factory=list)
    lines: list[list[Segment]] = field(default_factory=list)

    def add_source(self, name: str, content: str | None = None) -> int:
        """Register a source file and return its index (existing names are reused)."""
        if name in self.sources:
            return self.sources.index(name)
        self.sources.append(name)
        self.sources_content.append(content)
        return len(self.sources) - 1

    def add_mapping(
        self,
        generated_line: int,
        generated_column: int,
        source_index: int,
        original_line: int,
        original_column: int = 0,
    ) -> None:
        while len(self.lines) <= generated_line:
            self.lines.append([])
        self.lines[generated_line].append(
            (generated_column, source_index, original_line, original_column)
        )

    def remap_columns(self, generated_line: int, remap: Callable[[int], int]) -> None:
        """Move every segment of ``generated_line`` through ``remap``."""
        if generated_line >= len(self.lines):
            return
        self.lines[generated_line] = [
            (remap(column), source, line, original_column)
            for column, source, line, original_column in self.lines[generated_line]
        ]

    def copy(self) -> SourceMap:
        return SourceMap(
            file=self.file,
            sources=list(self.sources),
            sources_content=list(self.sources_content),
            lines=[list(segments) for segments in self.lines],
        )

    def encode_mappings(self) -> str:
        encoded_lines = []
        previous_source, previous_line, previous_column = 0, 0, 0
        for segments in self.lines:
            previous_generated = 0
            encoded_segments = []
            for generated_column, source, line, column in sorted(segments):
                encoded_segments.append(
                    encode_vlq(generated_column - previous_generated)
                    + encode_vlq(source - previous_source)
                    + encode_vlq(line - previous_line)
                    + encode_vlq(column - previous_column)
                )
                previous_generated = generated_column
                previous_source, previous_line, previous_column = source, line, column
            encoded_lines.append(",".join(encoded_segments))
        return ";".join(encoded_lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": 3,
            "file": self.file,
            "sources": list(self.sources),
            "sourcesContent": list(self.sources_content),
            "names": [],
            "mappings": self.encode_mappings(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


class MappedTextBuilder:
    """Concatenate text chunks while recording where each line came from."""

    def __init__(self, file: str = "") -> None:
        self._parts: list[str] = []
        self._line = 0
        self._column = 0
        self.source_map = SourceMap(file=file)

    def append(
        self,
        text: str,
        source: str | None = None,
        source_content: str | None = None,
        original_line: int = 0,
    ) -> None:
        """Append ``text``; when ``source`` is given, map each of its lines back to it."""
        if not text:
            return
        source_index = None if source is None else self.source_map.add_source(source, source_content)
        for offset, piece in enumerate(text.split("\n")):
            if offset:
                self._line += 1
                self._column = 0
            if piece and source_index is not None:
                self.source_map.add_mapping(
                    self._line, self._column, source_index, original_line + offset
                )
            self._column += len(piece)
        self._parts.append(text)

    def build(self) -> tuple[str, SourceMap]:
        text = "".join(self._parts)
        # Keep one (possibly empty) segment list per generated line.
        line_count = text.count("\n") + 1
        while len(self.source_map.lines) < line_count:
            self.source_map.lines.append([])
        return text, self.source_map


__all__ = [
    "MappedTextBuilder",
    "Segment",
    "SourceMap",
    "decode_mappings",
    "encode_vlq",
]
