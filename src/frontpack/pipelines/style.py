"""Style pipeline: inline ``@import`` chains into one deduplicated stylesheet."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

import rcssmin

from frontpack.exceptions import CollaboratorError, ResolutionError
from frontpack.pipelines.base import (
    BundledArtifact,
    PipelineOptions,
    StyleInliner,
    display_name,
    final_name,
    is_root_relative,
    resolve_entry,
)
from frontpack.streams.content import ContentStream, ResourceKind
from frontpack.streams.sourcemap import MappedTextBuilder

logger = logging.getLogger(__name__)

DEFAULT_STYLE_EXTENSIONS = (".css",)

_IMPORT_RE = re.compile(
    r"""@import\s+(?:url\(\s*(['"]?)(?P<url>[^'")]+)\1\s*\)|(['"])(?P<path>[^'"]+)\3)"""
    r"""(?P<media>[^;]*);""",
)
_CHARSET_RE = re.compile(r"""@charset\s+(['"])[^'"]*\1\s*;""")
_REMOTE_PREFIXES = ("http://", "https://", "//")


@dataclass(slots=True)
class _Chunk:
    text: str
    source: str | None = None
    content: str | None = None
    line: int = 0


@dataclass(slots=True)
class _HoistedRules:
    """Rules that browsers only honor at the very start of a stylesheet."""

    charset: str | None = None
    imports: list[str] = field(default_factory=list)

    def add_import(self, rule: str) -> None:
        if rule not in self.imports:
            self.imports.append(rule)

    def lines(self) -> list[str]:
        rules = [self.charset] if self.charset else []
        return [*rules, *self.imports]


def _newlines_of(match: re.Match[str]) -> str:
    return "\n" * match.group(0).count("\n")


class CssImportInliner:
    """Default style inliner and optimizer.

    Every local ``@import`` is replaced by the imported file, recursively.
    A file is inlined the first time it is imported and skipped afterwards,
    which removes the duplicates produced by diamond-shaped import graphs.
    The first ``@charset`` rule and every remote ``@import`` are moved to the
    top of the output; later ``@charset`` rules are dropped.
    """

    name = "style inliner"

    def __init__(self, *, optimize: bool = True) -> None:
        self.optimize = optimize

    def bundle(self, entry: Path, options: PipelineOptions) -> BundledArtifact:
        chunks: list[_Chunk] = []
        hoisted = _HoistedRules()
        self._inline(entry.resolve(), options, chunks, set(), hoisted)

        builder = MappedTextBuilder(file=final_name(entry))
        for rule in hoisted.lines():
            builder.append(rule + "\n")
        for chunk in chunks:
            text = self._optimize(chunk) if self.optimize and chunk.source else chunk.text
            builder.append(text, source=chunk.source, source_content=chunk.content, original_line=chunk.line)
        text, source_map = builder.build()
        if text and not text.endswith("\n"):
            text += "\n"
        return BundledArtifact(text=text, source_map=source_map)

    def _inline(
        self,
        path: Path,
        options: PipelineOptions,
        chunks: list[_Chunk],
        seen: set[Path],
        hoisted: _HoistedRules,
        media: str = "",
    ) -> None:
        if path in seen:
            logger.debug("Skipping repeated import of %s", path)
            return
        seen.add(path)
        original = self._read(path)
        name = display_name(path, options.root_path)
        source = self._hoist_charset(original, hoisted)

        if media:
            chunks.append(_Chunk(f"@media {media} {{\n"))

        position = 0
        for match in _IMPORT_RE.finditer(source):
            reference = match.group("url") or match.group("path")
            self._append_source(chunks, source, original, name, position, match.start())
            position = match.end()
            if reference.startswith(_REMOTE_PREFIXES):
                hoisted.add_import(match.group(0))
                continue
            dependency = self._resolve(reference.strip(), path, options)
            self._inline(dependency, options, chunks, seen, hoisted, match.group("media").strip())
        self._append_source(chunks, source, original, name, position, len(source))

        if media:
            chunks.append(_Chunk("\n}\n"))

    @staticmethod
    def _append_source(
        chunks: list[_Chunk], source: str, original: str, name: str, start: int, end: int
    ) -> None:
        text = source[start:end]
        if not text.strip():
            return
        chunks.append(_Chunk(text, source=name, content=original, line=source.count("\n", 0, start)))

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ResolutionError(path) from exc
        except UnicodeDecodeError as exc:
            raise CollaboratorError("style inliner", f"{path} is not valid UTF-8") from exc

    @staticmethod
    def _hoist_charset(source: str, hoisted: _HoistedRules) -> str:
        """Remove ``@charset`` rules, keeping line breaks; the first one is hoisted."""

        def _take(match: re.Match[str]) -> str:
            if hoisted.charset is None:
                hoisted.charset = match.group(0).strip()
            return _newlines_of(match)

        return _CHARSET_RE.sub(_take, source)

    @staticmethod
    def _resolve(reference: str, importer: Path, options: PipelineOptions) -> Path:
        if is_root_relative(reference):
            candidates = [Path(str(options.root_path) + reference)]
        else:
            candidates = [importer.parent / reference, options.root_path / reference]
        for candidate in candidates:
            if candidate.is_file():
                return candidate.resolve()
            if candidate.suffix not in options.extensions:
                for extension in options.extensions:
                    with_extension = candidate.with_name(candidate.name + extension)
                    if with_extension.is_file():
                        return with_extension.resolve()
        raise ResolutionError(reference, referrer=importer)

    @staticmethod
    def _optimize(chunk: _Chunk) -> str:
        try:
            minified = rcssmin.cssmin(chunk.text)
        except Exception as exc:
            raise CollaboratorError("style optimizer", f"{chunk.source}: {exc}") from exc
        return minified + "\n" if minified else ""


class StylePipeline:
    """Produce the combined, deduplicated style artifact for one entry point."""

    def __init__(self, options: PipelineOptions, inliner: StyleInliner | None = None) -> None:
        self.options = options
        self.inliner = inliner or CssImportInliner()

    def bundle(self, entry: str | Path, root_path: Path | str | None = None) -> ContentStream:
        options = self.options.with_root(root_path)
        entry_path = resolve_entry(entry)
        artifact = self.inliner.bundle(entry_path, options)
        logger.info("🎨 Bundled style [cyan]%s[/]", final_name(entry))
        return ContentStream(final_name(entry), ResourceKind.STYLE, artifact.text, artifact.source_map)


__all__ = ["DEFAULT_STYLE_EXTENSIONS", "CssImportInliner", "StylePipeline"]
