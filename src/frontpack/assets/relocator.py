"""Relocate auxiliary assets flat into the output and rewrite references to them."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from frontpack.assets.rewriter import RewriteRule, rewrite_all
from frontpack.exceptions import NameCollisionError, ResolutionError
from frontpack.pipelines.base import final_name, is_root_relative, resolve_root_relative
from frontpack.streams.content import ContentStream

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AssetReference:
    """One listed asset: how it is referenced, where it lives, and its output name."""

    original_path: str
    is_root_relative: bool
    resolved_final_name: str
    source_path: Path

    @classmethod
    def from_path(cls, original_path: str, root_path: Path) -> AssetReference:
        return cls(
            original_path=original_path,
            is_root_relative=is_root_relative(original_path),
            resolved_final_name=final_name(original_path),
            source_path=resolve_root_relative(original_path, root_path),
        )

    @property
    def rule(self) -> RewriteRule:
        return RewriteRule(pattern=self.original_path, replacement=self.resolved_final_name)


class AssetCopyStream:
    """Assets to copy unchanged; binary content is never read as text."""

    def __init__(self, references: Sequence[AssetReference]) -> None:
        self._references = tuple(references)

    def __iter__(self) -> Iterator[AssetReference]:
        return iter(self._references)

    def __len__(self) -> int:
        return len(self._references)

    @property
    def final_names(self) -> list[str]:
        return [reference.resolved_final_name for reference in self._references]


def resolve_assets(asset_paths: Sequence[str], root_path: Path) -> list[AssetReference]:
    """Resolve ``asset_paths`` in order, rejecting missing files and name clashes.

    A path listed twice is kept once. Two different paths sharing a basename
    raise ``NameCollisionError``; nothing has been written at that point.
    """
    references: list[AssetReference] = []
    claimed: dict[str, str] = {}
    for original_path in asset_paths:
        reference = AssetReference.from_path(original_path, root_path)
        if not reference.resolved_final_name:
            raise ResolutionError(original_path)
        previous = claimed.get(reference.resolved_final_name)
        if previous == original_path:
            logger.debug("Asset %s listed more than once", original_path)
            continue
        if previous is not None:
            raise NameCollisionError(reference.resolved_final_name, [previous, original_path])
        claimed[reference.resolved_final_name] = original_path
        references.append(reference)

    for reference in references:
        if not reference.source_path.is_file():
            raise ResolutionError(reference.source_path)
    return references


class AssetRelocator:
    """Point every reference to a listed asset at its flat output name."""

    def __init__(self, root_path: Path) -> None:
        self.root_path = root_path

    def relocate(
        self,
        asset_paths: Sequence[str],
        script_stream: ContentStream,
        style_stream: ContentStream,
        markup_stream: ContentStream,
        root_path: Path | None = None,
    ) -> tuple[AssetCopyStream, ContentStream, ContentStream, ContentStream]:
        """Return ``(copy_stream, markup, script, style)`` with references rewritten."""
        references = resolve_assets(asset_paths, root_path or self.root_path)
        rules = [reference.rule for reference in references]

        script_stream = rewrite_all(script_stream, rules)
        style_stream = rewrite_all(style_stream, rules)
        markup_stream = rewrite_all(markup_stream, rules)

        logger.info("🖼️ Relocated %d asset(s)", len(references))
        return AssetCopyStream(references), markup_stream, script_stream, style_stream


__all__ = ["AssetCopyStream", "AssetReference", "AssetRelocator", "resolve_assets"]
