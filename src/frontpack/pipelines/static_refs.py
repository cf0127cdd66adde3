"""Static reference post-pass applied identically to script, style and markup."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from frontpack.streams.content import ContentStream

logger = logging.getLogger(__name__)


class StaticReferencePass(Protocol):
    def apply(self, stream: ContentStream) -> ContentStream: ...


class StaticReferenceRewriter:
    """Normalize references that only make sense inside the source tree.

    Absolute filesystem paths under the root path become root-relative
    (``/home/me/proj/lib/x.js`` -> ``/lib/x.js``), then the configured literal
    replacements run in insertion order.
    """

    def __init__(self, root_path: Path, replacements: Mapping[str, str] | None = None) -> None:
        self.root_path = root_path
        self.replacements = dict(replacements or {})

    def apply(self, stream: ContentStream) -> ContentStream:
        root_prefix = str(self.root_path).rstrip("/")
        if root_prefix and root_prefix in stream.text:
            logger.debug("Stripping absolute root prefix from %s", stream.name)
            stream = stream.replace_literal(root_prefix + "/", "/")
        for pattern, replacement in self.replacements.items():
            stream = stream.replace_literal(pattern, replacement)
        return stream


__all__ = ["StaticReferencePass", "StaticReferenceRewriter"]
