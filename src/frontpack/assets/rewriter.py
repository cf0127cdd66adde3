"""Literal path rewriting over content streams."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from frontpack.streams.content import ContentStream


@dataclass(frozen=True, slots=True)
class RewriteRule:
    """Replace every occurrence of ``pattern`` (a literal string) by ``replacement``."""

    pattern: str
    replacement: str


def rewrite(stream: ContentStream, rule: RewriteRule) -> ContentStream:
    """Apply one rule to every occurrence in ``stream`` and return the derived stream.

    Matching is literal: characters such as ``.``, ``+`` or ``(`` in an asset
    path are never interpreted as a pattern.
    """
    return stream.replace_literal(rule.pattern, rule.replacement)


def rewrite_all(stream: ContentStream, rules: Iterable[RewriteRule]) -> ContentStream:
    """Apply ``rules``, longest pattern first.

    A pattern contained in another (``/i/a.png`` inside ``/x/i/a.png2``)
    is therefore applied after it. Rules commute only while no rule's
    pattern occurs inside another rule's replacement. Callers must
    guarantee that; it is not checked here.
    """
    for rule in sorted(rules, key=lambda rule: len(rule.pattern), reverse=True):
        stream = rewrite(stream, rule)
    return stream


__all__ = ["RewriteRule", "rewrite", "rewrite_all"]
