"""Markup pipeline: inject the script, style and browser-warning blocks."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

from frontpack.exceptions import CollaboratorError, ResolutionError
from frontpack.pipelines.base import PipelineOptions, display_name, final_name, resolve_entry
from frontpack.streams.content import ContentStream, ResourceKind
from frontpack.streams.sourcemap import MappedTextBuilder, SourceMap

logger = logging.getLogger(__name__)

SCRIPT_PLACEHOLDER = "js"
STYLE_PLACEHOLDER = "css"
BROWSER_WARNING_PLACEHOLDER = "browser-warning"
DEFAULT_BROWSER_WARNING_TEMPLATE = "elements/browser-warning/browser-warning.html.template"

_BLOCK_RE = re.compile(
    r"(?P<indent>[ \t]*)<!--\s*build:(?P<name>[\w-]+)\s*-->.*?<!--\s*endbuild\s*-->",
    re.DOTALL,
)


class SubstitutionOutcome(str, Enum):
    SUBSTITUTED = "substituted"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class Fragment:
    """Replacement text read from a file, mapped back to that file."""

    text: str
    source: str


Replacement = str | Fragment


class TokenReplacer(Protocol):
    def replace(
        self,
        markup: str,
        source: str,
        replacements: Mapping[str, Callable[[], Replacement]],
    ) -> tuple[str, SourceMap, dict[str, SubstitutionOutcome]]: ...


def script_tag(name: str) -> str:
    return f'<script src="{name}"></script>'


def style_tag(name: str) -> str:
    return f'<link rel="stylesheet" href="{name}">'


_TAG_BUILDERS: dict[str, Callable[[str], str]] = {
    SCRIPT_PLACEHOLDER: script_tag,
    STYLE_PLACEHOLDER: style_tag,
}


class HtmlBlockReplacer:
    """Default markup token replacer for ``<!-- build:NAME -->...<!-- endbuild -->``.

    Blocks whose name has no replacement are left untouched, and a name that
    never appears in the markup is reported as skipped. Replacement values
    are produced lazily so a fragment file is only read when its block exists.
    """

    name = "markup token replacer"

    def replace(
        self,
        markup: str,
        source: str,
        replacements: Mapping[str, Callable[[], Replacement]],
    ) -> tuple[str, SourceMap, dict[str, SubstitutionOutcome]]:
        builder = MappedTextBuilder()
        outcomes = dict.fromkeys(replacements, SubstitutionOutcome.SKIPPED)
        resolved: dict[str, Replacement] = {}
        position = 0

        for match in _BLOCK_RE.finditer(markup):
            name = match.group("name")
            if name not in replacements:
                continue
            if name not in resolved:
                resolved[name] = replacements[name]()
            line = markup.count("\n", 0, match.start())
            builder.append(
                markup[position : match.start()],
                source=source,
                source_content=markup,
                original_line=markup.count("\n", 0, position),
            )
            self._append_replacement(builder, name, resolved[name], match.group("indent"), source, markup, line)
            outcomes[name] = SubstitutionOutcome.SUBSTITUTED
            position = match.end()

        builder.append(
            markup[position:],
            source=source,
            source_content=markup,
            original_line=markup.count("\n", 0, position),
        )
        text, source_map = builder.build()
        return text, source_map, outcomes

    @staticmethod
    def _append_replacement(
        builder: MappedTextBuilder,
        name: str,
        value: Replacement,
        indent: str,
        source: str,
        markup: str,
        line: int,
    ) -> None:
        if isinstance(value, Fragment):
            body = value.text.rstrip("\n")
            indented = "\n".join(indent + part if part else "" for part in body.split("\n"))
            builder.append(indented, source=value.source, source_content=value.text)
            return
        tag = _TAG_BUILDERS.get(name, str)(value)
        builder.append(indent + tag, source=source, source_content=markup, original_line=line)


class MarkupPipeline:
    """Produce the final markup artifact from an entry with named placeholders."""

    def __init__(
        self,
        options: PipelineOptions,
        replacer: TokenReplacer | None = None,
        browser_warning_template: str = DEFAULT_BROWSER_WARNING_TEMPLATE,
    ) -> None:
        self.options = options
        self.replacer = replacer or HtmlBlockReplacer()
        self.browser_warning_template = browser_warning_template

    def browser_warning_path(self, root_path: Path) -> Path:
        return root_path / self.browser_warning_template

    def substitute(
        self,
        entry: str | Path,
        script_final_name: str,
        style_final_name: str,
        root_path: Path | str | None = None,
    ) -> tuple[ContentStream, dict[str, SubstitutionOutcome]]:
        options = self.options.with_root(root_path)
        entry_path = resolve_entry(entry)
        try:
            markup = entry_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise CollaboratorError("markup token replacer", f"{entry_path} is not valid UTF-8") from exc
        fragment_path = self.browser_warning_path(options.root_path)

        def _load_fragment() -> Fragment:
            try:
                text = fragment_path.read_text(encoding="utf-8")
            except FileNotFoundError as exc:
                raise ResolutionError(fragment_path, referrer=entry_path) from exc
            return Fragment(text=text, source=display_name(fragment_path, options.root_path))

        replacements: dict[str, Callable[[], Replacement]] = {
            SCRIPT_PLACEHOLDER: lambda: script_final_name,
            STYLE_PLACEHOLDER: lambda: style_final_name,
            BROWSER_WARNING_PLACEHOLDER: _load_fragment,
        }
        try:
            text, source_map, outcomes = self.replacer.replace(
                markup, display_name(entry_path, options.root_path), replacements
            )
        except (ValueError, TypeError) as exc:
            raise CollaboratorError("markup token replacer", str(exc)) from exc

        for placeholder, outcome in outcomes.items():
            if outcome is SubstitutionOutcome.SKIPPED:
                logger.debug("Placeholder '%s' not present in %s; left untouched", placeholder, entry_path)
        return ContentStream(final_name(entry), ResourceKind.MARKUP, text, source_map), outcomes

    def bundle(
        self,
        entry: str | Path,
        script_final_name: str,
        style_final_name: str,
        root_path: Path | str | None = None,
    ) -> ContentStream:
        stream, outcomes = self.substitute(entry, script_final_name, style_final_name, root_path)
        substituted = [name for name, outcome in outcomes.items() if outcome is SubstitutionOutcome.SUBSTITUTED]
        logger.info("🧩 Bundled markup [cyan]%s[/] (%s)", stream.name, ", ".join(substituted) or "no placeholders")
        return stream


__all__ = [
    "BROWSER_WARNING_PLACEHOLDER",
    "DEFAULT_BROWSER_WARNING_TEMPLATE",
    "Fragment",
    "HtmlBlockReplacer",
    "MarkupPipeline",
    "SCRIPT_PLACEHOLDER",
    "STYLE_PLACEHOLDER",
    "SubstitutionOutcome",
]
