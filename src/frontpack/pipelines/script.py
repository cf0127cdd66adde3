"""Script pipeline: trace ES module imports into one IIFE bundle.

All modules share the scope of the wrapping function. Import and export
statements are removed; where an import binds a name that differs from the
exporting module's local name (renamed bindings, default imports, namespace
imports) a ``const`` alias is emitted in place of the import statement, on
the same line, so original line numbers survive into the source map.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from frontpack.exceptions import CollaboratorError, ResolutionError
from frontpack.pipelines.base import (
    BundledArtifact,
    ModuleBundler,
    PipelineOptions,
    display_name,
    final_name,
    is_root_relative,
    resolve_entry,
)
from frontpack.streams.content import ContentStream, ResourceKind
from frontpack.streams.sourcemap import MappedTextBuilder

logger = logging.getLogger(__name__)

DEFAULT_SCRIPT_EXTENSIONS = (".js",)

_NAME = r"[\w$]+"
_NAMESPACE = rf"\*[ \t]*as[ \t]+{_NAME}"
# Only a ``{ ... }`` list may span lines; every other binding stays on the
# ``import`` line.
_IMPORT_BINDINGS = rf"(?:{_NAME}(?:[ \t]*,[ \t]*(?:\{{[^}}]*\}}|{_NAMESPACE}))?|\{{[^}}]*\}}|{_NAMESPACE})"

_IMPORT_RE = re.compile(
    rf"""^[ \t]*import\b[ \t]*(?:(?P<bindings>{_IMPORT_BINDINGS})\s*from[ \t]*)?"""
    r"""(?P<quote>['"])(?P<spec>[^'"\n]+)(?P=quote)[ \t]*;?""",
    re.MULTILINE,
)
_REEXPORT_RE = re.compile(
    rf"""^[ \t]*export[ \t]*(?P<bindings>\*(?:[ \t]+as[ \t]+{_NAME})?|\{{[^}}]*\}})\s*from[ \t]*"""
    r"""(?P<quote>['"])(?P<spec>[^'"\n]+)(?P=quote)[ \t]*;?""",
    re.MULTILINE,
)
_EXPORT_LIST_RE = re.compile(r"^[ \t]*export[ \t]*\{(?P<names>[^}]*)\}(?!\s*from\b)[ \t]*;?", re.MULTILINE)
_EXPORT_DEFAULT_NAMED_RE = re.compile(
    rf"^(?P<indent>[ \t]*)export[ \t]+default[ \t]+"
    rf"(?P<decl>(?:async[ \t]+)?function\b[ \t]*\*?[ \t]*(?P<fname>{_NAME})|class[ \t]+(?P<cname>{_NAME}))",
    re.MULTILINE,
)
_EXPORT_DEFAULT_RE = re.compile(r"^(?P<indent>[ \t]*)export[ \t]+default[ \t]+", re.MULTILINE)
_EXPORT_DECLARATION_RE = re.compile(
    r"^(?P<indent>[ \t]*)export[ \t]+(?=(?:async[ \t]+)?function\b|class\b|const\b|let\b|var\b)", re.MULTILINE
)
_DECLARATION_HEAD_RE = re.compile(
    rf"(?:async[ \t]+)?(?P<kind>function|class|const|let|var)\b[ \t]*\*?[ \t]*(?P<name>{_NAME})?"
)
_BINDING_PARTS_RE = re.compile(
    rf"(?:(?P<default>{_NAME})\s*,?\s*)?(?:\{{(?P<named>[^}}]*)\}}|\*\s*as\s+(?P<namespace>{_NAME}))?"
)
_SPECIFIER_RE = re.compile(rf"(?P<name>{_NAME})(?:\s+as\s+(?P<alias>{_NAME}))?")
_LEADING_NAME_RE = re.compile(rf"\s*({_NAME})")

_BUNDLE_HEADER = "(function () {\n'use strict';\n\n"
_BUNDLE_FOOTER = "\n}());\n"


def _blank(match: re.Match[str]) -> str:
    """Replace a statement with as many newlines as it spanned."""
    return "\n" * match.group(0).count("\n")


def _identifier(text: str) -> str:
    return re.sub(r"[^\w$]", "_", text)


def _specifiers(names: str, path: Path) -> Iterator[tuple[str, str]]:
    """Yield ``(name, alias)`` for each entry of a ``{ a, b as c }`` list."""
    for part in names.split(","):
        part = part.strip()
        if not part:
            continue
        match = _SPECIFIER_RE.fullmatch(part)
        if match is None:
            raise CollaboratorError("module bundler", f"unsupported binding '{part}' in {path}")
        yield match.group("name"), match.group("alias") or match.group("name")


def _declarator_names(source: str, start: int) -> list[str]:
    """Names of the second and later declarators of a ``const``/``let``/``var`` statement."""
    names: list[str] = []
    depth = 0
    quote = ""
    for position in range(start, len(source)):
        char = source[position]
        if quote:
            if char == quote and source[position - 1] != "\\":
                quote = ""
        elif char in "'\"`":
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        elif depth:
            continue
        elif char == ";" or (char == "\n" and not source[start:position].rstrip().endswith(",")):
            break
        elif char == ",":
            match = _LEADING_NAME_RE.match(source, position + 1)
            if match:
                names.append(match.group(1))
    return names


@dataclass(slots=True)
class _Module:
    path: Path
    source: str
    index: int
    dependencies: dict[str, Path] = field(default_factory=dict)

    @property
    def default_name(self) -> str:
        return f"__{_identifier(self.path.stem)}_default{self.index}"

    def namespace_name(self, alias: str) -> str:
        return f"__{_identifier(self.path.stem)}_{alias}{self.index}"


class _ModuleGraph:
    """Export tables of the modules in one bundle, and the rewrite of each module body.

    An export table maps every name a module exports to the expression that
    holds its value inside the shared bundle scope.
    """

    def __init__(self, modules: dict[Path, _Module], root_path: Path) -> None:
        self.modules = modules
        self.root_path = root_path
        self._exports: dict[Path, dict[str, str]] = {}
        self._resolving: set[Path] = set()

    def exports(self, path: Path) -> dict[str, str]:
        if path in self._exports:
            return self._exports[path]
        if path in self._resolving:
            # export * cycle
            return {}
        self._resolving.add(path)
        module = self.modules[path]
        table = self._local_exports(module)
        for match in _REEXPORT_RE.finditer(module.source):
            target = module.dependencies[match.group("spec")]
            bindings = match.group("bindings")
            if bindings.startswith("{"):
                for name, alias in _specifiers(bindings[1:-1], module.path):
                    table[alias] = self._lookup(target, name, module.path)
            elif len(bindings.split()) > 1:
                alias = bindings.split()[-1]
                table[alias] = module.namespace_name(alias)
            else:
                for name, local in self.exports(target).items():
                    if name != "default":
                        table.setdefault(name, local)
        self._resolving.discard(path)
        self._exports[path] = table
        return table

    @staticmethod
    def _local_exports(module: _Module) -> dict[str, str]:
        source = module.source
        table: dict[str, str] = {}
        for match in _EXPORT_DECLARATION_RE.finditer(source):
            head = _DECLARATION_HEAD_RE.match(source, match.end())
            if head is None or not head.group("name"):
                raise CollaboratorError(
                    "module bundler", f"destructured export declarations are not supported ({module.path})"
                )
            names = [head.group("name")]
            if head.group("kind") in ("const", "let", "var"):
                names.extend(_declarator_names(source, head.end()))
            table.update((name, name) for name in names)
        for match in _EXPORT_LIST_RE.finditer(source):
            for name, alias in _specifiers(match.group("names"), module.path):
                table[alias] = name
        named_default = _EXPORT_DEFAULT_NAMED_RE.search(source)
        if named_default:
            table["default"] = named_default.group("fname") or named_default.group("cname")
        elif _EXPORT_DEFAULT_RE.search(source):
            table["default"] = module.default_name
        return table

    def _lookup(self, target: Path, name: str, importer: Path) -> str:
        table = self.exports(target)
        if name not in table:
            raise CollaboratorError(
                "module bundler",
                f"'{name}' is not exported by {display_name(target, self.root_path)} (imported from {importer})",
            )
        return table[name]

    def namespace(self, target: Path) -> str:
        members = ", ".join(f"{name}: {local}" for name, local in self.exports(target).items())
        return f"Object.freeze({{{members}}})"

    def _import_pairs(self, module: _Module, bindings: str, target: Path) -> list[tuple[str, str]]:
        parts = _BINDING_PARTS_RE.fullmatch(bindings.strip())
        if parts is None:
            raise CollaboratorError("module bundler", f"unsupported import bindings '{bindings}' in {module.path}")
        pairs = []
        if parts.group("default"):
            pairs.append((parts.group("default"), self._lookup(target, "default", module.path)))
        if parts.group("named") is not None:
            pairs.extend(
                (alias, self._lookup(target, name, module.path))
                for name, alias in _specifiers(parts.group("named"), module.path)
            )
        if parts.group("namespace"):
            pairs.append((parts.group("namespace"), self.namespace(target)))
        return pairs

    def render(self, module: _Module) -> str:
        """Module body with module syntax removed and import aliases declared."""
        self.exports(module.path)

        def _import(match: re.Match[str]) -> str:
            bindings = match.group("bindings")
            declarations = []
            if bindings:
                target = module.dependencies[match.group("spec")]
                declarations = [
                    f"const {binding} = {local};"
                    for binding, local in self._import_pairs(module, bindings, target)
                    if binding != local
                ]
            return " ".join(declarations) + _blank(match)

        def _reexport(match: re.Match[str]) -> str:
            bindings = match.group("bindings")
            if bindings.startswith("*") and len(bindings.split()) > 1:
                alias = bindings.split()[-1]
                target = module.dependencies[match.group("spec")]
                return f"const {module.namespace_name(alias)} = {self.namespace(target)};" + _blank(match)
            return _blank(match)

        body = _IMPORT_RE.sub(_import, module.source)
        body = _REEXPORT_RE.sub(_reexport, body)
        body = _EXPORT_LIST_RE.sub(_blank, body)
        body = _EXPORT_DEFAULT_NAMED_RE.sub(r"\g<indent>\g<decl>", body)
        body = _EXPORT_DEFAULT_RE.sub(rf"\g<indent>const {module.default_name} = ", body)
        return _EXPORT_DECLARATION_RE.sub(r"\g<indent>", body)


class EsModuleBundler:
    """Default module bundler.

    Imports are resolved root-relative (``/lib/x.js`` under the root path) or
    relative to the importing module. Every module is emitted once,
    dependencies first. Bindings a module imports but another module does
    not export raise ``CollaboratorError``, as do destructured export
    declarations.
    """

    name = "module bundler"

    def bundle(self, entry: Path, options: PipelineOptions) -> BundledArtifact:
        modules: dict[Path, _Module] = {}
        self._visit(entry.resolve(), options, modules, set())
        logger.debug("Bundling %d module(s) from %s", len(modules), entry)
        graph = _ModuleGraph(modules, options.root_path)

        builder = MappedTextBuilder(file=final_name(entry))
        builder.append(_BUNDLE_HEADER)
        for module in modules.values():
            if module.index:
                builder.append("\n")
            body = graph.render(module)
            if not body.endswith("\n"):
                body += "\n"
            builder.append(
                body, source=display_name(module.path, options.root_path), source_content=module.source
            )
        builder.append(_BUNDLE_FOOTER)
        text, source_map = builder.build()
        return BundledArtifact(text=text, source_map=source_map)

    def _visit(
        self,
        path: Path,
        options: PipelineOptions,
        modules: dict[Path, _Module],
        in_progress: set[Path],
    ) -> None:
        if path in modules or path in in_progress:
            return
        in_progress.add(path)
        source = self._read(path)
        dependencies: dict[str, Path] = {}
        for specifier in self._imports(source):
            dependency = self._resolve(specifier, path, options)
            dependencies[specifier] = dependency
            self._visit(dependency, options, modules, in_progress)
        modules[path] = _Module(path, source, len(modules), dependencies)

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ResolutionError(path) from exc
        except UnicodeDecodeError as exc:
            raise CollaboratorError("module bundler", f"{path} is not valid UTF-8") from exc

    @staticmethod
    def _imports(source: str) -> list[str]:
        matches = sorted(
            [*_IMPORT_RE.finditer(source), *_REEXPORT_RE.finditer(source)], key=lambda match: match.start()
        )
        return [match.group("spec") for match in matches]

    def _resolve(self, specifier: str, importer: Path, options: PipelineOptions) -> Path:
        if is_root_relative(specifier):
            candidate = options.root_path / specifier.lstrip("/")
        elif specifier.startswith("."):
            candidate = importer.parent / specifier
        else:
            raise CollaboratorError(
                "module bundler",
                f"bare module specifier '{specifier}' in {importer} cannot be resolved",
            )

        if candidate.is_file():
            return candidate.resolve()
        if candidate.suffix not in options.extensions:
            for extension in options.extensions:
                with_extension = candidate.with_name(candidate.name + extension)
                if with_extension.is_file():
                    return with_extension.resolve()
        raise ResolutionError(specifier, referrer=importer)


class ScriptPipeline:
    """Produce the combined script artifact for one entry point."""

    def __init__(self, options: PipelineOptions, bundler: ModuleBundler | None = None) -> None:
        self.options = options
        self.bundler = bundler or EsModuleBundler()

    def bundle(self, entry: str | Path, root_path: Path | str | None = None) -> ContentStream:
        options = self.options.with_root(root_path)
        entry_path = resolve_entry(entry)
        artifact = self.bundler.bundle(entry_path, options)
        logger.info("📦 Bundled script [cyan]%s[/]", final_name(entry))
        return ContentStream(final_name(entry), ResourceKind.SCRIPT, artifact.text, artifact.source_map)


__all__ = ["DEFAULT_SCRIPT_EXTENSIONS", "EsModuleBundler", "ScriptPipeline"]
