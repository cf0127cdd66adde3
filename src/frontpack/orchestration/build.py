"""Build orchestration: run the pipelines, relocate assets, commit one output.

The three resource pipelines run concurrently in worker threads. Markup
only needs the *names* of the script and style artifacts, which are derived
from the entry paths, so it does not wait for their content. Asset
relocation starts once all three streams are complete, and nothing touches
the output directory until every stream has been fully written to a private
staging directory.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import os
import shutil
import tempfile
from collections.abc import Coroutine, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from frontpack.assets.relocator import AssetCopyStream, AssetRelocator
from frontpack.exceptions import NameCollisionError, WriteError
from frontpack.pipelines.base import ModuleBundler, PipelineOptions, StyleInliner, final_name
from frontpack.pipelines.markup import DEFAULT_BROWSER_WARNING_TEMPLATE, MarkupPipeline, TokenReplacer
from frontpack.pipelines.script import DEFAULT_SCRIPT_EXTENSIONS, ScriptPipeline
from frontpack.pipelines.static_refs import StaticReferencePass, StaticReferenceRewriter
from frontpack.pipelines.style import DEFAULT_STYLE_EXTENSIONS, CssImportInliner, StylePipeline
from frontpack.streams.writer import copy_assets, write_stream

if TYPE_CHECKING:
    from frontpack.config.settings import FrontpackConfig
    from frontpack.streams.content import ContentStream

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_OUTPUT_DIR = "dist"


@dataclass(frozen=True, slots=True)
class BuildSpec:
    """Inputs of one build; borrowed by the orchestrator for a single run."""

    script_entry: str
    style_entry: str
    markup_entry: str
    asset_paths: tuple[str, ...] = field(default_factory=tuple)
    root_path: Path = field(default_factory=Path.cwd)
    output_path: Path | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "root_path", Path(self.root_path))
        object.__setattr__(self, "asset_paths", tuple(self.asset_paths))
        if self.output_path is not None:
            object.__setattr__(self, "output_path", Path(self.output_path))
        if not self.root_path.is_absolute():
            msg = f"root_path must be absolute, got {self.root_path}"
            raise ValueError(msg)

    @property
    def resolved_output_path(self) -> Path:
        return self.output_path or self.root_path / DEFAULT_OUTPUT_DIR


@dataclass(frozen=True, slots=True)
class BuildArtifact:
    """Files of a completed build, all directly inside ``output_path``."""

    output_path: Path
    script_file: Path
    style_file: Path
    markup_file: Path
    asset_files: tuple[Path, ...]
    source_maps: tuple[Path, ...]

    @property
    def files(self) -> list[Path]:
        return [self.script_file, self.style_file, self.markup_file, *self.asset_files, *self.source_maps]


def run_coroutine(coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro`` to completion from synchronous code.

    ``asyncio.run`` refuses to start while another loop is running in this
    thread (notebooks, async callers), so in that case the coroutine gets its
    own loop on a helper thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(asyncio.run, coro).result()


class BuildOrchestrator:
    """Compose the pipelines, the relocator and the writer into one build."""

    def __init__(
        self,
        *,
        script_extensions: Sequence[str] = DEFAULT_SCRIPT_EXTENSIONS,
        style_extensions: Sequence[str] = DEFAULT_STYLE_EXTENSIONS,
        optimize_style: bool = True,
        browser_warning_template: str = DEFAULT_BROWSER_WARNING_TEMPLATE,
        static_replacements: Mapping[str, str] | None = None,
        bundler: ModuleBundler | None = None,
        inliner: StyleInliner | None = None,
        replacer: TokenReplacer | None = None,
        static_pass: StaticReferencePass | None = None,
    ) -> None:
        self.script_extensions = tuple(script_extensions)
        self.style_extensions = tuple(style_extensions)
        self.browser_warning_template = browser_warning_template
        self.static_replacements = dict(static_replacements or {})
        self.bundler = bundler
        self.inliner = inliner or CssImportInliner(optimize=optimize_style)
        self.replacer = replacer
        self.static_pass = static_pass

    @classmethod
    def from_config(cls, config: FrontpackConfig) -> BuildOrchestrator:
        return cls(
            script_extensions=config.script.extensions,
            style_extensions=config.style.extensions,
            optimize_style=config.style.optimize,
            browser_warning_template=config.markup.browser_warning_template,
            static_replacements=config.static.replacements,
        )

    def script_pipeline(self, root_path: Path) -> ScriptPipeline:
        return ScriptPipeline(PipelineOptions(root_path, self.script_extensions), self.bundler)

    def style_pipeline(self, root_path: Path) -> StylePipeline:
        return StylePipeline(PipelineOptions(root_path, self.style_extensions), self.inliner)

    def markup_pipeline(self, root_path: Path) -> MarkupPipeline:
        return MarkupPipeline(
            PipelineOptions(root_path),
            self.replacer,
            browser_warning_template=self.browser_warning_template,
        )

    def static_reference_pass(self, root_path: Path) -> StaticReferencePass:
        return self.static_pass or StaticReferenceRewriter(root_path, self.static_replacements)

    def build(self, spec: BuildSpec) -> BuildArtifact:
        return run_coroutine(self.build_async(spec))

    async def build_async(self, spec: BuildSpec) -> BuildArtifact:
        root_path = spec.root_path
        output_path = spec.resolved_output_path
        logger.info("🚀 [bold cyan]Building[/] %s -> %s", root_path, output_path)

        script_name = final_name(spec.script_entry)
        style_name = final_name(spec.style_entry)
        script_stream, style_stream, markup_stream = await asyncio.gather(
            asyncio.to_thread(self.script_pipeline(root_path).bundle, spec.script_entry, root_path),
            asyncio.to_thread(self.style_pipeline(root_path).bundle, spec.style_entry, root_path),
            asyncio.to_thread(
                self.markup_pipeline(root_path).bundle, spec.markup_entry, script_name, style_name, root_path
            ),
        )

        copy_stream, markup_stream, script_stream, style_stream = AssetRelocator(root_path).relocate(
            spec.asset_paths, script_stream, style_stream, markup_stream
        )

        static_pass = self.static_reference_pass(root_path)
        streams = [static_pass.apply(stream) for stream in (script_stream, style_stream, markup_stream)]
        check_output_names(streams, copy_stream)

        artifact = await asyncio.to_thread(commit_build, output_path, streams, copy_stream)
        logger.info("✅ [green]Build complete:[/] %d file(s) in %s", len(artifact.files), output_path)
        return artifact


def check_output_names(streams: Sequence[ContentStream], copy_stream: AssetCopyStream) -> None:
    """Reject builds where two outputs would land on the same file name."""
    owners: dict[str, list[str]] = {}
    for stream in streams:
        owners.setdefault(stream.name, []).append(f"{stream.kind.value} artifact")
        owners.setdefault(f"{stream.name}.map", []).append(f"{stream.kind.value} source map")
    for reference in copy_stream:
        owners.setdefault(reference.resolved_final_name, []).append(reference.original_path)

    for name, claimants in owners.items():
        if len(claimants) > 1:
            raise NameCollisionError(name, claimants)


def commit_build(
    output_path: Path,
    streams: Sequence[ContentStream],
    copy_stream: AssetCopyStream,
) -> BuildArtifact:
    """Write all streams into staging, then move every file into ``output_path``.

    Files already in ``output_path`` that the build does not produce are left
    alone; use ``clean_build`` first for an exact output directory. If moving
    fails halfway, the files moved so far stay in place and ``WriteError`` is
    raised.
    """
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{output_path.name}.", suffix=".staging", dir=output_path.parent))
    except OSError as exc:
        raise WriteError(output_path, str(exc)) from exc

    try:
        results = [write_stream(stream, staging) for stream in streams]
        staged_assets = copy_assets(copy_stream, staging)

        try:
            output_path.mkdir(parents=True, exist_ok=True)
            for staged in sorted(staging.iterdir()):
                os.replace(staged, output_path / staged.name)
        except OSError as exc:
            raise WriteError(output_path, str(exc)) from exc
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    script, style, markup = (output_path / result.path.name for result in results)
    return BuildArtifact(
        output_path=output_path,
        script_file=script,
        style_file=style,
        markup_file=markup,
        asset_files=tuple(output_path / asset.name for asset in staged_assets),
        source_maps=tuple(output_path / result.map_path.name for result in results if result.map_path),
    )


def clean_build(output_directory: Path | str) -> bool:
    """Remove a previous build; return False when there was nothing to remove."""
    target = Path(output_directory)
    if not target.exists():
        logger.debug("Nothing to clean at %s", target)
        return False
    try:
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()
    except OSError as exc:
        raise WriteError(target, str(exc)) from exc
    logger.info("🧹 Removed %s", target)
    return True


__all__ = [
    "BuildArtifact",
    "BuildOrchestrator",
    "BuildSpec",
    "check_output_names",
    "clean_build",
    "commit_build",
    "run_coroutine",
]
