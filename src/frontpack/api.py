"""Library entry points.

Each ``bundle_*`` function returns a live ``ContentStream`` for further
processing, or writes it (artifact plus ``.map``) and returns the
``WriteResult`` when ``output_path`` is given.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from frontpack.assets.relocator import AssetCopyStream, AssetRelocator
from frontpack.orchestration.build import BuildArtifact, BuildOrchestrator, BuildSpec, clean_build
from frontpack.pipelines.base import PipelineOptions
from frontpack.pipelines.markup import MarkupPipeline
from frontpack.pipelines.script import DEFAULT_SCRIPT_EXTENSIONS, ScriptPipeline
from frontpack.pipelines.style import DEFAULT_STYLE_EXTENSIONS, StylePipeline
from frontpack.streams.content import ContentStream
from frontpack.streams.writer import WriteResult, copy_assets, write_stream

StreamOrResult = ContentStream | WriteResult


def _maybe_write(stream: ContentStream, output_path: Path | str | None) -> StreamOrResult:
    if output_path is None:
        return stream
    return write_stream(stream, Path(output_path))


def bundle_script(
    entry: str | Path, root_path: Path | str, output_path: Path | str | None = None
) -> StreamOrResult:
    """Bundle a JavaScript entry point and everything it imports."""
    pipeline = ScriptPipeline(PipelineOptions(Path(root_path), DEFAULT_SCRIPT_EXTENSIONS))
    return _maybe_write(pipeline.bundle(entry), output_path)


def bundle_style(
    entry: str | Path, root_path: Path | str, output_path: Path | str | None = None
) -> StreamOrResult:
    """Inline a CSS entry point's imports into one stylesheet."""
    pipeline = StylePipeline(PipelineOptions(Path(root_path), DEFAULT_STYLE_EXTENSIONS))
    return _maybe_write(pipeline.bundle(entry), output_path)


def bundle_markup(
    entry: str | Path,
    script_final_name: str,
    style_final_name: str,
    root_path: Path | str,
    output_path: Path | str | None = None,
) -> StreamOrResult:
    """Inject the script, style and browser-warning blocks into an HTML entry."""
    pipeline = MarkupPipeline(PipelineOptions(Path(root_path)))
    return _maybe_write(pipeline.bundle(entry, script_final_name, style_final_name), output_path)


def relocate_assets(
    asset_paths: Sequence[str],
    markup_stream: ContentStream,
    script_stream: ContentStream,
    style_stream: ContentStream,
    root_path: Path | str,
    output_path: Path | str | None = None,
) -> tuple[AssetCopyStream | list[Path], StreamOrResult, StreamOrResult, StreamOrResult]:
    """Rewrite asset references and return ``(assets, markup, script, style)``.

    With ``output_path`` the assets are copied and the three streams written;
    the first element is then the list of copied files.
    """
    copy_stream, markup_stream, script_stream, style_stream = AssetRelocator(Path(root_path)).relocate(
        asset_paths, script_stream, style_stream, markup_stream
    )
    if output_path is None:
        return copy_stream, markup_stream, script_stream, style_stream
    directory = Path(output_path)
    return (
        copy_assets(copy_stream, directory),
        write_stream(markup_stream, directory),
        write_stream(script_stream, directory),
        write_stream(style_stream, directory),
    )


def build(
    script_entry: str,
    style_entry: str,
    markup_entry: str,
    asset_paths: Sequence[str],
    root_path: Path | str,
    output_path: Path | str,
) -> BuildArtifact:
    """Run a full build with default collaborators."""
    spec = BuildSpec(
        script_entry=script_entry,
        style_entry=style_entry,
        markup_entry=markup_entry,
        asset_paths=tuple(asset_paths),
        root_path=Path(root_path),
        output_path=Path(output_path),
    )
    return BuildOrchestrator().build(spec)


__all__ = [
    "build",
    "bundle_markup",
    "bundle_script",
    "bundle_style",
    "clean_build",
    "relocate_assets",
]
