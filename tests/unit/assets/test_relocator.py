from pathlib import Path

import pytest

from frontpack.assets.relocator import AssetReference, AssetRelocator, resolve_assets
from frontpack.exceptions import NameCollisionError, ResolutionError
from frontpack.streams.content import ContentStream, ResourceKind
from frontpack.streams.sourcemap import SourceMap


def _streams(script: str, style: str, markup: str) -> tuple[ContentStream, ContentStream, ContentStream]:
    return (
        ContentStream("app.js", ResourceKind.SCRIPT, script, SourceMap()),
        ContentStream("style.css", ResourceKind.STYLE, style, SourceMap()),
        ContentStream("index.html", ResourceKind.MARKUP, markup, SourceMap()),
    )


def test_root_relative_asset_resolves_under_root():
    reference = AssetReference.from_path("/images/logo.png", Path("/proj"))

    assert reference.is_root_relative
    assert reference.source_path == Path("/proj/images/logo.png")
    assert reference.resolved_final_name == "logo.png"


def test_relative_asset_resolves_against_working_directory(project, monkeypatch):
    monkeypatch.chdir(project.root)

    (reference,) = resolve_assets(["images/logo.png"], Path("/elsewhere"))

    assert not reference.is_root_relative
    assert reference.source_path == Path("images/logo.png")
    assert reference.resolved_final_name == "logo.png"


def test_relocate_rewrites_all_three_streams(project):
    script, style, markup = _streams(
        "img('/images/logo.png'); font('/fonts/icons.woff2');",
        "a { background: url(/images/logo.png); }",
        '<img src="/images/logo.png"><img src="/images/logo.png">',
    )

    copy_stream, markup, script, style = AssetRelocator(project.root).relocate(
        list(project.assets), script, style, markup
    )

    assert script.text == "img('logo.png'); font('icons.woff2');"
    assert style.text == "a { background: url(logo.png); }"
    assert markup.text == '<img src="logo.png"><img src="logo.png">'
    assert copy_stream.final_names == ["logo.png", "icons.woff2"]


def test_only_listed_paths_are_rewritten(project):
    script, style, markup = _streams(
        "a('/images/logo.png'); b('/images/other.png');",
        "x{}",
        "<p>/images/</p>",
    )

    _copy, markup, script, style = AssetRelocator(project.root).relocate(
        ["/images/logo.png"], script, style, markup
    )

    assert script.text == "a('logo.png'); b('/images/other.png');"
    assert style.text == "x{}"
    assert markup.text == "<p>/images/</p>"


def test_asset_paths_are_matched_literally(tmp_path):
    (tmp_path / "img").mkdir()
    (tmp_path / "img" / "a.b+c.png").write_bytes(b"\x00")
    script, style, markup = _streams("x('/img/aXb+c.png'); y('/img/a.b+c.png');", "", "")

    _copy, _markup, script, _style = AssetRelocator(tmp_path).relocate(
        ["/img/a.b+c.png"], script, style, markup
    )

    assert script.text == "x('/img/aXb+c.png'); y('a.b+c.png');"


def test_basename_collision_is_rejected():
    with pytest.raises(NameCollisionError) as excinfo:
        resolve_assets(["/a/x.png", "/b/x.png"], Path("/proj"))

    assert excinfo.value.final_name == "x.png"
    assert excinfo.value.paths == ("/a/x.png", "/b/x.png")


def test_repeated_path_is_listed_once(project):
    references = resolve_assets(["/images/logo.png", "/images/logo.png"], project.root)

    assert [reference.original_path for reference in references] == ["/images/logo.png"]


def test_missing_asset_raises_resolution_error(project):
    with pytest.raises(ResolutionError, match="missing.png"):
        resolve_assets(["/images/missing.png"], project.root)


def test_relocated_streams_consume_their_inputs(project):
    script, style, markup = _streams("a", "b", "c")

    AssetRelocator(project.root).relocate(["/images/logo.png"], script, style, markup)

    assert script.consumed and style.consumed and markup.consumed


def test_nested_asset_paths_are_both_relocated(tmp_path):
    (tmp_path / "i").mkdir()
    (tmp_path / "i" / "a.png").write_bytes(b"\x01")
    (tmp_path / "x" / "i").mkdir(parents=True)
    (tmp_path / "x" / "i" / "a.png2").write_bytes(b"\x02")
    script, style, markup = _streams("f('/i/a.png'); g('/x/i/a.png2');", "", "")

    _copy, _markup, script, _style = AssetRelocator(tmp_path).relocate(
        ["/i/a.png", "/x/i/a.png2"], script, style, markup
    )

    assert script.text == "f('a.png'); g('a.png2');"
