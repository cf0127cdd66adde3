import json

import pytest

from frontpack.assets.relocator import AssetCopyStream, AssetReference
from frontpack.exceptions import WriteError
from frontpack.streams.content import ContentStream, ResourceKind
from frontpack.streams.sourcemap import MappedTextBuilder
from frontpack.streams.writer import StreamWriter, copy_assets, write_stream


def _stream(name: str, kind: ResourceKind, text: str) -> ContentStream:
    builder = MappedTextBuilder()
    builder.append(text, source=f"/src/{name}", source_content=text)
    built_text, source_map = builder.build()
    return ContentStream(name, kind, built_text, source_map)


@pytest.mark.parametrize(
    ("name", "kind", "trailer"),
    [
        ("app.js", ResourceKind.SCRIPT, "//# sourceMappingURL=app.js.map\n"),
        ("style.css", ResourceKind.STYLE, "/*# sourceMappingURL=style.css.map */\n"),
    ],
)
def test_write_stream_appends_mapping_comment(tmp_path, name, kind, trailer):
    result = write_stream(_stream(name, kind, "body\n"), tmp_path)

    assert result.path == tmp_path / name
    assert result.map_path == tmp_path / f"{name}.map"
    assert result.path.read_text(encoding="utf-8").endswith(trailer)
    source_map = json.loads(result.map_path.read_text(encoding="utf-8"))
    assert source_map["file"] == name
    assert source_map["sources"] == [f"/src/{name}"]


def test_markup_gets_map_file_without_comment(tmp_path):
    result = write_stream(_stream("index.html", ResourceKind.MARKUP, "<p></p>\n"), tmp_path)

    assert result.path.read_text(encoding="utf-8") == "<p></p>\n"
    assert result.map_path.exists()


def test_writer_discards_partial_files_on_failure(tmp_path):
    stream = _stream("app.js", ResourceKind.SCRIPT, "x\n")
    text, source_map = stream.consume()

    with pytest.raises(RuntimeError, match="boom"):
        with StreamWriter(tmp_path, "app.js") as writer:
            writer.write(text, source_map, ResourceKind.SCRIPT)
            msg = "boom"
            raise RuntimeError(msg)

    assert list(tmp_path.iterdir()) == []


def test_writer_reports_unwritable_directory(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(WriteError):
        with StreamWriter(blocker / "out", "app.js"):
            pass


def test_copy_assets_is_byte_identical(tmp_path):
    source = tmp_path / "src" / "logo.png"
    source.parent.mkdir()
    payload = bytes(range(256)) * 4
    source.write_bytes(payload)
    reference = AssetReference.from_path("/src/logo.png", tmp_path)

    copied = copy_assets(AssetCopyStream([reference]), tmp_path / "out")

    assert copied == [tmp_path / "out" / "logo.png"]
    assert copied[0].read_bytes() == payload
