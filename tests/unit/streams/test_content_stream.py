import pytest

from frontpack.exceptions import StreamConsumedError
from frontpack.streams.content import ContentStream, ResourceKind
from frontpack.streams.sourcemap import MappedTextBuilder, SourceMap


def _stream(text: str, name: str = "app.js") -> ContentStream:
    builder = MappedTextBuilder()
    builder.append(text, source="/src/app.js", source_content=text)
    built_text, source_map = builder.build()
    return ContentStream(name, ResourceKind.SCRIPT, built_text, source_map)


def test_replace_literal_replaces_every_occurrence():
    stream = _stream("a('/img/x.png');\nb('/img/x.png', '/img/x.png');\n")

    rewritten = stream.replace_literal("/img/x.png", "x.png")

    assert rewritten.text == "a('x.png');\nb('x.png', 'x.png');\n"


def test_replace_literal_does_not_interpret_regex_characters():
    stream = _stream("url(/img/aXb.png) url(/img/a.b.png)")

    rewritten = stream.replace_literal("/img/a.b.png", "a.b.png")

    assert rewritten.text == "url(/img/aXb.png) url(a.b.png)"


def test_replace_literal_shifts_later_segments_on_the_same_line():
    text = "x = '/a/b.png'; y = 1;"
    source_map = SourceMap()
    index = source_map.add_source("/src/app.js", text)
    source_map.add_mapping(0, 0, index, 0, 0)
    source_map.add_mapping(0, 16, index, 0, 16)
    stream = ContentStream("app.js", ResourceKind.SCRIPT, text, source_map)

    rewritten = stream.replace_literal("/a/b.png", "b.png")

    assert rewritten.text == "x = 'b.png'; y = 1;"
    assert rewritten.text[13] == "y"
    assert rewritten.source_map.lines[0] == [(0, index, 0, 0), (13, index, 0, 16)]


def test_transformed_stream_is_consumed():
    stream = _stream("const a = 1;\n")

    derived = stream.replace_literal("a", "b")

    assert stream.consumed
    assert not derived.consumed
    with pytest.raises(StreamConsumedError):
        _ = stream.text
    with pytest.raises(StreamConsumedError):
        stream.replace_literal("b", "c")


def test_replace_literal_rejects_multiline_rules():
    stream = _stream("a\nb\n")
    with pytest.raises(ValueError, match="span lines"):
        stream.replace_literal("a\nb", "c")
    with pytest.raises(ValueError, match="must not be empty"):
        stream.replace_literal("", "c")


def test_consume_hands_out_text_once():
    stream = _stream("x\n")
    text, source_map = stream.consume()

    assert text == "x\n"
    assert source_map.file == "app.js"
    with pytest.raises(StreamConsumedError):
        stream.consume()


def test_rename_keeps_content_and_updates_map_file():
    stream = _stream("x\n")
    renamed = stream.rename("bundle.js")

    assert renamed.name == "bundle.js"
    assert renamed.text == "x\n"
    assert renamed.source_map.file == "bundle.js"
