from pathlib import Path

from frontpack.pipelines.static_refs import StaticReferenceRewriter
from frontpack.streams.content import ContentStream, ResourceKind
from frontpack.streams.sourcemap import SourceMap


def _stream(text: str) -> ContentStream:
    return ContentStream("app.js", ResourceKind.SCRIPT, text, SourceMap())


def test_absolute_root_paths_become_root_relative():
    rewriter = StaticReferenceRewriter(Path("/home/dev/proj"))

    stream = rewriter.apply(_stream("load('/home/dev/proj/lib/x.js');\n"))

    assert stream.text == "load('/lib/x.js');\n"


def test_configured_replacements_run_in_order():
    rewriter = StaticReferenceRewriter(
        Path("/proj"),
        {"__VERSION__": "1.2.0", "https://cdn.dev.example": "https://cdn.example"},
    )

    stream = rewriter.apply(_stream("v='__VERSION__'; u='https://cdn.dev.example/a.js';\n"))

    assert stream.text == "v='1.2.0'; u='https://cdn.example/a.js';\n"


def test_stream_without_matches_passes_through():
    rewriter = StaticReferenceRewriter(Path("/proj"))

    stream = rewriter.apply(_stream("nothing to see\n"))

    assert stream.text == "nothing to see\n"
