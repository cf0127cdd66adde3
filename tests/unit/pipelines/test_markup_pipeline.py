import pytest

from frontpack.exceptions import CollaboratorError, ResolutionError
from frontpack.pipelines.base import PipelineOptions
from frontpack.pipelines.markup import (
    BROWSER_WARNING_PLACEHOLDER,
    SCRIPT_PLACEHOLDER,
    STYLE_PLACEHOLDER,
    MarkupPipeline,
    SubstitutionOutcome,
)
from frontpack.streams.content import ResourceKind


@pytest.fixture
def pipeline(project):
    return MarkupPipeline(PipelineOptions(project.root))


def test_all_three_placeholders_are_substituted(pipeline, project):
    stream, outcomes = pipeline.substitute(project.markup_entry, "app.js", "style.css")

    text = stream.text
    assert stream.name == "index.html"
    assert stream.kind is ResourceKind.MARKUP
    assert outcomes == {
        SCRIPT_PLACEHOLDER: SubstitutionOutcome.SUBSTITUTED,
        STYLE_PLACEHOLDER: SubstitutionOutcome.SUBSTITUTED,
        BROWSER_WARNING_PLACEHOLDER: SubstitutionOutcome.SUBSTITUTED,
    }
    assert '    <script src="app.js"></script>' in text
    assert '    <link rel="stylesheet" href="style.css">' in text
    assert '    <div id="browser-warning">' in text
    assert "        <p>Your browser is not supported.</p>" in text
    assert "build:" not in text
    assert "/js/app.js" not in text


def test_markup_without_placeholders_is_unchanged(pipeline, project):
    entry = project.root / "plain.html"
    entry.write_text("<html><body>plain</body></html>\n", encoding="utf-8")
    (project.root / "elements" / "browser-warning" / "browser-warning.html.template").unlink()

    stream, outcomes = pipeline.substitute(entry, "app.js", "style.css")

    assert stream.text == "<html><body>plain</body></html>\n"
    assert set(outcomes.values()) == {SubstitutionOutcome.SKIPPED}


def test_single_placeholder_substitutes_only_that_block(pipeline, project):
    entry = project.root / "one.html"
    markup = '<body>\n  <!-- build:js --><script src="dev.js"></script><!-- endbuild -->\n</body>\n'
    entry.write_text(markup, encoding="utf-8")

    stream, outcomes = pipeline.substitute(entry, "bundle.js", "style.css")

    assert stream.text == '<body>\n  <script src="bundle.js"></script>\n</body>\n'
    assert outcomes[SCRIPT_PLACEHOLDER] is SubstitutionOutcome.SUBSTITUTED
    assert outcomes[STYLE_PLACEHOLDER] is SubstitutionOutcome.SKIPPED
    assert outcomes[BROWSER_WARNING_PLACEHOLDER] is SubstitutionOutcome.SKIPPED


def test_unknown_blocks_are_left_untouched(pipeline, project):
    block = "<!-- build:analytics --><script src=\"a.js\"></script><!-- endbuild -->"
    entry = project.root / "other.html"
    entry.write_text(f"<body>{block}</body>\n", encoding="utf-8")

    stream = pipeline.bundle(entry, "app.js", "style.css")

    assert stream.text == f"<body>{block}</body>\n"


def test_missing_fragment_is_a_resolution_error_when_requested(pipeline, project):
    (project.root / "elements" / "browser-warning" / "browser-warning.html.template").unlink()

    with pytest.raises(ResolutionError, match="browser-warning.html.template"):
        pipeline.bundle(project.markup_entry, "app.js", "style.css")


def test_fragment_lines_are_mapped_to_the_template(pipeline, project):
    stream = pipeline.bundle(project.markup_entry, "app.js", "style.css")
    lines = stream.text.split("\n")
    source_map = stream.source_map

    generated = lines.index('    <div id="browser-warning">')
    _column, source, original_line, _ = source_map.lines[generated][0]

    assert source_map.sources[source] == "/elements/browser-warning/browser-warning.html.template"
    assert original_line == 0


def test_template_location_is_configurable(project):
    custom = project.root / "partials" / "warn.html"
    custom.parent.mkdir()
    custom.write_text("<p>old browser</p>\n", encoding="utf-8")
    pipeline = MarkupPipeline(PipelineOptions(project.root), browser_warning_template="partials/warn.html")

    text = pipeline.bundle(project.markup_entry, "app.js", "style.css").text

    assert "    <p>old browser</p>" in text


def test_entry_that_is_not_utf8_is_a_collaborator_error(pipeline, project):
    entry = project.root / "latin1.html"
    entry.write_bytes("<p>café</p>\n".encode("latin-1"))

    with pytest.raises(CollaboratorError, match="not valid UTF-8"):
        pipeline.bundle(entry, "app.js", "style.css")
