import json

from frontpack.streams.sourcemap import MappedTextBuilder, SourceMap, decode_mappings, encode_vlq


def test_encode_vlq_known_values():
    """Spot-check the base64 VLQ encoding against hand-computed values."""
    assert encode_vlq(0) == "A"
    assert encode_vlq(1) == "C"
    assert encode_vlq(-1) == "D"
    assert encode_vlq(16) == "gB"
    assert encode_vlq(123) == "2H"


def test_builder_maps_each_line_to_its_source():
    builder = MappedTextBuilder(file="bundle.js")
    builder.append("a\nb\n", source="/a.js", source_content="a\nb\n")
    builder.append("c\n", source="/c.js", source_content="c\n")

    text, source_map = builder.build()

    assert text == "a\nb\nc\n"
    assert source_map.sources == ["/a.js", "/c.js"]
    assert source_map.lines == [[(0, 0, 0, 0)], [(0, 0, 1, 0)], [(0, 1, 0, 0)], []]


def test_unmapped_text_shifts_generated_positions():
    builder = MappedTextBuilder()
    builder.append("(function () {\n")
    builder.append("x();\n", source="/x.js", original_line=4)

    _text, source_map = builder.build()

    assert source_map.lines[0] == []
    assert source_map.lines[1] == [(0, 0, 4, 0)]


def test_serialized_mappings_decode_back_to_segments():
    source_map = SourceMap(file="out.css")
    first = source_map.add_source("/a.css", "a{}")
    second = source_map.add_source("/b.css", "b{}")
    source_map.add_mapping(0, 0, first, 0)
    source_map.add_mapping(0, 12, second, 7, 2)
    source_map.add_mapping(2, 3, first, 1)

    payload = json.loads(source_map.to_json())

    assert payload["version"] == 3
    assert payload["file"] == "out.css"
    assert payload["sourcesContent"] == ["a{}", "b{}"]
    assert decode_mappings(payload["mappings"]) == [
        [(0, 0, 0, 0), (12, 1, 7, 2)],
        [],
        [(3, 0, 1, 0)],
    ]


def test_add_source_reuses_existing_index():
    source_map = SourceMap()
    assert source_map.add_source("/a.js") == 0
    assert source_map.add_source("/b.js") == 1
    assert source_map.add_source("/a.js") == 0
    assert source_map.sources == ["/a.js", "/b.js"]
