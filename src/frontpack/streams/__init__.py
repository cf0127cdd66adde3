"""Content streams, source maps and the sinks that write them."""

from frontpack.streams.content import ContentStream, ResourceKind
from frontpack.streams.sourcemap import MappedTextBuilder, SourceMap
from frontpack.streams.writer import StreamWriter, WriteResult, copy_assets, write_stream

__all__ = [
    "ContentStream",
    "MappedTextBuilder",
    "ResourceKind",
    "SourceMap",
    "StreamWriter",
    "WriteResult",
    "copy_assets",
    "write_stream",
]
