"""Line decoding over chunked byte sources."""

from .decoder import LineStreamDecoder, iter_lines
from .sources import (
    ByteSource,
    ReadResult,
    IterableSource,
    StreamReaderSource,
    FileSource,
    HTTPSource,
    open_url,
    open_file,
)

__all__ = [
    "LineStreamDecoder",
    "iter_lines",
    "ByteSource",
    "ReadResult",
    "IterableSource",
    "StreamReaderSource",
    "FileSource",
    "HTTPSource",
    "open_url",
    "open_file",
]
