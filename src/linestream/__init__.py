"""
linestream - lazy async line decoding over chunked byte streams.

This package turns any pull-based byte source into an async sequence of
decoded text lines, with:
- Lines and multi-byte characters split across chunks
- LF and CRLF line terminators
- Lenient or strict decoding
- Scoped release of the underlying source
"""

__version__ = "0.1.0"

from .streaming import (
    LineStreamDecoder,
    iter_lines,
    ByteSource,
    ReadResult,
    IterableSource,
    StreamReaderSource,
    FileSource,
    HTTPSource,
    open_url,
    open_file,
)
from .utils.errors import (
    LineStreamError,
    ConfigurationError,
    StreamError,
    SourceReadError,
    DecodeError,
    LineTooLongError,
)

__all__ = [
    'LineStreamDecoder',
    'iter_lines',
    'ByteSource',
    'ReadResult',
    'IterableSource',
    'StreamReaderSource',
    'FileSource',
    'HTTPSource',
    'open_url',
    'open_file',
    'LineStreamError',
    'ConfigurationError',
    'StreamError',
    'SourceReadError',
    'DecodeError',
    'LineTooLongError',
]
