"""
Line stream decoder for linestream.

Turns a pull-based byte source into a lazy, ordered, async sequence of
decoded text lines:
- Lines and multi-byte characters may straddle chunk boundaries
- Both ``\\n`` and ``\\r\\n`` terminate a line
- A final unterminated line is emitted once
- The source is closed on exhaustion, failure, or early exit
"""

import codecs
from typing import Any, Dict, Optional

from .sources import ByteSource, as_source
from ..utils.logging import get_logger
from ..utils.errors import (
    ConfigurationError, DecodeError, LineStreamError, LineTooLongError,
    SourceReadError,
)

logger = get_logger("linestream.decoder")

DEFAULT_ENCODING = "utf-8"


class LineStreamDecoder:
    """Async iterator of text lines decoded from a byte source.

    A decoder is one session: it is not restartable, and iterating it again
    after exhaustion yields nothing. Use it either directly::

        async for line in LineStreamDecoder(source):
            ...

    or as an async context manager, which closes the source when the block
    exits even if iteration stopped early.
    """

    def __init__(
        self,
        source: Any,
        encoding: str = DEFAULT_ENCODING,
        strict: bool = False,
        max_line_length: Optional[int] = None,
    ):
        """
        Initialize line stream decoder.

        Args:
            source: ByteSource, asyncio.StreamReader or iterable of bytes
            encoding: Text encoding of the source
            strict: Raise DecodeError on malformed bytes instead of
                substituting U+FFFD
            max_line_length: Maximum length of unterminated text held in
                the buffer (None for no limit)
        """
        try:
            codec = codecs.lookup(encoding)
        except LookupError as e:
            raise ConfigurationError(f"Unknown encoding: {encoding}", cause=e) from e
        if not codec._is_text_encoding:
            raise ConfigurationError(f"Not a text encoding: {encoding}")

        self.source: ByteSource = as_source(source)
        self.encoding = encoding
        self.strict = strict
        self.max_line_length = max_line_length

        self._decoder = codec.incrementaldecoder("strict" if strict else "replace")
        self._pending = ""
        self._start = 0
        self._exhausted = False
        self._closed = False

        # Stats
        self._chunks_read = 0
        self._bytes_read = 0
        self._lines_emitted = 0

        logger.debug(
            "line_stream_opened",
            source=type(self.source).__name__,
            encoding=encoding,
            strict=strict
        )

    @classmethod
    def from_config(cls, source: Any, config: Any) -> "LineStreamDecoder":
        """Create a decoder from a DecoderConfig."""
        return cls(
            source,
            encoding=config.encoding,
            strict=config.strict,
            max_line_length=config.max_line_length,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def stats(self) -> Dict[str, Any]:
        """Get decoding statistics."""
        return {
            "chunks_read": self._chunks_read,
            "bytes_read": self._bytes_read,
            "lines_emitted": self._lines_emitted,
            "exhausted": self._exhausted,
            "closed": self._closed,
        }

    def __aiter__(self) -> "LineStreamDecoder":
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration

        try:
            line = await self._next_line()
        except BaseException:
            await self.aclose()
            raise

        if line is None:
            await self.aclose()
            raise StopAsyncIteration

        self._lines_emitted += 1
        return line

    async def __aenter__(self) -> "LineStreamDecoder":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the byte source. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._pending = ""
        self._start = 0
        try:
            await self.source.close()
        finally:
            logger.debug("line_stream_closed", **self.stats)

    async def _next_line(self) -> Optional[str]:
        """Return the next line, or None once the source is exhausted."""
        while True:
            line = self._scan()
            if line is not None:
                return line

            if self._exhausted:
                remainder = self._pending[self._start:]
                self._pending = ""
                self._start = 0
                return remainder or None

            self._check_line_length()
            await self._fill()

    def _scan(self) -> Optional[str]:
        """Cut the next terminated line out of the buffer, if there is one."""
        end = self._pending.find("\n", self._start)
        if end == -1:
            return None

        line_end = end
        if line_end > self._start and self._pending[line_end - 1] == "\r":
            line_end -= 1

        line = self._pending[self._start:line_end]
        self._start = end + 1
        return line

    async def _fill(self) -> None:
        """Pull one chunk from the source and append its decoded text."""
        try:
            chunk, done = await self.source.read()
        except LineStreamError:
            raise
        except Exception as e:
            logger.error(
                "source_read_failed",
                source=type(self.source).__name__,
                chunks_read=self._chunks_read,
                error=str(e)
            )
            raise SourceReadError(f"Byte source failed: {e}", cause=e) from e

        text = ""
        if chunk:
            self._chunks_read += 1
            self._bytes_read += len(chunk)
            text = self._decode(chunk, final=False)
        if done:
            self._exhausted = True
            text += self._decode(b"", final=True)

        if text:
            self._pending = self._pending[self._start:] + text
            self._start = 0

    def _decode(self, data: bytes, final: bool) -> str:
        try:
            return self._decoder.decode(data, final)
        except UnicodeDecodeError as e:
            # Flushed bytes at end of stream belong to the last chunk
            chunk_index = max(self._chunks_read - 1, 0)
            logger.error(
                "decode_failed",
                encoding=self.encoding,
                chunk_index=chunk_index,
                reason=e.reason
            )
            raise DecodeError(
                encoding=self.encoding,
                chunk_index=chunk_index,
                reason=e.reason,
                cause=e
            ) from e

    def _check_line_length(self) -> None:
        if self.max_line_length is None:
            return
        length = len(self._pending) - self._start
        if length > self.max_line_length:
            logger.warning(
                "line_too_long",
                length=length,
                max_length=self.max_line_length
            )
            raise LineTooLongError(length, self.max_line_length)


def iter_lines(
    source: Any,
    encoding: str = DEFAULT_ENCODING,
    strict: bool = False,
    max_line_length: Optional[int] = None,
) -> LineStreamDecoder:
    """Return a lazy async sequence of the lines in ``source``."""
    return LineStreamDecoder(
        source,
        encoding=encoding,
        strict=strict,
        max_line_length=max_line_length,
    )


__all__ = [
    'LineStreamDecoder',
    'iter_lines',
    'DEFAULT_ENCODING',
]
