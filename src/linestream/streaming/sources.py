"""
Byte sources for linestream.

A byte source exposes a single pull operation, ``read()``, returning the next
chunk plus an end-of-stream flag, and a ``close()`` releasing whatever handle
backs it. This module defines that contract and adapters over:
- async and sync iterables of bytes
- asyncio streams
- local files (aiofiles)
- HTTP response bodies (aiohttp)
"""

import asyncio
import inspect
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from pathlib import Path
from typing import Any, NamedTuple, Optional, Protocol, Union, runtime_checkable

import aiofiles
import aiohttp

from ..utils.logging import get_logger
from ..utils.errors import SourceReadError

logger = get_logger("linestream.sources")

DEFAULT_CHUNK_SIZE = 64 * 1024


class ReadResult(NamedTuple):
    """One pull from a byte source."""
    chunk: bytes
    done: bool


EOF = ReadResult(b"", True)


@runtime_checkable
class ByteSource(Protocol):
    """Pull-based byte source consumed by LineStreamDecoder."""

    async def read(self) -> ReadResult:
        ...

    async def close(self) -> None:
        ...


class IterableSource:
    """Byte source over an async or plain iterable of byte chunks."""

    def __init__(self, chunks: Union[AsyncIterable[bytes], Iterable[bytes]]):
        self._iterator: Union[AsyncIterator[bytes], Iterator[bytes]]
        if isinstance(chunks, AsyncIterable):
            self._iterator = chunks.__aiter__()
            self._is_async = True
        else:
            self._iterator = iter(chunks)
            self._is_async = False
        self._closed = False

    async def read(self) -> ReadResult:
        if self._closed:
            return EOF
        try:
            if self._is_async:
                chunk = await self._iterator.__anext__()  # type: ignore[union-attr]
            else:
                chunk = next(self._iterator)  # type: ignore[arg-type]
        except (StopAsyncIteration, StopIteration):
            return EOF
        return ReadResult(bytes(chunk), False)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._is_async:
            aclose = getattr(self._iterator, "aclose", None)
            if aclose is not None:
                await aclose()
        else:
            close = getattr(self._iterator, "close", None)
            if close is not None:
                close()


class StreamReaderSource:
    """Byte source over an ``asyncio.StreamReader``.

    When a ``StreamWriter`` is given (e.g. from ``asyncio.open_connection``)
    closing the source closes the transport.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        writer: Optional[asyncio.StreamWriter] = None,
    ):
        self.reader = reader
        self.writer = writer
        self.chunk_size = chunk_size
        self._closed = False

    async def read(self) -> ReadResult:
        chunk = await self.reader.read(self.chunk_size)
        if not chunk:
            return EOF
        return ReadResult(chunk, False)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.writer is not None:
            self.writer.close()
            try:
                await self.writer.wait_closed()
            except (ConnectionError, OSError) as e:
                logger.debug("stream_writer_close_failed", error=str(e))


class FileSource:
    """Byte source over a local file, read with aiofiles.

    The file is opened on the first read, so constructing a source for a
    missing file does not fail until iteration starts.
    """

    def __init__(self, path: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.path = Path(path)
        self.chunk_size = chunk_size
        self._file: Any = None
        self._closed = False

    async def read(self) -> ReadResult:
        if self._closed:
            return EOF
        if self._file is None:
            self._file = await aiofiles.open(self.path, "rb")
            logger.debug("file_source_opened", path=str(self.path))
        chunk = await self._file.read(self.chunk_size)
        if not chunk:
            return EOF
        return ReadResult(chunk, False)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._file is not None:
            await self._file.close()
            self._file = None
            logger.debug("file_source_closed", path=str(self.path))


class HTTPSource:
    """Byte source over an aiohttp response body.

    Args:
        response: Response whose body is streamed
        chunk_size: Maximum bytes returned per read
        session: Session to close together with the response, when the
            source owns it
    """

    def __init__(
        self,
        response: aiohttp.ClientResponse,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.response = response
        self.chunk_size = chunk_size
        self._session = session
        self._closed = False

    @property
    def url(self) -> str:
        return str(self.response.url)

    async def read(self) -> ReadResult:
        if self._closed:
            return EOF
        chunk = await self.response.content.read(self.chunk_size)
        if not chunk:
            return EOF
        return ReadResult(chunk, False)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.response.release()
        if self._session is not None:
            await self._session.close()
        logger.debug("http_source_closed", url=self.url)


async def open_url(
    url: str,
    session: Optional[aiohttp.ClientSession] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    timeout: Optional[float] = None,
) -> HTTPSource:
    """
    Issue a GET request and return a source over the response body.

    Args:
        url: Resource to fetch
        session: Session to use; a private one is created (and closed with
            the source) when omitted
        chunk_size: Maximum bytes per read
        timeout: Total request timeout in seconds

    Raises:
        SourceReadError: On connection failure or a non-2xx status
    """
    own_session = session is None
    if session is None:
        session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=timeout)
        )

    try:
        response = await session.get(url)
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        if own_session:
            await session.close()
        logger.error("http_request_failed", url=url, error=str(e))
        raise SourceReadError(f"Request to {url} failed: {e}", cause=e) from e

    if not response.ok:
        status, reason = response.status, response.reason
        response.release()
        if own_session:
            await session.close()
        logger.error("http_response_not_ok", url=url, status=status)
        raise SourceReadError(f"Request to {url} returned {status} {reason}")

    logger.debug("http_source_opened", url=url, status=response.status)
    return HTTPSource(
        response,
        chunk_size=chunk_size,
        session=session if own_session else None,
    )


def open_file(path: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE) -> FileSource:
    """Return a source over a local file."""
    return FileSource(path, chunk_size=chunk_size)


def as_source(obj: Any) -> ByteSource:
    """Coerce a byte source, asyncio stream or iterable of bytes into a ByteSource."""
    if isinstance(obj, ByteSource) and inspect.iscoroutinefunction(getattr(obj, "read")):
        return obj
    if isinstance(obj, asyncio.StreamReader):
        return StreamReaderSource(obj)
    if isinstance(obj, (bytes, bytearray, str)):
        raise TypeError("Expected a byte source or an iterable of byte chunks")
    if isinstance(obj, (AsyncIterable, Iterable)):
        return IterableSource(obj)
    raise TypeError(f"Cannot use {type(obj).__name__} as a byte source")


__all__ = [
    'ByteSource',
    'ReadResult',
    'EOF',
    'IterableSource',
    'StreamReaderSource',
    'FileSource',
    'HTTPSource',
    'open_url',
    'open_file',
    'as_source',
    'DEFAULT_CHUNK_SIZE',
]
