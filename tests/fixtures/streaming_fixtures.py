"""
Byte stream test fixtures.
"""

import asyncio
import re
from itertools import combinations, zip_longest
from typing import Iterator, List, Optional, Sequence, Tuple

from linestream.streaming.sources import ReadResult


class RecordingSource:
    """Mock byte source that records reads and close calls."""

    def __init__(
        self,
        chunks: Sequence[bytes],
        fail_at: Optional[int] = None,
        error: Optional[Exception] = None,
        final_chunk_done: bool = False,
        delay: float = 0.0,
    ):
        self.chunks = list(chunks)
        self.fail_at = fail_at
        self.error = error or ConnectionResetError("connection reset by peer")
        self.final_chunk_done = final_chunk_done
        self.delay = delay

        self.reads = 0
        self.close_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    async def read(self) -> ReadResult:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            index = self.reads
            self.reads += 1

            if self.fail_at is not None and index == self.fail_at:
                raise self.error
            if index >= len(self.chunks):
                return ReadResult(b"", True)

            done = self.final_chunk_done and index == len(self.chunks) - 1
            return ReadResult(self.chunks[index], done)
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        self.close_calls += 1


class StallingSource(RecordingSource):
    """Byte source whose reads never complete after the given chunks."""

    def __init__(self, chunks: Sequence[bytes] = ()):
        super().__init__(chunks)
        self.stalled = asyncio.Event()

    async def read(self) -> ReadResult:
        if self.reads < len(self.chunks):
            return await super().read()
        self.stalled.set()
        await asyncio.Event().wait()
        raise AssertionError("unreachable")


class StreamingFixtures:
    """Sample inputs and chunking helpers."""

    # (text, expected lines)
    SAMPLES: List[Tuple[str, List[str]]] = [
        ("a\nb\n", ["a", "b"]),
        ("a\nb", ["a", "b"]),
        ("a\r\nb\r\n", ["a", "b"]),
        ("\n\n", ["", ""]),
        ("x\r\r\ny", ["x\r", "y"]),
        ("mixed\nend\r\nings", ["mixed", "end", "ings"]),
        ("héllo\r\nwörld\n€5\n", ["héllo", "wörld", "€5"]),
        ("日本語\n\U0001f389 ok", ["日本語", "\U0001f389 ok"]),
        ("no terminator", ["no terminator"]),
    ]

    @staticmethod
    def split_at(data: bytes, points: Sequence[int]) -> List[bytes]:
        """Split data at the given offsets (duplicates give empty chunks)."""
        bounds = [0, *points, len(data)]
        return [data[start:end] for start, end in zip(bounds, bounds[1:])]

    @staticmethod
    def all_splits(data: bytes, pieces: int) -> Iterator[List[bytes]]:
        """Every way of cutting data into the given number of pieces."""
        offsets = range(len(data) + 1)
        for points in combinations(offsets, pieces - 1):
            yield StreamingFixtures.split_at(data, points)

    @staticmethod
    def byte_by_byte(data: bytes) -> List[bytes]:
        return [data[i:i + 1] for i in range(len(data))]

    @staticmethod
    def rejoin(lines: List[str], text: str) -> str:
        """Join lines back with LF, matching text's final terminator."""
        joined = "\n".join(lines)
        if text.endswith("\n"):
            joined += "\n"
        return joined

    @staticmethod
    def restore(lines: List[str], text: str) -> str:
        """Join lines back with the terminators text actually used."""
        terminators = re.findall(r"\r?\n", text)
        return "".join(
            line + terminator
            for line, terminator in zip_longest(lines, terminators, fillvalue="")
        )


async def collect(lines) -> List[str]:
    """Drain an async line sequence into a list."""
    return [line async for line in lines]
