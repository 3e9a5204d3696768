"""
Body sources: the read interfaces the decoder consumes, plus adapters that
turn chunk iterators (such as ``iter_bytes()`` style APIs) into them.
"""

from __future__ import annotations

from collections import deque
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from typing import Protocol, runtime_checkable


@runtime_checkable
class SupportsRead(Protocol):
    def read(self, size: int = -1, /) -> bytes: ...


@runtime_checkable
class SupportsAsyncRead(Protocol):
    async def read(self, size: int = -1, /) -> bytes: ...


class _ChunkBuffer:
    """FIFO of byte chunks that can be drained by size without re-copying everything."""

    def __init__(self) -> None:
        self._chunks: deque[bytes] = deque()
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def put(self, data: bytes) -> None:
        if data:
            self._chunks.append(data)
            self._size += len(data)

    def get(self, size: int) -> bytes:
        if size < 0 or size >= self._size:
            data = b"".join(self._chunks)
            self._chunks.clear()
            self._size = 0
            return data

        out = bytearray()
        while len(out) < size:
            chunk = self._chunks.popleft()
            wanted = size - len(out)
            if len(chunk) > wanted:
                self._chunks.appendleft(chunk[wanted:])
                chunk = chunk[:wanted]
            out += chunk
        self._size -= size
        return bytes(out)


class IterableReader:
    """
    Expose an iterable of byte chunks through ``read(n)``.

    ``read()`` with no argument (or a negative size) drains the rest of the
    iterable. Once the iterable is exhausted every read returns ``b""``.
    """

    def __init__(self, chunks: Iterable[bytes]) -> None:
        self._iterator: Iterator[bytes] = iter(chunks)
        self._buffer = _ChunkBuffer()
        self._exhausted = False

    def _fill(self, size: int) -> None:
        while not self._exhausted and (size < 0 or len(self._buffer) < size):
            try:
                self._buffer.put(next(self._iterator))
            except StopIteration:
                self._exhausted = True

    def read(self, size: int = -1) -> bytes:
        if size == 0:
            return b""
        if size > 0 and len(self._buffer) == 0:
            self._fill(1)
        elif size < 0:
            self._fill(-1)
        return self._buffer.get(size)


class AsyncIterableReader:
    """Async counterpart of ``IterableReader`` over an async iterable of chunks."""

    def __init__(self, chunks: AsyncIterable[bytes]) -> None:
        self._iterator: AsyncIterator[bytes] = chunks.__aiter__()
        self._buffer = _ChunkBuffer()
        self._exhausted = False

    async def _fill(self, size: int) -> None:
        while not self._exhausted and (size < 0 or len(self._buffer) < size):
            try:
                self._buffer.put(await self._iterator.__anext__())
            except StopAsyncIteration:
                self._exhausted = True

    async def read(self, size: int = -1) -> bytes:
        if size == 0:
            return b""
        if size > 0 and len(self._buffer) == 0:
            await self._fill(1)
        elif size < 0:
            await self._fill(-1)
        return self._buffer.get(size)
