"""Byte stream adapters for the ingestion pipeline.

``PeekedStream`` reads a fixed prefix for content sniffing and then replays it
ahead of the untouched remainder, so the writer sees the payload exactly once
without buffering more than the prefix.
"""

from __future__ import annotations

import inspect
import io
from typing import AsyncIterator, BinaryIO, Protocol, Union


class ByteStream(Protocol):
    async def read(self, size: int = -1) -> bytes:
        ...


class SyncByteStream:
    """Async facade over a blocking file object (local files, ``BytesIO``)."""

    def __init__(self, handle: BinaryIO) -> None:
        self._handle = handle

    async def read(self, size: int = -1) -> bytes:
        return self._handle.read(size)


StreamSource = Union[bytes, bytearray, memoryview, BinaryIO, ByteStream]


def as_byte_stream(source: StreamSource) -> ByteStream:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return SyncByteStream(io.BytesIO(bytes(source)))
    read = getattr(source, "read", None)
    if read is None:
        raise TypeError(f"不支持的上传数据源: {type(source).__name__}")
    if inspect.iscoroutinefunction(read):
        return source  # type: ignore[return-value]
    return SyncByteStream(source)  # type: ignore[arg-type]


class PeekedStream:
    def __init__(self, head: bytes, rest: ByteStream) -> None:
        self._head = head
        self._offset = 0
        self._rest = rest

    @classmethod
    async def open(cls, source: StreamSource, peek_size: int) -> "PeekedStream":
        stream = as_byte_stream(source)
        buffer = bytearray()
        while len(buffer) < peek_size:
            chunk = await stream.read(peek_size - len(buffer))
            if not chunk:
                break
            buffer.extend(chunk)
        return cls(bytes(buffer), stream)

    @property
    def head(self) -> bytes:
        return self._head

    async def read(self, size: int = -1) -> bytes:
        if self._offset < len(self._head):
            if size is None or size < 0:
                pending = self._head[self._offset:]
                self._offset = len(self._head)
                return pending + await self._rest.read(-1)
            end = min(len(self._head), self._offset + size)
            pending = self._head[self._offset:end]
            self._offset = end
            return pending
        return await self._rest.read(size)

    async def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        while True:
            chunk = await self.read(chunk_size)
            if not chunk:
                break
            yield chunk
