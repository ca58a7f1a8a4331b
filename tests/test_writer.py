"""Tests for the streaming writer and peeked streams."""

import hashlib
import io

import pytest

from assetvault.modules.assets.exceptions import StorageIOError
from assetvault.modules.assets.streams import PeekedStream
from assetvault.modules.assets.writer import IngestionWriter, remove_file
from assetvault.modules.quotas import FileTooLargeError

from .payloads import png_bytes


class AsyncReader:
    """Async ``read`` source that hands out data in small pieces."""

    def __init__(self, data: bytes, piece: int = 7) -> None:
        self._buffer = io.BytesIO(data)
        self._piece = piece

    async def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            size = self._piece
        return self._buffer.read(min(size, self._piece))


async def test_peeked_stream_replays_head_before_rest():
    data = bytes(range(256)) * 4
    stream = await PeekedStream.open(AsyncReader(data), 512)

    assert stream.head == data[:512]
    chunks = [chunk async for chunk in stream.iter_chunks(100)]
    assert b"".join(chunks) == data


async def test_peeked_stream_short_payload():
    stream = await PeekedStream.open(b"abc", 512)

    assert stream.head == b"abc"
    assert await stream.read() == b"abc"
    assert await stream.read(10) == b""


async def test_write_hashes_in_one_pass(tmp_path):
    data = png_bytes(5000)
    stream = await PeekedStream.open(io.BytesIO(data), 512)

    result = await IngestionWriter(chunk_size=1024).write(tmp_path / "a" / "b" / "x.png", stream)

    assert result.size == len(data)
    assert result.checksum_md5 == hashlib.md5(data).hexdigest()
    assert result.checksum_sha1 == hashlib.sha1(data).hexdigest()
    assert (tmp_path / "a" / "b" / "x.png").read_bytes() == data


async def test_write_over_limit_removes_partial_file(tmp_path):
    destination = tmp_path / "big.png"
    stream = await PeekedStream.open(png_bytes(4096), 512)

    with pytest.raises(FileTooLargeError) as excinfo:
        await IngestionWriter(chunk_size=1024).write(destination, stream, max_bytes=2000)

    assert excinfo.value.limit == 2000
    assert not destination.exists()


async def test_write_never_replaces_existing_file(tmp_path):
    destination = tmp_path / "taken.png"
    destination.write_bytes(b"original")
    stream = await PeekedStream.open(png_bytes(), 512)

    with pytest.raises(StorageIOError):
        await IngestionWriter().write(destination, stream)

    assert destination.read_bytes() == b"original"


def test_remove_file_tolerates_missing_path(tmp_path):
    assert remove_file(tmp_path / "missing.png")
