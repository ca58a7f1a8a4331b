"""Stream an upload to disk while hashing it in the same pass."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path

from assetvault.modules.quotas.exceptions import FileTooLargeError

from .exceptions import StorageIOError
from .streams import PeekedStream

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True, slots=True)
class WriteResult:
    path: Path
    size: int
    checksum_md5: str
    checksum_sha1: str


def remove_file(path: str | Path) -> bool:
    """Best-effort unlink; a file that is already gone is not an error."""
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("删除文件 %s 失败: %s", path, exc)
        return False
    return True


class IngestionWriter:
    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._chunk_size = chunk_size

    async def write(
        self,
        destination: Path,
        stream: PeekedStream,
        *,
        max_bytes: int | None = None,
    ) -> WriteResult:
        """Write ``stream`` to a new file at ``destination``.

        The file is opened exclusively, so an existing object is never replaced.
        If the stream outgrows ``max_bytes`` or any write fails, the partial file
        is removed before the error propagates.
        """
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            handle = destination.open("xb")
        except OSError as exc:
            logger.error("无法创建目标文件 %s: %s", destination, exc)
            raise StorageIOError(f"无法创建储存文件: {destination.name}") from exc

        md5_hasher = hashlib.md5(usedforsecurity=False)
        sha1_hasher = hashlib.sha1(usedforsecurity=False)
        total_size = 0
        try:
            with handle:
                async for chunk in stream.iter_chunks(self._chunk_size):
                    total_size += len(chunk)
                    if max_bytes is not None and max_bytes > 0 and total_size > max_bytes:
                        raise FileTooLargeError(total_size, max_bytes)
                    handle.write(chunk)
                    md5_hasher.update(chunk)
                    sha1_hasher.update(chunk)
        except FileTooLargeError:
            remove_file(destination)
            raise
        except OSError as exc:
            logger.error("写入文件 %s 失败: %s", destination, exc)
            remove_file(destination)
            raise StorageIOError(f"写入储存文件失败: {destination.name}") from exc

        return WriteResult(
            path=destination,
            size=total_size,
            checksum_md5=md5_hasher.hexdigest(),
            checksum_sha1=sha1_hasher.hexdigest(),
        )
