"""Quota and rate limit exceptions."""

from __future__ import annotations

import math


def format_megabytes(size: float) -> str:
    return f"{size / (1024 * 1024):.2f} MB"


class QuotaExceededError(Exception):
    """Base class for uploads refused by group quota or rate limits."""


class FileTooLargeError(QuotaExceededError):
    """Raised when a single upload exceeds the group's ``max_file_size``."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"文件大小 {format_megabytes(size)} 超过限制 {format_megabytes(limit)}")


class CapacityExceededError(QuotaExceededError):
    """Raised when an upload would push the owner past the group's ``max_capacity``."""

    def __init__(self, used: int, incoming: int, limit: int) -> None:
        self.used = used
        self.incoming = incoming
        self.limit = limit
        super().__init__(
            f"容量不足：已使用 {format_megabytes(used)}，上传此文件需要 {format_megabytes(incoming)}，"
            f"容量上限 {format_megabytes(limit)}"
        )


class UploadRateLimitedError(QuotaExceededError):
    """Raised when the per-minute or per-hour upload window is exhausted."""

    def __init__(self, retry_after: float) -> None:
        self.retry_after = max(1, math.ceil(retry_after))
        super().__init__(f"上传过于频繁，请在 {self.retry_after} 秒后重试")
