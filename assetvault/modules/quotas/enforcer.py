"""Group quota and rate gate applied before any bytes hit storage."""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Awaitable, Callable

from .exceptions import CapacityExceededError, FileTooLargeError, UploadRateLimitedError
from .limiter import RateLimiter
from .models import GroupQuota

logger = logging.getLogger(__name__)


class CapacityLocks:
    """Per-owner asyncio locks serialising capacity check and commit within one process."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def lock_for(self, owner_id: str) -> asyncio.Lock:
        lock = self._locks.get(owner_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[owner_id] = lock
        return lock


class QuotaEnforcer:
    def __init__(self, limiter: RateLimiter) -> None:
        self._limiter = limiter

    def check_file_size(self, size: int, quota: GroupQuota) -> None:
        if quota.max_file_size > 0 and size > quota.max_file_size:
            raise FileTooLargeError(size, quota.max_file_size)

    async def check_capacity(
        self,
        owner_id: str,
        size: int,
        quota: GroupQuota,
        read_used: Callable[[str], Awaitable[int]],
    ) -> None:
        if quota.max_capacity <= 0:
            return
        used = await read_used(owner_id)
        if used + size > quota.max_capacity:
            raise CapacityExceededError(used, size, quota.max_capacity)

    def check_rate(self, owner_id: str, quota: GroupQuota) -> None:
        if not quota.rate.enabled:
            return
        allowed, retry_after = self._limiter.allow(owner_id, quota.rate)
        if not allowed:
            logger.info("用户 %s 上传频率超限，需等待 %.1f 秒", owner_id, retry_after)
            raise UploadRateLimitedError(retry_after)

    async def enforce(
        self,
        owner_id: str,
        size: int,
        quota: GroupQuota,
        read_used: Callable[[str], Awaitable[int]],
    ) -> None:
        """Size and capacity first so refused uploads do not consume a rate slot."""
        if quota.unlimited:
            return
        self.check_file_size(size, quota)
        await self.check_capacity(owner_id, size, quota, read_used)
        self.check_rate(owner_id, quota)
