"""Quota and rate limit exports."""

from .enforcer import CapacityLocks, QuotaEnforcer
from .exceptions import (
    CapacityExceededError,
    FileTooLargeError,
    QuotaExceededError,
    UploadRateLimitedError,
)
from .limiter import InMemoryRateLimiter, RateLimiter
from .models import GroupQuota, RateWindow

__all__ = [
    "CapacityExceededError",
    "CapacityLocks",
    "FileTooLargeError",
    "GroupQuota",
    "InMemoryRateLimiter",
    "QuotaEnforcer",
    "QuotaExceededError",
    "RateLimiter",
    "RateWindow",
    "UploadRateLimitedError",
]
