"""Quota configuration carried by user groups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

MAX_FILE_SIZE_KEY = "max_file_size"
MAX_CAPACITY_KEY = "max_capacity"
RATE_MINUTE_KEY = "upload_rate_minute"
RATE_HOUR_KEY = "upload_rate_hour"


def int_from_any(value: Any) -> int:
    """Coerce int, float or numeric string group settings; anything else is 0 (disabled)."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return 0
    return 0


@dataclass(frozen=True, slots=True)
class RateWindow:
    per_minute: int = 0
    per_hour: int = 0

    @property
    def enabled(self) -> bool:
        return self.per_minute > 0 or self.per_hour > 0


@dataclass(frozen=True, slots=True)
class GroupQuota:
    max_file_size: int = 0
    max_capacity: int = 0
    rate: RateWindow = RateWindow()

    @classmethod
    def from_configs(cls, configs: Mapping[str, Any] | None) -> "GroupQuota":
        configs = configs or {}
        return cls(
            max_file_size=max(0, int_from_any(configs.get(MAX_FILE_SIZE_KEY))),
            max_capacity=max(0, int_from_any(configs.get(MAX_CAPACITY_KEY))),
            rate=RateWindow(
                per_minute=max(0, int_from_any(configs.get(RATE_MINUTE_KEY))),
                per_hour=max(0, int_from_any(configs.get(RATE_HOUR_KEY))),
            ),
        )

    @property
    def unlimited(self) -> bool:
        return not (self.max_file_size or self.max_capacity or self.rate.enabled)
