"""Domain models for accounts, groups and per-user preferences."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

VISIBILITY_PUBLIC = "public"
VISIBILITY_PRIVATE = "private"

DEFAULT_VISIBILITY_KEY = "default_visibility"
DEFAULT_STRATEGY_KEY = "default_strategy"


def normalize_visibility(value: str | None) -> str:
    if (value or "").strip().lower() == VISIBILITY_PUBLIC:
        return VISIBILITY_PUBLIC
    return VISIBILITY_PRIVATE


def load_configs(raw: str | bytes | None) -> dict[str, Any]:
    """Decode a stored JSON configuration blob; anything unreadable is an empty mapping."""
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return payload if isinstance(payload, dict) else {}


@dataclass(slots=True)
class Group:
    id: str
    name: str
    configs: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class UserAccount:
    id: str
    name: str
    group_id: Optional[str] = None
    email: Optional[str] = None
    used_capacity: int = 0
    configs: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None

    def default_visibility(self) -> str:
        value = self.configs.get(DEFAULT_VISIBILITY_KEY)
        if isinstance(value, str):
            return normalize_visibility(value)
        return VISIBILITY_PRIVATE

    def default_strategy_id(self) -> Optional[str]:
        value = self.configs.get(DEFAULT_STRATEGY_KEY)
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (int, float)):
            return str(int(value)) if value > 0 else None
        text = str(value).strip()
        return text or None
