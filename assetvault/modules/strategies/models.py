"""Domain models for storage strategies.

A strategy record stores an opaque JSON blob. It is parsed into a typed driver
configuration (``LocalDriverConfig`` for the built-in filesystem driver,
``GenericDriverConfig`` for anything else) and resolved against process-wide
defaults into a ``StrategyDescriptor`` each time it is used.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from .exceptions import StrategyMisconfiguredError

LOCAL_DRIVER = "local"
UNIQUE_TOKEN = "{uuid}"

BASE_URL_KEYS = ("url", "base_url", "baseUrl")
PATTERN_KEYS = ("pattern", "path_template")
QUERY_KEYS = ("query", "queries")
EXTENSION_KEYS = ("allowed_extensions", "allowed_exts", "extensions", "allowedExtensions")

_EXTENSION_SPLIT = re.compile(r"[,;\s]+")


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="ignore")
    return ""


def _first_text(payload: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = _text(payload.get(key)).strip()
        if value:
            return value
    return ""


def parse_extensions(value: Any) -> tuple[str, ...]:
    """Normalise an extension list given as a delimited string or a sequence of strings."""
    if isinstance(value, (list, tuple, set, frozenset)):
        raw = ",".join(item for item in value if isinstance(item, str))
    else:
        raw = _text(value)
    seen: dict[str, None] = {}
    for part in _EXTENSION_SPLIT.split(raw.strip()):
        ext = part.strip().lstrip(".").lower()
        if ext:
            seen.setdefault(ext, None)
    return tuple(seen)


class DriverConfig(BaseModel):
    """Fields shared by every driver once synonymous keys are collapsed."""

    model_config = ConfigDict(frozen=True)

    driver: str = LOCAL_DRIVER
    root: str = ""
    base_url: str = ""
    pattern: str = ""
    query: str = ""
    allowed_extensions: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _collapse_synonyms(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        payload = dict(data)
        extensions: tuple[str, ...] = ()
        for key in EXTENSION_KEYS:
            extensions = parse_extensions(payload.get(key))
            if extensions:
                break
        consumed = {"driver", "root", *BASE_URL_KEYS, *PATTERN_KEYS, *QUERY_KEYS, *EXTENSION_KEYS}
        cleaned: dict[str, Any] = {
            key: value for key, value in payload.items() if key not in consumed
        }
        cleaned.update(
            driver=_first_text(payload, "driver") or LOCAL_DRIVER,
            root=_first_text(payload, "root"),
            base_url=_first_text(payload, *BASE_URL_KEYS),
            pattern=_first_text(payload, *PATTERN_KEYS),
            query=_first_text(payload, *QUERY_KEYS),
            allowed_extensions=extensions,
        )
        return cleaned


class LocalDriverConfig(DriverConfig):
    model_config = ConfigDict(frozen=True, extra="ignore")

    driver: Literal["local"] = LOCAL_DRIVER


class GenericDriverConfig(DriverConfig):
    """Unrecognised drivers keep their remaining keys as extra fields."""

    model_config = ConfigDict(frozen=True, extra="allow")

    @property
    def options(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


def decode_config_blob(raw: Any) -> dict[str, Any]:
    if raw is None or raw == "" or raw == b"":
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return payload if isinstance(payload, dict) else {}


def parse_driver_config(raw: Any) -> DriverConfig:
    """Pick the typed variant for a stored configuration blob."""
    payload = decode_config_blob(raw)
    driver = _first_text(payload, "driver").lower()
    if driver in ("", LOCAL_DRIVER):
        payload["driver"] = LOCAL_DRIVER
        return LocalDriverConfig.model_validate(payload)
    return GenericDriverConfig.model_validate(payload)


@dataclass(frozen=True, slots=True)
class StrategyDescriptor:
    driver: str
    root: str
    base_url: str
    pattern: str
    query: str = ""
    allowed_extensions: tuple[str, ...] = ()

    @property
    def is_local(self) -> bool:
        return self.driver == LOCAL_DRIVER

    @property
    def is_functional(self) -> bool:
        return bool(self.root.strip()) and bool(self.base_url.strip())

    def require_functional(self, strategy_id: str | None = None) -> "StrategyDescriptor":
        if not self.is_functional:
            label = strategy_id or "<unsaved>"
            if not self.base_url.strip():
                raise StrategyMisconfiguredError(f"储存策略 {label} 没有配置外部访问域名")
            raise StrategyMisconfiguredError(f"储存策略 {label} 没有配置储存路径")
        return self

    def extension_allowed(self, extension: str) -> bool:
        if not self.allowed_extensions:
            return True
        ext = extension.strip().lstrip(".").lower()
        return bool(ext) and ext in self.allowed_extensions


@dataclass(slots=True)
class Strategy:
    id: str
    key: str
    name: str
    intro: Optional[str] = None
    configs: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(slots=True)
class StrategyInput:
    name: str
    configs: dict[str, Any]
    key: str = LOCAL_DRIVER
    intro: Optional[str] = None
    group_ids: Optional[Iterable[str]] = None
