"""Resolve stored strategy configuration into a usable descriptor."""

from __future__ import annotations

import logging
import posixpath
from typing import Any
from urllib.parse import urlsplit

from assetvault.core.config import DEFAULT_PATH_PATTERN, StrategyDefaults

from .models import (
    UNIQUE_TOKEN,
    DriverConfig,
    StrategyDescriptor,
    parse_driver_config,
)

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_SEGMENT = "uploads"


def derive_base_from_addr(addr: str) -> str:
    """Turn a bind address such as ``:8080`` or ``0.0.0.0:8080`` into an origin."""
    addr = addr.strip() or ":8080"
    lower = addr.lower()
    if lower.startswith(("http://", "https://")):
        return addr
    if addr.startswith(":"):
        return "http://localhost" + addr
    if addr.startswith("//"):
        return "http:" + addr
    return "http://" + addr


def storage_segment(root: str) -> str:
    """Last component of a storage root, used as the URL segment for local files."""
    normalized = root.strip().replace("\\", "/").rstrip("/")
    segment = posixpath.basename(normalized).strip("/")
    if not segment or segment == ".":
        return DEFAULT_STORAGE_SEGMENT
    return segment


class StrategyResolver:
    """Resolves driver configuration against process-wide fallback defaults."""

    def __init__(self, defaults: StrategyDefaults) -> None:
        self._defaults = defaults

    def resolve(self, raw: Any) -> StrategyDescriptor:
        config = raw if isinstance(raw, DriverConfig) else parse_driver_config(raw)
        root = config.root or self._defaults.root.strip()
        pattern = config.pattern
        if UNIQUE_TOKEN not in pattern:
            if pattern:
                logger.debug("路径模板 %s 缺少 %s，使用默认模板", pattern, UNIQUE_TOKEN)
            pattern = self._default_pattern()
        base = self.normalize_base(config.base_url, config.driver, root)
        return StrategyDescriptor(
            driver=config.driver,
            root=root,
            base_url=base,
            pattern=pattern,
            query=config.query.strip(),
            allowed_extensions=config.allowed_extensions,
        )

    def normalize_base(self, base: str, driver: str, root: str) -> str:
        base = base.strip() or self._defaults.public_base_url.strip()
        if not base:
            return ""
        lower = base.lower()
        if lower.startswith(("http://", "https://")):
            base = base.rstrip("/")
        elif base.startswith("//"):
            base = "http:" + base.rstrip("/")
        elif base.startswith("/"):
            segment = base.strip("/") or storage_segment(root or self._defaults.root)
            base = self.default_base_url() + "/" + segment
        else:
            base = "http://" + base.rstrip("/")

        if driver == "local" and urlsplit(base).path.strip("/") == "":
            base = base.rstrip("/") + "/" + storage_segment(root or self._defaults.root)
        return base

    def default_base_url(self) -> str:
        base = self._defaults.public_base_url.strip()
        if not base:
            base = derive_base_from_addr(self._defaults.http_addr)
        if not base.lower().startswith(("http://", "https://")):
            base = "http://" + base.lstrip("/")
        return base.rstrip("/")

    def _default_pattern(self) -> str:
        pattern = self._defaults.default_pattern.strip()
        if UNIQUE_TOKEN not in pattern:
            return DEFAULT_PATH_PATTERN
        return pattern
