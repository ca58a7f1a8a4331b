"""Expand storage path patterns into relative, forward-slash object paths."""

from __future__ import annotations

import random
import re
from datetime import datetime
from pathlib import PurePosixPath

from assetvault.core.config import DEFAULT_PATH_PATTERN

EXT_TOKEN = "{ext}"
RAND_TOKEN = re.compile(r"\{rand(\d{1,3})\}")
DEFAULT_RANDOM_DIGITS = 6


def sanitize_path_component(value: str | None) -> str:
    """User-controlled text must never introduce a directory level."""
    clean = (value or "").strip()
    return clean.replace("/", "-").replace("\\", "-")


def sanitize_relative_path(value: str | None) -> str:
    if not value:
        return ""
    clean = value.replace("\\", "/").replace("..", "")
    return clean.strip("/")


def split_original_name(original_name: str) -> tuple[str, str]:
    """Return ``(basename_without_extension, lower_extension)`` of an uploaded filename.

    The extension is whatever follows the last dot, so a bare ``.png`` has an
    empty stem and the extension ``png``.
    """
    name = PurePosixPath(original_name.replace("\\", "/")).name
    stem, dot, ext = name.rpartition(".")
    if not dot:
        return name, ""
    return stem, ext.lower()


def random_digits(length: int, rng: random.Random) -> str:
    if length <= 0:
        length = DEFAULT_RANDOM_DIGITS
    return "".join(str(rng.randrange(10)) for _ in range(length))


class PathTemplate:
    """A strategy's path pattern, e.g. ``{year}/{month}/{day}/{uuid}``.

    Supported tokens: ``{year}`` ``{month}`` ``{day}`` ``{hour}`` ``{minute}``
    ``{second}`` ``{unix}`` ``{uuid}`` ``{userId}`` ``{userName}`` ``{original}``
    ``{ext}`` and ``{randN}`` (N random digits, drawn fresh per occurrence).
    """

    def __init__(self, pattern: str, rng: random.Random | None = None) -> None:
        self.pattern = pattern.strip() or DEFAULT_PATH_PATTERN
        self._rng = rng or random.Random()

    def render(
        self,
        *,
        key: str,
        now: datetime,
        user_id: str,
        user_name: str,
        original_name: str,
    ) -> str:
        stem, ext = split_original_name(original_name)
        replacements = {
            "{year}": f"{now.year:04d}",
            "{month}": f"{now.month:02d}",
            "{day}": f"{now.day:02d}",
            "{hour}": f"{now.hour:02d}",
            "{minute}": f"{now.minute:02d}",
            "{second}": f"{now.second:02d}",
            "{unix}": str(int(now.timestamp())),
            "{uuid}": key,
            "{userId}": sanitize_path_component(str(user_id)),
            "{userName}": sanitize_path_component(user_name),
            "{original}": sanitize_path_component(stem),
            EXT_TOKEN: ext,
        }
        result = self.pattern
        for token, value in replacements.items():
            result = result.replace(token, value)
        result = RAND_TOKEN.sub(lambda match: random_digits(int(match.group(1)), self._rng), result)

        result = sanitize_relative_path(result)
        if not result:
            result = key
        if ext and EXT_TOKEN not in self.pattern:
            if not result.lower().endswith("." + ext):
                result = f"{result}.{ext}"
        return result
