"""Public URL derivation for stored assets."""

from __future__ import annotations

import posixpath
import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from assetvault.modules.strategies.models import StrategyDescriptor

from .paths import sanitize_relative_path

_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


def join_public_url(base: str, relative: str) -> str:
    trimmed_base = base.strip().rstrip("/")
    trimmed_rel = relative.strip().lstrip("/")
    if not trimmed_rel:
        return trimmed_base
    if not trimmed_base:
        return "/" + trimmed_rel
    return f"{trimmed_base}/{trimmed_rel}"


def append_query(url: str, query: str) -> str:
    clean = query.strip().lstrip("&?")
    if not clean:
        return url
    if "?" in url:
        if url.endswith(("?", "&")):
            return url + clean
        return f"{url}&{clean}"
    return f"{url}?{clean}"


def sanitize_url(raw: str | None) -> str:
    """Drop a ``token`` query parameter from a stored URL, leaving everything else intact."""
    trimmed = (raw or "").strip()
    if not trimmed:
        return ""
    try:
        parts = urlsplit(trimmed)
    except ValueError:
        index = trimmed.lower().find("?token=")
        return trimmed[:index] if index >= 0 else trimmed
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    if not any(key == "token" for key, _ in pairs):
        return trimmed
    remaining = [(key, value) for key, value in pairs if key != "token"]
    return urlunsplit(parts._replace(query=urlencode(remaining)))


def _is_absolute(path: str) -> bool:
    return path.startswith(("/", "\\")) or bool(_DRIVE_PREFIX.match(path))


def trim_relative_from_root(full_path: str, root: str) -> str:
    """Path of ``full_path`` below ``root``, or an empty string when it is not under it."""
    full_path = full_path.strip().replace("\\", "/")
    root = root.strip().replace("\\", "/")
    if not full_path or not root:
        return ""
    normalized_full = posixpath.normpath(full_path)
    normalized_root = posixpath.normpath(root).rstrip("/")
    if not normalized_root or normalized_root == ".":
        return ""
    if normalized_full.startswith(normalized_root + "/"):
        return sanitize_relative_path(normalized_full[len(normalized_root):])
    return ""


def derive_relative_path(*, relative_path: str | None, path: str | None, name: str | None, root: str) -> str:
    """Relative path used for URL construction.

    Priority: stored relative path, path under the strategy root, the recorded
    path when it is already relative, then the bare file name.
    """
    stored = sanitize_relative_path((relative_path or "").strip())
    if stored:
        return stored
    recorded = (path or "").strip()
    trimmed = trim_relative_from_root(recorded, root)
    if trimmed:
        return trimmed
    if recorded and not _is_absolute(recorded):
        candidate = sanitize_relative_path(recorded)
        if candidate:
            return candidate
    return (name or "").lstrip("/")


def build_public_url(
    descriptor: StrategyDescriptor,
    *,
    relative_path: str | None,
    path: str | None,
    name: str | None,
) -> str:
    """Compose base URL, relative path and static query; empty when the strategy has no base."""
    base = descriptor.base_url.strip()
    if not base:
        return ""
    relative = derive_relative_path(relative_path=relative_path, path=path, name=name, root=descriptor.root)
    public_url = join_public_url(base, relative)
    if descriptor.query:
        public_url = append_query(public_url, descriptor.query)
    return public_url
