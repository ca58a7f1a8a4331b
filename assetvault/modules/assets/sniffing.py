"""Content sniffing and the upload media allow-list.

Only the first ``SNIFF_LENGTH`` bytes are handed to libmagic, so the declared
filename and client-supplied content type never decide what is stored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import magic

from assetvault.modules.strategies.models import StrategyDescriptor

from .exceptions import UploadValidationError
from .paths import split_original_name

logger = logging.getLogger(__name__)

SNIFF_LENGTH = 512

OCTET_STREAM = "application/octet-stream"
SVG = "image/svg+xml"

ALLOWED_IMAGE_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/bmp",
        "image/tiff",
        "image/avif",
        "image/x-icon",
    }
)
ALLOWED_VIDEO_TYPES = frozenset(
    {
        "video/mp4",
        "video/webm",
        "video/ogg",
        "video/quicktime",
        "video/x-msvideo",
        "video/x-matroska",
        "video/mpeg",
    }
)
BLOCKED_TYPES = frozenset({SVG})

# libmagic names differ between releases; fold them onto the allow-list spelling
MEDIA_TYPE_ALIASES = {
    "image/vnd.microsoft.icon": "image/x-icon",
    "image/x-ms-bmp": "image/bmp",
    "image/x-bmp": "image/bmp",
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "video/x-m4v": "video/mp4",
    "video/avi": "video/x-msvideo",
    "video/msvideo": "video/x-msvideo",
    "video/matroska": "video/x-matroska",
    "video/mp2p": "video/mpeg",
    "video/mp2t": "video/mpeg",
}


def normalize_content_type(value: str | None) -> str:
    trimmed = (value or "").strip()
    if not trimmed:
        return ""
    media_type = trimmed.split(";", 1)[0].strip().lower()
    return MEDIA_TYPE_ALIASES.get(media_type, media_type)


def file_extension(filename: str | None) -> str:
    """Lower-cased text after the last dot of the base name; ``.png`` yields ``png``."""
    return split_original_name(filename or "")[1]


def sniff_media_type(head: bytes) -> str:
    """Media type of a payload prefix as reported by libmagic; empty input yields an empty string."""
    if not head:
        return ""
    try:
        detected = magic.from_buffer(head[:SNIFF_LENGTH], mime=True)
    except magic.MagicException as exc:
        logger.warning("libmagic 无法识别上传内容: %s", exc)
        return OCTET_STREAM
    return normalize_content_type(detected) or OCTET_STREAM


def is_allowed_media_type(media_type: str) -> bool:
    if not media_type or media_type in BLOCKED_TYPES:
        return False
    return media_type in ALLOWED_IMAGE_TYPES or media_type in ALLOWED_VIDEO_TYPES


@dataclass(frozen=True, slots=True)
class ContentCheck:
    mime_type: str
    extension: str


class ContentValidator:
    """Validates the sniffed header and the declared filename before any write."""

    def validate(self, head: bytes, original_name: str, descriptor: StrategyDescriptor) -> ContentCheck:
        if not head:
            raise UploadValidationError("上传的文件为空")
        media_type = sniff_media_type(head)
        if not is_allowed_media_type(media_type):
            raise UploadValidationError(f"不支持的文件类型: {media_type or OCTET_STREAM}")
        extension = file_extension(original_name)
        if descriptor.allowed_extensions and not descriptor.extension_allowed(extension):
            raise UploadValidationError(f"不允许的文件后缀: {extension}")
        return ContentCheck(mime_type=media_type, extension=extension)
