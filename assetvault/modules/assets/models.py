"""Domain models for stored assets."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class Asset:
    id: str
    owner_id: str
    group_id: Optional[str]
    strategy_id: Optional[str]
    key: str
    path: str
    relative_path: str
    name: str
    original_name: Optional[str]
    size: int
    mime_type: Optional[str]
    extension: Optional[str]
    checksum_md5: Optional[str]
    checksum_sha1: Optional[str]
    visibility: str
    storage_provider: str
    public_url: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(slots=True)
class UploadOptions:
    visibility: Optional[str] = None
    strategy_id: Optional[str] = None


@dataclass(slots=True)
class AssetView:
    id: str
    key: str
    name: str
    original_name: Optional[str]
    size: int
    mime_type: Optional[str]
    extension: Optional[str]
    visibility: str
    storage: str
    strategy_id: Optional[str]
    strategy_name: Optional[str]
    relative_path: str
    view_url: str
    direct_url: str
    markdown: str
    html: str
    owner_id: str
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None
    created_at: Optional[datetime] = None
