"""Asset domain exports."""

from .exceptions import (
    AssetError,
    AssetNotFoundError,
    PersistenceError,
    StorageIOError,
    UploadValidationError,
)
from .models import Asset, AssetView, UploadOptions
from .service import AssetService

__all__ = [
    "Asset",
    "AssetError",
    "AssetNotFoundError",
    "AssetService",
    "AssetView",
    "PersistenceError",
    "StorageIOError",
    "UploadOptions",
    "UploadValidationError",
]
