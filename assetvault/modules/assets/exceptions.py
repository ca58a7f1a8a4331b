"""Asset domain specific exceptions."""


class AssetError(Exception):
    """Base class for asset domain errors."""


class UploadValidationError(AssetError):
    """Raised when the payload's media type, extension or body is not acceptable."""


class StorageIOError(AssetError):
    """Raised when the destination cannot be created or written."""


class PersistenceError(AssetError):
    """Raised when the asset row cannot be committed after a successful write."""


class AssetNotFoundError(AssetError):
    """Raised when an asset does not exist or is not owned by the caller."""
