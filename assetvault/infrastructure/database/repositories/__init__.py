"""SQLAlchemy-backed repository implementations."""

from .account_repository import SqlAccountRepository
from .asset_repository import SqlAssetRepository
from .strategy_repository import SqlStrategyRepository

__all__ = [
    "SqlAccountRepository",
    "SqlAssetRepository",
    "SqlStrategyRepository",
]
