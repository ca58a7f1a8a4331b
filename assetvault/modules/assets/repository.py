"""Repository protocol for asset persistence."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from assetvault.db.models import Asset as AssetModel


class AssetRepository(Protocol):
    async def create_with_capacity(self, **fields: Any) -> AssetModel:
        ...

    async def get_by_id(self, asset_id: str) -> AssetModel | None:
        ...

    async def get_owned(self, owner_id: str, asset_id: str) -> AssetModel | None:
        ...

    async def get_by_key(self, key: str) -> AssetModel | None:
        ...

    async def get_by_relative_path(self, relative_path: str) -> AssetModel | None:
        ...

    async def find_legacy_by_path_suffix(self, relative_path: str) -> AssetModel | None:
        ...

    async def backfill_relative_path(self, asset_id: str, relative_path: str) -> bool:
        ...

    async def freeze_public_url(self, asset_id: str, public_url: str) -> bool:
        ...

    async def get_public_url(self, asset_id: str) -> str:
        ...

    async def list_missing_public_url(self, strategy_id: str) -> Sequence[AssetModel]:
        ...

    async def list_by_owner(self, owner_id: str, limit: int, offset: int) -> Sequence[AssetModel]:
        ...

    async def list_public(self, limit: int, offset: int) -> Sequence[AssetModel]:
        ...

    async def delete_owned(self, owner_id: str, asset_id: str) -> AssetModel | None:
        ...

    async def delete_owned_batch(self, owner_id: str, asset_ids: Sequence[str]) -> Sequence[AssetModel]:
        ...

    async def delete_any(self, asset_id: str) -> AssetModel | None:
        ...

    async def delete_any_batch(self, asset_ids: Sequence[str]) -> Sequence[AssetModel]:
        ...

    async def update_visibility(self, asset_ids: Sequence[str], visibility: str, owner_id: str | None = None) -> int:
        ...
