"""SQLAlchemy implementation for asset rows and their capacity bookkeeping."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Sequence

from sqlalchemy import delete, desc, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from assetvault.db.models import Account, Asset


def _missing(column):
    return or_(column.is_(None), column == "")


class SqlAssetRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_with_capacity(self, **fields: Any) -> Asset:
        """Insert the asset row and bump the owner's ledger in the same transaction."""
        asset = Asset(**fields)
        self.session.add(asset)
        await self.session.flush()
        await self._adjust_capacity(asset.owner_id, int(asset.size))
        await self.session.refresh(asset)
        return asset

    async def get_by_id(self, asset_id: str) -> Asset | None:
        stmt = (
            select(Asset)
            .options(selectinload(Asset.owner), selectinload(Asset.strategy))
            .execution_options(populate_existing=True)
            .where(Asset.id == asset_id)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_owned(self, owner_id: str, asset_id: str) -> Asset | None:
        stmt = (
            select(Asset)
            .options(selectinload(Asset.owner), selectinload(Asset.strategy))
            .execution_options(populate_existing=True)
            .where(Asset.id == asset_id, Asset.owner_id == owner_id)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_key(self, key: str) -> Asset | None:
        stmt = (
            select(Asset)
            .options(selectinload(Asset.owner), selectinload(Asset.strategy))
            .execution_options(populate_existing=True)
            .where(Asset.key == key)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_relative_path(self, relative_path: str) -> Asset | None:
        stmt = select(Asset).where(Asset.relative_path == relative_path)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def find_legacy_by_path_suffix(self, relative_path: str) -> Asset | None:
        unix_suffix = "%/" + relative_path
        windows_suffix = "%\\" + relative_path.replace("/", "\\")
        stmt = (
            select(Asset)
            .where(_missing(Asset.relative_path))
            .where(or_(Asset.path.like(unix_suffix), Asset.path.like(windows_suffix)))
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def backfill_relative_path(self, asset_id: str, relative_path: str) -> bool:
        stmt = (
            update(Asset)
            .where(Asset.id == asset_id, _missing(Asset.relative_path))
            .values(relative_path=relative_path)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def freeze_public_url(self, asset_id: str, public_url: str) -> bool:
        stmt = (
            update(Asset)
            .where(Asset.id == asset_id, _missing(Asset.public_url))
            .values(public_url=public_url)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def get_public_url(self, asset_id: str) -> str:
        stmt = select(Asset.public_url).where(Asset.id == asset_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() or ""

    async def list_missing_public_url(self, strategy_id: str) -> Sequence[Asset]:
        stmt = select(Asset).where(Asset.strategy_id == strategy_id, _missing(Asset.public_url))
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_by_owner(self, owner_id: str, limit: int, offset: int) -> Sequence[Asset]:
        stmt = (
            select(Asset)
            .options(selectinload(Asset.owner), selectinload(Asset.strategy))
            .execution_options(populate_existing=True)
            .where(Asset.owner_id == owner_id)
            .order_by(desc(Asset.created_at), desc(Asset.id))
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_public(self, limit: int, offset: int) -> Sequence[Asset]:
        stmt = (
            select(Asset)
            .options(selectinload(Asset.owner), selectinload(Asset.strategy))
            .execution_options(populate_existing=True)
            .where(Asset.visibility == "public")
            .order_by(desc(Asset.created_at), desc(Asset.id))
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def delete_owned(self, owner_id: str, asset_id: str) -> Asset | None:
        asset = await self.get_owned(owner_id, asset_id)
        if asset is None:
            return None
        await self._delete_rows([asset])
        return asset

    async def delete_owned_batch(self, owner_id: str, asset_ids: Sequence[str]) -> Sequence[Asset]:
        stmt = select(Asset).where(Asset.owner_id == owner_id, Asset.id.in_(asset_ids))
        result = await self.session.execute(stmt)
        assets = result.scalars().all()
        await self._delete_rows(assets)
        return assets

    async def delete_any(self, asset_id: str) -> Asset | None:
        asset = await self.get_by_id(asset_id)
        if asset is None:
            return None
        await self._delete_rows([asset])
        return asset

    async def delete_any_batch(self, asset_ids: Sequence[str]) -> Sequence[Asset]:
        stmt = select(Asset).where(Asset.id.in_(asset_ids))
        result = await self.session.execute(stmt)
        assets = result.scalars().all()
        await self._delete_rows(assets)
        return assets

    async def update_visibility(self, asset_ids: Sequence[str], visibility: str, owner_id: str | None = None) -> int:
        stmt = update(Asset).where(Asset.id.in_(asset_ids))
        if owner_id is not None:
            stmt = stmt.where(Asset.owner_id == owner_id)
        stmt = stmt.values(visibility=visibility).execution_options(synchronize_session=False)
        result = await self.session.execute(stmt)
        return result.rowcount

    async def _delete_rows(self, assets: Sequence[Asset]) -> None:
        if not assets:
            return
        released: dict[str, int] = defaultdict(int)
        for asset in assets:
            released[asset.owner_id] += int(asset.size)
        stmt = (
            delete(Asset)
            .where(Asset.id.in_([asset.id for asset in assets]))
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        for owner_id, total in released.items():
            await self._adjust_capacity(owner_id, -total)

    async def _adjust_capacity(self, owner_id: str, delta: int) -> None:
        stmt = (
            update(Account)
            .where(Account.id == owner_id)
            .values(used_capacity=Account.used_capacity + delta)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
