"""SQLAlchemy implementation for storage strategy records."""

from __future__ import annotations

from typing import Iterable, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from assetvault.db.models import Asset, GroupStrategy, Strategy


class SqlStrategyRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, strategy_id: str) -> Strategy | None:
        stmt = select(Strategy).where(Strategy.id == strategy_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_all(self) -> Sequence[Strategy]:
        stmt = select(Strategy).order_by(Strategy.created_at.asc(), Strategy.id.asc())
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_for_group(self, group_id: str) -> Sequence[Strategy]:
        stmt = (
            select(Strategy)
            .join(GroupStrategy, GroupStrategy.strategy_id == Strategy.id)
            .where(GroupStrategy.group_id == group_id)
            .order_by(Strategy.created_at.asc(), Strategy.id.asc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def create(
        self,
        *,
        key: str,
        name: str,
        intro: str | None,
        configs: str,
    ) -> Strategy:
        strategy = Strategy(key=key, name=name, intro=intro, configs=configs)
        self.session.add(strategy)
        await self.session.flush()
        await self.session.refresh(strategy)
        return strategy

    async def update(
        self,
        strategy: Strategy,
        *,
        key: str | None = None,
        name: str | None = None,
        intro: str | None = None,
        configs: str | None = None,
    ) -> Strategy:
        if key is not None:
            strategy.key = key
        if name is not None:
            strategy.name = name
        if intro is not None:
            strategy.intro = intro
        if configs is not None:
            strategy.configs = configs
        await self.session.flush()
        await self.session.refresh(strategy)
        return strategy

    async def count_assets(self, strategy_id: str) -> int:
        stmt = select(func.count(Asset.id)).where(Asset.strategy_id == strategy_id)
        result = await self.session.execute(stmt)
        return int(result.scalar_one() or 0)

    async def delete(self, strategy_id: str) -> None:
        await self.session.execute(delete(GroupStrategy).where(GroupStrategy.strategy_id == strategy_id))
        await self.session.execute(delete(Strategy).where(Strategy.id == strategy_id))

    async def replace_groups(self, strategy_id: str, group_ids: Iterable[str]) -> None:
        await self.session.execute(delete(GroupStrategy).where(GroupStrategy.strategy_id == strategy_id))
        for group_id in dict.fromkeys(group_ids):
            self.session.add(GroupStrategy(group_id=group_id, strategy_id=strategy_id))
        await self.session.flush()
