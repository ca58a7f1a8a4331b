"""SQLAlchemy implementation for account and group reads."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from assetvault.db.models import Account, Group


class SqlAccountRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, account_id: str) -> Account | None:
        stmt = select(Account).where(Account.id == account_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_group(self, group_id: str) -> Group | None:
        stmt = select(Group).where(Group.id == group_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_used_capacity(self, account_id: str) -> int:
        stmt = select(Account.used_capacity).where(Account.id == account_id)
        result = await self.session.execute(stmt)
        value = result.scalar_one_or_none()
        return int(value or 0)
