"""Repository protocol for account and group reads."""

from __future__ import annotations

from typing import Protocol

from assetvault.db.models import Account as AccountModel, Group as GroupModel


class AccountRepository(Protocol):
    async def get_by_id(self, account_id: str) -> AccountModel | None:
        ...

    async def get_group(self, group_id: str) -> GroupModel | None:
        ...

    async def get_used_capacity(self, account_id: str) -> int:
        ...
