"""Read-side account service consumed by the upload pipeline."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from assetvault.db.models import Account as AccountModel, Group as GroupModel
from assetvault.infrastructure.database.repositories.account_repository import SqlAccountRepository

from .exceptions import AccountNotFoundError
from .models import Group, UserAccount, load_configs
from .repository import AccountRepository


class AccountService:
    def __init__(self, repository: AccountRepository) -> None:
        self._repository = repository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "AccountService":
        return cls(SqlAccountRepository(session))

    async def get_account(self, account_id: str) -> UserAccount:
        model = await self._repository.get_by_id(account_id)
        if model is None:
            raise AccountNotFoundError(account_id)
        return self.to_domain(model)

    async def get_group(self, group_id: str | None) -> Group | None:
        if not group_id:
            return None
        model = await self._repository.get_group(group_id)
        return self._group_to_domain(model) if model else None

    async def get_used_capacity(self, account_id: str) -> int:
        return await self._repository.get_used_capacity(account_id)

    @staticmethod
    def to_domain(model: AccountModel) -> UserAccount:
        return UserAccount(
            id=model.id,
            name=model.name,
            group_id=model.group_id,
            email=model.email,
            used_capacity=int(model.used_capacity or 0),
            configs=load_configs(model.configs),
            created_at=model.created_at,
        )

    @staticmethod
    def _group_to_domain(model: GroupModel) -> Group:
        return Group(id=model.id, name=model.name, configs=load_configs(model.configs))
