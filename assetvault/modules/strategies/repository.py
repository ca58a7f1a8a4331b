"""Repository protocol for storage strategy persistence."""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from assetvault.db.models import Strategy as StrategyModel


class StrategyRepository(Protocol):
    async def get_by_id(self, strategy_id: str) -> StrategyModel | None:
        ...

    async def list_all(self) -> Sequence[StrategyModel]:
        ...

    async def list_for_group(self, group_id: str) -> Sequence[StrategyModel]:
        ...

    async def create(self, *, key: str, name: str, intro: str | None, configs: str) -> StrategyModel:
        ...

    async def update(
        self,
        strategy: StrategyModel,
        *,
        key: str | None = None,
        name: str | None = None,
        intro: str | None = None,
        configs: str | None = None,
    ) -> StrategyModel:
        ...

    async def delete(self, strategy_id: str) -> None:
        ...

    async def replace_groups(self, strategy_id: str, group_ids: Iterable[str]) -> None:
        ...

    async def count_assets(self, strategy_id: str) -> int:
        ...
