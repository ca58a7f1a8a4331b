"""Strategy administration: validation at save time and link freezing on edit."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from assetvault.core.config import get_settings
from assetvault.db.models import Strategy as StrategyModel
from assetvault.infrastructure.database.repositories.strategy_repository import SqlStrategyRepository
from assetvault.modules.accounts.models import UserAccount, load_configs

from .exceptions import StrategyInUseError, StrategyMisconfiguredError, StrategyNotFoundError
from .models import Strategy, StrategyDescriptor, StrategyInput, parse_driver_config
from .repository import StrategyRepository
from .resolver import StrategyResolver

logger = logging.getLogger(__name__)

UrlFreezer = Callable[[Strategy], Awaitable[int]]


@dataclass(slots=True)
class StrategyService:
    repository: StrategyRepository
    resolver: StrategyResolver
    session: Optional[AsyncSession] = None
    freeze_urls: Optional[UrlFreezer] = None

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        resolver: StrategyResolver | None = None,
    ) -> "StrategyService":
        # 延迟导入，避免 assets 与 strategies 模块循环依赖
        from assetvault.modules.assets.service import AssetService

        resolver = resolver or StrategyResolver(get_settings().strategy_defaults())
        assets = AssetService.with_session(session, resolver=resolver)
        return cls(
            SqlStrategyRepository(session),
            resolver,
            session=session,
            freeze_urls=partial(assets.freeze_public_urls_for_strategy, commit=False),
        )

    async def get_strategy(self, strategy_id: str) -> Strategy:
        model = await self.repository.get_by_id(strategy_id)
        if model is None:
            raise StrategyNotFoundError(strategy_id)
        return self.to_domain(model)

    async def list_strategies(self) -> list[Strategy]:
        return [self.to_domain(model) for model in await self.repository.list_all()]

    async def list_for_user(self, user: UserAccount) -> list[Strategy]:
        if not user.group_id:
            return []
        return [self.to_domain(model) for model in await self.repository.list_for_group(user.group_id)]

    def describe(self, strategy: Strategy) -> StrategyDescriptor:
        return self.resolver.resolve(strategy.configs)

    def validate_configs(self, configs: dict) -> StrategyDescriptor:
        """Parse and resolve a blob, refusing anything that cannot serve uploads."""
        try:
            driver_config = parse_driver_config(configs)
        except ValidationError as exc:
            raise StrategyMisconfiguredError(f"储存策略配置无效: {exc}") from exc
        descriptor = self.resolver.resolve(driver_config)
        if not descriptor.is_local:
            raise StrategyMisconfiguredError(f"储存驱动 {descriptor.driver} 暂不支持")
        return descriptor.require_functional()

    async def create_strategy(self, payload: StrategyInput) -> Strategy:
        self.validate_configs(payload.configs)
        try:
            model = await self.repository.create(
                key=payload.key,
                name=payload.name,
                intro=payload.intro,
                configs=json.dumps(payload.configs, ensure_ascii=False, sort_keys=True),
            )
            if payload.group_ids is not None:
                await self.repository.replace_groups(model.id, payload.group_ids)
            await self._commit()
        except SQLAlchemyError:
            await self._rollback()
            raise
        logger.info("储存策略 %s 已创建", model.id)
        return self.to_domain(model)

    async def update_strategy(self, strategy_id: str, payload: StrategyInput) -> Strategy:
        model = await self.repository.get_by_id(strategy_id)
        if model is None:
            raise StrategyNotFoundError(strategy_id)
        self.validate_configs(payload.configs)

        previous = self.to_domain(model)
        try:
            if self.freeze_urls is not None:
                frozen = await self.freeze_urls(previous)
                if frozen:
                    logger.info("策略 %s 修改前已固定 %d 个文件链接", strategy_id, frozen)
            model = await self.repository.update(
                model,
                key=payload.key,
                name=payload.name,
                intro=payload.intro,
                configs=json.dumps(payload.configs, ensure_ascii=False, sort_keys=True),
            )
            if payload.group_ids is not None:
                await self.repository.replace_groups(strategy_id, payload.group_ids)
            await self._commit()
        except SQLAlchemyError:
            await self._rollback()
            raise
        return self.to_domain(model)

    async def delete_strategy(self, strategy_id: str) -> None:
        """Delete a strategy nothing is stored under; assets keep resolving their URLs through it."""
        in_use = await self.repository.count_assets(strategy_id)
        if in_use:
            raise StrategyInUseError(f"储存策略 {strategy_id} 仍有 {in_use} 个文件，无法删除")
        try:
            await self.repository.delete(strategy_id)
            await self._commit()
        except SQLAlchemyError:
            await self._rollback()
            raise

    async def _commit(self) -> None:
        if self.session is not None:
            await self.session.commit()

    async def _rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()

    @staticmethod
    def to_domain(model: StrategyModel) -> Strategy:
        return Strategy(
            id=model.id,
            key=model.key,
            name=model.name,
            intro=model.intro,
            configs=load_configs(model.configs),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
