"""Asset service: the upload pipeline, public URLs and owner-scoped maintenance."""

from __future__ import annotations

import contextlib
import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Callable, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from assetvault.core.container import get_container
from assetvault.db.models import Asset as AssetModel
from assetvault.infrastructure.database.repositories.account_repository import SqlAccountRepository
from assetvault.infrastructure.database.repositories.asset_repository import SqlAssetRepository
from assetvault.infrastructure.database.repositories.strategy_repository import SqlStrategyRepository
from assetvault.modules.accounts.models import UserAccount, load_configs, normalize_visibility
from assetvault.modules.accounts.repository import AccountRepository
from assetvault.modules.quotas.enforcer import CapacityLocks, QuotaEnforcer
from assetvault.modules.quotas.limiter import RateLimiter
from assetvault.modules.quotas.models import GroupQuota
from assetvault.modules.strategies.exceptions import (
    StrategyMisconfiguredError,
    StrategyNotFoundError,
    StrategyUnavailableError,
)
from assetvault.modules.strategies.models import Strategy, StrategyDescriptor
from assetvault.modules.strategies.repository import StrategyRepository
from assetvault.modules.strategies.resolver import StrategyResolver
from assetvault.modules.strategies.service import StrategyService

from .exceptions import AssetNotFoundError, PersistenceError
from .models import Asset, AssetView, UploadOptions
from .paths import PathTemplate, sanitize_relative_path
from .repository import AssetRepository
from .sniffing import OCTET_STREAM, SNIFF_LENGTH, ContentValidator, file_extension
from .streams import PeekedStream, StreamSource
from .urls import build_public_url, sanitize_url
from .writer import IngestionWriter, remove_file

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_key() -> str:
    return str(uuid.uuid4())


@dataclass(slots=True)
class AssetService:
    repository: AssetRepository
    accounts: AccountRepository
    strategies: StrategyRepository
    resolver: StrategyResolver
    limiter: RateLimiter
    session: Optional[AsyncSession] = None
    capacity_locks: Optional[CapacityLocks] = None
    validator: ContentValidator = field(default_factory=ContentValidator)
    writer: IngestionWriter = field(default_factory=IngestionWriter)
    sniff_bytes: int = SNIFF_LENGTH
    clock: Callable[[], datetime] = _utcnow
    key_factory: Callable[[], str] = _new_key
    rng: random.Random = field(default_factory=random.Random)

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        *,
        resolver: StrategyResolver | None = None,
        limiter: RateLimiter | None = None,
        capacity_locks: CapacityLocks | None = None,
        clock: Callable[[], datetime] | None = None,
        key_factory: Callable[[], str] | None = None,
        rng: random.Random | None = None,
    ) -> "AssetService":
        container = get_container()
        settings = container.settings
        if capacity_locks is None and settings.quota.serialize_capacity_checks:
            capacity_locks = container.capacity_locks
        return cls(
            repository=SqlAssetRepository(session),
            accounts=SqlAccountRepository(session),
            strategies=SqlStrategyRepository(session),
            resolver=resolver or container.strategy_resolver(),
            limiter=limiter or container.rate_limiter,
            session=session,
            capacity_locks=capacity_locks,
            writer=IngestionWriter(settings.storage.chunk_size),
            sniff_bytes=settings.storage.sniff_bytes,
            clock=clock or _utcnow,
            key_factory=key_factory or _new_key,
            rng=rng or random.Random(),
        )

    # ------------------------------------------------------------------ upload

    async def resolve_strategy(
        self,
        owner: UserAccount,
        requested_id: str | None = None,
    ) -> tuple[Strategy, StrategyDescriptor]:
        """Pick the strategy for an upload: requested, then the user's default, then the first bound."""
        if not owner.group_id:
            raise StrategyUnavailableError("没有可用的储存策略")
        models = await self.strategies.list_for_group(owner.group_id)
        if not models:
            raise StrategyUnavailableError("没有可用的储存策略")

        available = {model.id: model for model in models}
        selected = available.get(requested_id) if requested_id else None
        if selected is None:
            preferred = owner.default_strategy_id()
            selected = available.get(preferred) if preferred else None
        if selected is None:
            selected = models[0]

        strategy = StrategyService.to_domain(selected)
        return strategy, self.resolver.resolve(strategy.configs)

    async def upload(
        self,
        owner: UserAccount,
        source: StreamSource,
        declared_name: str,
        declared_size: int,
        options: UploadOptions | None = None,
    ) -> Asset:
        options = options or UploadOptions()
        strategy, descriptor = await self.resolve_strategy(owner, options.strategy_id)
        try:
            descriptor.require_functional(strategy.id)
        except StrategyMisconfiguredError:
            logger.error("储存策略 %s 配置不完整，拒绝上传 (root=%r, base=%r)", strategy.id, descriptor.root, descriptor.base_url)
            raise
        if not descriptor.is_local:
            raise StrategyMisconfiguredError(f"储存策略 {strategy.id} 的驱动 {descriptor.driver} 暂不支持上传")

        stream = await PeekedStream.open(source, self.sniff_bytes)
        check = self.validator.validate(stream.head, declared_name, descriptor)
        quota = await self._group_quota(owner)

        async with self._capacity_guard(owner.id):
            await QuotaEnforcer(self.limiter).enforce(
                owner.id,
                max(0, int(declared_size or 0)),
                quota,
                self.accounts.get_used_capacity,
            )

            key = self.key_factory()
            relative_path = PathTemplate(descriptor.pattern, self.rng).render(
                key=key,
                now=self.clock(),
                user_id=owner.id,
                user_name=owner.name,
                original_name=declared_name,
            )
            destination = Path(descriptor.root) / PurePosixPath(relative_path)
            written = await self.writer.write(destination, stream, max_bytes=quota.max_file_size or None)

            public_url = build_public_url(descriptor, relative_path=relative_path, path=str(destination), name=destination.name)
            fields = dict(
                owner_id=owner.id,
                group_id=owner.group_id,
                strategy_id=strategy.id,
                key=key,
                path=str(destination),
                relative_path=relative_path,
                name=destination.name,
                original_name=declared_name,
                size=written.size,
                mime_type=check.mime_type or OCTET_STREAM,
                extension=file_extension(destination.name),
                checksum_md5=written.checksum_md5,
                checksum_sha1=written.checksum_sha1,
                visibility=(
                    normalize_visibility(options.visibility)
                    if options.visibility is not None
                    else owner.default_visibility()
                ),
                storage_provider=descriptor.driver,
                public_url=public_url,
            )
            try:
                if written.size != declared_size:
                    await QuotaEnforcer(self.limiter).check_capacity(
                        owner.id, written.size, quota, self.accounts.get_used_capacity
                    )
                model = await self.repository.create_with_capacity(**fields)
                await self._commit()
            except SQLAlchemyError as exc:
                await self._rollback()
                logger.error("保存文件记录失败，删除已写入文件 %s: %s", destination, exc)
                remove_file(destination)
                raise PersistenceError("保存文件记录失败") from exc
            except Exception:
                await self._rollback()
                remove_file(destination)
                raise

        logger.info(
            "用户 %s 上传文件 %s (%d bytes) 到策略 %s", owner.id, relative_path, written.size, strategy.id
        )
        return self._to_domain(model)

    # -------------------------------------------------------------- public URL

    async def public_url(self, asset: Asset) -> str:
        """Frozen public URL of an asset; computed and persisted on first use."""
        if asset.public_url.strip():
            return sanitize_url(asset.public_url)

        descriptor = await self._descriptor_for(asset.strategy_id)
        url = sanitize_url(
            build_public_url(descriptor, relative_path=asset.relative_path, path=asset.path, name=asset.name)
        )
        if not url:
            raise StrategyMisconfiguredError(f"储存策略 {asset.strategy_id} 没有配置外部访问域名")

        try:
            frozen = await self.repository.freeze_public_url(asset.id, url)
            if not frozen:
                existing = await self.repository.get_public_url(asset.id)
                if existing.strip():
                    url = sanitize_url(existing)
            await self._commit()
        except SQLAlchemyError as exc:
            await self._rollback()
            raise PersistenceError("保存文件访问链接失败") from exc

        asset.public_url = url
        return url

    async def freeze_public_urls_for_strategy(self, strategy: Strategy, *, commit: bool = True) -> int:
        """Pin the current URL of every asset under ``strategy`` that has none yet."""
        descriptor = self.resolver.resolve(strategy.configs)
        if not descriptor.base_url.strip():
            return 0
        frozen = 0
        try:
            for model in await self.repository.list_missing_public_url(strategy.id):
                url = build_public_url(
                    descriptor, relative_path=model.relative_path, path=model.path, name=model.name
                )
                if url and await self.repository.freeze_public_url(model.id, url):
                    frozen += 1
            if commit:
                await self._commit()
        except SQLAlchemyError as exc:
            if not commit:
                raise
            await self._rollback()
            raise PersistenceError(f"固定策略 {strategy.id} 的文件链接失败") from exc
        if frozen:
            logger.info("策略 %s 固定了 %d 个文件链接", strategy.id, frozen)
        return frozen

    # ------------------------------------------------------------------ lookup

    async def get_owned(self, owner_id: str, asset_id: str) -> Asset:
        model = await self.repository.get_owned(owner_id, asset_id)
        if model is None:
            raise AssetNotFoundError(asset_id)
        return self._to_domain(model)

    async def get_by_key(self, key: str) -> Asset | None:
        model = await self.repository.get_by_key(key)
        return self._to_domain(model) if model else None

    async def find_by_relative_path(self, relative_path: str) -> Asset | None:
        rel = sanitize_relative_path(relative_path)
        if not rel:
            return None
        model = await self.repository.get_by_relative_path(rel)
        if model is not None:
            return self._to_domain(model)

        model = await self.repository.find_legacy_by_path_suffix(rel)
        if model is None:
            return None
        try:
            if await self.repository.backfill_relative_path(model.id, rel):
                await self._commit()
        except SQLAlchemyError as exc:
            await self._rollback()
            logger.warning("回填文件 %s 的相对路径失败: %s", model.id, exc)
        asset = self._to_domain(model)
        asset.relative_path = asset.relative_path or rel
        return asset

    async def list_for_owner(self, owner_id: str, limit: int = 20, offset: int = 0) -> list[Asset]:
        models = await self.repository.list_by_owner(owner_id, limit or 20, offset)
        return [self._to_domain(model) for model in models]

    async def list_public(self, limit: int = 40, offset: int = 0) -> list[Asset]:
        models = await self.repository.list_public(limit or 40, offset)
        return [self._to_domain(model) for model in models]

    async def to_view(self, asset: Asset) -> AssetView:
        url = await self.public_url(asset)
        owner = await self.accounts.get_by_id(asset.owner_id)
        strategy = await self.strategies.get_by_id(asset.strategy_id) if asset.strategy_id else None
        label = asset.original_name or asset.name
        return AssetView(
            id=asset.id,
            key=asset.key,
            name=asset.name,
            original_name=asset.original_name,
            size=asset.size,
            mime_type=asset.mime_type,
            extension=asset.extension,
            visibility=asset.visibility,
            storage=asset.storage_provider,
            strategy_id=asset.strategy_id,
            strategy_name=strategy.name if strategy else None,
            relative_path=asset.relative_path,
            view_url=url,
            direct_url=url,
            markdown=f"![{label}]({url})",
            html=f'<img src="{url}" alt="{label}" />',
            owner_id=asset.owner_id,
            owner_name=owner.name if owner else None,
            owner_email=owner.email if owner else None,
            created_at=asset.created_at,
        )

    # ------------------------------------------------------------ maintenance

    async def delete(self, owner_id: str, asset_id: str) -> None:
        model = await self._run_delete(self.repository.delete_owned(owner_id, asset_id))
        if model is None:
            raise AssetNotFoundError(asset_id)
        remove_file(model.path)

    async def delete_batch(self, owner_id: str, asset_ids: Sequence[str]) -> int:
        if not asset_ids:
            return 0
        models = await self._run_delete(self.repository.delete_owned_batch(owner_id, list(asset_ids)))
        for model in models:
            remove_file(model.path)
        return len(models)

    async def delete_by_admin(self, asset_id: str) -> None:
        model = await self._run_delete(self.repository.delete_any(asset_id))
        if model is None:
            raise AssetNotFoundError(asset_id)
        remove_file(model.path)

    async def delete_by_admin_batch(self, asset_ids: Sequence[str]) -> int:
        if not asset_ids:
            return 0
        models = await self._run_delete(self.repository.delete_any_batch(list(asset_ids)))
        for model in models:
            remove_file(model.path)
        return len(models)

    async def update_visibility(self, owner_id: str, asset_id: str, visibility: str) -> Asset:
        asset = await self.get_owned(owner_id, asset_id)
        normalized = normalize_visibility(visibility)
        await self._run_update(self.repository.update_visibility([asset_id], normalized, owner_id=owner_id))
        asset.visibility = normalized
        return asset

    async def update_visibility_batch(self, owner_id: str, asset_ids: Sequence[str], visibility: str) -> int:
        if not asset_ids:
            return 0
        normalized = normalize_visibility(visibility)
        return await self._run_update(
            self.repository.update_visibility(list(asset_ids), normalized, owner_id=owner_id)
        )

    async def update_visibility_by_admin(self, asset_id: str, visibility: str) -> Asset:
        model = await self.repository.get_by_id(asset_id)
        if model is None:
            raise AssetNotFoundError(asset_id)
        asset = self._to_domain(model)
        normalized = normalize_visibility(visibility)
        await self._run_update(self.repository.update_visibility([asset_id], normalized))
        asset.visibility = normalized
        return asset

    async def update_visibility_by_admin_batch(self, asset_ids: Sequence[str], visibility: str) -> int:
        if not asset_ids:
            return 0
        normalized = normalize_visibility(visibility)
        return await self._run_update(self.repository.update_visibility(list(asset_ids), normalized))

    # ---------------------------------------------------------------- helpers

    async def _run_delete(self, operation):
        try:
            result = await operation
            await self._commit()
        except SQLAlchemyError as exc:
            await self._rollback()
            raise PersistenceError("删除文件记录失败") from exc
        return result

    async def _run_update(self, operation) -> int:
        try:
            affected = await operation
            await self._commit()
        except SQLAlchemyError as exc:
            await self._rollback()
            raise PersistenceError("更新文件可见性失败") from exc
        return affected

    async def _group_quota(self, owner: UserAccount) -> GroupQuota:
        if not owner.group_id:
            return GroupQuota()
        group = await self.accounts.get_group(owner.group_id)
        if group is None:
            return GroupQuota()
        return GroupQuota.from_configs(load_configs(group.configs))

    async def _descriptor_for(self, strategy_id: str | None) -> StrategyDescriptor:
        if not strategy_id:
            return self.resolver.resolve(None)
        model = await self.strategies.get_by_id(strategy_id)
        if model is None:
            raise StrategyNotFoundError(strategy_id)
        return self.resolver.resolve(model.configs)

    def _capacity_guard(self, owner_id: str):
        if self.capacity_locks is None:
            return contextlib.nullcontext()
        return self.capacity_locks.lock_for(owner_id)

    async def _commit(self) -> None:
        if self.session is not None:
            await self.session.commit()

    async def _rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()

    @staticmethod
    def _to_domain(model: AssetModel) -> Asset:
        return Asset(
            id=model.id,
            owner_id=model.owner_id,
            group_id=model.group_id,
            strategy_id=model.strategy_id,
            key=model.key,
            path=model.path,
            relative_path=model.relative_path or "",
            name=model.name,
            original_name=model.original_name,
            size=int(model.size),
            mime_type=model.mime_type,
            extension=model.extension,
            checksum_md5=model.checksum_md5,
            checksum_sha1=model.checksum_sha1,
            visibility=model.visibility,
            storage_provider=model.storage_provider,
            public_url=model.public_url or "",
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
