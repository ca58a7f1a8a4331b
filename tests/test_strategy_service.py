"""Tests for strategy administration."""

from functools import partial

import pytest
from sqlalchemy import select

from assetvault.core.config import StrategyDefaults
from assetvault.db import models
from assetvault.infrastructure.database.repositories import SqlStrategyRepository
from assetvault.modules.strategies import (
    StrategyInUseError,
    StrategyInput,
    StrategyMisconfiguredError,
    StrategyNotFoundError,
    StrategyResolver,
    StrategyService,
)

from .payloads import CDN_BASE, png_bytes


@pytest.fixture
def build_strategy_service(session, resolver, build_asset_service):
    def _build(resolver_override=None):
        active = resolver_override or resolver
        assets = build_asset_service(resolver=active)
        return StrategyService(
            repository=SqlStrategyRepository(session),
            resolver=active,
            session=session,
            freeze_urls=partial(assets.freeze_public_urls_for_strategy, commit=False),
        )

    return _build


async def _legacy_asset(session, owner_id, strategy_id, storage_root, name):
    row = models.Asset(
        owner_id=owner_id,
        strategy_id=strategy_id,
        key=f"legacy-{name}",
        path=str(storage_root / "old" / name),
        relative_path=f"old/{name}",
        name=name,
        size=10,
        visibility="private",
        storage_provider="local",
        public_url="",
    )
    session.add(row)
    await session.commit()
    return row


async def _load_strategy(session, strategy_id):
    return StrategyService.to_domain(await SqlStrategyRepository(session).get_by_id(strategy_id))


async def _stored_url(session, asset_id):
    result = await session.execute(select(models.Asset.public_url).where(models.Asset.id == asset_id))
    return result.scalar_one()


async def test_create_rejects_unusable_configuration(session, seed, build_strategy_service):
    service = build_strategy_service(StrategyResolver(StrategyDefaults()))

    with pytest.raises(StrategyMisconfiguredError):
        await service.create_strategy(StrategyInput(name="坏配置", configs={"url": "https://cdn.x"}))
    with pytest.raises(StrategyMisconfiguredError):
        await service.create_strategy(StrategyInput(name="坏配置", configs={"root": "/srv"}))

    assert [strategy.id for strategy in await service.list_strategies()] == [seed["strategy"].id]


async def test_create_binds_groups(session, seed, owner, build_strategy_service, storage_root):
    service = build_strategy_service()

    created = await service.create_strategy(
        StrategyInput(
            name="备用",
            configs={"root": str(storage_root / "b"), "baseUrl": "https://b.example/files"},
            group_ids=[seed["group"].id],
        )
    )

    assert created.configs["baseUrl"] == "https://b.example/files"
    assert service.describe(created).base_url == "https://b.example/files"
    assert {strategy.id for strategy in await service.list_for_user(owner)} == {seed["strategy"].id, created.id}


async def test_update_freezes_links_of_existing_assets(session, seed, owner, build_strategy_service, storage_root):
    legacy = await _legacy_asset(session, owner.id, seed["strategy"].id, storage_root, "a.png")
    service = build_strategy_service()

    updated = await service.update_strategy(
        seed["strategy"].id,
        StrategyInput(name="本地", configs={"root": str(storage_root), "url": "https://new.example/img"}),
    )

    assert updated.configs["url"] == "https://new.example/img"
    assert await _stored_url(session, legacy.id) == f"{CDN_BASE}/old/a.png"


async def test_new_uploads_follow_the_updated_base(session, seed, owner, build_strategy_service, build_asset_service, storage_root):
    service = build_strategy_service()
    await service.update_strategy(
        seed["strategy"].id,
        StrategyInput(name="本地", configs={"root": str(storage_root), "url": "https://new.example/img"}),
    )

    asset = await build_asset_service().upload(owner, png_bytes(), "a.png", 100)

    assert asset.public_url == "https://new.example/img/2024/01/02/key1.png"


async def test_invalid_update_keeps_previous_configuration(session, seed, owner, build_strategy_service, storage_root):
    legacy = await _legacy_asset(session, owner.id, seed["strategy"].id, storage_root, "b.png")
    service = build_strategy_service(StrategyResolver(StrategyDefaults()))

    with pytest.raises(StrategyMisconfiguredError):
        await service.update_strategy(seed["strategy"].id, StrategyInput(name="本地", configs={"url": "https://x"}))

    strategy = await service.get_strategy(seed["strategy"].id)
    assert strategy.configs["url"] == CDN_BASE
    assert await _stored_url(session, legacy.id) == ""


async def test_freeze_pass_is_idempotent(session, seed, owner, build_asset_service, storage_root):
    await _legacy_asset(session, owner.id, seed["strategy"].id, storage_root, "c.png")
    await _legacy_asset(session, owner.id, seed["strategy"].id, storage_root, "d.png")
    service = build_asset_service()
    strategy = await _load_strategy(session, seed["strategy"].id)

    assert await service.freeze_public_urls_for_strategy(strategy) == 2
    assert await service.freeze_public_urls_for_strategy(strategy) == 0


async def test_delete_and_missing_strategy(session, seed, build_strategy_service):
    service = build_strategy_service()

    await service.delete_strategy(seed["strategy"].id)

    with pytest.raises(StrategyNotFoundError):
        await service.get_strategy(seed["strategy"].id)
    with pytest.raises(StrategyNotFoundError):
        await service.update_strategy("missing", StrategyInput(name="x", configs={}))


async def test_create_rejects_drivers_that_cannot_store_uploads(session, seed, build_strategy_service, storage_root):
    service = build_strategy_service()

    with pytest.raises(StrategyMisconfiguredError, match="s3"):
        await service.create_strategy(
            StrategyInput(name="对象存储", configs={"driver": "s3", "root": str(storage_root), "url": CDN_BASE})
        )

    assert [strategy.id for strategy in await service.list_strategies()] == [seed["strategy"].id]


async def test_delete_refuses_strategy_with_stored_assets(session, seed, owner, build_strategy_service, storage_root):
    legacy = await _legacy_asset(session, owner.id, seed["strategy"].id, storage_root, "kept.png")
    service = build_strategy_service()

    with pytest.raises(StrategyInUseError, match="1 个文件"):
        await service.delete_strategy(seed["strategy"].id)

    assert (await service.get_strategy(seed["strategy"].id)).id == seed["strategy"].id
    assert await _stored_url(session, legacy.id) == ""
