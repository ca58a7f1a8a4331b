"""Pytest configuration and fixtures for assetvault tests."""

import itertools
import json
import random

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from assetvault.core.config import StrategyDefaults
from assetvault.db import models
from assetvault.infrastructure.database.base import Base
from assetvault.infrastructure.database.repositories import (
    SqlAccountRepository,
    SqlAssetRepository,
    SqlStrategyRepository,
)
from assetvault.modules.accounts import AccountService
from assetvault.modules.assets.service import AssetService
from assetvault.modules.quotas import CapacityLocks, InMemoryRateLimiter
from assetvault.modules.strategies import StrategyResolver

from .payloads import CDN_BASE, FIXED_NOW, FakeClock


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def storage_root(tmp_path):
    root = tmp_path / "uploads"
    root.mkdir()
    return root


@pytest.fixture
def resolver(storage_root):
    return StrategyResolver(
        StrategyDefaults(
            root=str(storage_root),
            public_base_url="http://localhost:8080",
            http_addr=":8080",
        )
    )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(session, storage_root):
    """One group bound to one CDN-backed local strategy, and one member account."""
    group = models.Group(name="default", configs=json.dumps({}))
    strategy = models.Strategy(
        key="local",
        name="本地",
        configs=json.dumps({"root": str(storage_root), "url": CDN_BASE}),
    )
    session.add_all([group, strategy])
    await session.flush()
    account = models.Account(name="alice", email="alice@example.com", group_id=group.id, configs=None)
    session.add(account)
    session.add(models.GroupStrategy(group_id=group.id, strategy_id=strategy.id))
    await session.commit()
    return {"group": group, "strategy": strategy, "account": account}


@pytest_asyncio.fixture
async def owner(session, seed):
    return await AccountService.with_session(session).get_account(seed["account"].id)


@pytest.fixture
def build_asset_service(session, resolver):
    """Factory for an ``AssetService`` with deterministic clock, keys and randomness."""

    def _build(**overrides):
        counter = itertools.count(1)
        params = dict(
            repository=SqlAssetRepository(session),
            accounts=SqlAccountRepository(session),
            strategies=SqlStrategyRepository(session),
            resolver=resolver,
            limiter=InMemoryRateLimiter(),
            session=session,
            capacity_locks=CapacityLocks(),
            clock=lambda: FIXED_NOW,
            key_factory=lambda: f"key{next(counter)}",
            rng=random.Random(7),
        )
        params.update(overrides)
        return AssetService(**params)

    return _build

