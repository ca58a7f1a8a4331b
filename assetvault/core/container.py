"""Simple dependency container for wiring core services."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache

from assetvault.core.config import Settings, get_settings
from assetvault.core.logging import configure_logging
from assetvault.infrastructure.database.session import get_engine
from assetvault.modules.quotas.enforcer import CapacityLocks
from assetvault.modules.quotas.limiter import InMemoryRateLimiter, RateLimiter
from assetvault.modules.strategies.resolver import StrategyResolver


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    rate_limiter: RateLimiter = field(default_factory=InMemoryRateLimiter)
    capacity_locks: CapacityLocks = field(default_factory=CapacityLocks)

    def init_infrastructure(self) -> None:
        """Ensure infrastructure singletons (logging, database engine) are initialised."""
        configure_logging(self.settings)
        get_engine()

    def strategy_resolver(self) -> StrategyResolver:
        return StrategyResolver(self.settings.strategy_defaults())


@lru_cache()
def get_container() -> ApplicationContainer:
    container = ApplicationContainer(settings=get_settings())
    container.init_infrastructure()
    return container


__all__ = ["ApplicationContainer", "get_container"]
