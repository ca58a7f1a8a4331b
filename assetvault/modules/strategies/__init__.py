"""Storage strategy domain exports."""

from .exceptions import (
    StrategyError,
    StrategyInUseError,
    StrategyMisconfiguredError,
    StrategyNotFoundError,
    StrategyUnavailableError,
)
from .models import (
    GenericDriverConfig,
    LocalDriverConfig,
    Strategy,
    StrategyDescriptor,
    StrategyInput,
    parse_driver_config,
)
from .resolver import StrategyResolver
from .service import StrategyService

__all__ = [
    "GenericDriverConfig",
    "LocalDriverConfig",
    "Strategy",
    "StrategyDescriptor",
    "StrategyError",
    "StrategyInUseError",
    "StrategyInput",
    "StrategyMisconfiguredError",
    "StrategyNotFoundError",
    "StrategyResolver",
    "StrategyService",
    "StrategyUnavailableError",
    "parse_driver_config",
]
