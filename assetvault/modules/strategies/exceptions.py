"""Storage strategy specific exceptions."""


class StrategyError(Exception):
    """Base class for storage strategy errors."""


class StrategyMisconfiguredError(StrategyError):
    """Raised when a strategy cannot resolve a storage root or public base URL."""


class StrategyUnavailableError(StrategyError):
    """Raised when no storage strategy is bound to the uploader's group."""


class StrategyNotFoundError(StrategyError):
    """Raised when the requested strategy record does not exist."""


class StrategyInUseError(StrategyError):
    """Raised when deleting a strategy that stored assets still reference."""
