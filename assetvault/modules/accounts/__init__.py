"""Account domain exports."""

from .exceptions import AccountError, AccountNotFoundError
from .models import Group, UserAccount, normalize_visibility
from .service import AccountService

__all__ = [
    "AccountError",
    "AccountNotFoundError",
    "AccountService",
    "Group",
    "UserAccount",
    "normalize_visibility",
]
