"""
Port (interface) for the store of console administrator accounts.
See docs/Architecture.md (Ports) for the architectural rationale.
Infrastructure adapters (e.g. SqlCredentialStore) must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.domain.entities.admin_account import AdminAccount


class ICredentialStore(ABC):
    @abstractmethod
    def find_active_account(self, username: str, password: str) -> Optional[AdminAccount]:
        """Return the active account matching both fields, or None."""
        ...

    @abstractmethod
    def record_login(self, account_id: int) -> None:
        """Stamp the account's last-login time with the current time."""
        ...
