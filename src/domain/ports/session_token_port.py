"""
Port (interface) for issuing and checking console session tokens.
See docs/Architecture.md (Ports) for the architectural rationale.
Infrastructure adapters (e.g. JoseSessionTokenService) must implement this interface.
"""

from abc import ABC, abstractmethod

from src.domain.entities.admin_account import AdminAccount


class ISessionTokenService(ABC):
    @abstractmethod
    def issue(self, account: AdminAccount) -> str:
        """Return an opaque, signed token identifying *account*."""
        ...

    @abstractmethod
    def validate(self, token: str) -> dict:
        """Return the token's claims.

        Raises:
            AuthenticationError: if the token is malformed, tampered or expired.
        """
        ...
