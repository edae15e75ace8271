"""
Port (interface) for external secret stores.
See docs/Architecture.md (Ports) for the architectural rationale.
Infrastructure adapters (e.g. SecretsManagerAdapter) must implement this interface.
"""

from abc import ABC, abstractmethod


class ISecretStore(ABC):
    @abstractmethod
    def get_secret(self, secret_id: str) -> dict[str, str]:
        """Fetch a JSON secret by id or ARN and return its key-value pairs."""
        ...
