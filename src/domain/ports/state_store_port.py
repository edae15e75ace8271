"""
Port (interface) for the per-user persisted console state.
See docs/Architecture.md (Ports) for the architectural rationale.
Infrastructure adapters (e.g. JsonFileStateStore) must implement this interface.

The stored state is a non-authoritative cache: it is only ever used to
reconnect, and the engine stays the source of truth.
"""

from abc import ABC, abstractmethod
from typing import Optional


class IStateStore(ABC):
    @abstractmethod
    def save(self, owner: str, snapshot: dict) -> None: ...

    @abstractmethod
    def load(self, owner: str) -> Optional[dict]:
        """Return the last saved snapshot for *owner*, or None."""
        ...

    @abstractmethod
    def clear(self, owner: str) -> None: ...
