"""
Port (interface) for the remote search engine that stores the rules.
See docs/Architecture.md (Ports) for the architectural rationale.
Infrastructure adapters (e.g. TypesenseHttpAdapter) must implement this interface.

Every method raises UpstreamError when the engine answers with a non-success
status or cannot be reached.
"""

from abc import ABC, abstractmethod
from typing import Any

from src.domain.entities.collection import CollectionDetails, CollectionSummary
from src.domain.entities.override_rule import OverrideRule
from src.domain.entities.search_result import SearchOutcome
from src.domain.entities.synonym_rule import SynonymRule


class ISearchEngine(ABC):
    @abstractmethod
    def list_collections(self) -> list[CollectionSummary]: ...

    @abstractmethod
    def get_collection(self, collection: str) -> CollectionDetails: ...

    @abstractmethod
    def list_synonyms(self, collection: str) -> list[SynonymRule]: ...

    @abstractmethod
    def upsert_synonym(self, collection: str, payload: dict[str, Any]) -> SynonymRule:
        """Create or replace the synonym whose id is ``payload["id"]``."""
        ...

    @abstractmethod
    def delete_synonym(self, collection: str, synonym_id: str) -> None: ...

    @abstractmethod
    def list_overrides(self, collection: str) -> list[OverrideRule]: ...

    @abstractmethod
    def upsert_override(self, collection: str, payload: dict[str, Any]) -> OverrideRule:
        """Create or replace the override whose id is ``payload["id"]``."""
        ...

    @abstractmethod
    def delete_override(self, collection: str, override_id: str) -> None: ...

    @abstractmethod
    def search(
        self,
        collection: str,
        query: str,
        query_by: str,
        per_page: int = 12,
        page: int = 1,
    ) -> SearchOutcome: ...

    def close(self) -> None:
        """Release pooled connections. Adapters without resources may ignore it."""
