"""
Application service: in-memory rule cache for the selected collection.
See docs/Architecture.md (Application layer) for the architectural rationale.

The cache only ever holds one immutable RuleSnapshot. Every refresh builds a
new snapshot and swaps the reference, so readers never observe a half-updated
mix of two collections.
"""

from dataclasses import dataclass, field, replace
from typing import Iterable

from src.domain.entities.override_rule import OverrideRule
from src.domain.entities.synonym_rule import SynonymRule


@dataclass(frozen=True)
class RuleSnapshot:
    collection: str = ""
    synonyms: tuple[SynonymRule, ...] = field(default_factory=tuple)
    overrides: tuple[OverrideRule, ...] = field(default_factory=tuple)


EMPTY_SNAPSHOT = RuleSnapshot()


class RuleCache:
    def __init__(self) -> None:
        self._snapshot = EMPTY_SNAPSHOT

    @property
    def snapshot(self) -> RuleSnapshot:
        return self._snapshot

    def replace(
        self,
        collection: str,
        synonyms: Iterable[SynonymRule],
        overrides: Iterable[OverrideRule],
    ) -> RuleSnapshot:
        self._snapshot = RuleSnapshot(
            collection=collection,
            synonyms=tuple(synonyms),
            overrides=tuple(overrides),
        )
        return self._snapshot

    def replace_synonyms(self, collection: str, synonyms: Iterable[SynonymRule]) -> RuleSnapshot:
        """Swap in a freshly fetched synonym list for *collection*.

        The override list is kept only when it belongs to the same collection.
        """
        current = self._snapshot
        if current.collection != collection:
            current = RuleSnapshot(collection=collection)
        self._snapshot = replace(current, synonyms=tuple(synonyms))
        return self._snapshot

    def replace_overrides(self, collection: str, overrides: Iterable[OverrideRule]) -> RuleSnapshot:
        current = self._snapshot
        if current.collection != collection:
            current = RuleSnapshot(collection=collection)
        self._snapshot = replace(current, overrides=tuple(overrides))
        return self._snapshot

    def clear(self) -> None:
        self._snapshot = EMPTY_SNAPSHOT
