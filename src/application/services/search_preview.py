"""
Application service: the search preview orchestrator.
See docs/Architecture.md (Application layer) for the architectural rationale.

Combines two independent views of a query:
  - matches(): synchronous relevance matching against the cached rules,
    cheap enough to run on every keystroke.
  - submit(): one live search against the engine, tagged with a sequence
    number so an older response can never overwrite a newer one.

State machine: idle -> searching -> showing_results | showing_error.
reset() returns to idle and invalidates any search still in flight.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from src.application.services.rule_cache import RuleCache
from src.domain.entities.override_rule import OverrideRule
from src.domain.entities.search_result import SearchOutcome
from src.domain.entities.synonym_rule import SynonymRule
from src.domain.errors import ConfigurationError, MalformedInputError, UpstreamError
from src.domain.ports.search_engine_port import ISearchEngine
from src.domain.services.relevance_matcher import match_overrides, match_synonyms

logger = logging.getLogger(__name__)


class PreviewStatus(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    SHOWING_RESULTS = "showing_results"
    SHOWING_ERROR = "showing_error"


@dataclass(frozen=True)
class RuleMatches:
    query: str
    synonyms: list[SynonymRule] = field(default_factory=list)
    overrides: list[OverrideRule] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.synonyms and not self.overrides


@dataclass(frozen=True)
class PreviewState:
    status: PreviewStatus = PreviewStatus.IDLE
    collection: str = ""
    query: str = ""
    outcome: Optional[SearchOutcome] = None
    error: str = ""
    sequence: int = 0


class SearchPreviewOrchestrator:
    def __init__(
        self,
        engine: ISearchEngine,
        rule_cache: RuleCache,
        query_by: str,
        per_page: int = 12,
    ) -> None:
        self._engine = engine
        self._rule_cache = rule_cache
        self._query_by = query_by
        self._per_page = per_page
        self._lock = threading.Lock()
        self._latest_sequence = 0
        self._state = PreviewState()

    @property
    def state(self) -> PreviewState:
        return self._state

    def matches(self, query: str) -> RuleMatches:
        """Rules from the current snapshot that could affect *query*. No I/O."""
        snapshot = self._rule_cache.snapshot
        return RuleMatches(
            query=query,
            synonyms=match_synonyms(query, snapshot.synonyms),
            overrides=match_overrides(query, snapshot.overrides),
        )

    def begin(self, collection: str, query: str) -> int:
        """Enter the searching state and return the ticket for this request.

        Raises:
            ConfigurationError:  if no collection is selected.
            MalformedInputError: if *query* is blank after trimming.
        """
        if not collection:
            raise ConfigurationError("select a collection before searching")
        if not query or not query.strip():
            raise MalformedInputError("search query must not be empty")
        with self._lock:
            self._latest_sequence += 1
            sequence = self._latest_sequence
            self._state = replace(
                self._state,
                status=PreviewStatus.SEARCHING,
                collection=collection,
                query=query,
                error="",
                sequence=sequence,
            )
        return sequence

    def complete(self, sequence: int, outcome: SearchOutcome) -> bool:
        """Publish *outcome* unless a newer request superseded it."""
        with self._lock:
            if sequence != self._latest_sequence:
                logger.debug("Discarding stale search response", extra={"sequence": sequence})
                return False
            self._state = replace(
                self._state,
                status=PreviewStatus.SHOWING_RESULTS,
                outcome=outcome,
                error="",
            )
        return True

    def fail(self, sequence: int, message: str) -> bool:
        """Publish an error and drop prior hits unless the request is stale."""
        with self._lock:
            if sequence != self._latest_sequence:
                logger.debug("Discarding stale search failure", extra={"sequence": sequence})
                return False
            self._state = replace(
                self._state,
                status=PreviewStatus.SHOWING_ERROR,
                outcome=None,
                error=message,
            )
        return True

    def submit(self, collection: str, query: str) -> PreviewState:
        """Run one live search and return the resulting view-state.

        Engine failures do not raise: they move the preview into the
        showing_error state so the caller can render the message.
        """
        sequence = self.begin(collection, query)
        try:
            outcome = self._engine.search(
                collection,
                query,
                query_by=self._query_by,
                per_page=self._per_page,
            )
        except UpstreamError as exc:
            logger.warning(
                "Preview search failed",
                extra={"collection": collection, "retryable": exc.retryable},
            )
            self.fail(sequence, f"Search error: {exc.message}")
            return self._state
        self.complete(sequence, outcome)
        return self._state

    def reset(self) -> None:
        """Return to idle, dropping hits and errors. In-flight results become stale."""
        with self._lock:
            self._latest_sequence += 1
            self._state = PreviewState(sequence=self._latest_sequence)
