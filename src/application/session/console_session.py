"""
Console session: the explicit context object for one engine connection.
See docs/Architecture.md (Application layer) for the architectural rationale.

A session is constructed by ConnectToEngineUseCase, handed to every handler
that needs the connection, and torn down by DisconnectUseCase. Nothing about
a connection lives in module globals, so two users (or two tabs of one user)
never share selection, rules or preview state.
"""

import logging
import threading
from typing import Optional

from src.application.services.rule_cache import RuleCache, RuleSnapshot
from src.application.services.search_preview import SearchPreviewOrchestrator
from src.domain.entities.collection import CollectionSummary
from src.domain.entities.connection_profile import ConnectionProfile
from src.domain.errors import ConfigurationError
from src.domain.ports.search_engine_port import ISearchEngine

logger = logging.getLogger(__name__)


class ConsoleSession:
    def __init__(
        self,
        session_id: str,
        owner: str,
        profile: ConnectionProfile,
        engine: ISearchEngine,
        collections: list[CollectionSummary],
        query_by: str,
        per_page: int = 12,
    ) -> None:
        self.id = session_id
        self.owner = owner
        self.profile = profile
        self.engine = engine
        self.collections = list(collections)
        self.selected_collection = ""
        self.rule_cache = RuleCache()
        self.preview = SearchPreviewOrchestrator(engine, self.rule_cache, query_by, per_page)
        # Handlers run in a thread pool; writes to this session are serialised.
        self.lock = threading.RLock()

    def require_collection(self) -> str:
        if not self.selected_collection:
            raise ConfigurationError("no collection selected")
        return self.selected_collection

    def select_collection(self, name: str) -> RuleSnapshot:
        """Switch to *name* and load its rules.

        Preview and rule cache are cleared before anything is fetched, so a
        failed fetch leaves an empty cache rather than the previous
        collection's rules.

        Raises:
            ConfigurationError: if *name* is blank.
            UpstreamError:      if the engine rejects either rule listing.
        """
        name = (name or "").strip()
        if not name:
            raise ConfigurationError("collection name is required")
        with self.lock:
            self.preview.reset()
            self.rule_cache.clear()
            self.selected_collection = name
            synonyms = self.engine.list_synonyms(name)
            overrides = self.engine.list_overrides(name)
            snapshot = self.rule_cache.replace(name, synonyms, overrides)
        logger.info(
            "Collection selected",
            extra={
                "collection": name,
                "synonym_count": len(snapshot.synonyms),
                "override_count": len(snapshot.overrides),
            },
        )
        return snapshot

    def refresh_synonyms(self) -> RuleSnapshot:
        with self.lock:
            collection = self.require_collection()
            synonyms = self.engine.list_synonyms(collection)
            if collection != self.selected_collection:
                logger.info("Dropping synonyms of a deselected collection", extra={"collection": collection})
                return self.rule_cache.snapshot
            return self.rule_cache.replace_synonyms(collection, synonyms)

    def refresh_overrides(self) -> RuleSnapshot:
        with self.lock:
            collection = self.require_collection()
            overrides = self.engine.list_overrides(collection)
            if collection != self.selected_collection:
                logger.info("Dropping overrides of a deselected collection", extra={"collection": collection})
                return self.rule_cache.snapshot
            return self.rule_cache.replace_overrides(collection, overrides)

    def find_collection(self, name: str) -> Optional[CollectionSummary]:
        return next((c for c in self.collections if c.name == name), None)

    def close(self) -> None:
        with self.lock:
            self.preview.reset()
            self.rule_cache.clear()
            self.selected_collection = ""
            self.collections = []
        self.engine.close()
