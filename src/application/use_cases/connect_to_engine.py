"""
Use-cases: open, restore and close a console session against an engine node.
See docs/Architecture.md (Application layer) for the architectural rationale.
Depends only on Domain ports and entities: no infrastructure imports.
"""

import logging
from typing import Callable

from src.application.services.console_state import profile_from_snapshot, snapshot_from_session
from src.application.session.console_session import ConsoleSession
from src.application.session.session_registry import SessionRegistry
from src.domain.entities.connection_profile import ConnectionProfile
from src.domain.errors import ConfigurationError, ConsoleError
from src.domain.ports.search_engine_port import ISearchEngine
from src.domain.ports.state_store_port import IStateStore

logger = logging.getLogger(__name__)

EngineFactory = Callable[[ConnectionProfile], ISearchEngine]


class ConnectToEngineUseCase:
    def __init__(
        self,
        engine_factory: EngineFactory,
        registry: SessionRegistry,
        state_store: IStateStore,
        query_by: str,
        per_page: int = 12,
    ) -> None:
        self._engine_factory = engine_factory
        self._registry = registry
        self._state_store = state_store
        self._query_by = query_by
        self._per_page = per_page

    def execute(self, owner: str, profile: ConnectionProfile) -> ConsoleSession:
        """Validate *profile*, list collections and register a new session.

        Raises:
            ConfigurationError: if host or API key is missing (no network call).
            UpstreamError:      if the engine refuses the collection listing.
        """
        profile = profile.validated()
        engine = self._engine_factory(profile)
        try:
            collections = engine.list_collections()
        except ConsoleError:
            engine.close()
            raise
        session = ConsoleSession(
            session_id=self._registry.new_id(),
            owner=owner,
            profile=profile,
            engine=engine,
            collections=collections,
            query_by=self._query_by,
            per_page=self._per_page,
        )
        self._registry.add(session)
        self._state_store.save(owner, snapshot_from_session(session))
        logger.info(
            "Connected to search engine",
            extra={"profile": profile.masked(), "collection_count": len(collections)},
        )
        return session

    def restore(self, owner: str) -> ConsoleSession:
        """Reconnect with the profile and selection saved for *owner*.

        Once the new session is up, the owner's earlier sessions are closed.

        Raises:
            ConfigurationError: if nothing usable was saved.
            UpstreamError:      if the engine refuses the reconnect.
        """
        snapshot = self._state_store.load(owner)
        profile = profile_from_snapshot(snapshot) if snapshot else None
        if profile is None:
            raise ConfigurationError("no saved connection to restore")
        session = self.execute(owner, profile)
        closed = self._registry.close_owner(owner, keep=session.id)
        if closed:
            logger.info("Closed superseded console sessions", extra={"closed_count": closed})
        selected = snapshot.get("selected_collection") or ""
        if selected:
            session.select_collection(selected)
            self._state_store.save(owner, snapshot_from_session(session))
        return session


class DisconnectUseCase:
    def __init__(self, registry: SessionRegistry, state_store: IStateStore) -> None:
        self._registry = registry
        self._state_store = state_store

    def execute(self, owner: str, session_id: str) -> None:
        """Tear down the session and forget the saved state for *owner*.

        Raises:
            SessionNotFoundError: if the session is unknown or not owned by *owner*.
        """
        session = self._registry.remove(session_id, owner)
        session.close()
        self._state_store.clear(owner)
        logger.info("Disconnected", extra={"session_id": session_id})
