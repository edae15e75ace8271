"""
Use-case: switch the session to another collection and load its rules.
See docs/Architecture.md (Application layer) for the architectural rationale.
"""

from src.application.services.console_state import snapshot_from_session
from src.application.services.rule_cache import RuleSnapshot
from src.application.session.console_session import ConsoleSession
from src.domain.entities.collection import CollectionDetails
from src.domain.errors import ConfigurationError
from src.domain.ports.state_store_port import IStateStore


class SelectCollectionUseCase:
    def __init__(self, state_store: IStateStore) -> None:
        self._state_store = state_store

    def execute(self, session: ConsoleSession, collection: str) -> RuleSnapshot:
        """Select *collection*; the choice is remembered only once rules load."""
        snapshot = session.select_collection(collection)
        self._state_store.save(session.owner, snapshot_from_session(session))
        return snapshot


class DescribeCollectionUseCase:
    def execute(self, session: ConsoleSession, collection: str) -> CollectionDetails:
        """Fetch the essential schema of *collection*.

        Raises:
            ConfigurationError: if *collection* is blank.
            UpstreamError:      if the engine rejects the request.
        """
        if not collection or not collection.strip():
            raise ConfigurationError("collection name is required")
        return session.engine.get_collection(collection.strip())
