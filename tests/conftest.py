"""Shared test fixtures."""

import pytest

from fakes import FakeSearchEngine, MemoryStateStore
from src.application.session.console_session import ConsoleSession
from src.application.session.session_registry import SessionRegistry
from src.application.use_cases.connect_to_engine import ConnectToEngineUseCase
from src.domain.entities.connection_profile import ConnectionProfile


@pytest.fixture
def engine() -> FakeSearchEngine:
    return FakeSearchEngine()


@pytest.fixture
def profile() -> ConnectionProfile:
    return ConnectionProfile(host="search.local", api_key="xyz", port=8108, protocol="http")


@pytest.fixture
def state_store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def registry() -> SessionRegistry:
    ids = iter(f"sid-{n}" for n in range(100))
    return SessionRegistry(id_factory=lambda: next(ids))


@pytest.fixture
def connect(engine, registry, state_store) -> ConnectToEngineUseCase:
    return ConnectToEngineUseCase(lambda profile: engine, registry, state_store, query_by="name")


@pytest.fixture
def session(connect, profile) -> ConsoleSession:
    return connect.execute("ann", profile)
