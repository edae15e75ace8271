"""End-to-end tests of the HTTP API with a fake engine and in-memory stores."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from fakes import FakeSearchEngine, MemoryStateStore, make_product
from src.domain.entities.search_result import SearchOutcome
from src.domain.errors import UpstreamError
from src.infrastructure.config.settings import Settings
from src.infrastructure.credentials.sql_credential_store import SqlCredentialStore
from src.infrastructure.entrypoints.fastapi_app import build_services, create_app


@pytest.fixture
def engine() -> FakeSearchEngine:
    engine = FakeSearchEngine()
    engine.synonyms["products"]["s-sub"] = {"id": "s-sub", "root": "sub", "synonyms": ["submarine", "hoagie"]}
    engine.overrides["products"]["o-phone"] = {"id": "o-phone", "rule": {"query": "phone", "match": "contains"}}
    return engine


@pytest.fixture
def client(engine) -> TestClient:
    credentials = SqlCredentialStore.from_url(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    credentials.create_schema()
    credentials.add_account("ann", "s3cret", first_name="Ann", last_name="Lee")
    credentials.add_account("bob", "hunter2")
    settings = Settings(_env_file=None, session_secret="test-secret", log_json=False)
    services = build_services(
        settings,
        credential_store=credentials,
        engine_factory=lambda profile: engine,
        state_store=MemoryStateStore(),
    )
    return TestClient(create_app(services=services))


def login(client: TestClient, username: str = "ann", password: str = "s3cret") -> dict:
    response = client.post("/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


def connect(client: TestClient, headers: dict) -> str:
    response = client.post("/sessions", json={"host": "search.local", "api_key": "xyz"}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["session_id"]


@pytest.fixture
def auth(client) -> dict:
    return login(client)


@pytest.fixture
def sid(client, auth) -> str:
    session_id = connect(client, auth)
    response = client.put(f"/sessions/{session_id}/selection", json={"collection": "products"}, headers=auth)
    assert response.status_code == 200, response.text
    return session_id


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


class TestAuth:
    def test_login_returns_user(self, client):
        response = client.post("/login", json={"username": "ann", "password": "s3cret"})
        assert response.json()["user"] == {"id": 1, "username": "ann", "full_name": "Ann Lee"}

    def test_bad_credentials(self, client):
        response = client.post("/login", json={"username": "ann", "password": "wrong"})
        assert response.status_code == 401
        assert response.json()["kind"] == "authentication"

    def test_console_requires_token(self, client):
        assert client.post("/sessions", json={"host": "h", "api_key": "k"}).status_code == 401
        bad = {"Authorization": "Bearer nonsense"}
        assert client.post("/sessions", json={"host": "h", "api_key": "k"}, headers=bad).status_code == 401

    def test_sessions_are_private(self, client, auth, sid):
        other = login(client, "bob", "hunter2")
        assert client.get(f"/sessions/{sid}/synonyms", headers=other).status_code == 404


class TestConnect:
    def test_schema_validation_is_structured(self, client, auth):
        response = client.post("/sessions", json={"api_key": "xyz"}, headers=auth)
        assert response.status_code == 422
        assert "detail" in response.json()

    def test_unknown_fields_rejected(self, client, auth):
        response = client.post("/sessions", json={"host": "h", "api_key": "k", "apiKey": "k"}, headers=auth)
        assert response.status_code == 422

    def test_upstream_failure(self, client, auth, engine):
        engine.fail_with["list_collections"] = UpstreamError("Failed to fetch collections: Forbidden", status_code=401)
        response = client.post("/sessions", json={"host": "h", "api_key": "k"}, headers=auth)
        assert response.status_code == 502
        assert response.json() == {
            "error": "Failed to fetch collections: Forbidden",
            "kind": "upstream",
            "upstream_status": 401,
            "retryable": False,
        }

    def test_timeout_maps_to_504(self, client, auth, engine):
        engine.fail_with["list_collections"] = UpstreamError("Failed to fetch collections: request timed out", retryable=True)
        response = client.post("/sessions", json={"host": "h", "api_key": "k"}, headers=auth)
        assert response.status_code == 504

    def test_collections_and_details(self, client, auth, sid):
        listed = client.get(f"/sessions/{sid}/collections", headers=auth).json()
        assert [c["name"] for c in listed] == ["products", "recipes"]
        details = client.get(f"/sessions/{sid}/collections/products", headers=auth).json()
        assert details["num_documents"] == 120

    def test_restore_and_disconnect(self, client, auth, sid):
        restored = client.post("/sessions/restore", headers=auth).json()
        assert restored["selected_collection"] == "products"
        assert client.get(f"/sessions/{sid}", headers=auth).status_code == 404

        new_sid = restored["session_id"]
        assert client.delete(f"/sessions/{new_sid}", headers=auth).status_code == 204
        assert client.get(f"/sessions/{new_sid}", headers=auth).status_code == 404
        response = client.post("/sessions/restore", headers=auth)
        assert response.status_code == 400
        assert response.json()["kind"] == "configuration"


class TestRules:
    def test_selection_returns_rules(self, client, auth):
        session_id = connect(client, auth)
        rules = client.put(f"/sessions/{session_id}/selection", json={"collection": "products"}, headers=auth).json()
        assert [s["id"] for s in rules["synonyms"]] == ["s-sub"]
        assert rules["overrides"][0]["match"] == "contains"

    def test_synonym_crud(self, client, auth, sid):
        created = client.post(f"/sessions/{sid}/synonyms", json={"synonyms": ["soda", "pop"]}, headers=auth)
        assert created.status_code == 201
        rule_id = created.json()["id"]
        assert rule_id.startswith("synonym-")

        updated = client.put(
            f"/sessions/{sid}/synonyms/{rule_id}",
            json={"synonyms": ["soda", "pop", "cola"]},
            headers=auth,
        )
        assert updated.json()["description"] == "soda <-> pop <-> cola"

        assert client.delete(f"/sessions/{sid}/synonyms/{rule_id}", headers=auth).status_code == 204
        ids = [s["id"] for s in client.get(f"/sessions/{sid}/synonyms", headers=auth).json()]
        assert ids == ["s-sub"]

    def test_malformed_synonym(self, client, auth, sid):
        response = client.post(f"/sessions/{sid}/synonyms", json={"synonyms": ["lonely"]}, headers=auth)
        assert response.status_code == 422
        assert response.json()["kind"] == "malformed_input"

    def test_override_crud(self, client, auth, sid):
        body = {
            "id": "promo-laptop",
            "query": "laptop",
            "includes": [{"id": "42", "position": 1}],
            "excludes": [{"id": "13"}],
        }
        created = client.post(f"/sessions/{sid}/overrides", json=body, headers=auth)
        assert created.status_code == 201
        assert created.json()["description"] == "laptop (pins 1 items) (hides 1 items)"

        body["match"] = "contains"
        updated = client.put(f"/sessions/{sid}/overrides/promo-laptop", json=body, headers=auth)
        assert updated.json()["match"] == "contains"

        assert client.delete(f"/sessions/{sid}/overrides/promo-laptop", headers=auth).status_code == 204
        ids = [o["id"] for o in client.get(f"/sessions/{sid}/overrides", headers=auth).json()]
        assert ids == ["o-phone"]

    def test_override_schema_rejects_bad_position(self, client, auth, sid):
        body = {"query": "laptop", "includes": [{"id": "42", "position": 0}]}
        assert client.post(f"/sessions/{sid}/overrides", json=body, headers=auth).status_code == 422

    def test_rules_require_selection(self, client, auth):
        session_id = connect(client, auth)
        response = client.post(f"/sessions/{session_id}/synonyms", json={"synonyms": ["a", "b"]}, headers=auth)
        assert response.status_code == 400


class TestPreview:
    def test_matches_without_search(self, client, auth, sid, engine):
        before = len(engine.calls)
        matches = client.get(f"/sessions/{sid}/preview/matches", params={"q": "new phone sub"}, headers=auth).json()
        assert [s["id"] for s in matches["synonyms"]] == ["s-sub"]
        assert [o["id"] for o in matches["overrides"]] == ["o-phone"]
        assert len(engine.calls) == before

    def test_search_combines_hits_and_matches(self, client, auth, sid, engine):
        engine.search_results["phone"] = SearchOutcome(
            total_found=1,
            elapsed_ms=2.0,
            echoed_query="phone",
            hits=(make_product("9", "Phone case"),),
        )
        state = client.post(f"/sessions/{sid}/preview/search", json={"query": "phone"}, headers=auth).json()
        assert state["status"] == "showing_results"
        assert state["total_found"] == 1
        assert state["hits"][0]["name"] == "Phone case"
        assert [o["id"] for o in state["matches"]["overrides"]] == ["o-phone"]

    def test_search_failure_is_view_state(self, client, auth, sid, engine):
        engine.fail_with["search"] = UpstreamError("Failed to search: boom", status_code=500)
        response = client.post(f"/sessions/{sid}/preview/search", json={"query": "phone"}, headers=auth)
        assert response.status_code == 200
        assert response.json()["status"] == "showing_error"
        assert response.json()["error"] == "Search error: Failed to search: boom"
        assert response.json()["hits"] == []

    def test_blank_search(self, client, auth, sid):
        response = client.post(f"/sessions/{sid}/preview/search", json={"query": "  "}, headers=auth)
        assert response.status_code == 422

    def test_collection_switch_resets_preview(self, client, auth, sid):
        client.post(f"/sessions/{sid}/preview/search", json={"query": "phone"}, headers=auth)
        client.put(f"/sessions/{sid}/selection", json={"collection": "recipes"}, headers=auth)
        state = client.get(f"/sessions/{sid}/preview", params={"q": "phone"}, headers=auth).json()
        assert state["status"] == "idle"
        assert state["hits"] == []
        assert state["matches"]["overrides"] == []
