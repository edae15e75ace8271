"""Tests for the Typesense HTTP adapter, with engine traffic served by httpx.MockTransport."""

import httpx
import pytest

from src.domain.entities.override_rule import MatchType
from src.domain.errors import UpstreamError
from src.infrastructure.search_engine.typesense_http_adapter import API_KEY_HEADER, TypesenseHttpAdapter


class Recorder:
    """Serves canned JSON per (method, path) and keeps the requests it saw."""

    def __init__(self, routes: dict) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(handler):
            return handler(request)
        status, body = handler
        return httpx.Response(status, json=body)


def make_adapter(profile, routes: dict) -> tuple[TypesenseHttpAdapter, Recorder]:
    recorder = Recorder(routes)
    return TypesenseHttpAdapter(profile, transport=httpx.MockTransport(recorder)), recorder


def test_list_collections_sends_api_key(profile):
    adapter, recorder = make_adapter(
        profile,
        {("GET", "/collections"): (200, [{"name": "products", "num_documents": 12, "created_at": 1700000000}])},
    )
    collections = adapter.list_collections()
    assert collections[0].name == "products"
    assert collections[0].num_documents == 12
    assert recorder.requests[0].headers[API_KEY_HEADER] == "xyz"
    assert str(recorder.requests[0].url).startswith("http://search.local:8108/collections")


def test_get_collection_keeps_essentials(profile):
    adapter, _ = make_adapter(
        profile,
        {
            ("GET", "/collections/products"): (
                200,
                {
                    "name": "products",
                    "num_documents": 3,
                    "fields": [{"name": "brand", "type": "string", "facet": True}],
                    "default_sorting_field": "",
                    "token_separators": [],
                },
            )
        },
    )
    details = adapter.get_collection("products")
    assert details.fields[0].facet is True
    assert details.fields[0].index is True
    assert details.default_sorting_field is None


def test_list_synonyms_and_overrides(profile):
    adapter, _ = make_adapter(
        profile,
        {
            ("GET", "/collections/products/synonyms"): (
                200,
                {"synonyms": [{"id": "s1", "root": "sub", "synonyms": ["hoagie"]}]},
            ),
            ("GET", "/collections/products/overrides"): (
                200,
                {"overrides": [{"id": "o1", "rule": {"query": "tv", "match": "contains"}, "includes": [{"id": "9", "position": 2}]}]},
            ),
        },
    )
    [synonym] = adapter.list_synonyms("products")
    [override] = adapter.list_overrides("products")
    assert synonym.root == "sub"
    assert override.rule.match is MatchType.CONTAINS
    assert override.includes[0].position == 2


def test_upsert_uses_put_with_id_in_path(profile):
    def echo(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=request.content, headers={"content-type": "application/json"})

    adapter, recorder = make_adapter(profile, {("PUT", "/collections/products/synonyms/s1"): echo})
    saved = adapter.upsert_synonym("products", {"id": "s1", "synonyms": ["soda", "pop"]})
    assert saved.synonyms == ("soda", "pop")
    assert recorder.requests[0].method == "PUT"


def test_search_params_and_hit_flattening(profile):
    body = {
        "found": 1,
        "search_time_ms": 4,
        "request_params": {"q": "cola"},
        "hits": [
            {
                "document": {
                    "id": "7",
                    "name": "Cola 6 pack",
                    "price": 5.0,
                    "sale_price": 4.0,
                    "category_l4": "Soft drinks",
                    "gallery": [{"original": "https://img/7.jpg"}],
                },
                "text_match": 578730123365187705,
                "highlights": [{"field": "name", "snippet": "<mark>Cola</mark> 6 pack"}],
            }
        ],
    }
    adapter, recorder = make_adapter(profile, {("GET", "/collections/products/documents/search"): (200, body)})
    outcome = adapter.search("products", "cola", query_by="name,brand", per_page=12)

    params = recorder.requests[0].url.params
    assert params["q"] == "cola"
    assert params["query_by"] == "name,brand"
    assert params["highlight_full_fields"] == "name,brand"
    assert params["per_page"] == "12"
    assert outcome.total_found == 1
    assert outcome.elapsed_ms == 4.0
    assert outcome.echoed_query == "cola"
    [hit] = outcome.hits
    assert hit.category == "Soft drinks"
    assert hit.image_url == "https://img/7.jpg"
    assert hit.is_on_sale and hit.display_price == 4.0


def test_error_status_is_surfaced_verbatim(profile):
    adapter, _ = make_adapter(
        profile,
        {("GET", "/collections"): (401, {"message": "Forbidden - a valid `x-typesense-api-key` header must be sent."})},
    )
    with pytest.raises(UpstreamError) as excinfo:
        adapter.list_collections()
    assert excinfo.value.status_code == 401
    assert "valid `x-typesense-api-key`" in excinfo.value.message
    assert excinfo.value.retryable is False


def test_timeout_is_retryable(profile):
    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    adapter, _ = make_adapter(profile, {("GET", "/collections/products/synonyms"): slow})
    with pytest.raises(UpstreamError) as excinfo:
        adapter.list_synonyms("products")
    assert excinfo.value.retryable is True
    assert excinfo.value.status_code is None


def test_connection_error_is_retryable(profile):
    def refused(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    adapter, _ = make_adapter(profile, {("DELETE", "/collections/products/overrides/o1"): refused})
    with pytest.raises(UpstreamError) as excinfo:
        adapter.delete_override("products", "o1")
    assert excinfo.value.retryable is True


@pytest.mark.parametrize("override_id,encoded", [("promo/a", b"promo%2Fa"), ("x?y", b"x%3Fy"), ("a b", b"a%20b")])
def test_ids_are_encoded_as_one_path_segment(profile, override_id, encoded):
    def deleted(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": override_id})

    adapter, recorder = make_adapter(
        profile,
        {("DELETE", f"/collections/products/overrides/{override_id}"): deleted},
    )
    adapter.delete_override("products", override_id)

    [request] = recorder.requests
    assert request.url.raw_path == b"/collections/products/overrides/" + encoded
    assert request.url.query == b""


def test_collection_names_are_encoded(profile):
    adapter, recorder = make_adapter(
        profile,
        {("GET", "/collections/odd/name/synonyms"): (200, {"synonyms": []})},
    )
    assert adapter.list_synonyms("odd/name") == []
    assert recorder.requests[0].url.raw_path == b"/collections/odd%2Fname/synonyms"


def test_non_json_success_body_is_upstream_error(profile):
    def html(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>proxy login</html>", headers={"content-type": "text/html"})

    adapter, _ = make_adapter(profile, {("GET", "/collections"): html})
    with pytest.raises(UpstreamError) as excinfo:
        adapter.list_collections()
    assert excinfo.value.status_code == 200
    assert excinfo.value.retryable is False
    assert "unreadable response" in excinfo.value.message
