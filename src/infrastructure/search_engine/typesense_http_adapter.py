"""
Infrastructure adapter: Typesense REST API (via httpx) -> ISearchEngine.
See docs/Architecture.md (Infrastructure layer) for the architectural rationale.

All URL building, the API-key header and JSON reshaping are confined here.
httpx failures are translated into UpstreamError:
  - non-2xx responses keep the engine's message verbatim;
  - timeouts and connection errors are marked retryable;
  - a success status with a body that is not JSON is an upstream failure too.
Collection names and rule ids are percent-encoded as single path segments.
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from src.domain.entities.collection import CollectionDetails, CollectionField, CollectionSummary
from src.domain.entities.connection_profile import ConnectionProfile
from src.domain.entities.override_rule import OverrideRule
from src.domain.entities.search_result import Product, SearchOutcome
from src.domain.entities.synonym_rule import SynonymRule
from src.domain.errors import UpstreamError
from src.domain.ports.search_engine_port import ISearchEngine

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-TYPESENSE-API-KEY"


class TypesenseHttpAdapter(ISearchEngine):
    """Talks to one Typesense node described by a ConnectionProfile."""

    def __init__(
        self,
        profile: ConnectionProfile,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Args:
            profile:   Validated connection profile.
            timeout:   Per-request timeout in seconds.
            transport: Optional httpx transport (tests pass httpx.MockTransport).
        """
        self._client = httpx.Client(
            base_url=profile.base_url,
            headers={API_KEY_HEADER: profile.api_key},
            timeout=timeout,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # ISearchEngine interface
    # ------------------------------------------------------------------

    def list_collections(self) -> list[CollectionSummary]:
        data = self._request("GET", "/collections", action="fetch collections")
        return [
            CollectionSummary(
                name=item.get("name", ""),
                num_documents=int(item.get("num_documents") or 0),
                created_at=item.get("created_at"),
            )
            for item in data or []
        ]

    def get_collection(self, collection: str) -> CollectionDetails:
        data = self._request("GET", f"/collections/{_segment(collection)}", action="fetch collection details")
        return CollectionDetails(
            name=data.get("name", collection),
            num_documents=int(data.get("num_documents") or 0),
            fields=[
                CollectionField(
                    name=f.get("name", ""),
                    type=f.get("type", ""),
                    facet=bool(f.get("facet", False)),
                    optional=bool(f.get("optional", False)),
                    index=bool(f.get("index", True)),
                )
                for f in data.get("fields") or []
            ],
            default_sorting_field=data.get("default_sorting_field") or None,
            created_at=data.get("created_at"),
            enable_nested_fields=bool(data.get("enable_nested_fields", False)),
        )

    def list_synonyms(self, collection: str) -> list[SynonymRule]:
        data = self._request("GET", f"/collections/{_segment(collection)}/synonyms", action="fetch synonyms")
        return [SynonymRule.from_dict(item) for item in data.get("synonyms") or []]

    def upsert_synonym(self, collection: str, payload: dict[str, Any]) -> SynonymRule:
        data = self._request(
            "PUT",
            f"/collections/{_segment(collection)}/synonyms/{_segment(payload['id'])}",
            action="save synonym",
            json=payload,
        )
        return SynonymRule.from_dict(data)

    def delete_synonym(self, collection: str, synonym_id: str) -> None:
        self._request(
            "DELETE",
            f"/collections/{_segment(collection)}/synonyms/{_segment(synonym_id)}",
            action="delete synonym",
        )

    def list_overrides(self, collection: str) -> list[OverrideRule]:
        data = self._request("GET", f"/collections/{_segment(collection)}/overrides", action="fetch overrides")
        return [OverrideRule.from_dict(item) for item in data.get("overrides") or []]

    def upsert_override(self, collection: str, payload: dict[str, Any]) -> OverrideRule:
        data = self._request(
            "PUT",
            f"/collections/{_segment(collection)}/overrides/{_segment(payload['id'])}",
            action="save override",
            json=payload,
        )
        return OverrideRule.from_dict(data)

    def delete_override(self, collection: str, override_id: str) -> None:
        self._request(
            "DELETE",
            f"/collections/{_segment(collection)}/overrides/{_segment(override_id)}",
            action="delete override",
        )

    def search(
        self,
        collection: str,
        query: str,
        query_by: str,
        per_page: int = 12,
        page: int = 1,
    ) -> SearchOutcome:
        params = {
            "q": query,
            "query_by": query_by,
            "per_page": per_page,
            "page": page,
            "highlight_full_fields": query_by,
            "highlight_affix_num_tokens": 4,
            "enable_highlight_v1": "true",
        }
        data = self._request(
            "GET",
            f"/collections/{_segment(collection)}/documents/search",
            action="search",
            params=params,
        )
        return SearchOutcome(
            total_found=int(data.get("found") or 0),
            elapsed_ms=float(data.get("search_time_ms") or 0),
            echoed_query=(data.get("request_params") or {}).get("q", query),
            hits=tuple(self._to_product(hit) for hit in data.get("hits") or []),
        )

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, action: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("Engine request timed out", extra={"action": action, "path": path})
            raise UpstreamError(f"Failed to {action}: request timed out", retryable=True) from exc
        except httpx.HTTPError as exc:
            logger.warning("Engine unreachable", extra={"action": action, "path": path})
            raise UpstreamError(f"Failed to {action}: {exc}", retryable=True) from exc

        if response.is_error:
            detail = _error_detail(response)
            logger.warning(
                "Engine rejected request",
                extra={"action": action, "path": path, "status_code": response.status_code},
            )
            raise UpstreamError(f"Failed to {action}: {detail}", status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            logger.warning(
                "Engine answered with a non-JSON body",
                extra={"action": action, "path": path, "status_code": response.status_code},
            )
            raise UpstreamError(
                f"Failed to {action}: engine returned an unreadable response",
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _to_product(hit: dict[str, Any]) -> Product:
        doc = hit.get("document") or {}
        gallery = doc.get("gallery") or []
        image_url = gallery[0].get("original") if gallery and isinstance(gallery[0], dict) else None
        return Product(
            id=str(doc.get("id", "")),
            name=doc.get("name", ""),
            brand=doc.get("brand"),
            price=doc.get("price"),
            sale_price=doc.get("sale_price"),
            sales_count=doc.get("sales_count"),
            category=doc.get("category_l4") or doc.get("category"),
            is_in_stock=doc.get("is_in_stock"),
            slug=doc.get("slug"),
            image_url=image_url,
            score=hit.get("text_match"),
            highlights=list(hit.get("highlights") or []),
            document=doc,
        )


def _segment(value: Any) -> str:
    """Percent-encode one URL path segment, slashes included."""
    return quote(str(value), safe="")

def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text
