"""
Pydantic request and response schemas for the HTTP API.
See docs/Architecture.md (Infrastructure layer) for the architectural rationale.

Each endpoint has exactly one request schema; FastAPI rejects bodies that fail
validation with a structured 422 before any handler code runs. Conversion
to and from domain entities happens here so handlers stay thin.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.application.services.rule_cache import RuleSnapshot
from src.application.services.search_preview import PreviewState, RuleMatches
from src.application.session.console_session import ConsoleSession
from src.application.use_cases.manage_overrides import OverrideDraft
from src.domain.entities.collection import CollectionDetails, CollectionSummary
from src.domain.entities.connection_profile import ConnectionProfile
from src.domain.entities.override_rule import MatchType, OverrideRule
from src.domain.entities.search_result import Product
from src.domain.entities.synonym_rule import SynonymRule


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ConnectRequest(BaseModel):
    """Either a named destination preset or an explicit host, plus the API key."""

    model_config = ConfigDict(extra="forbid")

    api_key: str = Field(min_length=1)
    destination: Optional[Literal["staging", "production"]] = None
    host: Optional[str] = None
    port: int = Field(default=8108, ge=1, le=65535)
    protocol: Literal["http", "https"] = "http"
    path: str = ""

    @model_validator(mode="after")
    def _destination_or_host(self) -> "ConnectRequest":
        if self.destination is None and not (self.host and self.host.strip()):
            raise ValueError("either destination or host is required")
        return self

    def to_profile(self) -> ConnectionProfile:
        return ConnectionProfile(
            host=self.host or "",
            api_key=self.api_key,
            port=self.port,
            protocol=self.protocol,
            path=self.path,
        )


class SelectCollectionRequest(BaseModel):
    collection: str = Field(min_length=1)


class SynonymRequest(BaseModel):
    synonyms: list[str] = Field(min_length=1)
    root: Optional[str] = None


class PinRequest(BaseModel):
    id: str = Field(min_length=1)
    position: int = Field(ge=1)


class HideRequest(BaseModel):
    id: str = Field(min_length=1)


class OverrideRequest(BaseModel):
    id: Optional[str] = None
    query: str = Field(min_length=1)
    match: MatchType = MatchType.EXACT
    filter_by: Optional[str] = None
    includes: list[PinRequest] = Field(default_factory=list)
    excludes: list[HideRequest] = Field(default_factory=list)
    filter_curated_hits: Optional[bool] = None
    remove_matched_tokens: Optional[bool] = None
    stop_processing: Optional[bool] = None

    def to_draft(self) -> OverrideDraft:
        return OverrideDraft(
            query=self.query,
            match=self.match,
            filter_by=self.filter_by,
            includes=[(pin.id, pin.position) for pin in self.includes],
            excludes=[hide.id for hide in self.excludes],
            filter_curated_hits=self.filter_curated_hits,
            remove_matched_tokens=self.remove_matched_tokens,
            stop_processing=self.stop_processing,
        )


class SearchRequest(BaseModel):
    query: str


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class UserOut(BaseModel):
    id: int
    username: str
    full_name: str


class LoginResponse(BaseModel):
    token: str
    user: UserOut


class CollectionOut(BaseModel):
    name: str
    num_documents: int
    created_at: Optional[int] = None

    @classmethod
    def from_entity(cls, c: CollectionSummary) -> "CollectionOut":
        return cls(name=c.name, num_documents=c.num_documents, created_at=c.created_at)


class FieldOut(BaseModel):
    name: str
    type: str
    facet: bool
    optional: bool
    index: bool


class CollectionDetailsOut(BaseModel):
    name: str
    num_documents: int
    fields: list[FieldOut]
    default_sorting_field: Optional[str] = None
    created_at: Optional[int] = None
    enable_nested_fields: bool = False

    @classmethod
    def from_entity(cls, d: CollectionDetails) -> "CollectionDetailsOut":
        return cls(
            name=d.name,
            num_documents=d.num_documents,
            fields=[FieldOut(**vars(f)) for f in d.fields],
            default_sorting_field=d.default_sorting_field,
            created_at=d.created_at,
            enable_nested_fields=d.enable_nested_fields,
        )


class SessionOut(BaseModel):
    session_id: str
    host: str
    selected_collection: str
    collections: list[CollectionOut]

    @classmethod
    def from_session(cls, session: ConsoleSession) -> "SessionOut":
        return cls(
            session_id=session.id,
            host=session.profile.host,
            selected_collection=session.selected_collection,
            collections=[CollectionOut.from_entity(c) for c in session.collections],
        )


class SynonymOut(BaseModel):
    id: str
    synonyms: list[str]
    root: Optional[str] = None
    description: str

    @classmethod
    def from_entity(cls, rule: SynonymRule) -> "SynonymOut":
        return cls(id=rule.id, synonyms=list(rule.synonyms), root=rule.root, description=rule.describe())


class OverrideOut(BaseModel):
    id: str
    query: str
    match: Optional[str]
    filter_by: Optional[str] = None
    includes: list[PinRequest]
    excludes: list[HideRequest]
    filter_curated_hits: bool
    remove_matched_tokens: bool
    stop_processing: bool
    description: str

    @classmethod
    def from_entity(cls, rule: OverrideRule) -> "OverrideOut":
        return cls(
            id=rule.id,
            query=rule.rule.query,
            match=rule.rule.match.value if rule.rule.match else None,
            filter_by=rule.rule.filter_by,
            includes=[PinRequest.model_construct(id=p.doc_id, position=p.position) for p in rule.includes],
            excludes=[HideRequest.model_construct(id=h.doc_id) for h in rule.excludes],
            filter_curated_hits=rule.filter_curated_hits,
            remove_matched_tokens=rule.remove_matched_tokens,
            stop_processing=rule.stop_processing,
            description=rule.describe(),
        )


class RulesOut(BaseModel):
    collection: str
    synonyms: list[SynonymOut]
    overrides: list[OverrideOut]

    @classmethod
    def from_snapshot(cls, snapshot: RuleSnapshot) -> "RulesOut":
        return cls(
            collection=snapshot.collection,
            synonyms=[SynonymOut.from_entity(s) for s in snapshot.synonyms],
            overrides=[OverrideOut.from_entity(o) for o in snapshot.overrides],
        )


class MatchesOut(BaseModel):
    query: str
    synonyms: list[SynonymOut]
    overrides: list[OverrideOut]

    @classmethod
    def from_matches(cls, matches: RuleMatches) -> "MatchesOut":
        return cls(
            query=matches.query,
            synonyms=[SynonymOut.from_entity(s) for s in matches.synonyms],
            overrides=[OverrideOut.from_entity(o) for o in matches.overrides],
        )


class ProductOut(BaseModel):
    id: str
    name: str
    brand: Optional[str] = None
    price: Optional[float] = None
    sale_price: Optional[float] = None
    display_price: Optional[float] = None
    is_on_sale: bool = False
    sales_count: Optional[int] = None
    category: Optional[str] = None
    is_in_stock: Optional[bool] = None
    slug: Optional[str] = None
    image_url: Optional[str] = None
    score: Optional[int] = None
    highlights: list[dict] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, p: Product) -> "ProductOut":
        return cls(
            id=p.id,
            name=p.name,
            brand=p.brand,
            price=p.price,
            sale_price=p.sale_price,
            display_price=p.display_price,
            is_on_sale=p.is_on_sale,
            sales_count=p.sales_count,
            category=p.category,
            is_in_stock=p.is_in_stock,
            slug=p.slug,
            image_url=p.image_url,
            score=p.score,
            highlights=p.highlights,
        )


class PreviewOut(BaseModel):
    status: str
    collection: str
    query: str
    total_found: Optional[int] = None
    elapsed_ms: Optional[float] = None
    echoed_query: Optional[str] = None
    hits: list[ProductOut] = Field(default_factory=list)
    error: str = ""
    matches: Optional[MatchesOut] = None

    @classmethod
    def from_state(cls, state: PreviewState, matches: Optional[RuleMatches] = None) -> "PreviewOut":
        outcome = state.outcome
        return cls(
            status=state.status.value,
            collection=state.collection,
            query=state.query,
            total_found=outcome.total_found if outcome else None,
            elapsed_ms=outcome.elapsed_ms if outcome else None,
            echoed_query=outcome.echoed_query if outcome else None,
            hits=[ProductOut.from_entity(p) for p in outcome.hits] if outcome else [],
            error=state.error,
            matches=MatchesOut.from_matches(matches) if matches is not None else None,
        )
