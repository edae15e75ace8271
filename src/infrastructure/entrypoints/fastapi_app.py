"""
FastAPI entry point for the relevance console.
See docs/Architecture.md (Infrastructure layer) for the architectural rationale.

This module is the Composition Root: build_services() wires every
infrastructure adapter into the application use cases once, and create_app()
exposes them over HTTP. Console endpoints require the Bearer session token
returned by POST /login. Each engine connection is an explicit ConsoleSession
addressed by id in the URL.

Run locally:
    uvicorn src.infrastructure.entrypoints.fastapi_app:app --reload --port 8000
"""

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse

load_dotenv()

from src.application.services.console_state import snapshot_from_session
from src.application.session.console_session import ConsoleSession
from src.application.session.session_registry import SessionRegistry
from src.application.use_cases.authenticate_admin import AuthenticateAdminUseCase
from src.application.use_cases.connect_to_engine import (
    ConnectToEngineUseCase,
    DisconnectUseCase,
    EngineFactory,
)
from src.application.use_cases.manage_overrides import ManageOverridesUseCase
from src.application.use_cases.manage_synonyms import ManageSynonymsUseCase
from src.application.use_cases.select_collection import (
    DescribeCollectionUseCase,
    SelectCollectionUseCase,
)
from src.domain.errors import (
    AuthenticationError,
    ConfigurationError,
    ConsoleError,
    MalformedInputError,
    SessionNotFoundError,
    UpstreamError,
)
from src.domain.ports.credential_store_port import ICredentialStore
from src.domain.ports.session_token_port import ISessionTokenService
from src.domain.ports.state_store_port import IStateStore
from src.infrastructure.auth.jose_session_tokens import JoseSessionTokenService
from src.infrastructure.config.settings import Settings
from src.infrastructure.credentials.sql_credential_store import SqlCredentialStore
from src.infrastructure.entrypoints.schemas import (
    CollectionDetailsOut,
    CollectionOut,
    ConnectRequest,
    LoginRequest,
    LoginResponse,
    MatchesOut,
    OverrideOut,
    OverrideRequest,
    PreviewOut,
    RulesOut,
    SearchRequest,
    SelectCollectionRequest,
    SessionOut,
    SynonymOut,
    SynonymRequest,
    UserOut,
)
from src.infrastructure.observability.logging_config import configure_logging
from src.infrastructure.search_engine.typesense_http_adapter import TypesenseHttpAdapter
from src.infrastructure.secrets.secrets_manager_adapter import SecretsManagerAdapter
from src.infrastructure.state.json_file_state_store import JsonFileStateStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Composition Root
# ---------------------------------------------------------------------------


@dataclass
class ConsoleServices:
    settings: Settings
    registry: SessionRegistry
    tokens: ISessionTokenService
    state_store: IStateStore
    authenticate: AuthenticateAdminUseCase
    connect: ConnectToEngineUseCase
    disconnect: DisconnectUseCase
    select_collection: SelectCollectionUseCase
    describe_collection: DescribeCollectionUseCase
    synonyms: ManageSynonymsUseCase
    overrides: ManageOverridesUseCase


def load_settings() -> Settings:
    """Merge the optional AWS secret into the environment, then read Settings."""
    secret_arn = os.environ.get("CONSOLE_SECRET_ARN")
    if secret_arn:
        SecretsManagerAdapter().merge_into_env(secret_arn)
    return Settings()


def build_services(
    settings: Settings,
    credential_store: Optional[ICredentialStore] = None,
    engine_factory: Optional[EngineFactory] = None,
    state_store: Optional[IStateStore] = None,
    tokens: Optional[ISessionTokenService] = None,
) -> ConsoleServices:
    if settings.uses_default_secret:
        logger.warning("SESSION_SECRET is the built-in default; set it before deploying")

    credential_store = credential_store or SqlCredentialStore.from_url(settings.database_url)
    engine_factory = engine_factory or (
        lambda profile: TypesenseHttpAdapter(profile, timeout=settings.engine_timeout_seconds)
    )
    state_store = state_store or JsonFileStateStore(settings.state_dir, settings.state_max_bytes)
    tokens = tokens or JoseSessionTokenService(
        settings.session_secret,
        ttl=timedelta(minutes=settings.session_ttl_minutes),
    )
    registry = SessionRegistry(max_per_owner=settings.max_sessions_per_user)

    return ConsoleServices(
        settings=settings,
        registry=registry,
        tokens=tokens,
        state_store=state_store,
        authenticate=AuthenticateAdminUseCase(credential_store, tokens),
        connect=ConnectToEngineUseCase(
            engine_factory,
            registry,
            state_store,
            query_by=settings.search_query_by,
            per_page=settings.search_per_page,
        ),
        disconnect=DisconnectUseCase(registry, state_store),
        select_collection=SelectCollectionUseCase(state_store),
        describe_collection=DescribeCollectionUseCase(),
        synonyms=ManageSynonymsUseCase(),
        overrides=ManageOverridesUseCase(),
    )


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_services(request: Request) -> ConsoleServices:
    return request.app.state.services


def get_current_user(request: Request, services: ConsoleServices = Depends(get_services)) -> dict:
    """FastAPI dependency: validate the session token from the Authorization header."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    token = auth_header.split(" ", 1)[1]
    try:
        return services.tokens.validate(token)
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


def get_session(
    session_id: str,
    user: dict = Depends(get_current_user),
    services: ConsoleServices = Depends(get_services),
) -> ConsoleSession:
    return services.registry.get(session_id, user["sub"])


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, services: ConsoleServices = Depends(get_services)):
    result = services.authenticate.execute(body.username, body.password)
    account = result.account
    return LoginResponse(
        token=result.token,
        user=UserOut(id=account.id, username=account.username, full_name=account.full_name),
    )


@router.post("/sessions", response_model=SessionOut, status_code=201)
def connect(
    body: ConnectRequest,
    user: dict = Depends(get_current_user),
    services: ConsoleServices = Depends(get_services),
):
    if body.destination:
        profile = services.settings.destination_profile(body.destination, body.api_key)
    else:
        profile = body.to_profile()
    session = services.connect.execute(user["sub"], profile)
    return SessionOut.from_session(session)


@router.post("/sessions/restore", response_model=SessionOut)
def restore(user: dict = Depends(get_current_user), services: ConsoleServices = Depends(get_services)):
    return SessionOut.from_session(services.connect.restore(user["sub"]))


@router.get("/sessions/{session_id}", response_model=SessionOut)
def describe_session(session: ConsoleSession = Depends(get_session)):
    return SessionOut.from_session(session)


@router.delete("/sessions/{session_id}", status_code=204)
def disconnect(
    session_id: str,
    user: dict = Depends(get_current_user),
    services: ConsoleServices = Depends(get_services),
):
    services.disconnect.execute(user["sub"], session_id)
    return Response(status_code=204)


@router.get("/sessions/{session_id}/collections", response_model=list[CollectionOut])
def list_collections(
    refresh: bool = False,
    session: ConsoleSession = Depends(get_session),
    services: ConsoleServices = Depends(get_services),
):
    if refresh:
        collections = session.engine.list_collections()
        with session.lock:
            session.collections = collections
        services.state_store.save(session.owner, snapshot_from_session(session))
    return [CollectionOut.from_entity(c) for c in session.collections]


@router.get("/sessions/{session_id}/collections/{collection}", response_model=CollectionDetailsOut)
def collection_details(
    collection: str,
    session: ConsoleSession = Depends(get_session),
    services: ConsoleServices = Depends(get_services),
):
    return CollectionDetailsOut.from_entity(services.describe_collection.execute(session, collection))


@router.put("/sessions/{session_id}/selection", response_model=RulesOut)
def select_collection(
    body: SelectCollectionRequest,
    session: ConsoleSession = Depends(get_session),
    services: ConsoleServices = Depends(get_services),
):
    return RulesOut.from_snapshot(services.select_collection.execute(session, body.collection))


@router.get("/sessions/{session_id}/rules", response_model=RulesOut)
def cached_rules(session: ConsoleSession = Depends(get_session)):
    return RulesOut.from_snapshot(session.rule_cache.snapshot)


@router.get("/sessions/{session_id}/synonyms", response_model=list[SynonymOut])
def list_synonyms(session: ConsoleSession = Depends(get_session), services: ConsoleServices = Depends(get_services)):
    return [SynonymOut.from_entity(s) for s in services.synonyms.list_rules(session)]


@router.post("/sessions/{session_id}/synonyms", response_model=SynonymOut, status_code=201)
def create_synonym(
    body: SynonymRequest,
    session: ConsoleSession = Depends(get_session),
    services: ConsoleServices = Depends(get_services),
):
    return SynonymOut.from_entity(services.synonyms.create(session, body.synonyms, body.root))


@router.put("/sessions/{session_id}/synonyms/{rule_id}", response_model=SynonymOut)
def update_synonym(
    rule_id: str,
    body: SynonymRequest,
    session: ConsoleSession = Depends(get_session),
    services: ConsoleServices = Depends(get_services),
):
    return SynonymOut.from_entity(services.synonyms.update(session, rule_id, body.synonyms, body.root))


@router.delete("/sessions/{session_id}/synonyms/{rule_id}", status_code=204)
def delete_synonym(
    rule_id: str,
    session: ConsoleSession = Depends(get_session),
    services: ConsoleServices = Depends(get_services),
):
    services.synonyms.delete(session, rule_id)
    return Response(status_code=204)


@router.get("/sessions/{session_id}/overrides", response_model=list[OverrideOut])
def list_overrides(session: ConsoleSession = Depends(get_session), services: ConsoleServices = Depends(get_services)):
    return [OverrideOut.from_entity(o) for o in services.overrides.list_rules(session)]


@router.post("/sessions/{session_id}/overrides", response_model=OverrideOut, status_code=201)
def create_override(
    body: OverrideRequest,
    session: ConsoleSession = Depends(get_session),
    services: ConsoleServices = Depends(get_services),
):
    return OverrideOut.from_entity(services.overrides.create(session, body.to_draft(), body.id))


@router.put("/sessions/{session_id}/overrides/{rule_id}", response_model=OverrideOut)
def update_override(
    rule_id: str,
    body: OverrideRequest,
    session: ConsoleSession = Depends(get_session),
    services: ConsoleServices = Depends(get_services),
):
    return OverrideOut.from_entity(services.overrides.update(session, rule_id, body.to_draft()))


@router.delete("/sessions/{session_id}/overrides/{rule_id}", status_code=204)
def delete_override(
    rule_id: str,
    session: ConsoleSession = Depends(get_session),
    services: ConsoleServices = Depends(get_services),
):
    services.overrides.delete(session, rule_id)
    return Response(status_code=204)


@router.get("/sessions/{session_id}/preview", response_model=PreviewOut)
def preview_state(q: str = "", session: ConsoleSession = Depends(get_session)):
    matches = session.preview.matches(q) if q else None
    return PreviewOut.from_state(session.preview.state, matches)


@router.get("/sessions/{session_id}/preview/matches", response_model=MatchesOut)
def preview_matches(q: str = "", session: ConsoleSession = Depends(get_session)):
    return MatchesOut.from_matches(session.preview.matches(q))


@router.post("/sessions/{session_id}/preview/search", response_model=PreviewOut)
def preview_search(body: SearchRequest, session: ConsoleSession = Depends(get_session)):
    state = session.preview.submit(session.selected_collection, body.query)
    return PreviewOut.from_state(state, session.preview.matches(body.query))


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def _error(status_code: int, kind: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "kind": kind, **extra})


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ConfigurationError)
    async def _configuration(request: Request, exc: ConfigurationError):
        return _error(400, "configuration", str(exc))

    @app.exception_handler(MalformedInputError)
    async def _malformed(request: Request, exc: MalformedInputError):
        return _error(422, "malformed_input", str(exc))

    @app.exception_handler(AuthenticationError)
    async def _authentication(request: Request, exc: AuthenticationError):
        return _error(401, "authentication", str(exc))

    @app.exception_handler(SessionNotFoundError)
    async def _session_not_found(request: Request, exc: SessionNotFoundError):
        return _error(404, "session_not_found", str(exc))

    @app.exception_handler(UpstreamError)
    async def _upstream(request: Request, exc: UpstreamError):
        return _error(
            504 if exc.retryable and exc.status_code is None else 502,
            "upstream",
            exc.message,
            upstream_status=exc.status_code,
            retryable=exc.retryable,
        )

    @app.exception_handler(ConsoleError)
    async def _console(request: Request, exc: ConsoleError):
        logger.error("Unhandled console error", exc_info=exc)
        return _error(500, "internal", str(exc))


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------


def create_app(settings: Optional[Settings] = None, services: Optional[ConsoleServices] = None) -> FastAPI:
    settings = settings or (services.settings if services else load_settings())
    configure_logging(settings.log_level, settings.log_json)
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        services.registry.close_all()

    app = FastAPI(title="Relevance Console API", lifespan=lifespan)
    app.state.services = services
    register_error_handlers(app)
    app.include_router(router)
    return app


app = create_app()
