"""
Use-case: list, create, update and delete override rules of the selected collection.
See docs/Architecture.md (Application layer) for the architectural rationale.
Depends only on Domain ports and entities: no infrastructure imports.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from src.application.session.console_session import ConsoleSession
from src.domain.entities.override_rule import MatchType, OverrideRule
from src.domain.errors import MalformedInputError

logger = logging.getLogger(__name__)


def generate_override_id() -> str:
    return f"override-{int(time.time() * 1000)}"


@dataclass(frozen=True)
class OverrideDraft:
    """An override as submitted by the user, before it is sent to the engine.

    Flags left as None are omitted from the payload so the engine keeps its
    own defaults.
    """

    query: str
    match: MatchType = MatchType.EXACT
    filter_by: Optional[str] = None
    includes: list[tuple[str, int]] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    filter_curated_hits: Optional[bool] = None
    remove_matched_tokens: Optional[bool] = None
    stop_processing: Optional[bool] = None

    def to_payload(self, override_id: str) -> dict[str, Any]:
        """Validate the draft and return the engine wire format.

        Raises:
            MalformedInputError: on an empty query, a blank document id or a
                                 pin position below 1.
        """
        query = (self.query or "").strip()
        if not query:
            raise MalformedInputError("Query is required")
        rule: dict[str, Any] = {"query": query, "match": MatchType(self.match).value}
        if self.filter_by and self.filter_by.strip():
            rule["filter_by"] = self.filter_by.strip()
        payload: dict[str, Any] = {"id": override_id, "rule": rule}

        if self.includes:
            pins = []
            for doc_id, position in self.includes:
                if not doc_id or not str(doc_id).strip():
                    raise MalformedInputError("pinned document id must not be empty")
                if int(position) < 1:
                    raise MalformedInputError("pin position must be 1 or greater")
                pins.append({"id": str(doc_id).strip(), "position": int(position)})
            payload["includes"] = pins
        if self.excludes:
            hidden = []
            for doc_id in self.excludes:
                if not doc_id or not str(doc_id).strip():
                    raise MalformedInputError("hidden document id must not be empty")
                hidden.append({"id": str(doc_id).strip()})
            payload["excludes"] = hidden

        for flag in ("filter_curated_hits", "remove_matched_tokens", "stop_processing"):
            value = getattr(self, flag)
            if value is not None:
                payload[flag] = value
        return payload


class ManageOverridesUseCase:
    def __init__(self, id_factory: Callable[[], str] = generate_override_id) -> None:
        self._id_factory = id_factory

    def list_rules(self, session: ConsoleSession) -> list[OverrideRule]:
        return list(session.refresh_overrides().overrides)

    def create(
        self,
        session: ConsoleSession,
        draft: OverrideDraft,
        override_id: Optional[str] = None,
    ) -> OverrideRule:
        collection = session.require_collection()
        payload = draft.to_payload((override_id or "").strip() or self._id_factory())
        saved = session.engine.upsert_override(collection, payload)
        logger.info("Override created", extra={"collection": collection, "rule_id": saved.id})
        session.refresh_overrides()
        return saved

    def update(self, session: ConsoleSession, override_id: str, draft: OverrideDraft) -> OverrideRule:
        collection = session.require_collection()
        if not override_id or not override_id.strip():
            raise MalformedInputError("override id is required")
        payload = draft.to_payload(override_id.strip())
        saved = session.engine.upsert_override(collection, payload)
        logger.info("Override updated", extra={"collection": collection, "rule_id": saved.id})
        session.refresh_overrides()
        return saved

    def delete(self, session: ConsoleSession, override_id: str) -> None:
        collection = session.require_collection()
        if not override_id or not override_id.strip():
            raise MalformedInputError("override id is required")
        session.engine.delete_override(collection, override_id.strip())
        logger.info("Override deleted", extra={"collection": collection, "rule_id": override_id})
        session.refresh_overrides()
