"""
Use-case: list, create, update and delete synonym rules of the selected collection.
See docs/Architecture.md (Application layer) for the architectural rationale.
Depends only on Domain ports and entities: no infrastructure imports.

Writes are validated locally before any network call. After a successful
write the synonym list is refetched and swapped into the rule cache whole;
a failed write leaves the cache untouched.
"""

import logging
import secrets
import string
import time
from typing import Callable, Optional, Sequence

from src.application.session.console_session import ConsoleSession
from src.domain.entities.synonym_rule import SynonymRule
from src.domain.errors import MalformedInputError

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def generate_synonym_id() -> str:
    """``synonym-<epoch ms>-<9 random base36 chars>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"synonym-{int(time.time() * 1000)}-{suffix}"


def build_synonym(synonym_id: str, synonyms: Sequence[str], root: Optional[str]) -> SynonymRule:
    """Trim terms, drop blanks and check the rule shape.

    Raises:
        MalformedInputError: symmetric rules need two terms; directional rules
                             need a root and at least one synonym.
    """
    terms = tuple(t.strip() for t in synonyms if t and t.strip())
    root = (root or "").strip() or None
    if root is None and len(terms) < 2:
        raise MalformedInputError("a multi-way synonym needs at least two terms")
    if root is not None and not terms:
        raise MalformedInputError("a one-way synonym needs at least one synonym for its root")
    return SynonymRule(id=synonym_id, synonyms=terms, root=root)


class ManageSynonymsUseCase:
    def __init__(self, id_factory: Callable[[], str] = generate_synonym_id) -> None:
        self._id_factory = id_factory

    def list_rules(self, session: ConsoleSession) -> list[SynonymRule]:
        return list(session.refresh_synonyms().synonyms)

    def create(
        self,
        session: ConsoleSession,
        synonyms: Sequence[str],
        root: Optional[str] = None,
    ) -> SynonymRule:
        collection = session.require_collection()
        rule = build_synonym(self._id_factory(), synonyms, root)
        saved = session.engine.upsert_synonym(collection, rule.to_payload())
        logger.info("Synonym created", extra={"collection": collection, "rule_id": saved.id})
        session.refresh_synonyms()
        return saved

    def update(
        self,
        session: ConsoleSession,
        synonym_id: str,
        synonyms: Sequence[str],
        root: Optional[str] = None,
    ) -> SynonymRule:
        collection = session.require_collection()
        if not synonym_id or not synonym_id.strip():
            raise MalformedInputError("synonym id is required")
        rule = build_synonym(synonym_id.strip(), synonyms, root)
        saved = session.engine.upsert_synonym(collection, rule.to_payload())
        logger.info("Synonym updated", extra={"collection": collection, "rule_id": saved.id})
        session.refresh_synonyms()
        return saved

    def delete(self, session: ConsoleSession, synonym_id: str) -> None:
        collection = session.require_collection()
        if not synonym_id or not synonym_id.strip():
            raise MalformedInputError("synonym id is required")
        session.engine.delete_synonym(collection, synonym_id.strip())
        logger.info("Synonym deleted", extra={"collection": collection, "rule_id": synonym_id})
        session.refresh_synonyms()
