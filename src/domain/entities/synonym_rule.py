"""
Domain entity for a synonym rule held by the search engine.
See docs/Architecture.md (Domain layer) for the architectural rationale.
Zero external dependencies: pure Python dataclass only.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class SynonymRule:
    """A set of interchangeable query terms.

    With a *root* the rule is directional (root -> synonyms); without one the
    rule is symmetric and every term can stand in for every other term.
    """

    id: str
    synonyms: tuple[str, ...] = field(default_factory=tuple)
    root: Optional[str] = None

    @property
    def is_directional(self) -> bool:
        return bool(self.root)

    def candidate_terms(self) -> tuple[str, ...]:
        """Terms the relevance matcher compares against a query.

        Missing or non-string entries are skipped, so a malformed rule
        yields fewer terms instead of raising.
        """
        terms = tuple(t for t in (self.synonyms or ()) if isinstance(t, str))
        if isinstance(self.root, str) and self.root:
            return terms + (self.root,)
        return terms

    def describe(self) -> str:
        if self.is_directional:
            return f"{self.root} -> {', '.join(self.synonyms)}"
        return " <-> ".join(self.synonyms)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SynonymRule":
        """Build a rule from engine JSON, treating missing fields as empty."""
        raw_synonyms = data.get("synonyms") or []
        return cls(
            id=str(data.get("id") or ""),
            synonyms=tuple(str(s) for s in raw_synonyms if s is not None),
            root=data.get("root") or None,
        )

    def to_payload(self) -> dict[str, Any]:
        """Engine wire format; *root* is only sent for directional rules."""
        payload: dict[str, Any] = {"id": self.id, "synonyms": list(self.synonyms)}
        if self.root:
            payload["root"] = self.root
        return payload
