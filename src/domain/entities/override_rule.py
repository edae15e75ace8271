"""
Domain entities for curated override rules (pinned and hidden hits).
See docs/Architecture.md (Domain layer) for the architectural rationale.
Zero external dependencies: pure Python dataclasses only.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class MatchType(str, Enum):
    EXACT = "exact"
    CONTAINS = "contains"

    @classmethod
    def parse(cls, value: Any) -> Optional["MatchType"]:
        """Return the member for *value*, or None when it is missing or unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class OverrideCondition:
    query: str
    match: Optional[MatchType]
    filter_by: Optional[str] = None


@dataclass(frozen=True)
class PinnedHit:
    doc_id: str
    position: int


@dataclass(frozen=True)
class HiddenHit:
    doc_id: str


@dataclass(frozen=True)
class OverrideRule:
    id: str
    rule: OverrideCondition
    includes: tuple[PinnedHit, ...] = field(default_factory=tuple)
    excludes: tuple[HiddenHit, ...] = field(default_factory=tuple)
    filter_curated_hits: bool = False
    remove_matched_tokens: bool = False
    stop_processing: bool = False

    def describe(self) -> str:
        parts = [self.rule.query]
        if self.includes:
            parts.append(f"(pins {len(self.includes)} items)")
        if self.excludes:
            parts.append(f"(hides {len(self.excludes)} items)")
        return " ".join(parts)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OverrideRule":
        """Build an override from engine JSON without raising on missing fields.

        An absent or unrecognised ``match`` value is kept as None so the rule
        never matches a query.
        """
        rule = data.get("rule") or {}
        includes = tuple(
            PinnedHit(doc_id=str(item.get("id", "")), position=_as_int(item.get("position"), 1))
            for item in data.get("includes") or []
            if isinstance(item, dict)
        )
        excludes = tuple(
            HiddenHit(doc_id=str(item.get("id", "")))
            for item in data.get("excludes") or []
            if isinstance(item, dict)
        )
        return cls(
            id=str(data.get("id") or ""),
            rule=OverrideCondition(
                query=str(rule.get("query") or ""),
                match=MatchType.parse(rule.get("match")),
                filter_by=rule.get("filter_by") or None,
            ),
            includes=includes,
            excludes=excludes,
            filter_curated_hits=bool(data.get("filter_curated_hits", False)),
            remove_matched_tokens=bool(data.get("remove_matched_tokens", False)),
            stop_processing=bool(data.get("stop_processing", False)),
        )


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
