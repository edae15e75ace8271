"""
Relevance matcher: which cached rules could affect a free-text query.
See docs/Architecture.md (Domain layer) for the architectural rationale.

Both functions are pure: no I/O, no mutation of their inputs, and result
order always equals input order. Matching is a case-insensitive substring
heuristic only; punctuation, diacritics and plurals are not normalised.
"""

from typing import Iterable

from src.domain.entities.override_rule import MatchType, OverrideRule
from src.domain.entities.synonym_rule import SynonymRule


def match_synonyms(query: str, synonym_rules: Iterable[SynonymRule]) -> list[SynonymRule]:
    """Return the synonym rules whose terms overlap *query*.

    A rule matches when any candidate term (its synonyms, plus the root for
    directional rules) is a substring of the lowercased query, or the
    lowercased query is a substring of a candidate term.
    """
    if not query or not synonym_rules:
        return []
    query_lower = query.lower()
    return [rule for rule in synonym_rules if _synonym_overlaps(query_lower, rule)]


def match_overrides(query: str, override_rules: Iterable[OverrideRule]) -> list[OverrideRule]:
    """Return the override rules that would trigger for *query*.

    ``exact`` rules need the lowercased strings to be equal; ``contains`` rules
    need the query to contain the rule's query. Any other match type never
    matches.
    """
    if not query or not override_rules:
        return []
    query_lower = query.lower()
    return [rule for rule in override_rules if _override_triggers(query_lower, rule)]


def _synonym_overlaps(query_lower: str, rule: SynonymRule) -> bool:
    candidate_terms = getattr(rule, "candidate_terms", None)
    if candidate_terms is None:
        return False
    for term in candidate_terms():
        if not term:
            # "" is a substring of every query
            continue
        term_lower = term.lower()
        if term_lower in query_lower or query_lower in term_lower:
            return True
    return False


def _override_triggers(query_lower: str, rule: OverrideRule) -> bool:
    condition = getattr(rule, "rule", None)
    pattern = (getattr(condition, "query", "") or "").lower()
    if not pattern:
        return False
    match = getattr(condition, "match", None)
    if match == MatchType.EXACT:
        return query_lower == pattern
    if match == MatchType.CONTAINS:
        return pattern in query_lower
    return False
