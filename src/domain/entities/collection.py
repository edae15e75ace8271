"""
Domain entities describing engine collections.
See docs/Architecture.md (Domain layer) for the architectural rationale.
Zero external dependencies: pure Python dataclasses only.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CollectionSummary:
    name: str
    num_documents: int
    created_at: Optional[int] = None


@dataclass(frozen=True)
class CollectionField:
    name: str
    type: str
    facet: bool = False
    optional: bool = False
    index: bool = True


@dataclass(frozen=True)
class CollectionDetails:
    name: str
    num_documents: int
    fields: list[CollectionField]
    default_sorting_field: Optional[str]
    created_at: Optional[int]
    enable_nested_fields: bool = False
