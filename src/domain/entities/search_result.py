"""
Domain entities for live search results shown in the preview panel.
See docs/Architecture.md (Domain layer) for the architectural rationale.
Zero external dependencies: pure Python dataclasses only.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Product:
    """One search hit, flattened from the engine's ``hit.document``."""

    id: str
    name: str
    brand: Optional[str]
    price: Optional[float]
    sale_price: Optional[float]
    sales_count: Optional[int]
    category: Optional[str]
    is_in_stock: Optional[bool]
    slug: Optional[str]
    image_url: Optional[str]
    score: Optional[int]
    highlights: list[dict] = field(default_factory=list)
    document: dict[str, Any] = field(default_factory=dict)

    @property
    def display_price(self) -> Optional[float]:
        return self.sale_price or self.price

    @property
    def is_on_sale(self) -> bool:
        return bool(self.sale_price and self.price and self.sale_price < self.price)


@dataclass(frozen=True)
class SearchOutcome:
    total_found: int
    elapsed_ms: float
    echoed_query: str
    hits: tuple[Product, ...]
