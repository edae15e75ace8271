"""
Domain entity for a console administrator account.
See docs/Architecture.md (Domain layer) for the architectural rationale.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class AdminAccount:
    id: int
    username: str
    first_name: str
    last_name: str
    active: bool

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
