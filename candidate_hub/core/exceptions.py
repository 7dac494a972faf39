"""Store error taxonomy.

Raised synchronously by the candidate store and mapped to HTTP status codes
by the RPC router (422 / 404 / 409).  A failed mutation never emits events.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A single violated field constraint."""
    field: str
    reason: str


class StoreError(Exception):
    """Base class for candidate store errors."""


class ValidationError(StoreError):
    """Input failed one or more field constraints.

    All violations are collected, not only the first one.
    """

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        summary = "; ".join(f"{e.field}: {e.reason}" for e in self.errors)
        super().__init__(f"Invalid candidate input ({summary})")

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


class NotFoundError(StoreError):
    """Operation referenced a candidate id that does not exist."""

    def __init__(self, candidate_id: int) -> None:
        self.candidate_id = candidate_id
        super().__init__(f"Candidate {candidate_id} not found")


class EmptyStoreError(StoreError):
    """Random generation requested while the store holds no candidates."""

    def __init__(self) -> None:
        super().__init__("No existing parties found; create a candidate first")
