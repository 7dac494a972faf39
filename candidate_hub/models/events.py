"""Change events announced by the candidate store.

A closed set of frozen event models.  ``ChangeEvent`` is the union of all of
them; subscribers register per concrete class on the event bus.
"""

from typing import Union

from pydantic import BaseModel, ConfigDict

from candidate_hub.models.candidate import Candidate, CandidateStats


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class CandidateCreated(_Event):
    """A candidate was added to the store."""
    candidate: Candidate


class CandidateUpdated(_Event):
    """A candidate's mutable fields were replaced."""
    candidate: Candidate


class CandidateDeleted(_Event):
    """A candidate was removed; carries the pre-deletion value."""
    candidate: Candidate


class CandidateListChanged(_Event):
    """Full candidate list after a mutation."""
    candidates: tuple[Candidate, ...]


class CandidateStatsChanged(_Event):
    """Full party statistics after a mutation."""
    stats: tuple[CandidateStats, ...]


EntityEvent = Union[CandidateCreated, CandidateUpdated, CandidateDeleted]

ChangeEvent = Union[
    CandidateCreated,
    CandidateUpdated,
    CandidateDeleted,
    CandidateListChanged,
    CandidateStatsChanged,
]

EVENT_TYPES: tuple[type[_Event], ...] = (
    CandidateCreated,
    CandidateUpdated,
    CandidateDeleted,
    CandidateListChanged,
    CandidateStatsChanged,
)
