"""Pydantic models for candidate records.

Fields are snake_case in Python and camelCase on the wire
(``politicalParty``, ``createdAt``, ``updatedAt``).  ``image`` and the
timestamps are managed by the store and are absent from input models.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CandidateInput(BaseModel):
    """Payload for creating a candidate.

    Length rules are enforced by the store, not here, so that every write
    path (RPC, generation, seeding) reports violations the same way.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    political_party: str
    description: str


class CandidateUpdateInput(CandidateInput):
    """Payload for updating a candidate."""
    id: int


class CandidateIdInput(BaseModel):
    """Payload carrying only a candidate id (delete)."""
    id: int


class Candidate(BaseModel):
    """Full candidate record as held by the store."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: int
    name: str
    image: str
    political_party: str
    description: str
    created_at: datetime
    updated_at: datetime


class CandidateStats(BaseModel):
    """Number of candidates currently holding a party."""
    model_config = ConfigDict(frozen=True)

    party: str
    count: int
