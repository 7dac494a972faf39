"""Authoritative in-memory candidate store.

Owns the candidate collection and the id allocator.  Every mutation runs
validate -> mutate -> snapshot under a single ``threading.Lock`` and queues
its events (entity event, then the full list, then the full stats) in an
outbox.  The lock is released before delivery; the outbox is drained by one
thread at a time, so subscribers always observe mutations in commit order and
never see the events of two mutations interleaved.

Events are delivered before the mutating call returns, except when the call
is made from inside an event handler: the nested mutation's events are then
delivered right after the handler's current batch.
"""

from __future__ import annotations

import hashlib
import logging
import random
import threading
from collections import deque
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from urllib.parse import quote_plus

from candidate_hub.core.constants import (
    AVATAR_URL_TEMPLATE,
    BACKGROUNDS,
    DEFAULT_CANDIDATES,
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    FIRST_NAMES,
    LAST_NAMES,
    NAME_MAX_LENGTH,
    PARTY_MAX_LENGTH,
)
from candidate_hub.core.exceptions import (
    EmptyStoreError,
    FieldError,
    NotFoundError,
    ValidationError,
)
from candidate_hub.models.candidate import Candidate, CandidateInput, CandidateStats
from candidate_hub.models.events import (
    CandidateCreated,
    CandidateDeleted,
    CandidateListChanged,
    CandidateStatsChanged,
    CandidateUpdated,
    ChangeEvent,
    EntityEvent,
)
from candidate_hub.services.event_bus import ChangeEventBus

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def avatar_url(name: str) -> str:
    """Return the avatar URL for *name*; the colour is a hash of the name."""
    background = hashlib.md5(name.encode("utf-8")).hexdigest()[:6]
    return AVATAR_URL_TEMPLATE.format(name=quote_plus(name), background=background)


def validate_candidate_input(data: CandidateInput) -> None:
    """Check all field constraints, raising ``ValidationError`` with every violation."""
    errors: list[FieldError] = []

    if not data.name.strip():
        errors.append(FieldError("name", "Name is required"))
    elif len(data.name) > NAME_MAX_LENGTH:
        errors.append(FieldError("name", f"Name must be at most {NAME_MAX_LENGTH} characters"))

    if not data.political_party.strip():
        errors.append(FieldError("politicalParty", "Political party is required"))
    elif len(data.political_party) > PARTY_MAX_LENGTH:
        errors.append(
            FieldError("politicalParty", f"Party name must be at most {PARTY_MAX_LENGTH} characters")
        )

    if len(data.description) < DESCRIPTION_MIN_LENGTH:
        errors.append(
            FieldError(
                "description",
                f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters",
            )
        )
    elif len(data.description) > DESCRIPTION_MAX_LENGTH:
        errors.append(
            FieldError(
                "description",
                f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters",
            )
        )

    if errors:
        raise ValidationError(errors)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class CandidateStore:
    """Single source of truth for candidate records."""

    def __init__(
        self,
        bus: ChangeEventBus,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._bus = bus
        self._rng = rng or random.Random()
        self._clock = clock

        self._candidates: list[Candidate] = []
        self._next_id = 1
        self._lock = threading.Lock()

        self._outbox: deque[tuple[int, list[ChangeEvent]]] = deque()
        self._commit_seq = 0
        self._delivered_seq = 0
        self._dispatcher: int | None = None
        self._dispatch_cond = threading.Condition()

    @property
    def bus(self) -> ChangeEventBus:
        return self._bus

    # -- reads ---------------------------------------------------------------

    def list(self) -> list[Candidate]:
        with self._lock:
            return list(self._candidates)

    def get_by_id(self, candidate_id: int) -> Candidate | None:
        with self._lock:
            return self._find(candidate_id)

    def search(self, query: str) -> list[Candidate]:
        """Case-insensitive substring match on name, party and description."""
        term = query.lower()
        with self._lock:
            return [
                c for c in self._candidates
                if term in c.name.lower()
                or term in c.political_party.lower()
                or term in c.description.lower()
            ]

    def stats(self) -> list[CandidateStats]:
        with self._lock:
            return self._compute_stats()

    def total_count(self) -> int:
        with self._lock:
            return len(self._candidates)

    # -- writes --------------------------------------------------------------

    def create(self, data: CandidateInput) -> Candidate:
        validate_candidate_input(data)

        with self._lock:
            now = self._clock()
            candidate = Candidate(
                id=self._next_id,
                name=data.name,
                image=avatar_url(data.name),
                political_party=data.political_party,
                description=data.description,
                created_at=now,
                updated_at=now,
            )
            self._next_id += 1
            self._candidates.append(candidate)
            seq = self._commit(CandidateCreated(candidate=candidate))

        logger.info(
            "candidate_created",
            extra={"candidate_id": candidate.id, "party": candidate.political_party},
        )
        self._dispatch(seq)
        return candidate

    def update(self, candidate_id: int, data: CandidateInput) -> Candidate:
        with self._lock:
            index = self._index_of(candidate_id)
            if index is None:
                raise NotFoundError(candidate_id)
            validate_candidate_input(data)

            existing = self._candidates[index]
            now = self._clock()
            # updatedAt must strictly advance even on coarse clocks
            if now <= existing.updated_at:
                now = existing.updated_at + timedelta(microseconds=1)

            candidate = existing.model_copy(
                update={
                    "name": data.name,
                    "image": avatar_url(data.name),
                    "political_party": data.political_party,
                    "description": data.description,
                    "updated_at": now,
                }
            )
            self._candidates[index] = candidate
            seq = self._commit(CandidateUpdated(candidate=candidate))

        logger.info("candidate_updated", extra={"candidate_id": candidate_id})
        self._dispatch(seq)
        return candidate

    def delete(self, candidate_id: int) -> Candidate:
        with self._lock:
            index = self._index_of(candidate_id)
            if index is None:
                raise NotFoundError(candidate_id)
            candidate = self._candidates.pop(index)
            seq = self._commit(CandidateDeleted(candidate=candidate))

        logger.info("candidate_deleted", extra={"candidate_id": candidate_id})
        self._dispatch(seq)
        return candidate

    def generate_random(self) -> Candidate:
        """Create a synthetic candidate for one of the parties already present."""
        with self._lock:
            parties = list(dict.fromkeys(c.political_party for c in self._candidates))
        if not parties:
            raise EmptyStoreError()

        party = self._rng.choice(parties)
        name = f"{self._rng.choice(FIRST_NAMES)} {self._rng.choice(LAST_NAMES)}"
        description = self._rng.choice(BACKGROUNDS)

        logger.debug("candidate_generating", extra={"party": party})
        return self.create(
            CandidateInput(name=name, political_party=party, description=description)
        )

    # -- internals -----------------------------------------------------------

    def _find(self, candidate_id: int) -> Candidate | None:
        for candidate in self._candidates:
            if candidate.id == candidate_id:
                return candidate
        return None

    def _index_of(self, candidate_id: int) -> int | None:
        for index, candidate in enumerate(self._candidates):
            if candidate.id == candidate_id:
                return index
        return None

    def _compute_stats(self) -> list[CandidateStats]:
        counts: dict[str, int] = {}
        for candidate in self._candidates:
            counts[candidate.political_party] = counts.get(candidate.political_party, 0) + 1
        return [CandidateStats(party=party, count=count) for party, count in counts.items()]

    def _commit(self, entity_event: EntityEvent) -> int:
        """Queue the events of a mutation.  Caller holds ``self._lock``."""
        self._commit_seq += 1
        self._outbox.append(
            (
                self._commit_seq,
                [
                    entity_event,
                    CandidateListChanged(candidates=tuple(self._candidates)),
                    CandidateStatsChanged(stats=tuple(self._compute_stats())),
                ],
            )
        )
        return self._commit_seq

    def _dispatch(self, seq: int) -> None:
        """Deliver queued events up to at least *seq*, in commit order."""
        me = threading.get_ident()
        with self._dispatch_cond:
            if self._dispatcher == me:
                return
            self._dispatch_cond.wait_for(
                lambda: self._delivered_seq >= seq or self._dispatcher is None
            )
            if self._delivered_seq >= seq:
                return
            self._dispatcher = me

        try:
            while True:
                try:
                    batch_seq, events = self._outbox.popleft()
                except IndexError:
                    break
                for event in events:
                    self._bus.publish(event)
                with self._dispatch_cond:
                    self._delivered_seq = batch_seq
                    self._dispatch_cond.notify_all()
        finally:
            with self._dispatch_cond:
                self._dispatcher = None
                self._dispatch_cond.notify_all()


def seed_default_candidates(store: CandidateStore) -> int:
    """Load the default candidates through the normal create path."""
    for entry in DEFAULT_CANDIDATES:
        store.create(CandidateInput(**entry))
    logger.info("candidates_seeded", extra={"count": len(DEFAULT_CANDIDATES)})
    return len(DEFAULT_CANDIDATES)
