"""Unit tests for the candidate store.

Covers id allocation, CRUD semantics, search, stats, random generation,
validation (all violations reported) and event emission order.
"""

from __future__ import annotations

import threading

import pytest

from candidate_hub.core.exceptions import EmptyStoreError, NotFoundError, ValidationError
from candidate_hub.models.candidate import CandidateInput
from candidate_hub.models.events import (
    CandidateCreated,
    CandidateDeleted,
    CandidateListChanged,
    CandidateStatsChanged,
    CandidateUpdated,
)
from candidate_hub.services.candidate_store import (
    CandidateStore,
    avatar_url,
    seed_default_candidates,
)
from candidate_hub.services.event_bus import ChangeEventBus


BIO = "A valid ten+ char bio"


def _input(name: str = "Ana Pop", party: str = "X", description: str = BIO) -> CandidateInput:
    return CandidateInput(name=name, political_party=party, description=description)


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------


class TestCreate:
    """create() allocates ids, derives image and stamps timestamps."""

    def test_first_candidate(self, store: CandidateStore) -> None:
        """Given an empty store, creating Ana Pop yields id 1 and equal timestamps."""
        candidate = store.create(_input())

        assert candidate.id == 1
        assert candidate.image == avatar_url("Ana Pop")
        assert candidate.image.startswith("https://ui-avatars.com/api/?name=Ana+Pop&")
        assert candidate.created_at == candidate.updated_at

    def test_ids_strictly_increase_and_are_not_reused(self, store: CandidateStore) -> None:
        """Given deletes in between, new ids are always above every earlier id."""
        first = store.create(_input("A"))
        second = store.create(_input("B"))
        store.delete(second.id)
        third = store.create(_input("C"))

        assert first.id < second.id < third.id
        assert third.id == 3

    def test_get_by_id_round_trip(self, store: CandidateStore) -> None:
        """Given a created candidate, get_by_id returns an equal record."""
        created = store.create(_input())
        assert store.get_by_id(created.id) == created

    def test_get_by_id_absent(self, store: CandidateStore) -> None:
        assert store.get_by_id(99) is None

    def test_list_is_a_copy_in_insertion_order(self, store: CandidateStore) -> None:
        store.create(_input("A"))
        store.create(_input("B"))

        snapshot = store.list()
        snapshot.clear()

        assert [c.name for c in store.list()] == ["A", "B"]

    def test_avatar_is_deterministic(self) -> None:
        assert avatar_url("Ion Popa") == avatar_url("Ion Popa")
        assert avatar_url("Ion Popa") != avatar_url("Ion Pop")


class TestValidation:
    """Field constraints are enforced at the write boundary."""

    def test_reports_every_violation(self, store: CandidateStore, recorded: list) -> None:
        """Given empty name and short description, both fields are reported."""
        with pytest.raises(ValidationError) as exc_info:
            store.create(_input(name="", party="X", description="short"))

        assert exc_info.value.fields == ["name", "description"]
        assert store.total_count() == 0
        assert recorded == []

    @pytest.mark.parametrize(
        ("name", "party", "description", "field"),
        [
            ("x" * 101, "X", BIO, "name"),
            ("   ", "X", BIO, "name"),
            ("Ana", "", BIO, "politicalParty"),
            ("Ana", "p" * 101, BIO, "politicalParty"),
            ("Ana", "X", "d" * 1001, "description"),
        ],
    )
    def test_single_violation(
        self, store: CandidateStore, name: str, party: str, description: str, field: str
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            store.create(_input(name, party, description))
        assert exc_info.value.fields == [field]

    def test_boundaries_are_accepted(self, store: CandidateStore) -> None:
        candidate = store.create(_input("n" * 100, "p" * 100, "d" * 10))
        assert candidate.id == 1
        store.update(candidate.id, _input("n", "p", "d" * 1000))


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------


class TestUpdate:

    def test_preserves_identity_and_advances_updated_at(self, store: CandidateStore) -> None:
        """Given an update, id/createdAt stay and all other fields change."""
        created = store.create(_input())
        updated = store.update(
            created.id, _input("Ion Popa", "Y", "Another valid description")
        )

        assert updated.id == created.id
        assert updated.created_at == created.created_at
        assert updated.updated_at > created.updated_at
        assert updated.name == "Ion Popa"
        assert updated.political_party == "Y"
        assert updated.description == "Another valid description"
        assert updated.image == avatar_url("Ion Popa")
        assert store.get_by_id(created.id) == updated

    def test_missing_id(self, store: CandidateStore, recorded: list) -> None:
        with pytest.raises(NotFoundError):
            store.update(7, _input())
        assert recorded == []

    def test_not_found_takes_precedence_over_validation(self, store: CandidateStore) -> None:
        with pytest.raises(NotFoundError):
            store.update(7, _input(name=""))

    def test_invalid_update_leaves_record_untouched(self, store: CandidateStore) -> None:
        created = store.create(_input())
        with pytest.raises(ValidationError):
            store.update(created.id, _input(description="short"))
        assert store.get_by_id(created.id) == created


class TestDelete:

    def test_removes_and_returns_previous_value(self, store: CandidateStore) -> None:
        created = store.create(_input())
        store.create(_input("Other"))

        deleted = store.delete(created.id)

        assert deleted == created
        assert store.get_by_id(created.id) is None
        assert store.total_count() == 1

    def test_missing_id(self, store: CandidateStore) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            store.delete(3)
        assert exc_info.value.candidate_id == 3


# ---------------------------------------------------------------------------
# Search / stats
# ---------------------------------------------------------------------------


class TestSearch:

    def test_empty_query_returns_everything(self, store: CandidateStore) -> None:
        store.create(_input("A"))
        store.create(_input("B"))
        assert len(store.search("")) == 2

    def test_case_insensitive_on_party(self, store: CandidateStore) -> None:
        """Given party 'USR (...)', searching 'usr' matches it."""
        store.create(_input("Nicusor", "USR (Save Romania Union)"))
        store.create(_input("Other", "PNL"))

        results = store.search("usr")

        assert [c.name for c in results] == ["Nicusor"]

    def test_matches_name_and_description(self, store: CandidateStore) -> None:
        store.create(_input("Maria Stan", "X", "Engineering background in planning"))
        assert len(store.search("STAN")) == 1
        assert len(store.search("engineering")) == 1
        assert store.search("nothing like this") == []


class TestStats:

    def test_counts_sum_to_total(self, store: CandidateStore) -> None:
        store.create(_input("A", "X"))
        store.create(_input("B", "Y"))
        store.create(_input("C", "X"))

        stats = store.stats()

        assert [(s.party, s.count) for s in stats] == [("X", 2), ("Y", 1)]
        assert sum(s.count for s in stats) == store.total_count()

    def test_party_disappears_when_last_candidate_deleted(self, store: CandidateStore) -> None:
        store.create(_input("A", "X"))
        lone = store.create(_input("B", "Y"))
        store.delete(lone.id)
        assert [s.party for s in store.stats()] == ["X"]

    def test_empty(self, store: CandidateStore) -> None:
        assert store.stats() == []
        assert store.total_count() == 0


# ---------------------------------------------------------------------------
# Generation / seeding
# ---------------------------------------------------------------------------


class TestGenerateRandom:

    def test_empty_store_fails(self, store: CandidateStore, recorded: list) -> None:
        with pytest.raises(EmptyStoreError):
            store.generate_random()
        assert recorded == []

    def test_reuses_the_only_party(self, store: CandidateStore) -> None:
        """Given one candidate of party X, the generated candidate is in X."""
        store.create(_input(party="X"))
        generated = store.generate_random()

        assert generated.political_party == "X"
        assert generated.id == 2
        assert store.total_count() == 2

    def test_picks_among_existing_parties(self, store: CandidateStore) -> None:
        store.create(_input("A", "X"))
        store.create(_input("B", "Y"))
        parties = {store.generate_random().political_party for _ in range(20)}
        assert parties <= {"X", "Y"}

    def test_emits_like_create(self, store: CandidateStore, recorded: list) -> None:
        store.create(_input())
        recorded.clear()
        store.generate_random()
        assert [type(e) for e in recorded] == [
            CandidateCreated,
            CandidateListChanged,
            CandidateStatsChanged,
        ]


def test_seed_default_candidates(store: CandidateStore) -> None:
    assert seed_default_candidates(store) == 5
    assert store.total_count() == 5
    assert len(store.stats()) == 5
    assert store.search("usr")[0].name == "Nicușor Dan"


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class TestEvents:
    """Each mutation emits entity event, then list, then stats."""

    def test_create_update_delete_sequence(self, store: CandidateStore, recorded: list) -> None:
        created = store.create(_input())
        store.update(created.id, _input("Ion"))
        store.delete(created.id)

        assert [type(e) for e in recorded] == [
            CandidateCreated, CandidateListChanged, CandidateStatsChanged,
            CandidateUpdated, CandidateListChanged, CandidateStatsChanged,
            CandidateDeleted, CandidateListChanged, CandidateStatsChanged,
        ]

    def test_payloads_reflect_committed_state(self, store: CandidateStore, recorded: list) -> None:
        created = store.create(_input())

        assert recorded[0].candidate == created
        assert recorded[1].candidates == (created,)
        assert [(s.party, s.count) for s in recorded[2].stats] == [("X", 1)]

    def test_events_delivered_before_call_returns(self, store: CandidateStore, bus: ChangeEventBus) -> None:
        seen: list[int] = []
        bus.subscribe(CandidateCreated, lambda e: seen.append(e.candidate.id))
        created = store.create(_input())
        assert seen == [created.id]

    def test_failing_subscriber_does_not_corrupt_store(
        self, store: CandidateStore, bus: ChangeEventBus, recorded: list
    ) -> None:
        def explode(event: CandidateCreated) -> None:
            raise RuntimeError("subscriber bug")

        bus.subscribe(CandidateCreated, explode)
        created = store.create(_input())

        assert store.get_by_id(created.id) == created
        assert len(recorded) == 3

    def test_handler_can_mutate_without_interleaving(
        self, store: CandidateStore, bus: ChangeEventBus, recorded: list
    ) -> None:
        """Given a handler that creates a follow-up, its events come after the batch."""
        def follow_up(event: CandidateCreated) -> None:
            if event.candidate.name == "Trigger":
                store.create(_input("Follow"))

        bus.subscribe(CandidateCreated, follow_up)
        store.create(_input("Trigger"))

        assert [type(e) for e in recorded] == [
            CandidateCreated, CandidateListChanged, CandidateStatsChanged,
            CandidateCreated, CandidateListChanged, CandidateStatsChanged,
        ]
        assert [len(e.candidates) for e in recorded if isinstance(e, CandidateListChanged)] == [1, 2]

    def test_concurrent_creates_keep_commit_order(self, store: CandidateStore, recorded: list) -> None:
        """Given parallel writers, list snapshots arrive in commit order."""
        def writer(prefix: str) -> None:
            for i in range(25):
                store.create(_input(f"{prefix}{i}"))

        threads = [threading.Thread(target=writer, args=(p,)) for p in "ABCD"]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.total_count() == 100
        assert len({c.id for c in store.list()}) == 100

        kinds = [type(e) for e in recorded]
        assert kinds == [CandidateCreated, CandidateListChanged, CandidateStatsChanged] * 100

        sizes = [len(e.candidates) for e in recorded if isinstance(e, CandidateListChanged)]
        assert sizes == list(range(1, 101))
