"""Shared test fixtures.

Provides a fresh store and event recorder, and ``TestClient`` fixtures for
the FastAPI app with and without the default seed candidates.
"""

import random
from collections.abc import Generator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from candidate_hub.models.events import ChangeEvent
from candidate_hub.services.candidate_store import CandidateStore
from candidate_hub.services.event_bus import ChangeEventBus


@pytest.fixture()
def bus() -> ChangeEventBus:
    return ChangeEventBus()


@pytest.fixture()
def store(bus: ChangeEventBus) -> CandidateStore:
    """An empty store with a deterministic random source."""
    return CandidateStore(bus, rng=random.Random(42))


@pytest.fixture()
def recorded(bus: ChangeEventBus) -> list[ChangeEvent]:
    """Every event published on ``bus``, in delivery order."""
    events: list[ChangeEvent] = []
    bus.subscribe_all(events.append)
    return events


@pytest.fixture()
def test_client() -> Generator[TestClient, None, None]:
    """Provide a FastAPI TestClient over a store seeded with the defaults."""
    from candidate_hub.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture()
def empty_client() -> Generator[TestClient, None, None]:
    """Provide a FastAPI TestClient over an empty store."""
    from candidate_hub.core.config import settings
    from candidate_hub.main import app

    with patch.object(settings, "SEED_DEFAULT_CANDIDATES", False):
        with TestClient(app) as client:
            yield client
