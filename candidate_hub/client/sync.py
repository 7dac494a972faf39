"""Client-side synchronization adapter.

Keeps one local view of the candidate list and party stats, fed by two data
paths:

1. **pull** - a periodic ``candidates.getAll`` + ``candidates.getStats`` over
   HTTP, scheduled with APScheduler (always on, independent of push);
2. **push** - frames read from the gateway's WebSocket channel.

Both paths deliver full snapshots, so whichever arrived last wins.  Errors
move the adapter to ``degraded`` but never clear the cached data.

States: ``connecting -> connected <-> degraded``.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone
from typing import Any

import httpx
from websockets.sync.client import connect

from candidate_hub.core.config import settings
from candidate_hub.core.exceptions import (
    EmptyStoreError,
    FieldError,
    NotFoundError,
    ValidationError,
)
from candidate_hub.models.candidate import Candidate, CandidateStats
from candidate_hub.models.enums import ServerMessage, SyncState
from candidate_hub.scheduler.jobs import (
    cancel_job,
    create_scheduler,
    ensure_started,
    schedule_interval,
    shutdown_scheduler,
)

logger = logging.getLogger(__name__)

RPC_PREFIX = "/api/rpc"
POLL_JOB_ID = "sync_poll"
GENERATE_JOB_ID = "generate_candidates"

_LIST_EVENTS = {ServerMessage.candidates_list.value, ServerMessage.candidates_updated.value}
_STATS_EVENTS = {ServerMessage.stats_data.value, ServerMessage.stats_updated.value}
_ENTITY_EVENTS = {
    ServerMessage.candidate_created.value,
    ServerMessage.candidate_updated.value,
    ServerMessage.candidate_deleted.value,
}


def _parse_candidates(data: Any) -> list[Candidate]:
    return [Candidate.model_validate(item) for item in data]


def _parse_stats(data: Any) -> list[CandidateStats]:
    return [CandidateStats.model_validate(item) for item in data]


def _raise_for_store_error(response: httpx.Response) -> None:
    """Turn RPC error responses back into store exceptions."""
    if response.is_success:
        return
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("detail") if isinstance(body, dict) else None

    if isinstance(detail, dict):
        kind = detail.get("error")
        if kind == "validation_error":
            raise ValidationError(
                [FieldError(f["field"], f["reason"]) for f in detail.get("fields", [])]
            )
        if kind == "not_found":
            raise NotFoundError(detail.get("id"))
        if kind == "empty_store":
            raise EmptyStoreError()
    response.raise_for_status()


class CandidateSyncClient:
    """Local read-through cache of the server's candidates and stats."""

    def __init__(
        self,
        http: httpx.Client | None = None,
        *,
        base_url: str | None = None,
        poll_interval: float | None = None,
        scheduler=None,
    ) -> None:
        self._owns_http = http is None
        self._http = http or httpx.Client(
            base_url=base_url or settings.SYNC_BASE_URL,
            timeout=settings.SYNC_HTTP_TIMEOUT_SECONDS,
        )
        self._poll_interval = poll_interval or settings.SYNC_POLL_INTERVAL_SECONDS
        self._scheduler = scheduler or create_scheduler()
        self._lock = threading.Lock()

        self.state = SyncState.connecting
        self.candidates: list[Candidate] = []
        self.stats: list[CandidateStats] = []
        self.error: str | None = None
        self.last_updated: datetime | None = None

        self.search_results: list[Candidate] = []
        self.search_error: str | None = None
        self.is_searching = False

        self._push_stop = threading.Event()
        self._push_thread: threading.Thread | None = None
        self._push_socket = None

    # -- health --------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self.state is SyncState.connected

    @property
    def is_connecting(self) -> bool:
        return self.state is SyncState.connecting

    @property
    def is_generating(self) -> bool:
        return self._scheduler.get_job(GENERATE_JOB_ID) is not None

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        """Enter ``connecting`` and start the periodic pull (first run immediately)."""
        with self._lock:
            if self.state is not SyncState.connected:
                self.state = SyncState.connecting
        schedule_interval(
            self._scheduler, self.refresh, self._poll_interval, POLL_JOB_ID, run_now=True
        )
        ensure_started(self._scheduler)

    def stop(self) -> None:
        """Cancel polling, generation and push.  Safe to call at any time."""
        cancel_job(self._scheduler, POLL_JOB_ID)
        cancel_job(self._scheduler, GENERATE_JOB_ID)
        shutdown_scheduler(self._scheduler)
        self.stop_push()
        if self._owns_http:
            self._http.close()

    # -- pull path -----------------------------------------------------------

    def refresh(self) -> bool:
        """Fetch full list and stats; returns True when both succeeded."""
        try:
            candidates_response = self._http.get(f"{RPC_PREFIX}/candidates.getAll")
            candidates_response.raise_for_status()
            stats_response = self._http.get(f"{RPC_PREFIX}/candidates.getStats")
            stats_response.raise_for_status()
            candidates = _parse_candidates(candidates_response.json())
            stats = _parse_stats(stats_response.json())
        except (httpx.HTTPError, ValueError) as exc:
            self._mark_degraded(f"Data fetch failed: {exc}")
            return False

        with self._lock:
            self.candidates = candidates
            self.stats = stats
            self._mark_fresh()
        logger.debug("sync_pulled", extra={"candidates": len(candidates), "parties": len(stats)})
        return True

    # -- push path -----------------------------------------------------------

    def apply_message(self, message: dict[str, Any]) -> None:
        """Apply one gateway frame to the local view."""
        event = message.get("event")
        data = message.get("data")

        if event in _LIST_EVENTS:
            candidates = _parse_candidates(data)
            with self._lock:
                self.candidates = candidates
                self._mark_fresh()
        elif event in _STATS_EVENTS:
            stats = _parse_stats(data)
            with self._lock:
                self.stats = stats
                self._mark_fresh()
        elif event in _ENTITY_EVENTS:
            # The full list follows every entity event
            logger.debug("sync_entity_event", extra={"event": event})
        elif event == ServerMessage.search_results.value:
            self.search_results = _parse_candidates(data)
        elif event == ServerMessage.error.value:
            message_text = data.get("message") if isinstance(data, dict) else data
            logger.warning("sync_server_error", extra={"error_message": message_text})
        else:
            logger.debug("sync_unhandled_event", extra={"event": event})

    def consume(self, messages: Iterable[dict[str, Any]]) -> None:
        """Apply frames until the source is exhausted or fails."""
        try:
            for message in messages:
                self.apply_message(message)
        except Exception as exc:
            logger.warning("sync_push_failed", extra={"error_message": str(exc)})
            self._mark_degraded(f"Push channel failed: {exc}")

    def push_url(self) -> str:
        base = str(self._http.base_url).rstrip("/")
        if base.startswith("https://"):
            return "wss://" + base[len("https://"):] + "/ws"
        return "ws://" + base.removeprefix("http://") + "/ws"

    def _push_frames(self, url: str) -> Iterator[dict[str, Any]]:
        with connect(url, open_timeout=settings.SYNC_HTTP_TIMEOUT_SECONDS) as websocket:
            self._push_socket = websocket
            try:
                for raw in websocket:
                    yield json.loads(raw)
            finally:
                self._push_socket = None

    def run_push(self, url: str | None = None, reconnect_delay: float | None = None) -> None:
        """Read the push channel, reconnecting until ``stop_push`` is called."""
        url = url or self.push_url()
        delay = reconnect_delay or self._poll_interval
        while not self._push_stop.is_set():
            self.consume(self._push_frames(url))
            if self._push_stop.is_set():
                break
            self._mark_degraded("Push channel closed")
            self._push_stop.wait(delay)

    def start_push(self, url: str | None = None) -> None:
        """Run ``run_push`` on a daemon thread; no-op if already running."""
        if self._push_thread is not None and self._push_thread.is_alive():
            return
        self._push_stop.clear()
        self._push_thread = threading.Thread(
            target=self.run_push, args=(url,), name="candidate-sync-push", daemon=True
        )
        self._push_thread.start()

    def stop_push(self) -> None:
        self._push_stop.set()
        socket = self._push_socket
        if socket is not None:
            socket.close()
        if self._push_thread is not None:
            self._push_thread.join(timeout=settings.SYNC_HTTP_TIMEOUT_SECONDS)
            self._push_thread = None

    # -- on-demand reads -----------------------------------------------------

    def search(self, query: str) -> list[Candidate]:
        """Search on demand; an empty query returns no results without a request."""
        if not query:
            self.search_results = []
            return []

        self.is_searching = True
        try:
            response = self._http.get(f"{RPC_PREFIX}/candidates.search", params={"query": query})
            response.raise_for_status()
            self.search_results = _parse_candidates(response.json())
            self.search_error = None
        except (httpx.HTTPError, ValueError) as exc:
            self.search_error = f"Search failed: {exc}"
            logger.warning("sync_search_failed", extra={"query": query, "error_message": str(exc)})
        finally:
            self.is_searching = False
        return self.search_results

    def get_candidate(self, candidate_id: int) -> Candidate | None:
        response = self._http.get(f"{RPC_PREFIX}/candidates.getById", params={"id": candidate_id})
        _raise_for_store_error(response)
        data = response.json()
        return Candidate.model_validate(data) if data is not None else None

    # -- mutations -----------------------------------------------------------

    def create(self, name: str, political_party: str, description: str) -> Candidate:
        response = self._http.post(
            f"{RPC_PREFIX}/candidates.create",
            json={"name": name, "politicalParty": political_party, "description": description},
        )
        _raise_for_store_error(response)
        return Candidate.model_validate(response.json())

    def update(
        self, candidate_id: int, name: str, political_party: str, description: str
    ) -> Candidate:
        response = self._http.post(
            f"{RPC_PREFIX}/candidates.update",
            json={
                "id": candidate_id,
                "name": name,
                "politicalParty": political_party,
                "description": description,
            },
        )
        _raise_for_store_error(response)
        return Candidate.model_validate(response.json())

    def delete(self, candidate_id: int) -> Candidate:
        response = self._http.post(f"{RPC_PREFIX}/candidates.delete", json={"id": candidate_id})
        _raise_for_store_error(response)
        return Candidate.model_validate(response.json())

    def generate(self) -> Candidate:
        response = self._http.post(f"{RPC_PREFIX}/candidates.generate")
        _raise_for_store_error(response)
        return Candidate.model_validate(response.json())

    # -- generation timer ----------------------------------------------------

    def start_generation(self, interval: float | None = None) -> bool:
        """Generate a candidate every *interval* seconds; no-op when already running."""
        started = schedule_interval(
            self._scheduler,
            self._generate_tick,
            interval or settings.GENERATION_INTERVAL_SECONDS,
            GENERATE_JOB_ID,
        )
        ensure_started(self._scheduler)
        return started

    def stop_generation(self) -> bool:
        """Stop the generation timer; safe when it was never started."""
        return cancel_job(self._scheduler, GENERATE_JOB_ID)

    def _generate_tick(self) -> None:
        try:
            candidate = self.generate()
        except (EmptyStoreError, httpx.HTTPError) as exc:
            logger.warning("generation_tick_failed", extra={"error_message": str(exc)})
            return
        logger.info("generation_tick", extra={"candidate_id": candidate.id})

    # -- state helpers -------------------------------------------------------

    def _mark_fresh(self) -> None:
        """Record a successful snapshot.  Caller holds ``self._lock``."""
        self.state = SyncState.connected
        self.error = None
        self.last_updated = datetime.now(timezone.utc)

    def _mark_degraded(self, message: str) -> None:
        with self._lock:
            self.state = SyncState.degraded
            self.error = message
        logger.warning("sync_degraded", extra={"error_message": message})
