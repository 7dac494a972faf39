"""Fan-out gateway: bridges the change event bus to WebSocket clients.

Each connection owns a bounded ``asyncio.Queue`` drained by its own sender
task, so a slow client only delays itself.  Bus events may be published from
any thread, including the event loop itself; they are marshalled onto the
loop with ``call_soon_threadsafe``, which keeps the global emission order for
every recipient.

Wire frames are JSON objects ``{"event": <name>, "data": <payload>}``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any
from uuid import uuid4

from fastapi import WebSocket, WebSocketDisconnect

from candidate_hub.core.config import settings
from candidate_hub.models.candidate import Candidate, CandidateStats
from candidate_hub.models.enums import ClientMessage, ServerMessage
from candidate_hub.models.events import (
    CandidateCreated,
    CandidateDeleted,
    CandidateListChanged,
    CandidateStatsChanged,
    CandidateUpdated,
    ChangeEvent,
)
from candidate_hub.services.candidate_store import CandidateStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def dump_candidate(candidate: Candidate | None) -> dict[str, Any] | None:
    if candidate is None:
        return None
    return candidate.model_dump(mode="json", by_alias=True)


def dump_candidates(candidates: list[Candidate] | tuple[Candidate, ...]) -> list[dict[str, Any]]:
    return [c.model_dump(mode="json", by_alias=True) for c in candidates]


def dump_stats(stats: list[CandidateStats] | tuple[CandidateStats, ...]) -> list[dict[str, Any]]:
    return [s.model_dump(mode="json") for s in stats]


def frame(event: ServerMessage, data: Any) -> dict[str, Any]:
    return {"event": event.value, "data": data}


def encode_event(event: ChangeEvent) -> dict[str, Any]:
    """Map a change event to its broadcast frame."""
    if isinstance(event, CandidateCreated):
        return frame(ServerMessage.candidate_created, dump_candidate(event.candidate))
    if isinstance(event, CandidateUpdated):
        return frame(ServerMessage.candidate_updated, dump_candidate(event.candidate))
    if isinstance(event, CandidateDeleted):
        return frame(ServerMessage.candidate_deleted, dump_candidate(event.candidate))
    if isinstance(event, CandidateListChanged):
        return frame(ServerMessage.candidates_updated, dump_candidates(event.candidates))
    if isinstance(event, CandidateStatsChanged):
        return frame(ServerMessage.stats_updated, dump_stats(event.stats))
    raise TypeError(f"Unhandled change event: {type(event).__name__}")


class BadRequest(Exception):
    """A client frame could not be understood."""


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

class ClientConnection:
    """One connected client and its outbound queue."""

    def __init__(self, websocket: WebSocket, queue_size: int) -> None:
        self.id = uuid4().hex[:8]
        self.websocket = websocket
        self.queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue(maxsize=queue_size)
        self.overflowed = False

    def enqueue(self, message: dict[str, Any]) -> bool:
        """Queue *message*; returns False once the queue has overflowed."""
        if self.overflowed:
            return False
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            self.overflowed = True
            return False
        return True

    def close_sender(self) -> None:
        # The sentinel may not fit when the queue is full; cancellation covers that case
        try:
            self.queue.put_nowait(None)
        except asyncio.QueueFull:
            pass

    async def run_sender(self) -> None:
        while True:
            message = await self.queue.get()
            if message is None:
                return
            await self.websocket.send_json(message)


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

class FanoutGateway:
    """Pushes store state to every connected client."""

    def __init__(self, store: CandidateStore, *, queue_size: int | None = None) -> None:
        self._store = store
        self._queue_size = queue_size or settings.GATEWAY_QUEUE_SIZE
        self._connections: dict[str, ClientConnection] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._unsubscribe = None
        self._close_tasks: set[asyncio.Task[None]] = set()

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def attach(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Subscribe to the store's bus.  A second call is a no-op."""
        if self.attached:
            logger.warning("gateway_already_attached")
            return
        self._loop = loop or asyncio.get_running_loop()
        self._unsubscribe = self._store.bus.subscribe_all(self._on_change)
        logger.info("gateway_attached")

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for connection in list(self._connections.values()):
            connection.close_sender()
        logger.info("gateway_detached", extra={"connections": len(self._connections)})

    # -- bus side ------------------------------------------------------------

    def _on_change(self, event: ChangeEvent) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self.broadcast, encode_event(event))

    def broadcast(self, message: dict[str, Any]) -> None:
        """Queue *message* for every connection.  Runs on the event loop."""
        for connection in list(self._connections.values()):
            if not connection.enqueue(message):
                logger.warning(
                    "gateway_client_overflow",
                    extra={"connection_id": connection.id},
                )
                self._drop(connection)

    # -- connection side -----------------------------------------------------

    def register(self, websocket: WebSocket) -> ClientConnection:
        """Add an accepted socket and queue its initial snapshot.  Runs on the event loop."""
        connection = ClientConnection(websocket, self._queue_size)

        # Snapshot and registration happen without an await in between, so any
        # later broadcast is queued behind the snapshot.
        self._connections[connection.id] = connection
        connection.enqueue(frame(ServerMessage.candidates_list, dump_candidates(self._store.list())))
        connection.enqueue(frame(ServerMessage.stats_data, dump_stats(self._store.stats())))
        logger.info(
            "client_connected",
            extra={"connection_id": connection.id, "connections": self.connection_count},
        )
        return connection

    async def serve(self, websocket: WebSocket) -> None:
        """Run one client connection until it disconnects."""
        await websocket.accept()
        connection = self.register(websocket)

        sender = asyncio.create_task(connection.run_sender())
        receiver = asyncio.create_task(self._receive_loop(connection))
        try:
            done, _ = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    exc = task.exception()
                    if not isinstance(exc, WebSocketDisconnect):
                        logger.warning(
                            "client_connection_error",
                            extra={"connection_id": connection.id, "error_message": str(exc)},
                        )
        finally:
            self._connections.pop(connection.id, None)
            for task in (sender, receiver):
                task.cancel()
            await asyncio.gather(sender, receiver, return_exceptions=True)
            logger.info(
                "client_disconnected",
                extra={"connection_id": connection.id, "connections": self.connection_count},
            )

    async def _receive_loop(self, connection: ClientConnection) -> None:
        while True:
            raw = await connection.websocket.receive_text()
            try:
                reply = self.handle_request(raw)
            except BadRequest as exc:
                reply = frame(ServerMessage.error, {"message": str(exc)})
                logger.info(
                    "client_bad_request",
                    extra={"connection_id": connection.id, "error_message": str(exc)},
                )
            if not connection.enqueue(reply):
                self._drop(connection)
                return

    def handle_request(self, raw: str) -> dict[str, Any]:
        """Answer one client frame; the reply goes to the sender only."""
        try:
            message = json.loads(raw)
        except ValueError as exc:
            raise BadRequest("Malformed JSON frame") from exc
        if not isinstance(message, dict) or "event" not in message:
            raise BadRequest("Frame must be an object with an 'event' key")

        try:
            kind = ClientMessage(message["event"])
        except ValueError as exc:
            raise BadRequest(f"Unknown event: {message['event']!r}") from exc
        data = message.get("data")

        if kind is ClientMessage.get_all:
            return frame(ServerMessage.candidates_list, dump_candidates(self._store.list()))
        if kind is ClientMessage.get_stats:
            return frame(ServerMessage.stats_data, dump_stats(self._store.stats()))
        if kind is ClientMessage.get_candidate:
            if isinstance(data, bool) or not isinstance(data, int):
                raise BadRequest("candidate:get expects an integer id")
            return frame(ServerMessage.candidate_data, dump_candidate(self._store.get_by_id(data)))
        if kind is ClientMessage.search:
            if not isinstance(data, str):
                raise BadRequest("candidates:search expects a string query")
            return frame(ServerMessage.search_results, dump_candidates(self._store.search(data)))
        raise BadRequest(f"Unhandled event: {kind.value}")

    def _drop(self, connection: ClientConnection) -> None:
        self._connections.pop(connection.id, None)
        connection.close_sender()
        if self._loop is not None:
            task = self._loop.create_task(self._close_quietly(connection))
            self._close_tasks.add(task)
            task.add_done_callback(self._close_tasks.discard)

    @staticmethod
    async def _close_quietly(connection: ClientConnection) -> None:
        try:
            await connection.websocket.close(code=1013)
        except Exception:
            logger.info(
                "client_close_failed",
                extra={"connection_id": connection.id},
                exc_info=True,
            )
