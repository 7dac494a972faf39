"""Request-scoped accessors for the process-wide store and gateway.

Both objects are built once in the application lifespan and kept on
``app.state``; routers receive them through FastAPI dependencies.
"""

from fastapi import Request, WebSocket

from candidate_hub.services.candidate_store import CandidateStore
from candidate_hub.services.gateway import FanoutGateway


def get_store(request: Request) -> CandidateStore:
    """Return the store owned by the running application."""
    return request.app.state.store


def get_gateway(request: Request) -> FanoutGateway:
    """Return the gateway owned by the running application."""
    return request.app.state.gateway


def get_ws_gateway(websocket: WebSocket) -> FanoutGateway:
    return websocket.app.state.gateway
