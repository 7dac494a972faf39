"""Push channel endpoint.

A client connecting to ``/ws`` receives ``candidates:list`` and ``stats:data``
immediately, then every store mutation as it happens.
"""

from fastapi import APIRouter, Depends, WebSocket

from candidate_hub.core.dependencies import get_ws_gateway
from candidate_hub.services.gateway import FanoutGateway

router = APIRouter()


@router.websocket("/ws")
async def candidates_socket(
    websocket: WebSocket,
    gateway: FanoutGateway = Depends(get_ws_gateway),
) -> None:
    await gateway.serve(websocket)
