"""Health check endpoint.

Returns process status, the current timestamp, and the number of stored
candidates and connected push clients.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends

from candidate_hub.core.dependencies import get_gateway, get_store
from candidate_hub.services.candidate_store import CandidateStore
from candidate_hub.services.gateway import FanoutGateway

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(
    store: CandidateStore = Depends(get_store),
    gateway: FanoutGateway = Depends(get_gateway),
) -> Any:
    """Return liveness information for external monitoring."""
    payload: dict[str, Any] = {
        "status": "ok" if gateway.attached else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "candidates": store.total_count(),
        "connections": gateway.connection_count,
    }
    return payload
