"""FastAPI application entry point.

Configures CORS, structured logging, lifespan events and router
registration.  The lifespan owns the single store, event bus and gateway of
the process; they live on ``app.state`` for the dependencies to hand out.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from candidate_hub.core.config import settings
from candidate_hub.core.logging import setup_logging
from candidate_hub.routers import health, realtime, rpc
from candidate_hub.services.candidate_store import CandidateStore, seed_default_candidates
from candidate_hub.services.event_bus import ChangeEventBus
from candidate_hub.services.gateway import FanoutGateway

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: build, seed and attach on startup; detach on exit."""
    setup_logging()
    logger.info("Application starting up")

    store = CandidateStore(ChangeEventBus())
    if settings.SEED_DEFAULT_CANDIDATES:
        seed_default_candidates(store)
    gateway = FanoutGateway(store)
    gateway.attach()

    application.state.store = store
    application.state.gateway = gateway
    yield
    gateway.detach()
    logger.info("Application shutting down")


app = FastAPI(
    title="Candidate Hub API",
    description="Real-time candidate management with push synchronization",
    version="0.1.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# CORS Configuration
# ---------------------------------------------------------------------------
_raw_origins = settings.ALLOWED_ORIGINS.strip()
if _raw_origins == "*":
    _allowed_origins: list[str] = ["*"]
else:
    _allowed_origins = [o.strip() for o in _raw_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Router Registration
# ---------------------------------------------------------------------------
app.include_router(health.router, tags=["Health"])
app.include_router(rpc.router, prefix="/api/rpc", tags=["Candidates"])
app.include_router(realtime.router, tags=["Realtime"])
