"""Remote-procedure endpoints for candidates.

Procedures follow the ``candidates.<name>`` naming of the web client: queries
are GET, mutations are POST.  Store errors are mapped to HTTP errors with a
structured ``detail``:

- ``ValidationError`` -> 422 ``{"error": "validation_error", "fields": [...]}``
- ``NotFoundError``   -> 404 ``{"error": "not_found", "id": ...}``
- ``EmptyStoreError`` -> 409 ``{"error": "empty_store"}``
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from candidate_hub.core.dependencies import get_store
from candidate_hub.core.exceptions import EmptyStoreError, NotFoundError, ValidationError
from candidate_hub.models.candidate import (
    Candidate,
    CandidateIdInput,
    CandidateInput,
    CandidateStats,
    CandidateUpdateInput,
)
from candidate_hub.services.candidate_store import CandidateStore

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

def _validation_error(exc: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "error": "validation_error",
            "message": str(exc),
            "fields": [{"field": e.field, "reason": e.reason} for e in exc.errors],
        },
    )


def _not_found(exc: NotFoundError) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"error": "not_found", "message": str(exc), "id": exc.candidate_id},
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

@router.get("/candidates.getAll", response_model=list[Candidate])
async def get_all(store: CandidateStore = Depends(get_store)) -> list[Candidate]:
    return store.list()


@router.get("/candidates.getById", response_model=Candidate | None)
async def get_by_id(
    id: int = Query(description="Candidate id"),
    store: CandidateStore = Depends(get_store),
) -> Candidate | None:
    """Return the candidate or ``null``; a missing id is not an error."""
    return store.get_by_id(id)


@router.get("/candidates.search", response_model=list[Candidate])
async def search(
    query: str = Query(default="", description="Case-insensitive substring"),
    store: CandidateStore = Depends(get_store),
) -> list[Candidate]:
    return store.search(query)


@router.get("/candidates.getStats", response_model=list[CandidateStats])
async def get_stats(store: CandidateStore = Depends(get_store)) -> list[CandidateStats]:
    return store.stats()


@router.get("/candidates.getTotalCount", response_model=int)
async def get_total_count(store: CandidateStore = Depends(get_store)) -> int:
    return store.total_count()


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

@router.post("/candidates.create", response_model=Candidate)
async def create(
    body: CandidateInput,
    store: CandidateStore = Depends(get_store),
) -> Candidate:
    try:
        return store.create(body)
    except ValidationError as exc:
        logger.info("create_rejected", extra={"fields": exc.fields})
        raise _validation_error(exc) from exc


@router.post("/candidates.update", response_model=Candidate)
async def update(
    body: CandidateUpdateInput,
    store: CandidateStore = Depends(get_store),
) -> Candidate:
    try:
        return store.update(body.id, body)
    except NotFoundError as exc:
        raise _not_found(exc) from exc
    except ValidationError as exc:
        logger.info("update_rejected", extra={"candidate_id": body.id, "fields": exc.fields})
        raise _validation_error(exc) from exc


@router.post("/candidates.delete", response_model=Candidate)
async def delete(
    body: CandidateIdInput,
    store: CandidateStore = Depends(get_store),
) -> Candidate:
    try:
        return store.delete(body.id)
    except NotFoundError as exc:
        raise _not_found(exc) from exc


@router.post("/candidates.generate", response_model=Candidate)
async def generate(store: CandidateStore = Depends(get_store)) -> Candidate:
    """Create a random candidate for one of the existing parties."""
    try:
        return store.generate_random()
    except EmptyStoreError as exc:
        raise HTTPException(
            status_code=409,
            detail={"error": "empty_store", "message": str(exc)},
        ) from exc
