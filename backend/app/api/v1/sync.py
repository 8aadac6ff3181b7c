"""Sync API endpoints: run pipeline entry points over HTTP.

Only one run may be active per process. A request that arrives while
another run holds the lock gets 409 instead of queueing behind it.
"""

import asyncio
import logging
from collections.abc import Callable

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse

from app.config import settings
from app.models.base import async_session_maker
from app.schemas.sync import SyncRequestSchema, SyncResultSchema, SyncStatusSchema
from pipeline.orchestrator import SyncOptions, SyncOrchestrator
from pipeline.results import StageResult, status_code_for
from pipeline.storage.sql import SqlSyncStore

logger = logging.getLogger(__name__)

router = APIRouter()

_sync_lock = asyncio.Lock()

OrchestratorFactory = Callable[[SyncOptions], SyncOrchestrator]


def get_orchestrator_factory() -> OrchestratorFactory:
    """Dependency returning a builder for database-backed orchestrators."""

    def build(options: SyncOptions) -> SyncOrchestrator:
        return SyncOrchestrator(SqlSyncStore(async_session_maker), options)

    return build


def _options_from(request: SyncRequestSchema | None) -> SyncOptions:
    request = request or SyncRequestSchema()
    return SyncOptions(
        congress=request.congress or settings.default_congress,
        legislator_limit=request.legislator_limit,
        bill_limit=request.bill_limit,
        vote_limit=request.vote_limit,
        skip_scores=request.skip_scores,
    )


async def _run(
    entry_point: str,
    request: SyncRequestSchema | None,
    factory: OrchestratorFactory,
) -> JSONResponse:
    if _sync_lock.locked():
        raise HTTPException(status_code=409, detail="A sync is already running")

    async with _sync_lock:
        orchestrator = factory(_options_from(request))
        result: StageResult = await getattr(orchestrator, entry_point)()

    return JSONResponse(
        status_code=status_code_for(result),
        content=SyncResultSchema.from_result(result).model_dump(),
    )


@router.get("/status")
async def sync_status() -> SyncStatusSchema:
    """Report whether a sync can run."""
    configured = bool(settings.congress_api_key)
    running = _sync_lock.locked()
    if not configured:
        message = "Congress API key not configured"
    elif running:
        message = "A sync is already running"
    else:
        message = "Sync service is ready"
    return SyncStatusSchema(
        congress_api_configured=configured,
        sync_available=configured and not running,
        sync_running=running,
        default_congress=settings.default_congress,
        message=message,
    )


@router.post("/legislators", response_model=SyncResultSchema)
async def sync_legislators(
    request: SyncRequestSchema | None = Body(None),
    factory: OrchestratorFactory = Depends(get_orchestrator_factory),
) -> JSONResponse:
    """Sync current members of both chambers."""
    return await _run("sync_legislators", request, factory)


@router.post("/bills", response_model=SyncResultSchema)
async def sync_bills(
    request: SyncRequestSchema | None = Body(None),
    factory: OrchestratorFactory = Depends(get_orchestrator_factory),
) -> JSONResponse:
    """Ingest, score and tag new bills."""
    return await _run("sync_bills", request, factory)


@router.post("/votes", response_model=SyncResultSchema)
async def sync_votes(
    request: SyncRequestSchema | None = Body(None),
    factory: OrchestratorFactory = Depends(get_orchestrator_factory),
) -> JSONResponse:
    """Sync roll-call votes for both chambers."""
    return await _run("sync_votes", request, factory)


@router.post("/scores", response_model=SyncResultSchema)
async def calculate_scores(
    request: SyncRequestSchema | None = Body(None),
    factory: OrchestratorFactory = Depends(get_orchestrator_factory),
) -> JSONResponse:
    """Recompute every topic and aggregate score."""
    return await _run("calculate_scores", request, factory)


@router.post("/full", response_model=SyncResultSchema)
async def full_sync(
    request: SyncRequestSchema | None = Body(None),
    factory: OrchestratorFactory = Depends(get_orchestrator_factory),
) -> JSONResponse:
    """Run every stage in order."""
    return await _run("full_sync", request, factory)
