"""Politician API endpoints: legislators and their derived scores."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.politician import get_politician, get_politicians, get_voting_history
from app.models.base import get_async_session
from app.models.enums import Chamber, PartyCode
from app.schemas.politician import (
    PoliticianDetailSchema,
    PoliticianSummarySchema,
    VotingHistoryEntrySchema,
)

router = APIRouter()


@router.get("/")
async def list_politicians(
    chamber: Chamber | None = Query(None, description="upper or lower"),
    party: PartyCode | None = Query(None, description="D, R or I"),
    state: str | None = Query(None, description="State name"),
    session: AsyncSession = Depends(get_async_session),
) -> list[PoliticianSummarySchema]:
    """List legislators, optionally filtered by chamber, party and state."""
    return await get_politicians(session, chamber=chamber, party=party, state=state)


@router.get("/{external_id}")
async def read_politician(
    external_id: str,
    session: AsyncSession = Depends(get_async_session),
) -> PoliticianDetailSchema:
    """Get a legislator by Bioguide ID, with topic and aggregate scores."""
    result = await get_politician(session, external_id)
    if result is None:
        raise HTTPException(
            status_code=404,
            detail=f"Politician {external_id} not found",
        )
    return result


@router.get("/{external_id}/voting-history")
async def read_voting_history(
    external_id: str,
    limit: int | None = Query(None, ge=1, le=1000, description="Max entries"),
    session: AsyncSession = Depends(get_async_session),
) -> list[VotingHistoryEntrySchema]:
    """Get a legislator's positions on stored bills, most recent first."""
    result = await get_voting_history(session, external_id, limit=limit)
    if result is None:
        raise HTTPException(
            status_code=404,
            detail=f"Politician {external_id} not found",
        )
    return result
