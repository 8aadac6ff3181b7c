"""CRUD operations for legislator and score queries."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.bill import Bill, Topic
from app.models.enums import Chamber, PartyCode
from app.models.legislator import Legislator, VoteEvent, VotingRecord
from app.models.scoring import TopicScore
from app.schemas.politician import (
    AggregateScoreSchema,
    PoliticianDetailSchema,
    PoliticianSummarySchema,
    TopicScoreSchema,
    VotingHistoryEntrySchema,
)


async def get_politicians(
    session: AsyncSession,
    chamber: Chamber | None = None,
    party: PartyCode | None = None,
    state: str | None = None,
) -> list[PoliticianSummarySchema]:
    """List legislators, optionally filtered, ordered by name.

    Args:
        session: Database session.
        chamber: Only this chamber.
        party: Only this party.
        state: Only this state (case-insensitive).
    """
    query = select(Legislator).order_by(Legislator.display_name)
    if chamber is not None:
        query = query.where(Legislator.chamber == chamber)
    if party is not None:
        query = query.where(Legislator.party == party)
    if state:
        query = query.where(Legislator.state.ilike(state))

    result = await session.execute(query)
    return [
        PoliticianSummarySchema.model_validate(row) for row in result.scalars().all()
    ]


async def get_politician(
    session: AsyncSession, external_id: str
) -> PoliticianDetailSchema | None:
    """Get one legislator with topic scores and aggregate score."""
    result = await session.execute(
        select(Legislator)
        .options(selectinload(Legislator.aggregate_score))
        .where(Legislator.external_id == external_id)
    )
    legislator = result.scalar_one_or_none()
    if legislator is None:
        return None

    scores = await session.execute(
        select(TopicScore, Topic.name)
        .join(Topic, TopicScore.topic_id == Topic.topic_id)
        .where(TopicScore.legislator_id == legislator.legislator_id)
        .order_by(Topic.topic_id)
    )
    topic_scores = [
        TopicScoreSchema(
            topic_id=score.topic_id,
            topic_name=name,
            score=score.score,
            vote_count=score.vote_count,
            confidence=score.confidence,
            last_calculated=score.last_calculated,
        )
        for score, name in scores.all()
    ]

    summary = PoliticianSummarySchema.model_validate(legislator)
    aggregate = (
        AggregateScoreSchema.model_validate(legislator.aggregate_score)
        if legislator.aggregate_score
        else None
    )
    return PoliticianDetailSchema(
        **summary.model_dump(),
        topic_scores=topic_scores,
        aggregate_score=aggregate,
    )


async def get_voting_history(
    session: AsyncSession, external_id: str, limit: int | None = None
) -> list[VotingHistoryEntrySchema] | None:
    """Get a legislator's positions on stored bills, most recent first.

    Returns:
        The entries, or None if no legislator has this Bioguide ID.
    """
    legislator_id = (
        await session.execute(
            select(Legislator.legislator_id).where(
                Legislator.external_id == external_id
            )
        )
    ).scalar_one_or_none()
    if legislator_id is None:
        return None

    query = (
        select(VotingRecord, Bill, VoteEvent)
        .join(Bill, VotingRecord.bill_id == Bill.bill_id)
        .outerjoin(VoteEvent, VotingRecord.vote_event_id == VoteEvent.vote_event_id)
        .where(VotingRecord.legislator_id == legislator_id)
        .order_by(VotingRecord.vote_date.desc().nulls_last(), Bill.external_id)
    )
    if limit is not None:
        query = query.limit(limit)

    result = await session.execute(query)
    return [
        VotingHistoryEntrySchema(
            bill_external_id=bill.external_id,
            bill_title=bill.title,
            polarity_score=bill.polarity_score,
            vote=record.vote,
            vote_date=record.vote_date,
            chamber=event.chamber if event else None,
            roll_call_number=event.roll_call_number if event else None,
        )
        for record, bill, event in result.all()
    ]
