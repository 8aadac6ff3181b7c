"""SyncStore backed by the SQLAlchemy models in ``app.models``."""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from app.models import (
    AggregateScore,
    Bill,
    Legislator,
    Topic,
    TopicScore,
    VoteEvent,
    VotingRecord,
)
from pipeline.errors import ConflictSkip, PersistenceError
from pipeline.storage.base import (
    AggregateScoreRecord,
    BillRecord,
    LegislatorRecord,
    ScoredVote,
    SyncStore,
    TopicRecord,
    TopicScoreRecord,
    VoteEventRecord,
    VotingRecordRow,
)

logger = logging.getLogger(__name__)

# SQLSTATE for unique_violation
_UNIQUE_VIOLATION = "23505"


def _is_unique_violation(error: IntegrityError) -> bool:
    """Tell a duplicate-key failure apart from other integrity failures."""
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return code == _UNIQUE_VIOLATION
    # SQLite reports "UNIQUE constraint failed: ..."
    return "unique" in str(orig).lower()


def _to_legislator_record(row: Legislator) -> LegislatorRecord:
    return LegislatorRecord(
        external_id=row.external_id,
        display_name=row.display_name,
        state=row.state,
        chamber=row.chamber,
        party=row.party,
        role_title=row.role_title,
        photo_url=row.photo_url,
        serving_since=row.serving_since,
        district=row.district,
        legislator_id=row.legislator_id,
    )


def _to_bill_record(row: Bill) -> BillRecord:
    return BillRecord(
        external_id=row.external_id,
        congress_number=row.congress_number,
        bill_type=row.bill_type,
        bill_number=row.bill_number,
        title=row.title,
        polarity_score=row.polarity_score,
        topic_ids=frozenset(t.topic_id for t in row.topics),
        summary=row.summary,
        introduced_date=row.introduced_date,
        status=row.status,
        policy_area=row.policy_area,
        subjects=tuple(row.subjects or ()),
        congress_url=row.congress_url,
        sponsor_id=row.sponsor_id,
        bill_id=row.bill_id,
    )


class SqlSyncStore(SyncStore):
    """Runs every operation in its own session and commits each write.

    Args:
        session_maker: Factory for async sessions, normally
            ``app.models.async_session_maker``.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def _insert(self, session: AsyncSession, row: object, key: str) -> None:
        session.add(row)
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            if _is_unique_violation(e):
                logger.debug(f"Duplicate key on insert: {key}")
                raise ConflictSkip(key) from e
            raise PersistenceError(f"Failed to insert {key}: {e.orig}") from e
        except SQLAlchemyError as e:
            await session.rollback()
            raise PersistenceError(f"Failed to insert {key}: {e}") from e

    async def _commit(self, session: AsyncSession, key: str) -> None:
        try:
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise PersistenceError(f"Failed to write {key}: {e}") from e

    # Legislators

    async def insert_legislator(self, record: LegislatorRecord) -> int:
        async with self.session_maker() as session:
            row = Legislator(
                external_id=record.external_id,
                display_name=record.display_name,
                state=record.state,
                chamber=record.chamber,
                party=record.party,
                role_title=record.role_title,
                photo_url=record.photo_url,
                serving_since=record.serving_since,
                district=record.district,
            )
            await self._insert(session, row, record.external_id)
            return row.legislator_id

    async def get_legislator_id(self, external_id: str) -> int | None:
        async with self.session_maker() as session:
            result = await session.execute(
                select(Legislator.legislator_id).where(
                    Legislator.external_id == external_id
                )
            )
            return result.scalar_one_or_none()

    async def list_legislators(self) -> list[LegislatorRecord]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(Legislator).order_by(Legislator.legislator_id)
            )
            return [_to_legislator_record(row) for row in result.scalars()]

    # Topics

    async def list_topics(self) -> list[TopicRecord]:
        async with self.session_maker() as session:
            result = await session.execute(select(Topic).order_by(Topic.topic_id))
            return [
                TopicRecord(
                    topic_id=t.topic_id,
                    name=t.name,
                    keywords=tuple(t.keywords or ()),
                    description=t.description,
                )
                for t in result.scalars()
            ]

    async def seed_topics(
        self, topics: list[tuple[str, str | None, tuple[str, ...]]]
    ) -> int:
        async with self.session_maker() as session:
            result = await session.execute(select(Topic.name))
            existing = set(result.scalars())
            inserted = 0
            for name, description, keywords in topics:
                if name in existing:
                    continue
                session.add(
                    Topic(name=name, description=description, keywords=list(keywords))
                )
                existing.add(name)
                inserted += 1
            await self._commit(session, "topics")
            return inserted

    # Bills

    async def get_bill(self, external_id: str) -> BillRecord | None:
        async with self.session_maker() as session:
            result = await session.execute(
                select(Bill)
                .options(selectinload(Bill.topics))
                .where(Bill.external_id == external_id)
            )
            row = result.scalar_one_or_none()
            return _to_bill_record(row) if row else None

    async def insert_bill(self, record: BillRecord) -> BillRecord:
        async with self.session_maker() as session:
            topics: list[Topic] = []
            if record.topic_ids:
                result = await session.execute(
                    select(Topic).where(Topic.topic_id.in_(record.topic_ids))
                )
                topics = list(result.scalars())

            row = Bill(
                external_id=record.external_id,
                congress_number=record.congress_number,
                bill_type=record.bill_type,
                bill_number=record.bill_number,
                title=record.title,
                summary=record.summary,
                introduced_date=record.introduced_date,
                status=record.status,
                policy_area=record.policy_area,
                subjects=list(record.subjects),
                polarity_score=record.polarity_score,
                congress_url=record.congress_url,
                sponsor_id=record.sponsor_id,
                topics=topics,
            )
            await self._insert(session, row, record.external_id)
            return _to_bill_record(row)

    # Votes

    async def upsert_vote_event(self, record: VoteEventRecord) -> int:
        key = "vote event {} {}/{}/{}".format(
            record.chamber.value,
            record.congress_number,
            record.session,
            record.roll_call_number,
        )
        async with self.session_maker() as session:
            result = await session.execute(
                select(VoteEvent).where(
                    VoteEvent.chamber == record.chamber,
                    VoteEvent.congress_number == record.congress_number,
                    VoteEvent.session == record.session,
                    VoteEvent.roll_call_number == record.roll_call_number,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = VoteEvent(
                    chamber=record.chamber,
                    congress_number=record.congress_number,
                    session=record.session,
                    roll_call_number=record.roll_call_number,
                )
                session.add(row)

            row.bill_id = record.bill_id
            row.vote_date = record.vote_date
            row.question = record.question
            row.result = record.result
            row.yea_count = record.yea_count
            row.nay_count = record.nay_count
            row.present_count = record.present_count
            row.not_voting_count = record.not_voting_count

            await self._commit(session, key)
            return row.vote_event_id

    async def upsert_voting_record(self, row: VotingRecordRow) -> None:
        key = f"voting record ({row.legislator_id}, {row.bill_id})"
        async with self.session_maker() as session:
            result = await session.execute(
                select(VotingRecord).where(
                    VotingRecord.legislator_id == row.legislator_id,
                    VotingRecord.bill_id == row.bill_id,
                )
            )
            existing = result.scalar_one_or_none()
            if existing is None:
                existing = VotingRecord(
                    legislator_id=row.legislator_id, bill_id=row.bill_id
                )
                session.add(existing)

            existing.vote = row.vote
            existing.vote_date = row.vote_date
            existing.vote_event_id = row.vote_event_id

            await self._commit(session, key)

    # Scores

    async def list_votes_for_scoring(self, legislator_id: int) -> list[ScoredVote]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(VotingRecord, Bill)
                .join(Bill, VotingRecord.bill_id == Bill.bill_id)
                .options(selectinload(Bill.topics))
                .where(VotingRecord.legislator_id == legislator_id)
                .order_by(VotingRecord.bill_id)
            )
            return [
                ScoredVote(
                    bill_id=bill.bill_id,
                    vote=record.vote,
                    polarity_score=bill.polarity_score,
                    topic_ids=frozenset(t.topic_id for t in bill.topics),
                )
                for record, bill in result.all()
            ]

    async def upsert_topic_score(self, record: TopicScoreRecord) -> None:
        key = f"topic score ({record.legislator_id}, {record.topic_id})"
        async with self.session_maker() as session:
            result = await session.execute(
                select(TopicScore).where(
                    TopicScore.legislator_id == record.legislator_id,
                    TopicScore.topic_id == record.topic_id,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = TopicScore(
                    legislator_id=record.legislator_id, topic_id=record.topic_id
                )
                session.add(row)

            row.score = record.score
            row.vote_count = record.vote_count
            row.confidence = record.confidence
            row.last_calculated = datetime.utcnow()

            await self._commit(session, key)

    async def list_topic_scores(self, legislator_id: int) -> list[TopicScoreRecord]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(TopicScore)
                .where(TopicScore.legislator_id == legislator_id)
                .order_by(TopicScore.topic_id)
            )
            return [
                TopicScoreRecord(
                    legislator_id=row.legislator_id,
                    topic_id=row.topic_id,
                    score=row.score,
                    vote_count=row.vote_count,
                    confidence=row.confidence,
                )
                for row in result.scalars()
            ]

    async def upsert_aggregate_score(self, record: AggregateScoreRecord) -> None:
        key = f"aggregate score ({record.legislator_id})"
        async with self.session_maker() as session:
            result = await session.execute(
                select(AggregateScore).where(
                    AggregateScore.legislator_id == record.legislator_id
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = AggregateScore(legislator_id=record.legislator_id)
                session.add(row)

            row.overall_score = record.overall_score
            row.philosophy = record.philosophy
            row.last_calculated = datetime.utcnow()

            await self._commit(session, key)
