"""In-memory SyncStore used by ``--dry-run`` and the test suite."""

from dataclasses import replace

from pipeline.errors import ConflictSkip
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


class MemorySyncStore(SyncStore):
    """Keeps every table in a dict keyed the way the SQL unique constraints are.

    Ids are handed out sequentially from 1, like a fresh database.
    """

    def __init__(self) -> None:
        self.legislators: dict[str, LegislatorRecord] = {}
        self.topics: dict[int, TopicRecord] = {}
        self.bills: dict[str, BillRecord] = {}
        self.vote_events: dict[tuple, VoteEventRecord] = {}
        self.vote_event_ids: dict[tuple, int] = {}
        self.voting_records: dict[tuple[int, int], VotingRecordRow] = {}
        self.topic_scores: dict[tuple[int, int], TopicScoreRecord] = {}
        self.aggregate_scores: dict[int, AggregateScoreRecord] = {}
        self._next_id: dict[str, int] = {}

    def _new_id(self, table: str) -> int:
        value = self._next_id.get(table, 0) + 1
        self._next_id[table] = value
        return value

    async def insert_legislator(self, record: LegislatorRecord) -> int:
        if record.external_id in self.legislators:
            raise ConflictSkip(record.external_id)
        stored = replace(record, legislator_id=self._new_id("legislator"))
        self.legislators[record.external_id] = stored
        return stored.legislator_id

    async def get_legislator_id(self, external_id: str) -> int | None:
        stored = self.legislators.get(external_id)
        return stored.legislator_id if stored else None

    async def list_legislators(self) -> list[LegislatorRecord]:
        return sorted(self.legislators.values(), key=lambda r: r.legislator_id or 0)

    async def list_topics(self) -> list[TopicRecord]:
        return [self.topics[k] for k in sorted(self.topics)]

    async def seed_topics(
        self, topics: list[tuple[str, str | None, tuple[str, ...]]]
    ) -> int:
        existing = {t.name for t in self.topics.values()}
        inserted = 0
        for name, description, keywords in topics:
            if name in existing:
                continue
            topic_id = self._new_id("topic")
            self.topics[topic_id] = TopicRecord(
                topic_id=topic_id,
                name=name,
                keywords=tuple(keywords),
                description=description,
            )
            existing.add(name)
            inserted += 1
        return inserted

    async def get_bill(self, external_id: str) -> BillRecord | None:
        return self.bills.get(external_id)

    async def insert_bill(self, record: BillRecord) -> BillRecord:
        if record.external_id in self.bills:
            raise ConflictSkip(record.external_id)
        stored = replace(record, bill_id=self._new_id("bill"))
        self.bills[record.external_id] = stored
        return stored

    async def upsert_vote_event(self, record: VoteEventRecord) -> int:
        key = record.key
        if key not in self.vote_event_ids:
            self.vote_event_ids[key] = self._new_id("vote_event")
        self.vote_events[key] = record
        return self.vote_event_ids[key]

    async def upsert_voting_record(self, row: VotingRecordRow) -> None:
        self.voting_records[(row.legislator_id, row.bill_id)] = row

    async def list_votes_for_scoring(self, legislator_id: int) -> list[ScoredVote]:
        bills_by_id = {b.bill_id: b for b in self.bills.values()}
        votes = []
        for (voter_id, bill_id), row in sorted(self.voting_records.items()):
            if voter_id != legislator_id:
                continue
            bill = bills_by_id.get(bill_id)
            if bill is None:
                continue
            votes.append(
                ScoredVote(
                    bill_id=bill_id,
                    vote=row.vote,
                    polarity_score=bill.polarity_score,
                    topic_ids=bill.topic_ids,
                )
            )
        return votes

    async def upsert_topic_score(self, record: TopicScoreRecord) -> None:
        self.topic_scores[(record.legislator_id, record.topic_id)] = record

    async def list_topic_scores(self, legislator_id: int) -> list[TopicScoreRecord]:
        return [
            score
            for (owner, _), score in sorted(self.topic_scores.items())
            if owner == legislator_id
        ]

    async def upsert_aggregate_score(self, record: AggregateScoreRecord) -> None:
        self.aggregate_scores[record.legislator_id] = record
