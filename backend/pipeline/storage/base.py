"""Storage interface used by the sync and scoring stages.

The stages never talk to SQLAlchemy directly. They see this small set of
operations over plain frozen records, so the same stage code runs against
PostgreSQL in production and an in-memory store in dry runs and tests.

Write semantics every implementation must honor:

- ``insert_legislator`` / ``insert_bill`` are conditional inserts. A
  uniqueness hit on the external id raises ``ConflictSkip``.
- ``upsert_vote_event`` / ``upsert_voting_record`` / ``upsert_topic_score`` /
  ``upsert_aggregate_score`` are keyed upserts. Replaying them is safe.
- Any other storage failure raises ``PersistenceError``.
- Every write is committed on its own; no transaction spans records.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date

from app.models.enums import Chamber, PartyCode, Philosophy, VoteCast


@dataclass(frozen=True)
class LegislatorRecord:
    """A legislator as the pipeline sees it."""

    external_id: str
    display_name: str
    state: str
    chamber: Chamber
    party: PartyCode
    role_title: str
    photo_url: str | None = None
    serving_since: date | None = None
    district: str | None = None
    legislator_id: int | None = None


@dataclass(frozen=True)
class TopicRecord:
    """A topic and the keywords that tag bills with it."""

    topic_id: int
    name: str
    keywords: tuple[str, ...]
    description: str | None = None


@dataclass(frozen=True)
class BillRecord:
    """A bill with its derived polarity score and topic tags."""

    external_id: str
    congress_number: int
    bill_type: str
    bill_number: str
    title: str
    polarity_score: float | None
    topic_ids: frozenset[int] = frozenset()
    summary: str | None = None
    introduced_date: date | None = None
    status: str | None = None
    policy_area: str | None = None
    subjects: tuple[str, ...] = ()
    congress_url: str | None = None
    sponsor_id: int | None = None
    bill_id: int | None = None


@dataclass(frozen=True)
class VoteEventRecord:
    """A roll-call vote. Unique on (chamber, congress, session, roll call)."""

    chamber: Chamber
    congress_number: int
    session: int
    roll_call_number: int
    bill_id: int | None = None
    vote_date: date | None = None
    question: str | None = None
    result: str | None = None
    yea_count: int = 0
    nay_count: int = 0
    present_count: int = 0
    not_voting_count: int = 0

    @property
    def key(self) -> tuple[Chamber, int, int, int]:
        return (self.chamber, self.congress_number, self.session, self.roll_call_number)


@dataclass(frozen=True)
class VotingRecordRow:
    """A legislator's position on a bill. Unique on (legislator, bill)."""

    legislator_id: int
    bill_id: int
    vote: VoteCast
    vote_date: date | None = None
    vote_event_id: int | None = None


@dataclass(frozen=True)
class ScoredVote:
    """One voting record joined with the bill fields scoring needs."""

    bill_id: int
    vote: VoteCast
    polarity_score: float | None
    topic_ids: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class TopicScoreRecord:
    legislator_id: int
    topic_id: int
    score: float
    vote_count: int
    confidence: float


@dataclass(frozen=True)
class AggregateScoreRecord:
    legislator_id: int
    overall_score: float
    philosophy: Philosophy


class SyncStore(ABC):
    """Abstract persistence boundary for the pipeline."""

    # Legislators

    @abstractmethod
    async def insert_legislator(self, record: LegislatorRecord) -> int:
        """Insert a legislator, returning its id.

        Raises:
            ConflictSkip: If the external id is already stored.
            PersistenceError: On any other storage failure.
        """

    @abstractmethod
    async def get_legislator_id(self, external_id: str) -> int | None:
        """Resolve a legislator's id from its external id."""

    @abstractmethod
    async def list_legislators(self) -> list[LegislatorRecord]:
        """Return every stored legislator, ordered by id."""

    # Topics

    @abstractmethod
    async def list_topics(self) -> list[TopicRecord]:
        """Return every topic, ordered by id."""

    @abstractmethod
    async def seed_topics(
        self, topics: list[tuple[str, str | None, tuple[str, ...]]]
    ) -> int:
        """Insert (name, description, keywords) topics that are not stored yet.

        Returns:
            Number of topics inserted.
        """

    # Bills

    @abstractmethod
    async def get_bill(self, external_id: str) -> BillRecord | None:
        """Look a bill up by its composite external id."""

    @abstractmethod
    async def insert_bill(self, record: BillRecord) -> BillRecord:
        """Insert a bill and its topic links, returning it with its id set.

        Raises:
            ConflictSkip: If the external id is already stored.
            PersistenceError: On any other storage failure.
        """

    # Votes

    @abstractmethod
    async def upsert_vote_event(self, record: VoteEventRecord) -> int:
        """Insert or update a vote event by its roll-call key, returning its id."""

    @abstractmethod
    async def upsert_voting_record(self, row: VotingRecordRow) -> None:
        """Insert or overwrite the (legislator, bill) position."""

    # Scores

    @abstractmethod
    async def list_votes_for_scoring(self, legislator_id: int) -> list[ScoredVote]:
        """Return the legislator's voting records joined with bill polarity and topics."""

    @abstractmethod
    async def upsert_topic_score(self, record: TopicScoreRecord) -> None:
        """Insert or replace the (legislator, topic) score."""

    @abstractmethod
    async def list_topic_scores(self, legislator_id: int) -> list[TopicScoreRecord]:
        """Return every stored topic score of a legislator."""

    @abstractmethod
    async def upsert_aggregate_score(self, record: AggregateScoreRecord) -> None:
        """Insert or replace the legislator's aggregate score."""
