"""SQLAlchemy models for Polispectrum."""

from app.models.base import (
    Base,
    TimestampMixin,
    async_session_maker,
    create_tables,
    get_async_session,
)
from app.models.bill import Bill, Topic, bill_topic
from app.models.enums import Chamber, PartyCode, Philosophy, VoteCast
from app.models.legislator import Legislator, VoteEvent, VotingRecord
from app.models.scoring import AggregateScore, TopicScore

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "async_session_maker",
    "create_tables",
    "get_async_session",
    # Enums
    "Chamber",
    "PartyCode",
    "Philosophy",
    "VoteCast",
    # Legislator
    "Legislator",
    "VoteEvent",
    "VotingRecord",
    # Bill
    "Bill",
    "Topic",
    "bill_topic",
    # Scores
    "TopicScore",
    "AggregateScore",
]
