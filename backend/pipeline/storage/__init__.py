"""Persistence boundary for the sync and scoring stages."""

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
from pipeline.storage.memory import MemorySyncStore
from pipeline.storage.sql import SqlSyncStore

__all__ = [
    "AggregateScoreRecord",
    "BillRecord",
    "LegislatorRecord",
    "MemorySyncStore",
    "ScoredVote",
    "SqlSyncStore",
    "SyncStore",
    "TopicRecord",
    "TopicScoreRecord",
    "VoteEventRecord",
    "VotingRecordRow",
]
