"""Pydantic schemas module.

This module contains Pydantic models used for:
- API request/response validation
- Data transfer between layers (pipeline, API)

Naming convention:
- Schema suffix to distinguish from SQLAlchemy models
- Politician* prefix for legislator views, Sync* for pipeline runs
"""

from app.schemas.politician import (
    AggregateScoreSchema,
    PoliticianDetailSchema,
    PoliticianSummarySchema,
    TopicScoreSchema,
    VotingHistoryEntrySchema,
)
from app.schemas.sync import SyncRequestSchema, SyncResultSchema, SyncStatusSchema

__all__ = [
    "AggregateScoreSchema",
    "PoliticianDetailSchema",
    "PoliticianSummarySchema",
    "SyncRequestSchema",
    "SyncResultSchema",
    "SyncStatusSchema",
    "TopicScoreSchema",
    "VotingHistoryEntrySchema",
]
