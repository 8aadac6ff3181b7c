"""Pydantic schemas for legislators and their scores."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import Chamber, PartyCode, Philosophy, VoteCast


class TopicScoreSchema(BaseModel):
    """A legislator's score on one topic."""

    model_config = ConfigDict(from_attributes=True)

    topic_id: int
    topic_name: str
    score: float = Field(..., ge=-1, le=1, description="-1 progressive, +1 conservative")
    vote_count: int = Field(..., ge=0)
    confidence: float = Field(..., ge=0, le=1)
    last_calculated: datetime | None = None


class AggregateScoreSchema(BaseModel):
    """A legislator's overall score and philosophy label."""

    model_config = ConfigDict(from_attributes=True)

    overall_score: float = Field(..., ge=-1, le=1)
    philosophy: Philosophy
    last_calculated: datetime | None = None


class PoliticianSummarySchema(BaseModel):
    """Legislator row for list views."""

    model_config = ConfigDict(from_attributes=True)

    external_id: str = Field(..., description="Bioguide ID (e.g., P000197)")
    display_name: str
    state: str
    chamber: Chamber
    party: PartyCode
    role_title: str
    district: str | None = None
    photo_url: str | None = None
    serving_since: date | None = None


class PoliticianDetailSchema(PoliticianSummarySchema):
    """Legislator with every topic score and the aggregate score.

    Topics without qualifying votes are present with zero confidence.
    """

    topic_scores: list[TopicScoreSchema] = Field(default_factory=list)
    aggregate_score: AggregateScoreSchema | None = None


class VotingHistoryEntrySchema(BaseModel):
    """One position a legislator took on a bill."""

    bill_external_id: str = Field(..., description="Bill key (e.g., 118-hr-1234)")
    bill_title: str
    polarity_score: float | None = Field(None, ge=-1, le=1)
    vote: VoteCast
    vote_date: date | None = None
    chamber: Chamber | None = Field(None, description="Chamber of the roll call")
    roll_call_number: int | None = None
