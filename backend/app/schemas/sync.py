"""Pydantic schemas for the sync endpoints."""

from pydantic import BaseModel, Field

from pipeline.results import StageResult


class SyncRequestSchema(BaseModel):
    """Optional run configuration for a sync request.

    Omitted fields fall back to the server's defaults.
    """

    congress: int | None = Field(None, ge=1, description="Congress number (e.g., 118)")
    legislator_limit: int | None = Field(
        None, ge=1, description="Max member records per chamber"
    )
    bill_limit: int | None = Field(None, ge=1, description="Max bills to read")
    vote_limit: int | None = Field(None, ge=1, description="Max vote events per chamber")
    skip_scores: bool = Field(False, description="Skip scoring in a full sync")


class SyncResultSchema(BaseModel):
    """Outcome of a pipeline entry point.

    Attributes:
        success: True when the stage (or, for a full sync, every stage)
            finished without errors, or a stage made progress despite them.
        counts: Work actually completed, per counter.
        errors: Every error message, in the order they happened.
        duration_ms: Wall-clock duration of the run.
    """

    success: bool
    counts: dict[str, int] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)
    duration_ms: int = Field(0, ge=0)

    @classmethod
    def from_result(cls, result: StageResult) -> "SyncResultSchema":
        return cls(**result.to_dict())


class SyncStatusSchema(BaseModel):
    """Whether the sync endpoints can run."""

    congress_api_configured: bool = Field(
        ..., description="True when a Congress.gov API key is set"
    )
    sync_available: bool = Field(
        ..., description="True when a sync can start now"
    )
    sync_running: bool
    default_congress: int
    message: str
