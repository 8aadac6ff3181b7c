"""Derived score models: TopicScore, AggregateScore."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, enum_column
from app.models.enums import Philosophy

if TYPE_CHECKING:
    from app.models.bill import Topic
    from app.models.legislator import Legislator


class TopicScore(Base):
    """A legislator's position on one topic, recomputed from scratch each run."""

    __tablename__ = "topic_score"

    topic_score_id: Mapped[int] = mapped_column(primary_key=True)
    legislator_id: Mapped[int] = mapped_column(
        ForeignKey("legislator.legislator_id", ondelete="CASCADE"), nullable=False
    )
    topic_id: Mapped[int] = mapped_column(
        ForeignKey("topic.topic_id", ondelete="CASCADE"), nullable=False
    )
    score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    vote_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    last_calculated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, nullable=False
    )

    # Relationships
    legislator: Mapped["Legislator"] = relationship(back_populates="topic_scores")
    topic: Mapped["Topic"] = relationship(back_populates="scores")

    __table_args__ = (
        UniqueConstraint(
            "legislator_id", "topic_id", name="uq_topic_score_legislator_topic"
        ),
        CheckConstraint("score >= -1 AND score <= 1", name="score_range"),
        CheckConstraint("vote_count >= 0", name="vote_count_positive"),
        CheckConstraint(
            "confidence >= 0 AND confidence <= 1", name="confidence_range"
        ),
        Index("idx_topic_score_legislator", "legislator_id"),
    )

    def __repr__(self) -> str:
        return f"<TopicScore({self.score:.2f}, n={self.vote_count})>"


class AggregateScore(Base):
    """A legislator's overall score and philosophy label."""

    __tablename__ = "aggregate_score"

    aggregate_score_id: Mapped[int] = mapped_column(primary_key=True)
    legislator_id: Mapped[int] = mapped_column(
        ForeignKey("legislator.legislator_id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    overall_score: Mapped[float] = mapped_column(Float, nullable=False)
    philosophy: Mapped[Philosophy] = mapped_column(
        enum_column(Philosophy, "philosophy"), nullable=False
    )
    last_calculated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, nullable=False
    )

    # Relationships
    legislator: Mapped["Legislator"] = relationship(back_populates="aggregate_score")

    __table_args__ = (
        CheckConstraint(
            "overall_score >= -1 AND overall_score <= 1", name="overall_range"
        ),
    )

    def __repr__(self) -> str:
        return f"<AggregateScore({self.overall_score:.2f}, {self.philosophy.value})>"
