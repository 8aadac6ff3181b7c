"""Bill and topic models: Bill, Topic, BillTopic."""

from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.legislator import Legislator, VoteEvent, VotingRecord
    from app.models.scoring import TopicScore

bill_topic = Table(
    "bill_topic",
    Base.metadata,
    Column(
        "bill_id",
        ForeignKey("bill.bill_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "topic_id",
        ForeignKey("topic.topic_id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Topic(Base, TimestampMixin):
    """A policy topic bills are tagged with. Static reference data."""

    __tablename__ = "topic"

    topic_id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    keywords: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    # Relationships
    bills: Mapped[list["Bill"]] = relationship(
        secondary=bill_topic, back_populates="topics"
    )
    scores: Mapped[list["TopicScore"]] = relationship(
        back_populates="topic", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Topic({self.name})>"


class Bill(Base, TimestampMixin):
    """A bill introduced in Congress.

    ``polarity_score`` and the topic tags are computed once, at first
    ingestion, and never refreshed by a later sync.
    """

    __tablename__ = "bill"

    bill_id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    congress_number: Mapped[int] = mapped_column(Integer, nullable=False)
    bill_type: Mapped[str] = mapped_column(String(10), nullable=False)
    bill_number: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    introduced_date: Mapped[date | None] = mapped_column(nullable=True)
    status: Mapped[str | None] = mapped_column(Text, nullable=True)
    policy_area: Mapped[str | None] = mapped_column(String(200), nullable=True)
    subjects: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    polarity_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    congress_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    sponsor_id: Mapped[int | None] = mapped_column(
        ForeignKey("legislator.legislator_id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    sponsor: Mapped[Optional["Legislator"]] = relationship(
        back_populates="sponsored_bills"
    )
    topics: Mapped[list["Topic"]] = relationship(
        secondary=bill_topic, back_populates="bills"
    )
    vote_events: Mapped[list["VoteEvent"]] = relationship(back_populates="bill")
    voting_records: Mapped[list["VotingRecord"]] = relationship(
        back_populates="bill", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "polarity_score IS NULL OR (polarity_score >= -1 AND polarity_score <= 1)",
            name="polarity_range",
        ),
        Index("idx_bill_congress", "congress_number"),
        Index("idx_bill_sponsor", "sponsor_id"),
    )

    def __repr__(self) -> str:
        return f"<Bill({self.external_id})>"
