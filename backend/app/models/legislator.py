"""Legislator models: Legislator, VoteEvent, VotingRecord."""

from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CHAR,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, enum_column
from app.models.enums import Chamber, PartyCode, VoteCast

if TYPE_CHECKING:
    from app.models.bill import Bill
    from app.models.scoring import AggregateScore, TopicScore


class Legislator(Base, TimestampMixin):
    """A member of Congress.

    Identity is ``external_id`` (the Bioguide ID). The surrogate key is never
    used for deduplication.
    """

    __tablename__ = "legislator"

    legislator_id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(300), nullable=False)
    state: Mapped[str] = mapped_column(String(50), nullable=False)
    chamber: Mapped[Chamber] = mapped_column(
        enum_column(Chamber, "chamber"), nullable=False
    )
    party: Mapped[PartyCode] = mapped_column(
        enum_column(PartyCode, "party_code"), nullable=False
    )
    photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    role_title: Mapped[str] = mapped_column(String(50), nullable=False)
    serving_since: Mapped[date | None] = mapped_column(Date, nullable=True)
    district: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # Relationships
    sponsored_bills: Mapped[list["Bill"]] = relationship(back_populates="sponsor")
    voting_records: Mapped[list["VotingRecord"]] = relationship(
        back_populates="legislator", cascade="all, delete-orphan"
    )
    topic_scores: Mapped[list["TopicScore"]] = relationship(
        back_populates="legislator", cascade="all, delete-orphan"
    )
    aggregate_score: Mapped[Optional["AggregateScore"]] = relationship(
        back_populates="legislator", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_legislator_state", "state"),
        Index("idx_legislator_party", "party"),
        Index("idx_legislator_chamber", "chamber"),
    )

    def __repr__(self) -> str:
        return f"<Legislator({self.display_name}, {self.state})>"


class VoteEvent(Base, TimestampMixin):
    """A single roll-call vote in one chamber."""

    __tablename__ = "vote_event"

    vote_event_id: Mapped[int] = mapped_column(primary_key=True)
    chamber: Mapped[Chamber] = mapped_column(
        enum_column(Chamber, "chamber"), nullable=False
    )
    congress_number: Mapped[int] = mapped_column(Integer, nullable=False)
    session: Mapped[int] = mapped_column(Integer, nullable=False)
    roll_call_number: Mapped[int] = mapped_column(Integer, nullable=False)
    bill_id: Mapped[int | None] = mapped_column(
        ForeignKey("bill.bill_id", ondelete="SET NULL"), nullable=True
    )
    vote_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    question: Mapped[str | None] = mapped_column(String(500), nullable=True)
    result: Mapped[str | None] = mapped_column(String(100), nullable=True)
    yea_count: Mapped[int] = mapped_column(Integer, default=0)
    nay_count: Mapped[int] = mapped_column(Integer, default=0)
    present_count: Mapped[int] = mapped_column(Integer, default=0)
    not_voting_count: Mapped[int] = mapped_column(Integer, default=0)

    # Relationships
    bill: Mapped[Optional["Bill"]] = relationship(back_populates="vote_events")

    __table_args__ = (
        UniqueConstraint(
            "chamber",
            "congress_number",
            "session",
            "roll_call_number",
            name="uq_vote_event_roll_call",
        ),
        Index("idx_vote_event_bill", "bill_id"),
        Index("idx_vote_event_date", "vote_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<VoteEvent({self.chamber.value} {self.congress_number}/"
            f"{self.session}/{self.roll_call_number})>"
        )


class VotingRecord(Base, TimestampMixin):
    """A legislator's position on a bill.

    Keyed by (legislator, bill), not by vote event: a later roll call on the
    same bill overwrites the earlier position.
    """

    __tablename__ = "voting_record"

    voting_record_id: Mapped[int] = mapped_column(primary_key=True)
    legislator_id: Mapped[int] = mapped_column(
        ForeignKey("legislator.legislator_id", ondelete="CASCADE"), nullable=False
    )
    bill_id: Mapped[int] = mapped_column(
        ForeignKey("bill.bill_id", ondelete="CASCADE"), nullable=False
    )
    vote: Mapped[VoteCast] = mapped_column(
        enum_column(VoteCast, "vote_cast"), nullable=False
    )
    vote_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    vote_event_id: Mapped[int | None] = mapped_column(
        ForeignKey("vote_event.vote_event_id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    legislator: Mapped["Legislator"] = relationship(back_populates="voting_records")
    bill: Mapped["Bill"] = relationship(back_populates="voting_records")

    __table_args__ = (
        UniqueConstraint(
            "legislator_id", "bill_id", name="uq_voting_record_legislator_bill"
        ),
        Index("idx_voting_record_legislator", "legislator_id"),
        Index("idx_voting_record_bill", "bill_id"),
    )

    def __repr__(self) -> str:
        return f"<VotingRecord({self.vote.value})>"
