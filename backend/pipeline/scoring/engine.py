"""Derive per-topic and aggregate scores from stored voting records.

For a legislator L and topic T, the qualifying votes are L's Yea/Nay
records on bills tagged T that carry a polarity score. Each contributes the
bill's polarity (Yea) or its negation (Nay). The topic score is the clamped
mean of the contributions and the confidence grows with the square root of
the vote count, saturating at 100 votes.

Every run recomputes every (legislator, topic) pair from scratch. A pair
with no qualifying votes is stored explicitly as score 0, count 0,
confidence 0.
"""

import bisect
import logging
import math
from collections.abc import AsyncIterator, Iterable, Sequence
from dataclasses import dataclass

from app.models.enums import Philosophy, VoteCast
from pipeline.errors import FatalError
from pipeline.results import StageResult, StageTally, UnitOutcome, drain
from pipeline.scoring.classifier import clamp
from pipeline.storage.base import (
    AggregateScoreRecord,
    ScoredVote,
    SyncStore,
    TopicRecord,
    TopicScoreRecord,
)

logger = logging.getLogger(__name__)

# Upper bounds of the first four philosophy buckets, most progressive first
PHILOSOPHY_THRESHOLDS: tuple[float, ...] = (-0.6, -0.2, 0.2, 0.6)
PHILOSOPHY_LABELS: tuple[Philosophy, ...] = (
    Philosophy.PROGRESSIVE,
    Philosophy.LIBERAL,
    Philosophy.MODERATE,
    Philosophy.CONSERVATIVE,
    Philosophy.VERY_CONSERVATIVE,
)

# Vote count at which confidence reaches 1.0
CONFIDENCE_SATURATION = 100

SCORE_COUNTERS = ("legislators", "topic_scores", "aggregate_scores")


@dataclass(frozen=True)
class TopicScoreResult:
    score: float
    vote_count: int
    confidence: float


def calculate_confidence(vote_count: int) -> float:
    """Return ``min(1, sqrt(vote_count) / 10)``."""
    if vote_count <= 0:
        return 0.0
    return min(1.0, math.sqrt(vote_count) / math.sqrt(CONFIDENCE_SATURATION))


def vote_contribution(vote: VoteCast, polarity_score: float | None) -> float | None:
    """Signed contribution of one vote, or None if the vote does not qualify."""
    if polarity_score is None:
        return None
    if vote == VoteCast.YEA:
        return polarity_score
    if vote == VoteCast.NAY:
        return -polarity_score
    return None


def score_topic(votes: Iterable[ScoredVote], topic_id: int) -> TopicScoreResult:
    """Compute one (legislator, topic) score from the legislator's votes.

    Args:
        votes: All of the legislator's votes, any topic.
        topic_id: Topic to score.

    Returns:
        The score, qualifying vote count and confidence. Zero qualifying
        votes give ``TopicScoreResult(0.0, 0, 0.0)``.
    """
    contributions = []
    for vote in votes:
        if topic_id not in vote.topic_ids:
            continue
        contribution = vote_contribution(vote.vote, vote.polarity_score)
        if contribution is not None:
            contributions.append(contribution)

    if not contributions:
        return TopicScoreResult(score=0.0, vote_count=0, confidence=0.0)

    mean = sum(contributions) / len(contributions)
    return TopicScoreResult(
        score=clamp(mean),
        vote_count=len(contributions),
        confidence=calculate_confidence(len(contributions)),
    )


def aggregate_score(topic_scores: Sequence[float]) -> float | None:
    """Arithmetic mean of the topic scores, zero-confidence ones included."""
    if not topic_scores:
        return None
    return clamp(sum(topic_scores) / len(topic_scores))


def classify_philosophy(score: float) -> Philosophy:
    """Bucket an aggregate score into one of five labels.

    Boundaries are exclusive upper bounds: -0.6 is Liberal, 0.6 is Very
    Conservative.
    """
    return PHILOSOPHY_LABELS[bisect.bisect_right(PHILOSOPHY_THRESHOLDS, score)]


class ScoringEngine:
    """Recomputes every legislator's topic and aggregate scores.

    Reads only what the store holds; never calls the external API.
    """

    def __init__(self, store: SyncStore):
        self.store = store

    async def score_legislator(
        self, legislator_id: int, topics: Sequence[TopicRecord]
    ) -> tuple[int, bool]:
        """Write all topic scores and the aggregate for one legislator.

        Returns:
            Number of topic scores written and whether an aggregate was written.
        """
        votes = await self.store.list_votes_for_scoring(legislator_id)

        for topic in topics:
            result = score_topic(votes, topic.topic_id)
            await self.store.upsert_topic_score(
                TopicScoreRecord(
                    legislator_id=legislator_id,
                    topic_id=topic.topic_id,
                    score=result.score,
                    vote_count=result.vote_count,
                    confidence=result.confidence,
                )
            )

        stored = await self.store.list_topic_scores(legislator_id)
        overall = aggregate_score([s.score for s in stored])
        if overall is None:
            return len(topics), False

        await self.store.upsert_aggregate_score(
            AggregateScoreRecord(
                legislator_id=legislator_id,
                overall_score=overall,
                philosophy=classify_philosophy(overall),
            )
        )
        return len(topics), True

    async def iter_units(self) -> AsyncIterator[UnitOutcome]:
        """Yield one outcome per legislator scored."""
        topics = await self.store.list_topics()
        legislators = await self.store.list_legislators()
        if not topics:
            logger.warning("No topics stored; run seed-topics first")
        logger.info(
            f"Scoring {len(legislators)} legislators across {len(topics)} topics"
        )

        for legislator in legislators:
            key = legislator.external_id
            try:
                written, has_aggregate = await self.score_legislator(
                    legislator.legislator_id, topics
                )
            except FatalError:
                raise
            except Exception as e:
                logger.error(f"Error scoring {key}: {e}")
                yield UnitOutcome(key=key, error=f"Scoring {key} failed: {e}")
                continue

            yield UnitOutcome(
                key=key,
                counts={
                    "legislators": 1,
                    "topic_scores": written,
                    "aggregate_scores": 1 if has_aggregate else 0,
                },
            )

    async def run(self) -> StageResult:
        """Score everyone and summarize."""
        return await drain(
            self.iter_units(), StageTally("scores", SCORE_COUNTERS, "legislators")
        )
