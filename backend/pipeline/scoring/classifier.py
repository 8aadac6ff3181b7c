"""Keyword-based bill classification.

Two independent, pure functions over the same lowercase text blob:

- ``calculate_bill_polarity_score`` counts lexicon matches on each pole and
  turns them into a signed score in [-1, 1].
- ``associate_bill_with_topics`` returns the ids of every topic that has at
  least one keyword in the text.

Both are plain substring tests, so "gas" also matches "Las Vegas". That is
accepted: the scores are coarse signals, not text understanding.
"""

from collections.abc import Iterable

from pipeline.scoring.keywords import DEFAULT_LEXICON, PolarityLexicon
from pipeline.storage.base import TopicRecord


def clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    """Limit a value to [low, high]."""
    return max(low, min(high, value))


def build_text_blob(
    title: str | None,
    summary: str | None = None,
    policy_area: str | None = None,
    subjects: Iterable[str] = (),
) -> str:
    """Join the scoreable bill fields into one lowercase string."""
    parts = [title or "", summary or "", policy_area or "", *subjects]
    return " ".join(p for p in parts if p).lower()


def count_matches(text: str, keywords: Iterable[str]) -> int:
    """Number of distinct keywords that appear in ``text``."""
    return sum(1 for keyword in set(keywords) if keyword.lower() in text)


def calculate_bill_polarity_score(
    text: str, lexicon: PolarityLexicon = DEFAULT_LEXICON
) -> float:
    """Score a bill's lean from its text blob.

    Each progressive keyword present moves the score by ``-step`` and each
    conservative keyword by ``+step``. The sum is clamped to [-1, 1].

    Args:
        text: Lowercase text blob from ``build_text_blob``.
        lexicon: Keyword poles to match against.

    Returns:
        The polarity score; exactly 0.0 when nothing matched.
    """
    progressive = count_matches(text, lexicon.progressive)
    conservative = count_matches(text, lexicon.conservative)
    if progressive == 0 and conservative == 0:
        return 0.0

    raw = (conservative - progressive) * lexicon.step
    return round(clamp(raw), 4)


def associate_bill_with_topics(
    text: str, topics: Iterable[TopicRecord]
) -> frozenset[int]:
    """Return the ids of all topics with any keyword in ``text``.

    A bill may match zero, one or many topics.
    """
    return frozenset(
        topic.topic_id
        for topic in topics
        if any(keyword.lower() in text for keyword in topic.keywords)
    )
