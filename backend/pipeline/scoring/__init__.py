"""Bill classification and legislator scoring."""

from pipeline.scoring.classifier import (
    associate_bill_with_topics,
    build_text_blob,
    calculate_bill_polarity_score,
)
from pipeline.scoring.engine import (
    ScoringEngine,
    calculate_confidence,
    classify_philosophy,
    score_topic,
)
from pipeline.scoring.keywords import (
    DEFAULT_LEXICON,
    DEFAULT_TOPICS,
    PolarityLexicon,
    TopicRule,
)

__all__ = [
    "DEFAULT_LEXICON",
    "DEFAULT_TOPICS",
    "PolarityLexicon",
    "ScoringEngine",
    "TopicRule",
    "associate_bill_with_topics",
    "build_text_blob",
    "calculate_bill_polarity_score",
    "calculate_confidence",
    "classify_philosophy",
    "score_topic",
]
