"""Keyword configuration for bill polarity scoring and topic tagging.

Everything here is immutable and is passed into the classifier explicitly,
so tests and alternative catalogues can supply their own lists.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PolarityLexicon:
    """Two keyword poles and the fixed step each match moves the score.

    Progressive matches move the score toward -1, conservative matches
    toward +1.
    """

    progressive: tuple[str, ...]
    conservative: tuple[str, ...]
    step: float = 0.1


@dataclass(frozen=True)
class TopicRule:
    """A topic name and the substrings that tag a bill with it."""

    name: str
    keywords: tuple[str, ...]
    description: str | None = None


DEFAULT_LEXICON = PolarityLexicon(
    progressive=(
        "climate",
        "environment",
        "renewable",
        "clean energy",
        "healthcare",
        "medicare",
        "medicaid",
        "affordable care",
        "reproductive",
        "abortion",
        "contraception",
        "civil rights",
        "voting rights",
        "lgbtq",
        "equality",
        "justice",
        "minimum wage",
        "affordable housing",
        "student loan",
        "education funding",
        "childcare",
        "paid leave",
        "union",
        "worker protection",
        "gun control",
        "gun safety",
        "immigration reform",
        "pathway to citizenship",
        "social security",
        "veterans benefits",
    ),
    conservative=(
        "defense spending",
        "military",
        "border security",
        "immigration enforcement",
        "tax reduction",
        "tax cut",
        "deregulation",
        "small business",
        "second amendment",
        "religious freedom",
        "school choice",
        "voucher",
        "energy independence",
        "oil",
        "gas",
        "coal",
        "traditional values",
        "parental rights",
    ),
)

DEFAULT_TOPICS: tuple[TopicRule, ...] = (
    TopicRule(
        name="Healthcare",
        description="Government-provided healthcare, Medicare, Medicaid and insurance",
        keywords=(
            "health",
            "healthcare",
            "medical",
            "medicare",
            "medicaid",
            "insurance",
            "care",
            "hospital",
            "doctor",
            "nurse",
            "medicine",
        ),
    ),
    TopicRule(
        name="Reproductive Rights",
        description="Abortion access, contraception and reproductive freedom",
        keywords=(
            "reproductive",
            "abortion",
            "contraception",
            "birth control",
            "family planning",
            "pregnancy",
            "maternal",
        ),
    ),
    TopicRule(
        name="Defense & War",
        description="Military spending, foreign interventions and the defense budget",
        keywords=(
            "defense",
            "military",
            "armed forces",
            "war",
            "security",
            "veteran",
            "army",
            "navy",
            "air force",
            "marines",
        ),
    ),
    TopicRule(
        name="Climate Action",
        description="Environmental regulation, clean energy and climate policy",
        keywords=(
            "climate",
            "environment",
            "energy",
            "renewable",
            "carbon",
            "emission",
            "pollution",
            "conservation",
            "green",
            "sustainable",
        ),
    ),
    TopicRule(
        name="Progressive Taxation",
        description="Taxes on wealth and corporations, revenue and fiscal policy",
        keywords=(
            "tax",
            "taxation",
            "revenue",
            "budget",
            "fiscal",
            "economic",
            "finance",
            "wealth",
            "income",
            "corporate",
        ),
    ),
    TopicRule(
        name="Civil Rights",
        description="LGBTQ+ rights, racial equality and voting rights",
        keywords=(
            "civil rights",
            "equality",
            "discrimination",
            "voting",
            "lgbtq",
            "rights",
            "justice",
            "freedom",
            "liberty",
            "constitutional",
        ),
    ),
)
