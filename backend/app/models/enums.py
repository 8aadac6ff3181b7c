"""SQLAlchemy ENUM types for the database schema."""

import enum


class Chamber(str, enum.Enum):
    """Congressional chamber."""

    UPPER = "upper"  # Senate
    LOWER = "lower"  # House of Representatives

    @property
    def api_name(self) -> str:
        """Chamber name used in Congress.gov vote endpoints."""
        return "senate" if self is Chamber.UPPER else "house"

    @property
    def role_title(self) -> str:
        return "Senator" if self is Chamber.UPPER else "Representative"


class PartyCode(str, enum.Enum):
    """Closed three-way party classification."""

    DEMOCRAT = "D"
    REPUBLICAN = "R"
    INDEPENDENT = "I"


class VoteCast(str, enum.Enum):
    """Position a legislator took on a roll call."""

    YEA = "Yea"
    NAY = "Nay"
    PRESENT = "Present"
    NOT_VOTING = "NotVoting"


class Philosophy(str, enum.Enum):
    """Discrete label for an aggregate score, most negative first."""

    PROGRESSIVE = "Progressive"
    LIBERAL = "Liberal"
    MODERATE = "Moderate"
    CONSERVATIVE = "Conservative"
    VERY_CONSERVATIVE = "Very Conservative"
