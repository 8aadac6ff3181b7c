"""Congress.gov API integration for legislator, bill and vote data."""

from pipeline.congress.bill_ingestion import BillIngestor
from pipeline.congress.client import (
    BillDetail,
    BillSummary,
    CongressClient,
    MemberInfo,
    MemberTerm,
    MemberVote,
    VoteDetail,
    VoteSummary,
    endpoint_from_url,
    normalize_subjects,
)
from pipeline.congress.ingestion import LegislatorSync
from pipeline.congress.vote_ingestion import VoteSync

__all__ = [
    "BillDetail",
    "BillIngestor",
    "BillSummary",
    "CongressClient",
    "LegislatorSync",
    "MemberInfo",
    "MemberTerm",
    "MemberVote",
    "VoteDetail",
    "VoteSummary",
    "VoteSync",
    "endpoint_from_url",
    "normalize_subjects",
]
