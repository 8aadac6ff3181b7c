"""Ingest bills from Congress.gov, scoring and tagging each on first sight."""

import logging
from collections.abc import AsyncIterator, Sequence
from datetime import date, datetime

from app.config import settings
from pipeline.congress.client import BillDetail, BillSummary, CongressClient
from pipeline.errors import ConflictSkip, FatalError, FetchError
from pipeline.results import StageResult, StageTally, UnitOutcome, drain
from pipeline.scoring.classifier import (
    associate_bill_with_topics,
    build_text_blob,
    calculate_bill_polarity_score,
)
from pipeline.scoring.keywords import DEFAULT_LEXICON, PolarityLexicon
from pipeline.storage.base import BillRecord, SyncStore, TopicRecord

logger = logging.getLogger(__name__)

BILL_COUNTERS = ("synced", "already_present", "skipped_invalid")

# Newest activity first; httpx encodes the space as "+"
BILL_SORT = "updateDate desc"


def _parse_date(date_str: str | None) -> date | None:
    """Parse an API date string (e.g., "2024-01-15" or an ISO timestamp)."""
    if not date_str:
        return None
    try:
        if "T" in date_str:
            return datetime.fromisoformat(date_str.replace("Z", "+00:00")).date()
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        return None


def build_bill_record(
    detail: BillDetail,
    summary: BillSummary,
    topics: Sequence[TopicRecord],
    lexicon: PolarityLexicon = DEFAULT_LEXICON,
    sponsor_id: int | None = None,
) -> BillRecord:
    """Combine the detail document with its derived polarity and topics.

    The listing record supplies congress/type/number when the detail omits
    them, so the external id always matches the one used for lookup.
    ``sponsor_id`` is the stored legislator matching the bill's sponsor.
    """
    text = build_text_blob(
        detail.title or summary.title,
        detail.summary,
        detail.policy_area,
        detail.subjects,
    )
    return BillRecord(
        external_id=summary.external_id,
        congress_number=detail.congress or summary.congress,
        bill_type=detail.bill_type or summary.bill_type,
        bill_number=detail.number or summary.number,
        title=detail.title or summary.title or summary.external_id,
        polarity_score=calculate_bill_polarity_score(text, lexicon),
        topic_ids=associate_bill_with_topics(text, topics),
        summary=detail.summary,
        introduced_date=_parse_date(detail.introduced_date),
        status=detail.latest_action,
        policy_area=detail.policy_area,
        subjects=tuple(detail.subjects),
        congress_url=detail.url or summary.url,
        sponsor_id=sponsor_id,
    )


class BillIngestor:
    """Pages through a Congress's bills and stores the ones not yet seen.

    A stored bill is returned as-is: no detail fetch and no rescoring, so
    polarity and topics are fixed at first ingestion.
    """

    def __init__(
        self,
        client: CongressClient,
        store: SyncStore,
        congress: int,
        limit: int | None = None,
        page_size: int | None = None,
        lexicon: PolarityLexicon = DEFAULT_LEXICON,
        topics: Sequence[TopicRecord] | None = None,
    ):
        """Initialize the ingestor.

        Args:
            client: Congress.gov API client.
            store: Storage backend.
            congress: Congress number (e.g., 118).
            limit: Maximum bills to read from the listing.
            page_size: Listing page size. Defaults to settings.
            lexicon: Polarity keyword poles.
            topics: Topic catalogue. Loaded from the store when omitted.
        """
        self.client = client
        self.store = store
        self.congress = congress
        self.limit = limit
        self.page_size = page_size or settings.congress_page_size
        self.lexicon = lexicon
        self.topics = topics

    async def ingest_bill(
        self, summary: BillSummary, topics: Sequence[TopicRecord]
    ) -> tuple[BillRecord, bool]:
        """Store one bill if it is new.

        Returns:
            The stored bill and True if this call created it.
        """
        existing = await self.store.get_bill(summary.external_id)
        if existing is not None:
            return existing, False

        detail = await self.client.get_bill_detail(summary)

        sponsor_id = None
        if detail.sponsor_bioguide_id:
            sponsor_id = await self.store.get_legislator_id(detail.sponsor_bioguide_id)
            if sponsor_id is None:
                logger.debug(
                    f"Sponsor {detail.sponsor_bioguide_id} of {summary.external_id} "
                    f"is not a stored legislator"
                )

        record = build_bill_record(detail, summary, topics, self.lexicon, sponsor_id)

        try:
            stored = await self.store.insert_bill(record)
        except ConflictSkip:
            # Raced with another writer; theirs is the first sight
            stored = await self.store.get_bill(summary.external_id)
            return stored or record, False

        logger.debug(
            f"Ingested {stored.external_id}: polarity={stored.polarity_score}, "
            f"topics={sorted(stored.topic_ids)}"
        )
        return stored, True

    async def iter_units(self) -> AsyncIterator[UnitOutcome]:
        """Yield one outcome per listed bill."""
        topics = self.topics if self.topics is not None else await self.store.list_topics()
        if not topics:
            logger.warning("No topics stored; bills will not be tagged")

        endpoint = f"bill/{self.congress}"
        logger.info(f"Ingesting bills for Congress {self.congress} (limit={self.limit})")
        pages = self.client.iter_pages(
            endpoint,
            "bills",
            page_size=self.page_size,
            params={"sort": BILL_SORT},
            limit=self.limit,
        )

        try:
            async for page in pages:
                for raw in page:
                    summary = BillSummary.from_api_response(raw)
                    key = summary.external_id
                    if not summary.congress or not summary.bill_type or not summary.number:
                        logger.info(f"Skipping bill listing without type/number: {raw}")
                        yield UnitOutcome(key=key, counts={"skipped_invalid": 1})
                        continue

                    try:
                        _, created = await self.ingest_bill(summary, topics)
                        outcome = UnitOutcome(
                            key=key,
                            counts={"synced" if created else "already_present": 1},
                        )
                    except FatalError:
                        raise
                    except Exception as e:
                        logger.error(f"Error ingesting bill {key}: {e}")
                        outcome = UnitOutcome(
                            key=key, error=f"Failed to ingest bill {key}: {e}"
                        )
                    yield outcome
        except FatalError:
            raise
        except FetchError as e:
            logger.error(f"Bill listing failed: {e}")
            yield UnitOutcome(key=endpoint, error=f"Failed to fetch bills: {e}")

    async def run(self) -> StageResult:
        return await drain(
            self.iter_units(), StageTally("bills", BILL_COUNTERS, "synced")
        )
