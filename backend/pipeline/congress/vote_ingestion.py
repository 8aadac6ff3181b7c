"""Sync roll-call votes and per-member positions from Congress.gov."""

import logging
from collections.abc import AsyncIterator, Sequence
from datetime import date, datetime

from app.config import settings
from app.models.enums import Chamber, VoteCast
from pipeline.congress.client import CongressClient, VoteDetail, VoteSummary
from pipeline.errors import FatalError, FetchError
from pipeline.results import StageResult, StageTally, UnitOutcome, drain
from pipeline.storage.base import SyncStore, VoteEventRecord, VotingRecordRow

logger = logging.getLogger(__name__)

VOTE_COUNTERS = ("events", "records", "skipped_members", "unlinked_events")

# House first, then Senate
DEFAULT_CHAMBERS: tuple[Chamber, ...] = (Chamber.LOWER, Chamber.UPPER)


def _parse_vote_date(date_str: str | None) -> date | None:
    """Parse vote date string to date object.

    Args:
        date_str: Date string from API (e.g., "2024-01-15").

    Returns:
        Parsed date or None if missing or unparseable.
    """
    if not date_str:
        return None
    try:
        # Handle various date formats
        if "T" in date_str:
            return datetime.fromisoformat(date_str.replace("Z", "+00:00")).date()
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        return None


def _parse_vote_cast(vote_position: str | None) -> VoteCast:
    """Convert vote position string to VoteCast.

    Args:
        vote_position: Vote position from API (e.g., "Yea", "Aye", "No").

    Returns:
        VoteCast value. Anything unrecognized counts as not voting.
    """
    position_lower = (vote_position or "").lower().strip()

    if position_lower in ("yea", "aye", "yes"):
        return VoteCast.YEA
    elif position_lower in ("nay", "no"):
        return VoteCast.NAY
    elif position_lower == "present":
        return VoteCast.PRESENT
    return VoteCast.NOT_VOTING


def build_vote_event(
    detail: VoteDetail, summary: VoteSummary, chamber: Chamber, bill_id: int | None
) -> VoteEventRecord:
    """Map a vote detail onto a VoteEventRecord, filling gaps from the listing."""
    return VoteEventRecord(
        chamber=chamber,
        congress_number=detail.congress or summary.congress,
        session=detail.session or summary.session,
        roll_call_number=detail.roll_call or summary.roll_call,
        bill_id=bill_id,
        vote_date=_parse_vote_date(detail.date or summary.date),
        question=detail.question,
        result=detail.result,
        yea_count=detail.yea_total,
        nay_count=detail.nay_total,
        present_count=detail.present_total,
        not_voting_count=detail.not_voting_total,
    )


class VoteSync:
    """Pages through roll-call votes per chamber and records member positions.

    Votes on a bill that is not stored are kept as events with no voting
    records. Member positions overwrite earlier ones on the same bill.
    """

    def __init__(
        self,
        client: CongressClient,
        store: SyncStore,
        congress: int,
        limit: int | None = None,
        page_size: int | None = None,
        chambers: Sequence[Chamber] = DEFAULT_CHAMBERS,
    ):
        """Initialize the sync.

        Args:
            client: Congress.gov API client.
            store: Storage backend.
            congress: Congress number (e.g., 118).
            limit: Maximum vote events to read per chamber.
            page_size: Listing page size. Defaults to settings.
            chambers: Chambers to sync, in order.
        """
        self.client = client
        self.store = store
        self.congress = congress
        self.limit = limit
        self.page_size = page_size or settings.congress_page_size
        self.chambers = tuple(chambers)

    async def sync_event(
        self, summary: VoteSummary, chamber: Chamber
    ) -> tuple[dict[str, int], list[str]]:
        """Fetch one vote's detail and persist the event and its positions.

        A member position that fails to save is recorded as an error and the
        remaining positions are still saved.

        Returns:
            Counter increments for this event, and one error string per
            member position that could not be saved.
        """
        detail = await self.client.get_vote_detail(summary)
        detail.congress = detail.congress or summary.congress

        bill_id = None
        bill_key = detail.bill_external_id
        if bill_key:
            bill = await self.store.get_bill(bill_key)
            bill_id = bill.bill_id if bill else None

        event = build_vote_event(detail, summary, chamber, bill_id)
        event_id = await self.store.upsert_vote_event(event)

        if bill_id is None:
            logger.debug(
                f"Vote {chamber.api_name} {event.congress_number}/{event.session}/"
                f"{event.roll_call_number} has no stored bill ({bill_key})"
            )
            return {"events": 1, "unlinked_events": 1}, []

        records = 0
        skipped = 0
        errors: list[str] = []
        for member_vote in detail.members:
            try:
                legislator_id = None
                if member_vote.bioguide_id:
                    legislator_id = await self.store.get_legislator_id(
                        member_vote.bioguide_id
                    )
                if legislator_id is None:
                    skipped += 1
                    continue

                await self.store.upsert_voting_record(
                    VotingRecordRow(
                        legislator_id=legislator_id,
                        bill_id=bill_id,
                        vote=_parse_vote_cast(member_vote.vote),
                        vote_date=event.vote_date,
                        vote_event_id=event_id,
                    )
                )
                records += 1
            except FatalError:
                raise
            except Exception as e:
                logger.error(
                    f"Error recording {member_vote.bioguide_id} on vote "
                    f"{event.roll_call_number}: {e}"
                )
                errors.append(
                    f"Failed to record vote of {member_vote.bioguide_id} on "
                    f"{chamber.api_name} {event.congress_number}/{event.session}/"
                    f"{event.roll_call_number}: {e}"
                )

        if skipped:
            logger.info(f"Skipped {skipped} member votes with unknown legislators")
        counts = {"events": 1, "records": records, "skipped_members": skipped}
        return counts, errors

    async def iter_chamber(self, chamber: Chamber) -> AsyncIterator[UnitOutcome]:
        """Yield one outcome per vote event listed for a chamber."""
        endpoint = f"vote/{self.congress}/{chamber.api_name}"
        pages = self.client.iter_pages(
            endpoint, "votes", page_size=self.page_size, limit=self.limit
        )

        try:
            async for page in pages:
                for raw in page:
                    summary = VoteSummary.from_api_response(raw)
                    summary.congress = summary.congress or self.congress
                    summary.chamber = summary.chamber or chamber.api_name
                    key = (
                        f"{chamber.api_name} {summary.congress}/"
                        f"{summary.session}/{summary.roll_call}"
                    )
                    try:
                        counts, member_errors = await self.sync_event(summary, chamber)
                        outcomes = [UnitOutcome(key=key, counts=counts)]
                        outcomes += [UnitOutcome(key=key, error=e) for e in member_errors]
                    except FatalError:
                        raise
                    except Exception as e:
                        logger.error(f"Error syncing vote {key}: {e}")
                        outcomes = [
                            UnitOutcome(key=key, error=f"Failed to sync vote {key}: {e}")
                        ]
                    for outcome in outcomes:
                        yield outcome
        except FatalError:
            raise
        except FetchError as e:
            logger.error(f"Vote listing failed for {chamber.api_name}: {e}")
            yield UnitOutcome(
                key=endpoint,
                error=f"Failed to fetch {chamber.api_name} votes: {e}",
            )

    async def iter_units(self) -> AsyncIterator[UnitOutcome]:
        for chamber in self.chambers:
            logger.info(f"Syncing {chamber.api_name} votes for Congress {self.congress}")
            async for outcome in self.iter_chamber(chamber):
                yield outcome

    async def run(self) -> StageResult:
        return await drain(self.iter_units(), StageTally("votes", VOTE_COUNTERS, "events"))
