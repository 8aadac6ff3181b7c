"""Sync current members of Congress into the legislator table."""

import logging
import re
from collections.abc import AsyncIterator
from datetime import date

from app.models.enums import Chamber, PartyCode
from pipeline.congress.client import CongressClient, MemberInfo, MemberTerm
from pipeline.errors import ConflictSkip, FatalError, FetchError, ValidationError
from pipeline.results import StageResult, StageTally, UnitOutcome, drain
from pipeline.storage.base import LegislatorRecord, SyncStore

logger = logging.getLogger(__name__)

# HARDCODED ASSUMPTION: Member listing page size
# Source: the member endpoint is paged 100 at a time in practice; the sync
# stops at the first page shorter than this.
MEMBER_PAGE_SIZE = 100

# New Congresses are sworn in on January 3rd
TERM_START_MONTH = 1
TERM_START_DAY = 3

MEMBER_PHOTO_URL = "https://www.congress.gov/img/member/{bioguide_id}_200.jpg"

LEGISLATOR_COUNTERS = (
    "synced",
    "already_present",
    "skipped_invalid",
    "skipped_other_chamber",
)

_HONORIFIC_PATTERN = re.compile(r"\b(?:mr|mrs|ms|dr)\.(?=\s|$)", re.IGNORECASE)


def _parse_party(party_name: str | None) -> PartyCode:
    """Convert party name string to PartyCode.

    Args:
        party_name: Party name from API (e.g., "Democratic", "Republican").

    Returns:
        D or R on a substring match, I for anything else.
    """
    party_lower = (party_name or "").lower()
    if "democrat" in party_lower:
        return PartyCode.DEMOCRAT
    elif "republican" in party_lower:
        return PartyCode.REPUBLICAN
    return PartyCode.INDEPENDENT


def _parse_chamber(chamber_str: str | None) -> Chamber | None:
    """Convert chamber string to Chamber.

    Args:
        chamber_str: Chamber name from API (e.g., "House of Representatives", "Senate").

    Returns:
        Chamber value or None if the string names neither chamber.
    """
    chamber_lower = (chamber_str or "").lower()
    if "senate" in chamber_lower:
        return Chamber.UPPER
    if "house" in chamber_lower:
        return Chamber.LOWER
    return None


def format_display_name(name: str) -> str:
    """Turn an inverted ``"Last, First M."`` name into ``"First M. Last"``.

    Honorifics (Mr., Mrs., Ms., Dr.) are dropped.
    """
    cleaned = _HONORIFIC_PATTERN.sub("", name)
    if "," in cleaned:
        last, first = cleaned.split(",", 1)
        cleaned = f"{first} {last}"
    return " ".join(cleaned.split())


def _term_start(term: MemberTerm) -> date | None:
    if term.start_year is None:
        return None
    return date(term.start_year, TERM_START_MONTH, TERM_START_DAY)


def current_term_for(member: MemberInfo) -> MemberTerm:
    """Validate a listing record and return its most recent term.

    Raises:
        ValidationError: If the record has no id, name, state or dated term.
    """
    if not member.bioguide_id:
        raise ValidationError("Member record without a bioguide id")
    if not member.name:
        raise ValidationError(f"{member.bioguide_id}: missing name")
    term = member.current_term
    if term is None or _parse_chamber(term.chamber) is None:
        raise ValidationError(f"{member.bioguide_id}: no resolvable current term")
    if not (member.state or term.state):
        raise ValidationError(f"{member.bioguide_id}: missing state")
    return term


def build_legislator_record(
    member: MemberInfo, term: MemberTerm, chamber: Chamber
) -> LegislatorRecord:
    """Map a validated listing record onto a LegislatorRecord."""
    district = member.district if member.district is not None else term.district
    return LegislatorRecord(
        external_id=member.bioguide_id,
        display_name=format_display_name(member.name),
        state=member.state or term.state or "",
        chamber=chamber,
        party=_parse_party(member.party_name),
        role_title=chamber.role_title,
        photo_url=member.depiction_url
        or MEMBER_PHOTO_URL.format(bioguide_id=member.bioguide_id.lower()),
        serving_since=_term_start(term),
        district=str(district) if district is not None else None,
    )


class LegislatorSync:
    """Pages through current members and inserts the ones not yet stored.

    Inserts are conditional on the bioguide id, so repeated runs only add
    new members. Existing rows are never updated here.
    """

    def __init__(
        self,
        client: CongressClient,
        store: SyncStore,
        congress: int,
        limit: int | None = None,
        page_size: int = MEMBER_PAGE_SIZE,
    ):
        """Initialize the sync.

        Args:
            client: Congress.gov API client.
            store: Storage backend.
            congress: Congress number (e.g., 118).
            limit: Maximum listing records to read per chamber.
            page_size: Listing page size.
        """
        self.client = client
        self.store = store
        self.congress = congress
        self.limit = limit
        self.page_size = page_size

    async def _sync_member(self, member: MemberInfo, chamber: Chamber) -> UnitOutcome:
        key = member.bioguide_id or "<unknown>"

        try:
            term = current_term_for(member)
        except ValidationError as e:
            logger.info(f"Skipping invalid member record: {e}")
            return UnitOutcome(key=key, counts={"skipped_invalid": 1})

        if _parse_chamber(term.chamber) != chamber:
            logger.debug(f"Skipping {key}: current term is outside {chamber.api_name}")
            return UnitOutcome(key=key, counts={"skipped_other_chamber": 1})

        record = build_legislator_record(member, term, chamber)
        try:
            await self.store.insert_legislator(record)
        except ConflictSkip:
            return UnitOutcome(key=key, counts={"already_present": 1})

        logger.debug(f"Inserted {record.display_name} ({key})")
        return UnitOutcome(key=key, counts={"synced": 1})

    async def iter_chamber(self, chamber: Chamber) -> AsyncIterator[UnitOutcome]:
        """Yield one outcome per member listing record for a chamber.

        A failed page ends the chamber with an error outcome. A failed
        record becomes an error outcome and the loop continues.
        """
        endpoint = f"member/congress/{self.congress}"
        pages = self.client.iter_pages(
            endpoint,
            "members",
            page_size=self.page_size,
            params={"currentMember": "true"},
            limit=self.limit,
        )

        try:
            async for page in pages:
                for raw in page:
                    member = MemberInfo.from_api_response(raw)
                    try:
                        outcome = await self._sync_member(member, chamber)
                    except FatalError:
                        raise
                    except Exception as e:
                        logger.error(f"Error syncing member {member.bioguide_id}: {e}")
                        outcome = UnitOutcome(
                            key=member.bioguide_id,
                            error=f"Failed to sync {member.bioguide_id}: {e}",
                        )
                    yield outcome
        except FatalError:
            raise
        except FetchError as e:
            logger.error(f"Member listing failed for {chamber.api_name}: {e}")
            yield UnitOutcome(
                key=endpoint,
                error=f"Failed to fetch {chamber.api_name} members: {e}",
            )

    async def iter_units(self) -> AsyncIterator[UnitOutcome]:
        for chamber in (Chamber.UPPER, Chamber.LOWER):
            logger.info(f"Syncing {chamber.api_name} members for Congress {self.congress}")
            async for outcome in self.iter_chamber(chamber):
                yield outcome

    async def run(self) -> StageResult:
        """Sync both chambers.

        Success when nothing failed, or when at least one member was inserted.
        """
        return await drain(
            self.iter_units(), StageTally("legislators", LEGISLATOR_COUNTERS, "synced")
        )
