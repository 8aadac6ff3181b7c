"""Congress.gov API client for fetching legislator, bill and vote data."""

import asyncio
import logging
import re
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

import httpx

from pipeline.errors import ApiAuthError, ApiError, FetchError, MissingApiKeyError

logger = logging.getLogger(__name__)

# =============================================================================
# Congress.gov API Configuration
# =============================================================================
# Primary documentation: https://api.congress.gov
# GitHub: https://github.com/LibraryOfCongress/api.congress.gov
#
# API Key: Required. Get a free key at https://api.congress.gov/sign-up/
# Set via environment variable CONGRESS_API_KEY or pass to client.
#
# Rate limits: 5,000 requests/hour. The client paces itself with fixed
# delays instead of reacting to 429s.
# =============================================================================

CONGRESS_BASE_URL = "https://api.congress.gov/v3"

# HARDCODED ASSUMPTION: Default page size for API requests
# Source: https://api.congress.gov (maximum is 250, default is 20)
DEFAULT_PAGE_SIZE = 250

_BILL_REF_PATTERN = re.compile(r"^\s*([A-Za-z][A-Za-z.\s]*?)\s*(\d+)\s*$")


def _safe_int(value: Any) -> int | None:
    """Safely convert a value to int, returning None if not possible."""
    if value is None:
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def normalize_subjects(raw: Any) -> list[str]:
    """Flatten the upstream ``subjects`` field into a list of strings.

    Upstream sends a mix of plain strings, ``{"name": ...}`` objects and
    anything else. Strings and named objects are kept, everything else is
    dropped. Congress.gov also wraps the list as
    ``{"legislativeSubjects": [...]}``, which is unwrapped first.
    """
    if isinstance(raw, dict):
        raw = raw.get("legislativeSubjects", raw.get("item", []))
    if not isinstance(raw, list):
        return []

    subjects: list[str] = []
    for item in raw:
        if isinstance(item, str):
            name = item
        elif isinstance(item, dict) and isinstance(item.get("name"), str):
            name = item["name"]
        else:
            continue
        name = name.strip()
        if name:
            subjects.append(name)
    return subjects


def make_bill_external_id(congress: int, bill_type: str, number: str | int) -> str:
    """Build the composite bill key, e.g. ``118-hr-1234``."""
    clean_type = re.sub(r"[^a-z]", "", bill_type.lower())
    return f"{congress}-{clean_type}-{str(number).strip()}"


def parse_bill_reference(reference: str) -> tuple[str, str] | None:
    """Split a combined bill reference like ``H.R. 1234`` into (type, number)."""
    match = _BILL_REF_PATTERN.match(reference or "")
    if not match:
        return None
    bill_type = re.sub(r"[^a-z]", "", match.group(1).lower())
    if not bill_type:
        return None
    return bill_type, match.group(2)


def endpoint_from_url(url: str, base_url: str = CONGRESS_BASE_URL) -> str:
    """Turn a detail URL from a listing record back into an endpoint path."""
    path = urlsplit(url).path if "://" in url else url.split("?", 1)[0]
    base_path = urlsplit(base_url).path.rstrip("/")
    if base_path and path.startswith(base_path):
        path = path[len(base_path) :]
    return path.strip("/")


@dataclass
class MemberTerm:
    """A single term served by a member of Congress."""

    chamber: str  # "House of Representatives" or "Senate"
    congress: int | None
    state: str | None
    district: int | None
    start_year: int | None
    end_year: int | None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "MemberTerm":
        """Create from Congress.gov API response."""
        return cls(
            chamber=data.get("chamber") or "",
            congress=_safe_int(data.get("congress")),
            state=data.get("stateCode"),
            district=_safe_int(data.get("district")),
            start_year=_safe_int(data.get("startYear")),
            end_year=_safe_int(data.get("endYear")),
        )


@dataclass
class MemberInfo:
    """Basic info about a member from the list endpoint."""

    bioguide_id: str
    name: str
    state: str | None
    district: int | None
    party_name: str | None
    terms: list[MemberTerm] = field(default_factory=list)
    depiction_url: str | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "MemberInfo":
        """Create from Congress.gov API response item."""
        # List endpoint wraps terms as {"item": [...]}, detail endpoint doesn't
        terms_data = data.get("terms") or []
        if isinstance(terms_data, dict):
            terms_data = terms_data.get("item") or []
        terms = [
            MemberTerm.from_api_response(t) for t in terms_data if isinstance(t, dict)
        ]

        depiction = data.get("depiction") or {}
        depiction_url = depiction.get("imageUrl") if depiction else None

        return cls(
            bioguide_id=(data.get("bioguideId") or "").strip(),
            name=(data.get("name") or "").strip(),
            state=data.get("state"),
            district=_safe_int(data.get("district")),
            party_name=data.get("partyName"),
            terms=terms,
            depiction_url=depiction_url,
        )

    @property
    def current_term(self) -> MemberTerm | None:
        """Most recent term, by start year."""
        dated = [t for t in self.terms if t.start_year]
        if not dated:
            return None
        return max(dated, key=lambda t: t.start_year or 0)


@dataclass
class BillSummary:
    """A bill as it appears in the listing endpoint."""

    congress: int
    bill_type: str
    number: str
    title: str | None
    url: str | None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "BillSummary":
        return cls(
            congress=_safe_int(data.get("congress")) or 0,
            bill_type=(data.get("type") or "").lower(),
            number=str(data.get("number") or ""),
            title=data.get("title"),
            url=data.get("url"),
        )

    @property
    def external_id(self) -> str:
        return make_bill_external_id(self.congress, self.bill_type, self.number)


@dataclass
class BillDetail:
    """Full bill document from the detail endpoint."""

    congress: int
    bill_type: str
    number: str
    title: str
    summary: str | None
    introduced_date: str | None
    latest_action: str | None
    policy_area: str | None
    subjects: list[str] = field(default_factory=list)
    url: str | None = None
    sponsor_bioguide_id: str | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "BillDetail":
        """Create from the ``bill`` object of a detail response."""
        summary = None
        summary_data = data.get("summary")
        if isinstance(summary_data, dict):
            summary = summary_data.get("text")
        elif isinstance(summary_data, str):
            summary = summary_data
        if summary is None and isinstance(data.get("summaries"), list):
            texts = [
                s.get("text") for s in data["summaries"] if isinstance(s, dict)
            ]
            texts = [t for t in texts if t]
            summary = texts[-1] if texts else None

        policy_area = None
        if isinstance(data.get("policyArea"), dict):
            policy_area = data["policyArea"].get("name")

        latest_action = None
        if isinstance(data.get("latestAction"), dict):
            latest_action = data["latestAction"].get("text")

        # First listed sponsor is the primary sponsor
        sponsor_bioguide_id = None
        sponsors = data.get("sponsors")
        if isinstance(sponsors, list) and sponsors and isinstance(sponsors[0], dict):
            sponsor_bioguide_id = sponsors[0].get("bioguideId")

        return cls(
            congress=_safe_int(data.get("congress")) or 0,
            bill_type=(data.get("type") or "").lower(),
            number=str(data.get("number") or ""),
            title=data.get("title") or "",
            summary=summary,
            introduced_date=data.get("introducedDate"),
            latest_action=latest_action,
            policy_area=policy_area,
            subjects=normalize_subjects(data.get("subjects")),
            url=data.get("url"),
            sponsor_bioguide_id=sponsor_bioguide_id,
        )

    @property
    def external_id(self) -> str:
        return make_bill_external_id(self.congress, self.bill_type, self.number)


@dataclass
class VoteSummary:
    """A roll-call vote as it appears in the listing endpoint."""

    congress: int
    chamber: str
    session: int
    roll_call: int
    url: str | None
    date: str | None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "VoteSummary":
        return cls(
            congress=_safe_int(data.get("congress")) or 0,
            chamber=(data.get("chamber") or "").lower(),
            session=_safe_int(data.get("session") or data.get("sessionNumber")) or 1,
            roll_call=_safe_int(data.get("rollCall") or data.get("rollCallNumber"))
            or 0,
            url=data.get("url"),
            date=data.get("date") or data.get("startDate"),
        )


@dataclass
class MemberVote:
    """A single member's position from a vote detail document."""

    bioguide_id: str
    name: str | None
    party: str | None
    state: str | None
    vote: str

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "MemberVote":
        return cls(
            bioguide_id=(data.get("bioguideId") or data.get("bioguideID") or "").strip(),
            name=data.get("name"),
            party=data.get("party") or data.get("voteParty"),
            state=data.get("state") or data.get("voteState"),
            vote=data.get("vote") or data.get("voteCast") or "",
        )


@dataclass
class VoteDetail:
    """Full roll-call document with the member-level breakdown."""

    congress: int
    chamber: str
    session: int
    roll_call: int
    date: str | None
    question: str | None
    result: str | None
    bill_type: str | None
    bill_number: str | None
    yea_total: int = 0
    nay_total: int = 0
    present_total: int = 0
    not_voting_total: int = 0
    members: list[MemberVote] = field(default_factory=list)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "VoteDetail":
        """Create from the ``vote`` object of a detail response."""
        bill_type: str | None = None
        bill_number: str | None = None
        bill = data.get("bill")
        if isinstance(bill, dict):
            if bill.get("type") and bill.get("number"):
                bill_type = str(bill["type"]).lower()
                bill_number = str(bill["number"])
            elif bill.get("number"):
                parsed = parse_bill_reference(str(bill["number"]))
                if parsed:
                    bill_type, bill_number = parsed
        elif data.get("legislationType") and data.get("legislationNumber"):
            bill_type = str(data["legislationType"]).lower()
            bill_number = str(data["legislationNumber"])

        totals = data.get("votes") if isinstance(data.get("votes"), dict) else {}

        members_data = data.get("members") or data.get("results") or []
        members = [
            MemberVote.from_api_response(m)
            for m in members_data
            if isinstance(m, dict)
        ]

        return cls(
            congress=_safe_int(data.get("congress")) or 0,
            chamber=(data.get("chamber") or "").lower(),
            session=_safe_int(data.get("session") or data.get("sessionNumber")) or 1,
            roll_call=_safe_int(data.get("rollCall") or data.get("rollCallNumber"))
            or 0,
            date=data.get("date") or data.get("startDate"),
            question=data.get("question") or data.get("voteQuestion"),
            result=data.get("result"),
            bill_type=bill_type,
            bill_number=bill_number,
            yea_total=_safe_int(totals.get("yea")) or 0,
            nay_total=_safe_int(totals.get("nay")) or 0,
            present_total=_safe_int(totals.get("present")) or 0,
            not_voting_total=_safe_int(totals.get("notVoting")) or 0,
            members=members,
        )

    @property
    def bill_external_id(self) -> str | None:
        """Key of the bill this vote is on, or None for non-bill votes."""
        if not self.bill_type or not self.bill_number:
            return None
        return make_bill_external_id(self.congress, self.bill_type, self.bill_number)


class CongressClient:
    """Client for the Congress.gov API.

    Every call carries the API key and ``format=json``. Calls are paced with
    a fixed minimum gap since the previous request: ``record_delay`` before
    detail fetches, ``page_delay`` before listing pages. There is no retry;
    callers decide what a failure means for the page or record at hand.

    API Documentation: https://api.congress.gov
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        record_delay: float | None = None,
        page_delay: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the Congress.gov client.

        Args:
            api_key: Congress.gov API key. If not provided, reads from app settings
                (which loads from CONGRESS_API_KEY environment variable or .env).
            base_url: API root. Defaults to settings.
            timeout: HTTP request timeout in seconds.
            record_delay: Minimum seconds between a request and a detail fetch.
            page_delay: Minimum seconds between a request and a page fetch.
            transport: Optional httpx transport (used by tests).
            sleep: Awaitable sleep used for pacing.
            clock: Monotonic clock used for pacing.

        Raises:
            MissingApiKeyError: If no API key is provided or found in settings.
        """
        from app.config import settings

        self.api_key = api_key or settings.congress_api_key
        if not self.api_key:
            raise MissingApiKeyError(
                "Congress.gov API key required. Set CONGRESS_API_KEY environment "
                "variable or pass api_key parameter. "
                "Get a free key at https://api.congress.gov/sign-up/"
            )
        self.base_url = (base_url or settings.congress_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.congress_request_timeout
        self.record_delay = (
            record_delay if record_delay is not None else settings.congress_record_delay
        )
        self.page_delay = (
            page_delay if page_delay is not None else settings.congress_page_delay
        )
        self._transport = transport
        self._sleep = sleep
        self._clock = clock
        self._last_request_at: float | None = None

    async def _pace(self, delay: float) -> None:
        """Wait until ``delay`` seconds have passed since the last request."""
        if self._last_request_at is not None and delay > 0:
            remaining = delay - (self._clock() - self._last_request_at)
            if remaining > 0:
                await self._sleep(remaining)

    async def _get(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        query = {**params, "api_key": self.api_key, "format": "json"}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(url, params=query)
        except httpx.RequestError as e:
            raise FetchError(f"Request to {endpoint} failed: {e}") from e
        finally:
            self._last_request_at = self._clock()

        if response.status_code in (401, 403):
            raise ApiAuthError(response.status_code, response.text[:200])
        if not response.is_success:
            raise ApiError(response.status_code, response.text[:200])

        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(f"Invalid JSON from {endpoint}: {e}") from e
        if not isinstance(data, dict):
            raise FetchError(f"Unexpected payload from {endpoint}")
        return data

    async def fetch(
        self, endpoint: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Fetch a single document (detail endpoint).

        Raises:
            ApiError: On a non-2xx response.
            FetchError: On a transport failure or unreadable body.
        """
        await self._pace(self.record_delay)
        logger.debug(f"Fetching {endpoint}")
        return await self._get(endpoint, params or {})

    async def fetch_page(
        self,
        endpoint: str,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Fetch one listing page, exactly as upstream returns it."""
        await self._pace(self.page_delay)
        logger.info(f"Fetching {endpoint} (offset={offset}, limit={limit})")
        return await self._get(
            endpoint, {**(params or {}), "limit": limit, "offset": offset}
        )

    async def iter_pages(
        self,
        endpoint: str,
        list_key: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        params: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> AsyncIterator[list[dict[str, Any]]]:
        """Yield listing pages until a short or empty page, or ``limit`` records.

        Errors are not caught here; a failed page ends the iteration with
        the exception.
        """
        offset = 0
        yielded = 0

        while True:
            request_size = page_size
            if limit is not None:
                request_size = min(page_size, limit - yielded)
                if request_size <= 0:
                    return

            data = await self.fetch_page(endpoint, request_size, offset, params)
            raw = data.get(list_key) or []
            if not raw:
                return

            # Malformed entries are dropped but still count toward the page
            records = [r for r in raw if isinstance(r, dict)]
            if records:
                yield records
            yielded += len(raw)

            if len(raw) < request_size:
                return
            offset += len(raw)

    async def get_bill_detail(self, summary: BillSummary) -> BillDetail:
        """Fetch the detail document for a bill listing record."""
        endpoint = (
            endpoint_from_url(summary.url, self.base_url)
            if summary.url
            else f"bill/{summary.congress}/{summary.bill_type}/{summary.number}"
        )
        data = await self.fetch(endpoint)
        return BillDetail.from_api_response(data.get("bill") or {})

    async def get_vote_detail(self, summary: VoteSummary) -> VoteDetail:
        """Fetch the member-level detail document for a vote listing record."""
        endpoint = (
            endpoint_from_url(summary.url, self.base_url)
            if summary.url
            else (
                f"vote/{summary.congress}/{summary.chamber}/"
                f"{summary.session}/{summary.roll_call}"
            )
        )
        data = await self.fetch(endpoint)
        return VoteDetail.from_api_response(data.get("vote") or {})
