"""Tests for legislator sync."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from app.models.enums import Chamber, PartyCode
from pipeline.congress.client import MemberInfo
from pipeline.congress.ingestion import (
    LegislatorSync,
    _parse_chamber,
    _parse_party,
    build_legislator_record,
    current_term_for,
    format_display_name,
)
from pipeline.errors import PersistenceError, ValidationError
from pipeline.storage.base import LegislatorRecord

MEMBERS = "member/congress/118"


def member(
    bioguide_id: str,
    name: str,
    chamber: str,
    state: str = "Ohio",
    party: str = "Democratic",
    start_year: int = 2023,
) -> dict:
    return {
        "bioguideId": bioguide_id,
        "name": name,
        "state": state,
        "partyName": party,
        "terms": {"item": [{"chamber": chamber, "startYear": start_year}]},
    }


class TestParsing:
    """Tests for the field-level helpers."""

    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("Democratic", PartyCode.DEMOCRAT),
            ("Democratic-Farmer-Labor", PartyCode.DEMOCRAT),
            ("Republican", PartyCode.REPUBLICAN),
            ("Independent", PartyCode.INDEPENDENT),
            ("Libertarian", PartyCode.INDEPENDENT),
            (None, PartyCode.INDEPENDENT),
        ],
    )
    def test_parse_party(self, label: str | None, expected: PartyCode) -> None:
        assert _parse_party(label) == expected

    def test_parse_chamber(self) -> None:
        assert _parse_chamber("Senate") == Chamber.UPPER
        assert _parse_chamber("House of Representatives") == Chamber.LOWER
        assert _parse_chamber("Continental Congress") is None

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Pelosi, Nancy", "Nancy Pelosi"),
            ("Brown, Sherrod", "Sherrod Brown"),
            ("Schakowsky, Janice D.", "Janice D. Schakowsky"),
            ("Smith, Mr. John", "John Smith"),
            ("Dr. Jane Roe", "Jane Roe"),
            ("Cher", "Cher"),
        ],
    )
    def test_format_display_name(self, raw: str, expected: str) -> None:
        assert format_display_name(raw) == expected

    def test_current_term_requires_fields(self) -> None:
        no_terms = MemberInfo.from_api_response({"bioguideId": "X1", "name": "X, Y", "state": "Iowa"})
        no_state = MemberInfo.from_api_response(
            {"bioguideId": "X2", "name": "X, Y", "terms": {"item": [{"chamber": "Senate", "startYear": 2021}]}}
        )
        no_name = MemberInfo.from_api_response(member("X3", "", "Senate"))

        for info in (no_terms, no_state, no_name):
            with pytest.raises(ValidationError):
                current_term_for(info)

    def test_build_record_derived_fields(self) -> None:
        info = MemberInfo.from_api_response(member("P000197", "Pelosi, Nancy", "House of Representatives", state="California", start_year=1987))
        term = current_term_for(info)

        record = build_legislator_record(info, term, Chamber.LOWER)

        assert record.display_name == "Nancy Pelosi"
        assert record.role_title == "Representative"
        assert record.serving_since == date(1987, 1, 3)
        assert record.photo_url == "https://www.congress.gov/img/member/p000197_200.jpg"
        assert record.party == PartyCode.DEMOCRAT


class TestLegislatorSync:
    """Tests for LegislatorSync paging and idempotency."""

    @pytest.mark.asyncio
    async def test_syncs_each_chamber(self, fake_api, store) -> None:
        fake_api.add_listing(
            MEMBERS,
            "members",
            [
                member("S001", "Senator, One", "Senate"),
                member("H001", "Rep, One", "House of Representatives", party="Republican"),
                member("H002", "Rep, Two", "House of Representatives", party="Independent"),
            ],
        )

        result = await LegislatorSync(fake_api.client(), store, 118).run()

        assert result.success
        assert result.counts["synced"] == 3
        assert result.counts["skipped_other_chamber"] == 3
        assert result.errors == []
        assert store.legislators["S001"].chamber == Chamber.UPPER
        assert store.legislators["H001"].party == PartyCode.REPUBLICAN
        assert store.legislators["H002"].role_title == "Representative"

    @pytest.mark.asyncio
    async def test_resync_is_idempotent(self, fake_api, store) -> None:
        """Re-syncing the same members adds no rows and reports no errors."""
        fake_api.add_listing(MEMBERS, "members", [member("S001", "Senator, One", "Senate")])
        sync = LegislatorSync(fake_api.client(), store, 118)

        await sync.run()
        result = await sync.run()

        assert len(store.legislators) == 1
        assert result.counts["synced"] == 0
        assert result.counts["already_present"] == 1
        assert result.errors == []
        assert result.success

    @pytest.mark.asyncio
    async def test_invalid_records_skipped_not_errors(self, fake_api, store) -> None:
        fake_api.add_listing(
            MEMBERS,
            "members",
            [
                {"bioguideId": "X001", "name": "No, Terms", "state": "Ohio"},
                member("S001", "Senator, One", "Senate"),
            ],
        )

        result = await LegislatorSync(fake_api.client(), store, 118).run()

        # Counted once per chamber pass
        assert result.counts["skipped_invalid"] == 2
        assert result.errors == []
        assert list(store.legislators) == ["S001"]

    @pytest.mark.asyncio
    async def test_uses_latest_term(self, fake_api, store) -> None:
        """A member who moved from the House to the Senate syncs as a senator."""
        moved = member("M001", "Moved, Member", "House of Representatives", start_year=2011)
        moved["terms"]["item"].append({"chamber": "Senate", "startYear": 2019})
        fake_api.add_listing(MEMBERS, "members", [moved])

        await LegislatorSync(fake_api.client(), store, 118).run()

        assert store.legislators["M001"].chamber == Chamber.UPPER
        assert store.legislators["M001"].serving_since == date(2019, 1, 3)

    @pytest.mark.asyncio
    async def test_pages_until_short_page(self, fake_api, store) -> None:
        records = [member(f"S{i:03d}", f"Senator, {i}", "Senate") for i in range(5)]
        fake_api.add_listing(MEMBERS, "members", records)

        result = await LegislatorSync(fake_api.client(), store, 118, page_size=2).run()

        assert result.counts["synced"] == 5
        # 3 pages per chamber: 2 + 2 + 1
        assert fake_api.requested_paths().count(MEMBERS) == 6
        assert fake_api.requests[0].url.params["currentMember"] == "true"

    @pytest.mark.asyncio
    async def test_page_failure_recorded(self, fake_api, store) -> None:
        fake_api.fail(MEMBERS, status=500)

        result = await LegislatorSync(fake_api.client(), store, 118).run()

        assert not result.success
        assert len(result.errors) == 2
        assert "senate" in result.errors[0]
        assert "house" in result.errors[1]

    @pytest.mark.asyncio
    async def test_auth_failure_aborts_stage(self, fake_api, store) -> None:
        fake_api.fail(MEMBERS, status=401)

        result = await LegislatorSync(fake_api.client(), store, 118).run()

        assert not result.success
        assert len(result.errors) == 1
        # Aborted before the House pass
        assert len(fake_api.requests) == 1

    @pytest.mark.asyncio
    async def test_storage_failure_recorded_and_sync_continues(self, fake_api, store) -> None:
        fake_api.add_listing(
            MEMBERS,
            "members",
            [member("S001", "Senator, One", "Senate"), member("S002", "Senator, Two", "Senate")],
        )
        original = store.insert_legislator

        async def flaky(record: LegislatorRecord) -> int:
            if record.external_id == "S001":
                raise PersistenceError("connection reset")
            return await original(record)

        store.insert_legislator = AsyncMock(side_effect=flaky)

        result = await LegislatorSync(fake_api.client(), store, 118).run()

        assert result.success
        assert result.counts["synced"] == 1
        assert result.errors == ["Failed to sync S001: connection reset"]
        assert list(store.legislators) == ["S002"]
