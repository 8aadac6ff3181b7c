"""Tests for roll-call vote sync."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from app.models.enums import Chamber, PartyCode, VoteCast
from pipeline.congress.vote_ingestion import VoteSync, _parse_vote_cast, _parse_vote_date
from pipeline.errors import PersistenceError
from pipeline.storage.base import BillRecord, LegislatorRecord, VotingRecordRow

HOUSE_VOTES = "vote/118/house"
SENATE_VOTES = "vote/118/senate"


def vote_listing(roll_call: int, chamber: str = "house") -> dict:
    return {
        "congress": 118,
        "chamber": chamber,
        "session": 1,
        "rollCall": roll_call,
        "url": f"https://api.test/v3/vote/118/{chamber}/1/{roll_call}",
    }


def vote_detail(roll_call: int, bill: dict | None, members: list[dict]) -> dict:
    payload = {
        "congress": 118,
        "chamber": "House",
        "session": 1,
        "rollCall": roll_call,
        "date": "2023-03-30",
        "question": "On Passage",
        "result": "Passed",
        "votes": {"yea": 2, "nay": 1, "present": 0, "notVoting": 0},
        "members": members,
    }
    if bill is not None:
        payload["bill"] = bill
    return {"vote": payload}


async def seed(store) -> dict[str, int]:
    ids = {}
    for bioguide_id in ("A001", "A002"):
        ids[bioguide_id] = await store.insert_legislator(
            LegislatorRecord(
                bioguide_id, bioguide_id, "Ohio", Chamber.LOWER, PartyCode.INDEPENDENT, "Representative"
            )
        )
    bill = await store.insert_bill(BillRecord("118-hr-1", 118, "hr", "1", "One", 0.3))
    ids["bill"] = bill.bill_id
    return ids


class TestParsing:
    @pytest.mark.parametrize(
        ("position", "expected"),
        [
            ("Yea", VoteCast.YEA),
            ("Aye", VoteCast.YEA),
            ("yes", VoteCast.YEA),
            ("Nay", VoteCast.NAY),
            ("No", VoteCast.NAY),
            ("Present", VoteCast.PRESENT),
            ("Not Voting", VoteCast.NOT_VOTING),
            ("Paired", VoteCast.NOT_VOTING),
            (None, VoteCast.NOT_VOTING),
        ],
    )
    def test_parse_vote_cast(self, position: str | None, expected: VoteCast) -> None:
        assert _parse_vote_cast(position) == expected

    def test_parse_vote_date(self) -> None:
        assert _parse_vote_date("2023-03-30") == date(2023, 3, 30)
        assert _parse_vote_date("2023-03-30T14:05:00-04:00") == date(2023, 3, 30)
        assert _parse_vote_date("") is None


class TestVoteSync:
    """Tests for VoteSync."""

    @pytest.mark.asyncio
    async def test_records_member_votes(self, fake_api, store) -> None:
        ids = await seed(store)
        fake_api.add_listing(HOUSE_VOTES, "votes", [vote_listing(10)])
        fake_api.add_document(
            "vote/118/house/1/10",
            vote_detail(
                10,
                {"congress": 118, "type": "HR", "number": "1"},
                [
                    {"bioguideId": "A001", "vote": "Aye"},
                    {"bioguideId": "A002", "vote": "No"},
                    {"bioguideId": "Z999", "vote": "Yea"},
                ],
            ),
        )

        result = await VoteSync(fake_api.client(), store, 118, chambers=[Chamber.LOWER]).run()

        assert result.success
        assert result.counts == {
            "events": 1,
            "records": 2,
            "skipped_members": 1,
            "unlinked_events": 0,
        }
        assert store.voting_records[(ids["A001"], ids["bill"])].vote == VoteCast.YEA
        assert store.voting_records[(ids["A002"], ids["bill"])].vote == VoteCast.NAY
        event = store.vote_events[(Chamber.LOWER, 118, 1, 10)]
        assert event.bill_id == ids["bill"]
        assert event.yea_count == 2
        assert event.vote_date == date(2023, 3, 30)

    @pytest.mark.asyncio
    async def test_vote_without_stored_bill_has_no_records(self, fake_api, store) -> None:
        await seed(store)
        fake_api.add_listing(HOUSE_VOTES, "votes", [vote_listing(11), vote_listing(12)])
        fake_api.add_document(
            "vote/118/house/1/11",
            vote_detail(11, {"number": "H.R. 999"}, [{"bioguideId": "A001", "vote": "Yea"}]),
        )
        fake_api.add_document(
            "vote/118/house/1/12",
            vote_detail(12, None, [{"bioguideId": "A001", "vote": "Yea"}]),
        )

        result = await VoteSync(fake_api.client(), store, 118, chambers=[Chamber.LOWER]).run()

        assert result.counts["events"] == 2
        assert result.counts["unlinked_events"] == 2
        assert result.counts["records"] == 0
        assert store.voting_records == {}
        assert store.vote_events[(Chamber.LOWER, 118, 1, 11)].bill_id is None

    @pytest.mark.asyncio
    async def test_later_vote_overwrites_position(self, fake_api, store) -> None:
        ids = await seed(store)
        bill = {"congress": 118, "type": "HR", "number": "1"}
        fake_api.add_listing(HOUSE_VOTES, "votes", [vote_listing(20), vote_listing(21)])
        fake_api.add_document(
            "vote/118/house/1/20", vote_detail(20, bill, [{"bioguideId": "A001", "vote": "Yea"}])
        )
        fake_api.add_document(
            "vote/118/house/1/21", vote_detail(21, bill, [{"bioguideId": "A001", "vote": "Nay"}])
        )

        await VoteSync(fake_api.client(), store, 118, chambers=[Chamber.LOWER]).run()

        assert len(store.voting_records) == 1
        row = store.voting_records[(ids["A001"], ids["bill"])]
        assert row.vote == VoteCast.NAY
        assert row.vote_event_id == store.vote_event_ids[(Chamber.LOWER, 118, 1, 21)]

    @pytest.mark.asyncio
    async def test_resync_upserts_event(self, fake_api, store) -> None:
        await seed(store)
        fake_api.add_listing(HOUSE_VOTES, "votes", [vote_listing(30)])
        fake_api.add_document(
            "vote/118/house/1/30",
            vote_detail(30, {"congress": 118, "type": "HR", "number": "1"}, []),
        )
        sync = VoteSync(fake_api.client(), store, 118, chambers=[Chamber.LOWER])

        await sync.run()
        await sync.run()

        assert len(store.vote_events) == 1

    @pytest.mark.asyncio
    async def test_both_chambers_house_first(self, fake_api, store) -> None:
        fake_api.add_listing(HOUSE_VOTES, "votes", [])
        fake_api.add_listing(SENATE_VOTES, "votes", [])

        result = await VoteSync(fake_api.client(), store, 118).run()

        assert result.success
        assert fake_api.requested_paths() == [HOUSE_VOTES, SENATE_VOTES]

    @pytest.mark.asyncio
    async def test_detail_failure_is_per_event(self, fake_api, store) -> None:
        await seed(store)
        fake_api.add_listing(HOUSE_VOTES, "votes", [vote_listing(40), vote_listing(41)])
        fake_api.fail("vote/118/house/1/40")
        fake_api.add_document("vote/118/house/1/41", vote_detail(41, None, []))

        result = await VoteSync(fake_api.client(), store, 118, chambers=[Chamber.LOWER]).run()

        assert result.success
        assert result.counts["events"] == 1
        assert len(result.errors) == 1
        assert "house 118/1/40" in result.errors[0]

    @pytest.mark.asyncio
    async def test_failed_member_record_does_not_drop_event(self, fake_api, store) -> None:
        """One position that fails to save leaves the others and the event counted."""
        ids = await seed(store)
        fake_api.add_listing(HOUSE_VOTES, "votes", [vote_listing(50)])
        fake_api.add_document(
            "vote/118/house/1/50",
            vote_detail(
                50,
                {"congress": 118, "type": "HR", "number": "1"},
                [{"bioguideId": "A001", "vote": "Yea"}, {"bioguideId": "A002", "vote": "Nay"}],
            ),
        )
        original = store.upsert_voting_record

        async def flaky(row: VotingRecordRow) -> None:
            if row.legislator_id == ids["A001"]:
                raise PersistenceError("disk full")
            await original(row)

        store.upsert_voting_record = AsyncMock(side_effect=flaky)

        result = await VoteSync(fake_api.client(), store, 118, chambers=[Chamber.LOWER]).run()

        assert result.success
        assert result.counts["events"] == 1
        assert result.counts["records"] == 1
        assert len(result.errors) == 1
        assert "A001" in result.errors[0] and "disk full" in result.errors[0]
        assert list(store.voting_records) == [(ids["A002"], ids["bill"])]
        assert (Chamber.LOWER, 118, 1, 50) in store.vote_events

    @pytest.mark.asyncio
    async def test_detail_without_congress_links_bill(self, fake_api, store) -> None:
        ids = await seed(store)
        detail = vote_detail(
            60, {"type": "HR", "number": "1"}, [{"bioguideId": "A001", "vote": "Yea"}]
        )
        del detail["vote"]["congress"]
        fake_api.add_listing(HOUSE_VOTES, "votes", [vote_listing(60)])
        fake_api.add_document("vote/118/house/1/60", detail)

        result = await VoteSync(fake_api.client(), store, 118, chambers=[Chamber.LOWER]).run()

        assert result.counts["unlinked_events"] == 0
        assert result.counts["records"] == 1
        assert store.vote_events[(Chamber.LOWER, 118, 1, 60)].bill_id == ids["bill"]
