"""Tests for bill ingestion."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from app.models.enums import Chamber, PartyCode
from pipeline.congress.bill_ingestion import BillIngestor, _parse_date
from pipeline.errors import ConflictSkip, PersistenceError
from pipeline.scoring.keywords import DEFAULT_TOPICS, PolarityLexicon
from pipeline.storage.base import BillRecord, LegislatorRecord

BILLS = "bill/118"


def listing(number: str, bill_type: str = "HR") -> dict:
    return {
        "congress": 118,
        "type": bill_type,
        "number": number,
        "title": f"Bill {number}",
        "url": f"https://api.test/v3/bill/118/{bill_type.lower()}/{number}?format=json",
    }


def detail(number: str, title: str, bill_type: str = "HR", **extra) -> dict:
    return {
        "bill": {
            "congress": 118,
            "type": bill_type,
            "number": number,
            "title": title,
            "introducedDate": "2023-02-01",
            **extra,
        }
    }


async def seed_default_topics(store) -> dict[str, int]:
    await store.seed_topics([(t.name, t.description, t.keywords) for t in DEFAULT_TOPICS])
    return {t.name: t.topic_id for t in await store.list_topics()}


class TestBillIngestor:
    """Tests for BillIngestor."""

    @pytest.mark.asyncio
    async def test_ingests_scores_and_tags(self, fake_api, store) -> None:
        topic_ids = await seed_default_topics(store)
        fake_api.add_listing(BILLS, "bills", [listing("1")])
        fake_api.add_document(
            "bill/118/hr/1",
            detail(
                "1",
                "Medicare Dental Act",
                summary={"text": "Adds dental coverage to Medicare."},
                policyArea={"name": "Health"},
                subjects=[{"name": "Hospital care"}, "Insurance"],
                latestAction={"text": "Referred to the Committee on Ways and Means."},
            ),
        )

        result = await BillIngestor(fake_api.client(), store, 118).run()

        assert result.success
        assert result.counts == {"synced": 1, "already_present": 0, "skipped_invalid": 0}
        bill = store.bills["118-hr-1"]
        assert bill.polarity_score == pytest.approx(-0.1)
        assert bill.topic_ids == {topic_ids["Healthcare"]}
        assert bill.subjects == ("Hospital care", "Insurance")
        assert bill.introduced_date == date(2023, 2, 1)
        assert bill.status == "Referred to the Committee on Ways and Means."
        assert fake_api.requests[0].url.params["sort"] == "updateDate desc"

    @pytest.mark.asyncio
    async def test_neutral_bill_scores_zero(self, fake_api, store) -> None:
        fake_api.add_listing(BILLS, "bills", [listing("2")])
        fake_api.add_document("bill/118/hr/2", detail("2", "To rename a post office"))

        await BillIngestor(fake_api.client(), store, 118).run()

        assert store.bills["118-hr-2"].polarity_score == 0.0
        assert store.bills["118-hr-2"].topic_ids == frozenset()

    @pytest.mark.asyncio
    async def test_existing_bill_not_refetched(self, fake_api, store) -> None:
        """A stored bill keeps its derived fields and its detail is not fetched."""
        await seed_default_topics(store)
        fake_api.add_listing(BILLS, "bills", [listing("1")])
        fake_api.add_document("bill/118/hr/1", detail("1", "Climate resilience act"))
        ingestor = BillIngestor(fake_api.client(), store, 118)

        await ingestor.run()
        first = store.bills["118-hr-1"]

        fake_api.add_document("bill/118/hr/1", detail("1", "Oil and coal expansion act"))
        fake_api.requests.clear()
        result = await ingestor.run()

        assert len(store.bills) == 1
        assert store.bills["118-hr-1"] == first
        assert result.counts["already_present"] == 1
        assert "bill/118/hr/1" not in fake_api.requested_paths()

    @pytest.mark.asyncio
    async def test_insert_conflict_counts_as_present(self, fake_api, store) -> None:
        fake_api.add_listing(BILLS, "bills", [listing("3")])
        fake_api.add_document("bill/118/hr/3", detail("3", "Third"))
        winner = BillRecord("118-hr-3", 118, "hr", "3", "Third", 0.0, bill_id=7)
        store.get_bill = AsyncMock(side_effect=[None, winner])
        store.insert_bill = AsyncMock(side_effect=ConflictSkip("118-hr-3"))

        result = await BillIngestor(fake_api.client(), store, 118).run()

        assert result.counts["already_present"] == 1
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_detail_failure_is_per_bill(self, fake_api, store) -> None:
        fake_api.add_listing(BILLS, "bills", [listing("4"), listing("5")])
        fake_api.fail("bill/118/hr/4", status=500)
        fake_api.add_document("bill/118/hr/5", detail("5", "Fifth"))

        result = await BillIngestor(fake_api.client(), store, 118).run()

        assert result.success
        assert result.counts["synced"] == 1
        assert len(result.errors) == 1
        assert "118-hr-4" in result.errors[0]

    @pytest.mark.asyncio
    async def test_listing_without_number_skipped(self, fake_api, store) -> None:
        fake_api.add_listing(BILLS, "bills", [{"congress": 118, "title": "Mystery"}])

        result = await BillIngestor(fake_api.client(), store, 118).run()

        assert result.counts["skipped_invalid"] == 1
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_limit_bounds_listing(self, fake_api, store) -> None:
        fake_api.add_listing(BILLS, "bills", [listing(str(n)) for n in range(1, 6)])
        for n in range(1, 6):
            fake_api.add_document(f"bill/118/hr/{n}", detail(str(n), f"Bill {n}"))

        result = await BillIngestor(fake_api.client(), store, 118, limit=3).run()

        assert result.counts["synced"] == 3
        assert sorted(store.bills) == ["118-hr-1", "118-hr-2", "118-hr-3"]

    @pytest.mark.asyncio
    async def test_injected_lexicon(self, fake_api, store) -> None:
        fake_api.add_listing(BILLS, "bills", [listing("6")])
        fake_api.add_document("bill/118/hr/6", detail("6", "Widget act"))
        lexicon = PolarityLexicon(progressive=(), conservative=("widget",), step=0.25)

        await BillIngestor(fake_api.client(), store, 118, lexicon=lexicon).run()

        assert store.bills["118-hr-6"].polarity_score == 0.25


def test_parse_date() -> None:
    assert _parse_date("2024-01-15") == date(2024, 1, 15)
    assert _parse_date("2024-01-15T10:00:00Z") == date(2024, 1, 15)
    assert _parse_date("January") is None
    assert _parse_date(None) is None


class TestBillStorageFailure:
    @pytest.mark.asyncio
    async def test_storage_failure_recorded_and_ingest_continues(self, fake_api, store) -> None:
        fake_api.add_listing(BILLS, "bills", [listing("7"), listing("8")])
        fake_api.add_document("bill/118/hr/7", detail("7", "Seventh"))
        fake_api.add_document("bill/118/hr/8", detail("8", "Eighth"))
        original = store.insert_bill

        async def flaky(record: BillRecord) -> BillRecord:
            if record.external_id == "118-hr-7":
                raise PersistenceError("deadlock detected")
            return await original(record)

        store.insert_bill = AsyncMock(side_effect=flaky)

        result = await BillIngestor(fake_api.client(), store, 118).run()

        assert result.success
        assert result.counts["synced"] == 1
        assert result.errors == ["Failed to ingest bill 118-hr-7: deadlock detected"]
        assert list(store.bills) == ["118-hr-8"]


class TestBillSponsor:
    @pytest.mark.asyncio
    async def test_sponsor_linked_to_stored_legislator(self, fake_api, store) -> None:
        legislator_id = await store.insert_legislator(
            LegislatorRecord(
                "S001", "Jane Smith", "Ohio", Chamber.LOWER, PartyCode.DEMOCRAT, "Representative"
            )
        )
        fake_api.add_listing(BILLS, "bills", [listing("9"), listing("10")])
        fake_api.add_document(
            "bill/118/hr/9", detail("9", "Ninth", sponsors=[{"bioguideId": "S001"}])
        )
        fake_api.add_document(
            "bill/118/hr/10", detail("10", "Tenth", sponsors=[{"bioguideId": "Z999"}])
        )

        result = await BillIngestor(fake_api.client(), store, 118).run()

        assert result.counts["synced"] == 2
        assert store.bills["118-hr-9"].sponsor_id == legislator_id
        assert store.bills["118-hr-10"].sponsor_id is None
