"""Tests for politician API endpoints."""

from datetime import date
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from app.models.enums import Chamber, PartyCode, Philosophy, VoteCast
from app.schemas.politician import (
    AggregateScoreSchema,
    PoliticianDetailSchema,
    PoliticianSummarySchema,
    TopicScoreSchema,
    VotingHistoryEntrySchema,
)


def _summary(external_id: str = "P000197") -> PoliticianSummarySchema:
    return PoliticianSummarySchema(
        external_id=external_id,
        display_name="Nancy Pelosi",
        state="California",
        chamber=Chamber.LOWER,
        party=PartyCode.DEMOCRAT,
        role_title="Representative",
        serving_since=date(1987, 1, 3),
    )


# ---------------------------------------------------------------------------
# GET /api/v1/politicians/
# ---------------------------------------------------------------------------


@patch("app.api.v1.politicians.get_politicians", new_callable=AsyncMock)
def test_list_politicians(mock_get: AsyncMock, client: TestClient) -> None:
    """List endpoint returns legislator summaries."""
    mock_get.return_value = [_summary(), _summary("S000148")]

    response = client.get("/api/v1/politicians/")
    assert response.status_code == 200

    data = response.json()
    assert len(data) == 2
    assert data[0]["external_id"] == "P000197"
    assert data[0]["chamber"] == "lower"
    assert data[0]["party"] == "D"
    assert data[0]["serving_since"] == "1987-01-03"


@patch("app.api.v1.politicians.get_politicians", new_callable=AsyncMock)
def test_list_politicians_passes_filters(mock_get: AsyncMock, client: TestClient) -> None:
    """Query filters reach the CRUD layer as enums."""
    mock_get.return_value = []

    response = client.get("/api/v1/politicians/?chamber=upper&party=R&state=Ohio")
    assert response.status_code == 200
    assert response.json() == []

    kwargs = mock_get.call_args.kwargs
    assert kwargs["chamber"] == Chamber.UPPER
    assert kwargs["party"] == PartyCode.REPUBLICAN
    assert kwargs["state"] == "Ohio"


def test_list_politicians_rejects_unknown_party(client: TestClient) -> None:
    """Party outside D/R/I is a validation error."""
    response = client.get("/api/v1/politicians/?party=G")
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# GET /api/v1/politicians/{external_id}
# ---------------------------------------------------------------------------


@patch("app.api.v1.politicians.get_politician", new_callable=AsyncMock)
def test_get_politician_with_scores(mock_get: AsyncMock, client: TestClient) -> None:
    """Detail endpoint includes topic scores and the aggregate."""
    mock_get.return_value = PoliticianDetailSchema(
        **_summary().model_dump(),
        topic_scores=[
            TopicScoreSchema(
                topic_id=1, topic_name="Healthcare", score=-0.7, vote_count=12, confidence=0.3464
            ),
            TopicScoreSchema(
                topic_id=2, topic_name="Defense & War", score=0.0, vote_count=0, confidence=0.0
            ),
        ],
        aggregate_score=AggregateScoreSchema(
            overall_score=-0.35, philosophy=Philosophy.LIBERAL
        ),
    )

    response = client.get("/api/v1/politicians/P000197")
    assert response.status_code == 200

    data = response.json()
    assert data["display_name"] == "Nancy Pelosi"
    assert [t["topic_name"] for t in data["topic_scores"]] == ["Healthcare", "Defense & War"]
    assert data["topic_scores"][1]["confidence"] == 0.0
    assert data["aggregate_score"]["philosophy"] == "Liberal"
    mock_get.assert_awaited_once()


@patch("app.api.v1.politicians.get_politician", new_callable=AsyncMock)
def test_get_politician_not_found(mock_get: AsyncMock, client: TestClient) -> None:
    """Unknown Bioguide ID returns 404."""
    mock_get.return_value = None

    response = client.get("/api/v1/politicians/Z999999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Politician Z999999 not found"


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


# ---------------------------------------------------------------------------
# GET /api/v1/politicians/{external_id}/voting-history
# ---------------------------------------------------------------------------


@patch("app.api.v1.politicians.get_voting_history", new_callable=AsyncMock)
def test_voting_history(mock_get: AsyncMock, client: TestClient) -> None:
    """Voting history lists positions with the bill they were on."""
    mock_get.return_value = [
        VotingHistoryEntrySchema(
            bill_external_id="118-hr-2",
            bill_title="Medicare Dental Act",
            polarity_score=-0.3,
            vote=VoteCast.YEA,
            vote_date=date(2023, 6, 1),
            chamber=Chamber.LOWER,
            roll_call_number=212,
        )
    ]

    response = client.get("/api/v1/politicians/P000197/voting-history?limit=10")
    assert response.status_code == 200

    data = response.json()
    assert data[0]["bill_external_id"] == "118-hr-2"
    assert data[0]["vote"] == "Yea"
    assert data[0]["roll_call_number"] == 212
    assert mock_get.call_args.kwargs["limit"] == 10


@patch("app.api.v1.politicians.get_voting_history", new_callable=AsyncMock)
def test_voting_history_unknown_politician(mock_get: AsyncMock, client: TestClient) -> None:
    mock_get.return_value = None

    response = client.get("/api/v1/politicians/Z999999/voting-history")
    assert response.status_code == 404
