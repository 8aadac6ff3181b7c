"""Shared test fixtures."""

from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import app
from pipeline.congress.client import CongressClient
from pipeline.storage.memory import MemorySyncStore

TEST_BASE_URL = "https://api.test/v3"


class FakeCongressApi:
    """Serves canned Congress.gov payloads by endpoint path.

    Listings honor ``limit``/``offset`` like the real API. Every request is
    kept in ``requests`` for assertions.
    """

    def __init__(self) -> None:
        self.listings: dict[str, tuple[str, list[dict[str, Any]]]] = {}
        self.documents: dict[str, dict[str, Any]] = {}
        self.failures: dict[str, int] = {}
        self.requests: list[httpx.Request] = []

    def add_listing(
        self, path: str, list_key: str, records: list[dict[str, Any]]
    ) -> None:
        self.listings[path] = (list_key, records)

    def add_document(self, path: str, payload: dict[str, Any]) -> None:
        self.documents[path] = payload

    def fail(self, path: str, status: int = 500) -> None:
        self.failures[path] = status

    def requested_paths(self) -> list[str]:
        return [self._endpoint(r) for r in self.requests]

    @staticmethod
    def _endpoint(request: httpx.Request) -> str:
        return request.url.path.removeprefix("/v3/")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = self._endpoint(request)

        if path in self.failures:
            return httpx.Response(self.failures[path], text="upstream error")

        if path in self.listings:
            list_key, records = self.listings[path]
            offset = int(request.url.params.get("offset", 0))
            limit = int(request.url.params.get("limit", 250))
            return httpx.Response(200, json={list_key: records[offset : offset + limit]})

        if path in self.documents:
            return httpx.Response(200, json=self.documents[path])

        return httpx.Response(404, json={"error": f"Unknown endpoint {path}"})

    def client(self, **kwargs: Any) -> CongressClient:
        kwargs.setdefault("record_delay", 0)
        kwargs.setdefault("page_delay", 0)
        return CongressClient(
            api_key="test-key",
            base_url=TEST_BASE_URL,
            transport=httpx.MockTransport(self.handler),
            **kwargs,
        )


@pytest.fixture
def fake_api() -> FakeCongressApi:
    """In-process stand-in for the Congress.gov API."""
    return FakeCongressApi()


@pytest.fixture
def store() -> MemorySyncStore:
    """Empty in-memory store."""
    return MemorySyncStore()


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    return TestClient(app)
