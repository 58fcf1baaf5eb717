"""Shared fixtures: in-memory backend capabilities with call counters."""

from __future__ import annotations

from typing import Any

import anyio
import pytest

from tellescope_mcp.gateway.backend import CapabilityTable, PageQuery
from tellescope_mcp.gateway.catalog import ToolCatalog, build_catalog

TEMPLATE_RECORDS = [
    {"id": "t1", "title": "Welcome", "type": "enduser"},
    {"id": "t2", "title": "Reminder", "type": "enduser"},
    {"id": "t3", "title": "Quick reply", "type": "Reply"},
    {"id": "t4", "title": "Follow up", "type": "enduser"},
    {"id": "t5", "title": "Team note", "type": "team"},
]


class FakeResource:
    """Backend capability over a list of records, cursor-paginated by id."""

    def __init__(self, records: list[dict[str, Any]], *, delay: float = 0.0) -> None:
        self.records = list(records)
        self.delay = delay
        self.one_calls: list[str] = []
        self.page_calls: list[dict[str, Any]] = []

    @property
    def calls(self) -> int:
        return len(self.one_calls) + len(self.page_calls)

    async def fetch_one(self, id: str) -> dict[str, Any]:
        self.one_calls.append(id)
        if self.delay:
            await anyio.sleep(self.delay)
        for record in self.records:
            if record["id"] == id:
                return record
        raise LookupError(f"Could not find a record for the given id: {id}")

    async def fetch_page(self, query: PageQuery) -> list[dict[str, Any]]:
        self.page_calls.append(dict(query))
        items = self.records
        cursor = query.get("cursor")
        if cursor is not None:
            ids = [record["id"] for record in items]
            items = items[ids.index(cursor) + 1 :]
        for key, value in (query.get("filter") or {}).items():
            items = [record for record in items if record.get(key) == value]
        limit = query.get("limit")
        if limit is not None:
            items = items[:limit]
        return items


class FetchOneOnly:
    def __init__(self) -> None:
        self.calls = 0

    async def fetch_one(self, id: str) -> dict[str, Any]:
        self.calls += 1
        return {"id": id}


class FailingResource:
    def __init__(self, message: str = "Unauthorized") -> None:
        self.message = message
        self.calls = 0

    async def fetch_one(self, id: str) -> Any:
        self.calls += 1
        raise PermissionError(self.message)

    async def fetch_page(self, query: PageQuery) -> Any:
        self.calls += 1
        raise ConnectionError(self.message)


@pytest.fixture
def templates() -> FakeResource:
    return FakeResource(TEMPLATE_RECORDS)


@pytest.fixture
def catalog() -> ToolCatalog:
    return build_catalog()


@pytest.fixture
def capabilities(templates: FakeResource) -> CapabilityTable:
    """Only ``templates`` has a live capability; other catalog resources do not."""
    return CapabilityTable({"templates": templates})


@pytest.fixture
def template_records() -> list[dict[str, Any]]:
    return [dict(record) for record in TEMPLATE_RECORDS]


@pytest.fixture
def fetch_one_only() -> FetchOneOnly:
    return FetchOneOnly()


@pytest.fixture
def failing_resource() -> type[FailingResource]:
    return FailingResource


@pytest.fixture
def fake_resource() -> type[FakeResource]:
    return FakeResource


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
