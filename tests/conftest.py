"""
Shared fixtures: an in-memory stand-in for the store's REST interface.

FakeStore answers the subset of the PostgREST protocol the API uses (select with
eq filters, order, single-object responses, embedded video, insert, update,
delete) through httpx.MockTransport, so tests exercise the real StoreClient.
"""

import asyncio
from collections.abc import Iterator
from typing import Any

from fastapi.testclient import TestClient
import httpx
import orjson
import pytest

from review_api.app import create_app
from review_api.config import ApiSettings
from review_api.store import StoreClient


STORE_URL = "http://store.test"
STORE_KEY = "test-key"


def _json(status_code: int, body: object) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=orjson.dumps(body),
        headers={"Content-Type": "application/json"},
    )


class FakeStore:
    """Tables held in memory, mutated by the requests it receives."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {"videos": [], "issues": [], "tasks": []}
        self.requests: list[httpx.Request] = []
        self.unreachable = False
        self._next_id: dict[str, int] = {"videos": 1, "issues": 1, "tasks": 1}
        self._clock = 0

    def _now(self) -> str:
        self._clock += 1
        return f"2024-01-01T00:{self._clock // 60:02d}:{self._clock % 60:02d}+00:00"

    def add(self, table: str, **fields: Any) -> dict[str, Any]:
        """Seed a row, filling id and created_at like the database would."""
        row = {"id": self._next_id[table], "created_at": self._now()}
        if table == "issues":
            row["resolved"] = False
        if table == "tasks":
            row.update({"status": "pending", "completed_at": None})
        row.update(fields)
        self._next_id[table] = max(self._next_id[table], int(row["id"])) + 1
        self.tables[table].append(row)
        return row

    # === Request handling ===

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

        if request.headers.get("apikey") != STORE_KEY:
            return _json(401, {"message": "Invalid API key", "hint": None})

        table = request.url.path.rsplit("/", 1)[-1]
        if table not in self.tables:
            return _json(
                404,
                {
                    "code": "42P01",
                    "message": f'relation "public.{table}" does not exist',
                    "details": None,
                    "hint": None,
                },
            )

        try:
            matches = self._filter(table, request.url.params)
        except ValueError as e:
            return _json(400, {"code": "22P02", "message": str(e), "details": None, "hint": None})

        if request.method == "GET":
            return self._select(table, matches, request)
        if request.method == "POST":
            return self._insert(table, request)
        if request.method == "PATCH":
            return self._update(matches, request)
        if request.method == "DELETE":
            for row in matches:
                self.tables[table].remove(row)
            return httpx.Response(204)
        return _json(405, {"message": f"Unsupported method {request.method}"})

    def _filter(self, table: str, params: httpx.QueryParams) -> list[dict[str, Any]]:
        rows = self.tables[table]
        for column, operand in params.multi_items():
            if column in ("select", "order"):
                continue
            op, _, value = operand.partition(".")
            if op != "eq":
                raise ValueError(f"unsupported operator {op}")
            if column == "id" and not value.isdigit():
                raise ValueError(f'invalid input syntax for type bigint: "{value}"')
            rows = [row for row in rows if str(row.get(column)) == value]
        return list(rows)

    def _project(self, row: dict[str, Any], columns: str | None) -> dict[str, Any]:
        result = dict(row)
        if columns and "video:video_id(*)" in columns:
            video = next(
                (v for v in self.tables["videos"] if v["id"] == row.get("video_id")), None
            )
            result["video"] = dict(video) if video else None
        return result

    def _select(
        self, table: str, rows: list[dict[str, Any]], request: httpx.Request
    ) -> httpx.Response:
        order = request.url.params.get("order")
        if order:
            column, _, direction = order.partition(".")
            rows = sorted(rows, key=lambda r: r[column], reverse=direction == "desc")

        columns = request.url.params.get("select")
        body = [self._project(row, columns) for row in rows]

        if request.headers.get("accept") == "application/vnd.pgrst.object+json":
            if len(body) != 1:
                return _json(
                    406,
                    {
                        "code": "PGRST116",
                        "details": f"The result contains {len(body)} rows",
                        "hint": None,
                        "message": "JSON object requested, multiple (or no) rows returned",
                    },
                )
            return _json(200, body[0])
        return _json(200, body)

    def _wants_rows(self, request: httpx.Request) -> bool:
        return request.headers.get("prefer") == "return=representation"

    def _insert(self, table: str, request: httpx.Request) -> httpx.Response:
        payload = orjson.loads(request.content)
        rows = payload if isinstance(payload, list) else [payload]
        for row in rows:
            # bigint foreign keys arrive as path strings; the database casts them
            if isinstance(row.get("video_id"), str) and row["video_id"].isdigit():
                row["video_id"] = int(row["video_id"])
        inserted = [self.add(table, **row) for row in rows]
        if self._wants_rows(request):
            return _json(201, inserted)
        return httpx.Response(201)

    def _update(self, rows: list[dict[str, Any]], request: httpx.Request) -> httpx.Response:
        values = orjson.loads(request.content)
        for row in rows:
            row.update(values)
        if self._wants_rows(request):
            return _json(200, [dict(row) for row in rows])
        return httpx.Response(204)


@pytest.fixture
def fake_store() -> FakeStore:
    """A store seeded with two videos, three issues and two tasks."""
    store = FakeStore()
    store.add("videos", title="Launch trailer")
    store.add("videos", title="Onboarding walkthrough")
    store.add("issues", video_id=1, description="Audio drops", timestamp=42.5, severity="high")
    store.add("issues", video_id=1, description="Typo in caption", timestamp=3.0, severity="low")
    store.add("issues", video_id=2, description="Blurry frame", timestamp=10.0, severity="medium")
    store.add("tasks", video_id=1)
    store.add("tasks", video_id=2, status="completed", completed_at="2024-01-02T00:00:00+00:00")
    return store


@pytest.fixture
def settings() -> ApiSettings:
    return ApiSettings(SUPABASE_URL=STORE_URL, SUPABASE_ANON_KEY=STORE_KEY)


@pytest.fixture
def store_client(fake_store: FakeStore, settings: ApiSettings) -> Iterator[StoreClient]:
    """StoreClient wired to the fake store, closed once the test is done."""
    store = StoreClient(
        rest_url=settings.rest_url,
        api_key=settings.store_key,
        transport=httpx.MockTransport(fake_store.handle),
    )
    yield store
    asyncio.run(store.close())


@pytest.fixture
def client(settings: ApiSettings, store_client: StoreClient) -> Iterator[TestClient]:
    """TestClient running the full app (lifespan included) against the fake store."""
    app = create_app(settings, store=store_client)
    with TestClient(app) as test_client:
        yield test_client
