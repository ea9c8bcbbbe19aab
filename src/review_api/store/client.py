"""
Async client for the store's table-oriented REST interface (PostgREST).

Uses a single pooled httpx.AsyncClient per process. Calls are never retried: a
failure surfaces as StoreError and it is up to the caller to report it.
"""

import logging
import time
from typing import Any

import httpx
import orjson

from ..enums import Table
from ..telemetry import store_duration_histogram, store_error_counter, store_span
from .query import TableQuery


logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the store rejects a query or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: str | None = None,
        hint: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint
        self.status_code = status_code

    @classmethod
    def from_response(cls, response: httpx.Response) -> "StoreError":
        """Build an error from a non-2xx store response."""
        body: Any = None
        if response.content:
            try:
                body = orjson.loads(response.content)
            except orjson.JSONDecodeError:
                body = None

        if isinstance(body, dict) and body.get("message"):
            return cls(
                str(body["message"]),
                code=body.get("code"),
                details=body.get("details"),
                hint=body.get("hint"),
                status_code=response.status_code,
            )

        message = response.text or response.reason_phrase or f"HTTP {response.status_code}"
        return cls(message, status_code=response.status_code)


class StoreClient:
    """
    Async HTTP client for the store.

    Features:
    - Connection pooling (one client shared by every request)
    - API key authentication on every call
    - Optional schema selection via Accept-Profile / Content-Profile
    - One tracing span and one duration observation per call
    """

    def __init__(
        self,
        rest_url: str,
        api_key: str,
        schema: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the store client.

        Args:
            rest_url: Root of the REST interface, e.g. https://xyz.supabase.co/rest/v1
            api_key: Key sent as both apikey and bearer token
            schema: Database schema to target, None for the store default
            timeout_seconds: Per-call timeout, None to wait indefinitely
            transport: Custom httpx transport (used by tests)
        """
        self.rest_url = rest_url.rstrip("/")
        self.schema = schema
        self.timeout_seconds = timeout_seconds

        self._client = httpx.AsyncClient(
            base_url=self.rest_url,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
            },
            timeout=httpx.Timeout(timeout_seconds),
            limits=httpx.Limits(
                max_connections=100,
                max_keepalive_connections=20,
            ),
            transport=transport,
        )

        logger.info(
            "StoreClient initialized: rest_url=%s, schema=%s, timeout=%s",
            self.rest_url,
            self.schema or "default",
            self.timeout_seconds,
        )

    @property
    def http_client(self) -> httpx.AsyncClient:
        """The pooled httpx client all calls go through."""
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release pooled connections."""
        await self._client.aclose()
        logger.info("StoreClient closed: rest_url=%s", self.rest_url)

    def table(self, name: Table | str) -> TableQuery:
        """Start a query against one table."""
        return TableQuery(self, name.value if isinstance(name, Table) else name)

    def _profile_headers(self, method: str) -> dict[str, str]:
        if not self.schema:
            return {}
        if method in ("GET", "HEAD"):
            return {"Accept-Profile": self.schema}
        return {"Content-Profile": self.schema}

    async def request(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]] | None = None,
        body: object | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Issue one call against a table and decode the result.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            table: Table name
            params: Query string pairs (select, filters, order)
            body: JSON-serializable payload for POST/PATCH
            headers: Extra headers (Prefer, Accept)

        Returns:
            Decoded JSON body, or None when the store returns no content

        Raises:
            StoreError: On any non-2xx response or transport failure
        """
        request_headers = self._profile_headers(method)
        if headers:
            request_headers.update(headers)

        content = None
        if body is not None:
            content = orjson.dumps(body)
            request_headers["Content-Type"] = "application/json"

        with store_span(table, method) as span:
            start = time.perf_counter()
            try:
                response = await self._client.request(
                    method,
                    f"/{table}",
                    params=params,
                    content=content,
                    headers=request_headers,
                )
            except httpx.HTTPError as e:
                store_error_counter.labels(table=table, method=method, kind="transport").inc()
                logger.warning("Store %s %s failed: %s", method, table, e)
                raise StoreError(str(e) or type(e).__name__) from e
            finally:
                store_duration_histogram.labels(table=table, method=method).observe(
                    time.perf_counter() - start
                )

            span.set_attribute("http.response.status_code", response.status_code)

            if response.is_error:
                store_error_counter.labels(table=table, method=method, kind="response").inc()
                error = StoreError.from_response(response)
                if error.code:
                    span.set_attribute("db.response.status_code", error.code)
                logger.warning(
                    "Store %s %s returned %d: %s",
                    method,
                    table,
                    response.status_code,
                    error.message,
                )
                raise error

            logger.debug("Store %s %s succeeded (%d)", method, table, response.status_code)

            if not response.content:
                return None
            try:
                return orjson.loads(response.content)
            except orjson.JSONDecodeError as e:
                msg = f"Invalid JSON from store for {method} {table}: {e}"
                raise StoreError(msg, status_code=response.status_code) from e
