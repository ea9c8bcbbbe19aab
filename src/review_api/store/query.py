"""
Fluent query builder mirroring the store's table-oriented REST interface.

    rows = await store.table("issues").select().eq("video_id", 7).order("timestamp").execute()

Each builder issues exactly one HTTP call when executed.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .client import StoreClient


SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


def _format_value(value: object) -> str:
    """Render a filter operand the way the store parses it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


class TableQuery:
    """A single pending operation on one table."""

    def __init__(self, client: "StoreClient", table: str) -> None:
        self._client = client
        self.table = table
        self.method = "GET"
        self.columns: str | None = None
        self.body: object | None = None
        self.filters: list[tuple[str, str]] = []
        self.ordering: list[str] = []
        self.expect_single = False

    def select(self, columns: str = "*") -> "TableQuery":
        """
        Choose the columns to return.

        On insert/update/delete this asks the store to return the affected rows.
        Embedded resources use the store's syntax, e.g. ``*,video:video_id(*)``.
        """
        self.columns = columns
        return self

    def insert(self, rows: dict[str, Any] | list[dict[str, Any]]) -> "TableQuery":
        self.method = "POST"
        self.body = rows
        return self

    def update(self, values: dict[str, Any]) -> "TableQuery":
        self.method = "PATCH"
        self.body = values
        return self

    def delete(self) -> "TableQuery":
        self.method = "DELETE"
        self.body = None
        return self

    def eq(self, column: str, value: object) -> "TableQuery":
        self.filters.append((column, f"eq.{_format_value(value)}"))
        return self

    def order(self, column: str, ascending: bool = True) -> "TableQuery":
        self.ordering.append(f"{column}.{'asc' if ascending else 'desc'}")
        return self

    def single(self) -> "TableQuery":
        """Expect exactly one row; the store errors on zero or many."""
        self.expect_single = True
        return self

    def build(self) -> tuple[list[tuple[str, str]], dict[str, str]]:
        """Translate the builder state into query parameters and headers."""
        params: list[tuple[str, str]] = []
        if self.columns is not None:
            params.append(("select", self.columns))
        params.extend(self.filters)
        if self.ordering:
            params.append(("order", ",".join(self.ordering)))

        headers: dict[str, str] = {}
        if self.method != "GET":
            returning = "representation" if self.columns is not None else "minimal"
            headers["Prefer"] = f"return={returning}"
        if self.expect_single:
            headers["Accept"] = SINGLE_OBJECT_MEDIA_TYPE
        return params, headers

    async def execute(self) -> Any:
        """Send the query. Raises StoreError on failure."""
        params, headers = self.build()
        return await self._client.request(
            self.method,
            self.table,
            params=params,
            body=self.body,
            headers=headers,
        )
