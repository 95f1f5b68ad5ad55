"""Remote data gateway protocol."""

from dataclasses import dataclass
from typing import Any, Literal, Protocol, Sequence

FilterOp = Literal["eq", "in"]

POSTS_TABLE = "posts"
PROFILES_TABLE = "profiles"


@dataclass(frozen=True, slots=True)
class QueryFilter:
    """A single column predicate.

    ``eq`` compares against a scalar, ``in`` against a sequence of values.
    """

    column: str
    op: FilterOp
    value: Any

    @classmethod
    def eq(cls, column: str, value: Any) -> "QueryFilter":
        return cls(column, "eq", value)

    @classmethod
    def in_(cls, column: str, values: Sequence[Any]) -> "QueryFilter":
        return cls(column, "in", tuple(values))


@dataclass(frozen=True, slots=True)
class OrderBy:
    """Sort order for a query."""

    column: str
    descending: bool = False


class IDataGateway(Protocol):
    """Record, query and blob storage primitives offered by the backend.

    Every method raises ``GatewayError`` on failure.
    """

    async def query_records(
        self,
        table: str,
        columns: Sequence[str] | str = "*",
        filters: Sequence[QueryFilter] = (),
        order_by: OrderBy | None = None,
    ) -> list[dict[str, Any]]:
        """Return matching records in the requested order."""
        ...

    async def fetch_single(
        self,
        table: str,
        columns: Sequence[str] | str = "*",
        filters: Sequence[QueryFilter] = (),
    ) -> dict[str, Any]:
        """Return exactly one record; raise ``RecordNotFoundError`` if none match."""
        ...

    async def insert_record(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        """Insert a record and return it with server-assigned fields."""
        ...

    async def upsert_record(
        self, table: str, record: dict[str, Any], conflict_key: str
    ) -> dict[str, Any]:
        """Insert a record, or replace the one sharing ``conflict_key``."""
        ...

    async def update_record(
        self, table: str, key: QueryFilter, patch: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Apply ``patch`` to the records matching ``key``; return the updated rows."""
        ...

    async def upload_blob(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str,
        overwrite: bool = False,
    ) -> None:
        """Store ``data`` under ``key``."""
        ...

    async def delete_blob(self, bucket: str, key: str) -> None:
        """Delete the blob stored under ``key``."""
        ...

    def resolve_public_url(self, bucket: str, key: str) -> str:
        """Public URL of a blob. Performs no I/O."""
        ...
