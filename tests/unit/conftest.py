"""Shared fixtures for unit tests."""

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import pytest

from core.exceptions import GatewayError, RecordNotFoundError
from domain.entities.avatar import CropRegion
from domain.repositories.gateway import OrderBy, QueryFilter

BASE_TIME = datetime(2024, 5, 1, 6, 30, tzinfo=timezone.utc)


def _matches(record: dict[str, Any], filters: Sequence[QueryFilter]) -> bool:
    for f in filters:
        value = record.get(f.column)
        if f.op == "eq" and value != f.value:
            return False
        if f.op == "in" and value not in f.value:
            return False
    return True


def _project(record: dict[str, Any], columns: Sequence[str] | str) -> dict[str, Any]:
    if columns == "*":
        return dict(record)
    cols = columns.split(",") if isinstance(columns, str) else columns
    return {c: record.get(c) for c in cols}


class FakeGateway:
    """In-memory gateway with call recording and failure injection.

    ``fail(op)`` makes the next call(s) of ``op`` raise a ``GatewayError``.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {"posts": [], "profiles": []}
        self.buckets: dict[str, dict[str, bytes]] = {"avatars": {}}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[str, list[GatewayError]] = {}
        self._clock = BASE_TIME

    # --- test helpers ---

    def fail(self, op: str, message: str = "backend unavailable", times: int = 1) -> None:
        self.failures.setdefault(op, []).extend(GatewayError(message) for _ in range(times))

    def calls_to(self, op: str, target: str | None = None) -> int:
        return sum(1 for name, t in self.calls if name == op and (target is None or t == target))

    def add_post(self, user_id: str, content: str, created_at: datetime | None = None) -> dict[str, Any]:
        record = {
            "id": str(uuid4()),
            "user_id": user_id,
            "content": content,
            "created_at": (created_at or self._tick()).isoformat(),
        }
        self.tables["posts"].append(record)
        return record

    def add_profile(self, user_id: str, **fields: Any) -> dict[str, Any]:
        record = {
            "id": user_id,
            "username": None,
            "full_name": None,
            "avatar_key": None,
            "bio": None,
            **fields,
        }
        self.tables["profiles"].append(record)
        return record

    def profile_row(self, user_id: str) -> dict[str, Any] | None:
        return next((r for r in self.tables["profiles"] if r["id"] == user_id), None)

    def _tick(self) -> datetime:
        self._clock += timedelta(minutes=1)
        return self._clock

    def _record(self, op: str, target: str) -> None:
        self.calls.append((op, target))
        pending = self.failures.get(op)
        if pending:
            raise pending.pop(0)

    # --- IDataGateway ---

    async def query_records(
        self,
        table: str,
        columns: Sequence[str] | str = "*",
        filters: Sequence[QueryFilter] = (),
        order_by: OrderBy | None = None,
    ) -> list[dict[str, Any]]:
        self._record("query_records", table)
        rows = [r for r in self.tables[table] if _matches(r, filters)]
        if order_by is not None:
            rows.sort(key=lambda r: r[order_by.column], reverse=order_by.descending)
        return [_project(r, columns) for r in rows]

    async def fetch_single(
        self,
        table: str,
        columns: Sequence[str] | str = "*",
        filters: Sequence[QueryFilter] = (),
    ) -> dict[str, Any]:
        self._record("fetch_single", table)
        rows = [r for r in self.tables[table] if _matches(r, filters)]
        if len(rows) != 1:
            raise RecordNotFoundError(table)
        return _project(rows[0], columns)

    async def insert_record(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        self._record("insert_record", table)
        row = {"id": str(uuid4()), "created_at": self._tick().isoformat(), **record}
        self.tables[table].append(row)
        return dict(row)

    async def upsert_record(
        self, table: str, record: dict[str, Any], conflict_key: str
    ) -> dict[str, Any]:
        self._record("upsert_record", table)
        for row in self.tables[table]:
            if row.get(conflict_key) == record[conflict_key]:
                row.update(record)
                return dict(row)
        row = dict(record)
        self.tables[table].append(row)
        return dict(row)

    async def update_record(
        self, table: str, key: QueryFilter, patch: dict[str, Any]
    ) -> list[dict[str, Any]]:
        self._record("update_record", table)
        updated = []
        for row in self.tables[table]:
            if _matches(row, [key]):
                row.update(patch)
                updated.append(dict(row))
        return updated

    async def upload_blob(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str,
        overwrite: bool = False,
    ) -> None:
        self._record("upload_blob", bucket)
        if key in self.buckets[bucket] and not overwrite:
            raise GatewayError("The resource already exists", status_code=409, code="409")
        self.buckets[bucket][key] = data

    async def delete_blob(self, bucket: str, key: str) -> None:
        self._record("delete_blob", bucket)
        self.buckets[bucket].pop(key, None)

    def resolve_public_url(self, bucket: str, key: str) -> str:
        return f"https://cdn.test/{bucket}/{key}"


class FakeRenderer:
    """Renderer stub that never touches real image data."""

    def __init__(self, size: tuple[int, int] | None = (100, 80)) -> None:
        self.size = size
        self.rendered: list[CropRegion] = []
        self.error: Exception | None = None

    def probe(self, image: bytes) -> tuple[int, int] | None:
        return self.size

    def render_crop(self, image: bytes, region: CropRegion, quality: int) -> bytes:
        if self.error is not None:
            raise self.error
        self.rendered.append(region)
        return b"\xff\xd8jpeg:" + f"{region.x},{region.y},{region.width}@{quality}".encode()


@pytest.fixture
def gateway() -> FakeGateway:
    """Create a fresh, empty FakeGateway."""
    return FakeGateway()


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def user_id() -> str:
    """A random user ID."""
    return str(uuid4())


@pytest.fixture
def other_user_id() -> str:
    """A random user ID distinct from user_id."""
    return str(uuid4())
