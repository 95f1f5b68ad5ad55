"""Supabase implementation of the data gateway (PostgREST + Storage over httpx)."""

from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from core.config import settings
from core.exceptions import GatewayError, RecordNotFoundError
from domain.repositories.gateway import OrderBy, QueryFilter

logger = structlog.get_logger()

# PostgREST error code for "JSON object requested, multiple (or no) rows returned"
NO_ROWS_CODE = "PGRST116"

SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


def _format_value(value: Any) -> str:
    text = str(value)
    if any(ch in text for ch in ',()"'):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def _filter_params(filters: Sequence[QueryFilter]) -> list[tuple[str, str]]:
    params: list[tuple[str, str]] = []
    for f in filters:
        if f.op == "eq":
            params.append((f.column, f"eq.{f.value}"))
        elif f.op == "in":
            values = ",".join(_format_value(v) for v in f.value)
            params.append((f.column, f"in.({values})"))
        else:
            raise ValueError(f"Unsupported filter operator: {f.op}")
    return params


def _decode(response: httpx.Response) -> Any:
    """Parse a successful response body as JSON."""
    try:
        return response.json()
    except ValueError as e:
        logger.warning(
            "gateway_invalid_body",
            url=str(response.request.url),
            status_code=response.status_code,
        )
        raise GatewayError("Invalid response body", status_code=response.status_code) from e


def _select_param(columns: Sequence[str] | str) -> str:
    return columns if isinstance(columns, str) else ",".join(columns)


class SupabaseGateway:
    """Talks to a Supabase project's REST and Storage APIs.

    Requests are authorized with the session's access token when one is
    given, otherwise with the anon key.
    """

    def __init__(
        self,
        url: str = settings.supabase_url,
        anon_key: str = settings.supabase_anon_key,
        access_token: str | None = None,
        timeout: float = settings.gateway_timeout_seconds,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url:
            raise ValueError("Supabase URL is not configured")
        base = url.rstrip("/")
        self._rest_url = f"{base}/rest/v1"
        self._storage_url = f"{base}/storage/v1"
        self._client = httpx.AsyncClient(
            headers={
                "apikey": anon_key,
                "Authorization": f"Bearer {access_token or anon_key}",
            },
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "SupabaseGateway":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    # --- records ---

    async def query_records(
        self,
        table: str,
        columns: Sequence[str] | str = "*",
        filters: Sequence[QueryFilter] = (),
        order_by: OrderBy | None = None,
    ) -> list[dict[str, Any]]:
        params = [("select", _select_param(columns)), *_filter_params(filters)]
        if order_by is not None:
            direction = "desc" if order_by.descending else "asc"
            params.append(("order", f"{order_by.column}.{direction}"))
        response = await self._request("GET", f"{self._rest_url}/{table}", params=params)
        return _decode(response)  # type: ignore[no-any-return]

    async def fetch_single(
        self,
        table: str,
        columns: Sequence[str] | str = "*",
        filters: Sequence[QueryFilter] = (),
    ) -> dict[str, Any]:
        params = [("select", _select_param(columns)), *_filter_params(filters)]
        try:
            response = await self._request(
                "GET",
                f"{self._rest_url}/{table}",
                params=params,
                headers={"Accept": SINGLE_OBJECT_MEDIA_TYPE},
            )
        except GatewayError as e:
            if e.code == NO_ROWS_CODE:
                raise RecordNotFoundError(table) from e
            raise
        return _decode(response)  # type: ignore[no-any-return]

    async def insert_record(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        response = await self._request(
            "POST",
            f"{self._rest_url}/{table}",
            json=record,
            headers={"Prefer": "return=representation"},
        )
        return self._first_row(response, table)

    async def upsert_record(
        self, table: str, record: dict[str, Any], conflict_key: str
    ) -> dict[str, Any]:
        response = await self._request(
            "POST",
            f"{self._rest_url}/{table}",
            params=[("on_conflict", conflict_key)],
            json=record,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        return self._first_row(response, table)

    async def update_record(
        self, table: str, key: QueryFilter, patch: dict[str, Any]
    ) -> list[dict[str, Any]]:
        response = await self._request(
            "PATCH",
            f"{self._rest_url}/{table}",
            params=_filter_params([key]),
            json=patch,
            headers={"Prefer": "return=representation"},
        )
        return _decode(response)  # type: ignore[no-any-return]

    # --- blobs ---

    async def upload_blob(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str,
        overwrite: bool = False,
    ) -> None:
        await self._request(
            "POST",
            f"{self._storage_url}/object/{bucket}/{quote(key)}",
            content=data,
            headers={
                "Content-Type": content_type,
                "x-upsert": "true" if overwrite else "false",
                "Cache-Control": "max-age=3600",
            },
        )

    async def delete_blob(self, bucket: str, key: str) -> None:
        await self._request(
            "DELETE",
            f"{self._storage_url}/object/{bucket}",
            json={"prefixes": [key]},
        )

    def resolve_public_url(self, bucket: str, key: str) -> str:
        return f"{self._storage_url}/object/public/{bucket}/{quote(key)}"

    # --- helpers ---

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("gateway_request_failed", method=method, url=url, error=str(e))
            raise GatewayError(f"Network error: {e}") from e

        if response.is_error:
            raise self._to_error(response)
        return response

    @staticmethod
    def _to_error(response: httpx.Response) -> GatewayError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or body.get("error") or response.reason_phrase
        code = body.get("code")
        if code is None and "statusCode" in body:
            code = str(body["statusCode"])
        return GatewayError(
            message=str(message),
            status_code=response.status_code,
            code=str(code) if code is not None else None,
            details=body.get("details"),
        )

    @staticmethod
    def _first_row(response: httpx.Response, table: str) -> dict[str, Any]:
        rows = _decode(response)
        if isinstance(rows, list):
            if not rows:
                raise GatewayError(f"No row returned from {table}")
            return rows[0]  # type: ignore[no-any-return]
        return rows  # type: ignore[no-any-return]
