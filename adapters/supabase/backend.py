"""
Supabase key-value backend.

Talks to the PostgREST endpoint of a two-column (key, value) table. Every
non-success response is classified into a StoreErrorKind so callers can tell
an unreachable project from a missing table or a rejected request.
"""

from typing import Any

import httpx
import structlog

from carestore.config import StoreConfig
from carestore.domain.errors import StoreError, StoreErrorKind, StoreUnavailable

logger = structlog.get_logger(__name__)

TABLE_MISSING_CODES = frozenset({"PGRST205", "42P01"})
PERMISSION_DENIED_CODES = frozenset({"42501"})

# Must not exceed the project's PostgREST max-rows, 1000 on Supabase by default.
SCAN_PAGE_SIZE = 1000


def escape_like(prefix: str) -> str:
    """Escape the LIKE wildcards so a prefix matches literally."""
    return prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def classify_response(response: httpx.Response) -> StoreError:
    """Turn a non-2xx PostgREST response into a StoreError."""
    code = ""
    message = response.text
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        code = str(body.get("code") or "")
        message = str(body.get("message") or message)

    status = response.status_code
    detail = f"HTTP {status}{f' {code}' if code else ''}: {message}"
    if status >= 500:
        return StoreUnavailable(detail)
    if status == 404 or code in TABLE_MISSING_CODES:
        return StoreError(detail, kind=StoreErrorKind.TABLE_MISSING)
    if status in (401, 403) or code in PERMISSION_DENIED_CODES:
        return StoreError(detail, kind=StoreErrorKind.PERMISSION_DENIED)
    return StoreError(detail, kind=StoreErrorKind.REJECTED)


class SupabaseBackend:
    """KeyValueBackend over the Supabase REST API."""

    def __init__(
        self,
        url: str,
        api_key: str,
        table_name: str = "kv_store",
        timeout_seconds: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
        scan_page_size: int = SCAN_PAGE_SIZE,
    ) -> None:
        self.table_name = table_name
        self.scan_page_size = scan_page_size
        self._client = httpx.AsyncClient(
            base_url=f"{url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )
        self.logger = logger.bind(component="supabase_backend", table=table_name)

    @classmethod
    def from_config(
        cls, config: StoreConfig, transport: httpx.AsyncBaseTransport | None = None
    ) -> "SupabaseBackend":
        if not config.url or not config.api_key:
            raise ValueError("SupabaseBackend needs both a URL and an API key")
        return cls(
            url=config.url,
            api_key=config.api_key,
            table_name=config.table_name,
            timeout_seconds=config.timeout_seconds,
            transport=transport,
        )

    @property
    def path(self) -> str:
        return f"/{self.table_name}"

    async def _request(self, method: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, self.path, **kwargs)
        except httpx.TimeoutException as e:
            raise StoreUnavailable(f"Timed out calling {method} {self.path}", e) from e
        except httpx.TransportError as e:
            raise StoreUnavailable(f"Store unreachable for {method} {self.path}", e) from e

        if response.is_error:
            error = classify_response(response)
            self.logger.warning(
                "supabase_request_failed",
                method=method,
                status=response.status_code,
                kind=error.kind.value,
            )
            raise error
        return response

    async def get(self, key: str) -> Any | None:
        response = await self._request(
            "GET", params={"select": "value", "key": f"eq.{key}", "limit": "1"}
        )
        rows = response.json()
        return rows[0]["value"] if rows else None

    async def set(self, key: str, value: Any) -> None:
        await self._request(
            "POST",
            json={"key": key, "value": value},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def scan_by_prefix(self, prefix: str) -> list[Any]:
        """Read every value under prefix, one key-ordered page at a time."""
        values: list[Any] = []
        offset = 0
        while True:
            response = await self._request(
                "GET",
                params={
                    "select": "value",
                    "key": f"like.{escape_like(prefix)}*",
                    "order": "key",
                    "limit": str(self.scan_page_size),
                    "offset": str(offset),
                },
            )
            rows = response.json()
            values.extend(row["value"] for row in rows)
            if len(rows) < self.scan_page_size:
                return values
            offset += len(rows)

    async def delete(self, key: str) -> None:
        await self._request("DELETE", params={"key": f"eq.{key}"})

    async def aclose(self) -> None:
        await self._client.aclose()
