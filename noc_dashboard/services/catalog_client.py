"""Read-only HTTP client for the cloud node's sync export endpoints.

Every call is bounded by the configured timeout. There are no retries here;
a failed read fails the whole pass and the next scheduled (or manual)
trigger tries again.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from noc_dashboard.core.exceptions import RemoteRejected, RemoteUnavailable
from noc_dashboard.schemas.sync import AnalystRecord, PopRecord, ScheduleRecord, ShiftRecord

logger = logging.getLogger(__name__)

SYNC_EXPORT_PREFIX: str = "/api/sync"
DEFAULT_TIMEOUT: float = 30.0

RecordT = TypeVar("RecordT", bound=BaseModel)


class RemoteCatalogClient:
    """Async context manager wrapping an ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url: str = base_url.rstrip("/")
        self.timeout: float = timeout
        headers: dict[str, str] = {"Accept": "application/json"}
        if api_key:
            headers["X-Sync-Key"] = api_key
        self._client: httpx.AsyncClient = httpx.AsyncClient(
            base_url=f"{self.base_url}{SYNC_EXPORT_PREFIX}",
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> RemoteCatalogClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── Transport ────────────────────────────────────────────────────────

    async def _get_json(self, path: str, resource: str) -> Any:
        try:
            resp: httpx.Response = await self._client.get(path)
        except httpx.TimeoutException as exc:
            raise RemoteUnavailable(
                f"request timed out after {self.timeout:g}s ({type(exc).__name__})",
                resource=resource,
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteUnavailable(
                f"network failure contacting {self.base_url}: {type(exc).__name__}: {exc}",
                resource=resource,
            ) from exc

        if not resp.is_success:
            raise RemoteRejected(
                f"cloud responded HTTP {resp.status_code} for {resp.request.url.path}",
                resource=resource,
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise RemoteRejected("cloud returned a non-JSON body", resource=resource) from exc

    async def _get_records(self, path: str, resource: str, model: Type[RecordT]) -> List[RecordT]:
        payload: Any = await self._get_json(path, resource)
        try:
            records: List[RecordT] = TypeAdapter(List[model]).validate_python(payload)
        except ValidationError as exc:
            raise RemoteRejected(
                f"malformed payload ({exc.error_count()} validation errors)",
                resource=resource,
            ) from exc
        logger.debug("Fetched %d %s from %s", len(records), resource, self.base_url)
        return records

    # ── Resources ────────────────────────────────────────────────────────

    async def list_clients(self) -> List[str]:
        payload: Any = await self._get_json("/clients", "pops")
        try:
            return TypeAdapter(List[str]).validate_python(payload)
        except ValidationError as exc:
            raise RemoteRejected("malformed client list", resource="pops") from exc

    async def fetch_pops(self, client: str) -> List[PopRecord]:
        return await self._get_records(f"/pops/{quote(client, safe='')}", "pops", PopRecord)

    async def fetch_all_pops(self) -> List[PopRecord]:
        """Enumerate clients, then collect every client's POPs."""
        pops: List[PopRecord] = []
        for client in await self.list_clients():
            pops.extend(await self.fetch_pops(client))
        return pops

    async def fetch_analysts(self) -> List[AnalystRecord]:
        return await self._get_records("/analysts", "analysts", AnalystRecord)

    async def fetch_shifts(self) -> List[ShiftRecord]:
        return await self._get_records("/shifts", "shifts", ShiftRecord)

    async def fetch_schedules(self) -> List[ScheduleRecord]:
        return await self._get_records("/schedules", "schedules", ScheduleRecord)
