"""Cloud to local sync: one full-replace pass over every mirrored resource.

Pass rules:
  - Only a node in ``local`` mode pulls; anything else gets a disabled result
    and touches nothing.
  - Resources are applied in the fixed order pops, analysts, shifts,
    schedules so schedules never land before the analysts and shifts they
    reference.
  - Each resource is fetched in full first, then replaced inside its own
    transaction (delete all, insert all, commit).
  - The first failure stops the pass. Resources already committed stay
    applied; the rest keep their previous contents until the next pass.
  - Every pass writes one ``sync_log`` row: inserted as ``running``, then
    updated once to ``completed`` or ``failed``.
  - At most one pass runs at a time; a concurrent trigger is rejected.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from itertools import groupby
from typing import Any, Awaitable, Callable, Dict, List, Sequence, Tuple

from pydantic import BaseModel
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from noc_dashboard.core.exceptions import SyncError
from noc_dashboard.database.store import Store
from noc_dashboard.models.analyst import Analyst
from noc_dashboard.models.pop import Pop
from noc_dashboard.models.schedule import Schedule
from noc_dashboard.models.shift import Shift
from noc_dashboard.models.sync_log import SyncLog
from noc_dashboard.observability import SYNC_DURATION, SYNC_RUNS
from noc_dashboard.services.catalog_client import RemoteCatalogClient
from noc_dashboard.services.config_service import ConfigService, SyncConfig

logger = logging.getLogger(__name__)

SYNC_ORDER: Tuple[str, ...] = ("pops", "analysts", "shifts", "schedules")

TABLE_MODEL_MAP = {
    "pops": Pop,
    "analysts": Analyst,
    "shifts": Shift,
    "schedules": Schedule,
}

STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

ALREADY_RUNNING = "Sync already in progress"

ClientFactory = Callable[[SyncConfig], RemoteCatalogClient]


def default_client_factory(config: SyncConfig) -> RemoteCatalogClient:
    return RemoteCatalogClient(config.cloud_url, timeout=config.timeout, api_key=config.api_key or None)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_row(record: BaseModel) -> Dict[str, Any]:
    # Records without an id leave the column out so the database assigns one
    if getattr(record, "id", 0) is None:
        return record.model_dump(exclude={"id"})
    return record.model_dump()


class SyncEngine:
    def __init__(
        self,
        store: Store,
        config_service: ConfigService,
        client_factory: ClientFactory = default_client_factory,
    ):
        self.store = store
        self.config_service = config_service
        self.client_factory = client_factory
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def sync(self) -> Dict[str, Any]:
        """Run one pass. Always returns a result dict, never raises."""
        try:
            config = await self.config_service.load_sync_config()
        except SQLAlchemyError as exc:
            logger.error("Could not load sync configuration: %s", exc)
            return {"success": False, "error": f"could not load sync configuration: {exc}"}

        if not config.is_local:
            logger.info("Sync disabled: node is running in %s mode", config.mode)
            SYNC_RUNS.labels(status="disabled").inc()
            return {
                "success": False,
                "disabled": True,
                "message": f"Sync is disabled in {config.mode} mode",
            }

        # No await between the check and the acquire, so this is atomic on the loop
        if self._lock.locked():
            logger.warning("Sync trigger rejected: a pass is already running")
            SYNC_RUNS.labels(status="rejected").inc()
            return {"success": False, "error": ALREADY_RUNNING}

        async with self._lock:
            return await self._run_pass(config)

    async def _run_pass(self, config: SyncConfig) -> Dict[str, Any]:
        started = time.monotonic()
        try:
            sync_id = await self._log_start()
        except SQLAlchemyError as exc:
            logger.error("Could not record sync start: %s", exc)
            SYNC_RUNS.labels(status=STATUS_FAILED).inc()
            return {"success": False, "error": f"could not record sync start: {exc}"}

        logger.info("Sync %s started against %s", sync_id, config.cloud_url or "<unset>")
        details: Dict[str, int] = {}
        try:
            if not config.cloud_url:
                raise SyncError("cloud server URL is not configured")

            async with self.client_factory(config) as client:
                for resource in SYNC_ORDER:
                    details[resource] = await self._step(resource)(client)
                    logger.info("Sync %s: %d %s synced", sync_id, details[resource], resource)

            total = sum(details.values())
            await self._log_complete(sync_id, total)
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or type(exc).__name__
            logger.error("Sync %s failed: %s", sync_id, message)
            await self._log_failure(sync_id, message)
            SYNC_RUNS.labels(status=STATUS_FAILED).inc()
            SYNC_DURATION.observe(time.monotonic() - started)
            return {"success": False, "error": message}

        SYNC_RUNS.labels(status=STATUS_COMPLETED).inc()
        SYNC_DURATION.observe(time.monotonic() - started)
        logger.info("Sync %s completed: %d records", sync_id, total)
        return {
            "success": True,
            "recordsSynced": total,
            "details": {resource: details[resource] for resource in SYNC_ORDER},
        }

    def _step(self, resource: str) -> Callable[[RemoteCatalogClient], Awaitable[int]]:
        return {
            "pops": self.sync_pops,
            "analysts": self.sync_analysts,
            "shifts": self.sync_shifts,
            "schedules": self.sync_schedules,
        }[resource]

    # -----------------------------------------------------------------------
    # Resource steps
    # -----------------------------------------------------------------------

    async def sync_pops(self, client: RemoteCatalogClient) -> int:
        return await self._replace("pops", await client.fetch_all_pops())

    async def sync_analysts(self, client: RemoteCatalogClient) -> int:
        return await self._replace("analysts", await client.fetch_analysts())

    async def sync_shifts(self, client: RemoteCatalogClient) -> int:
        return await self._replace("shifts", await client.fetch_shifts())

    async def sync_schedules(self, client: RemoteCatalogClient) -> int:
        return await self._replace("schedules", await client.fetch_schedules())

    async def _replace(self, resource: str, records: Sequence[BaseModel]) -> int:
        model_cls = TABLE_MODEL_MAP[resource]
        rows = [_as_row(record) for record in records]
        async with self.store.transaction(resource) as tx:
            await tx.run(delete(model_cls))
            for _, batch in groupby(rows, key=lambda row: tuple(row)):
                await tx.run(insert(model_cls), list(batch))
        return len(rows)

    # -----------------------------------------------------------------------
    # Run log
    # -----------------------------------------------------------------------

    async def _log_start(self) -> int:
        result = await self.store.run(
            insert(SyncLog).values(sync_type="full", status=STATUS_RUNNING, started_at=_utcnow())
        )
        return result.inserted_primary_key[0]

    async def _log_complete(self, sync_id: int, records_synced: int) -> None:
        await self.store.run(
            update(SyncLog)
            .where(SyncLog.id == sync_id)
            .values(status=STATUS_COMPLETED, records_synced=records_synced, completed_at=_utcnow())
        )

    async def _log_failure(self, sync_id: int, error_message: str) -> None:
        try:
            await self.store.run(
                update(SyncLog)
                .where(SyncLog.id == sync_id)
                .values(status=STATUS_FAILED, error_message=error_message, completed_at=_utcnow())
            )
        except SQLAlchemyError:
            logger.exception("Could not mark sync %s as failed", sync_id)

    async def get_sync_history(self, limit: int = 10) -> List[Dict[str, Any]]:
        rows = await self.store.all(
            select(SyncLog.__table__)
            .order_by(SyncLog.started_at.desc(), SyncLog.id.desc())
            .limit(limit)
        )
        return [dict(row) for row in rows]
