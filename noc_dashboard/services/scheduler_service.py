"""
Daily unattended sync.

Translates the configured ``sync_time`` ("HH:MM", server local time) into an
APScheduler cron job that calls ``SyncEngine.sync()`` once per day. Jobs live
in the in-memory job store, so a trigger missed while the process was down
is simply skipped.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from noc_dashboard.services.config_service import ConfigService, SyncConfig
from noc_dashboard.services.sync_service import SyncEngine

logger = logging.getLogger(__name__)

SYNC_JOB_ID = "daily_sync"


def parse_sync_time(value: str) -> Tuple[int, int]:
    """Parse ``"HH:MM"`` into ``(hour, minute)``; raise ``ValueError`` otherwise."""
    parts = (value or "").strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid sync time {value!r}, expected HH:MM")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid sync time {value!r}, expected HH:MM")
    return hour, minute


class SyncScheduler:
    """Keeps at most one daily sync job registered, matching the current config.

    The job is rebuilt on ``start()`` and after every scheduled run. A change to
    ``sync_time`` or ``sync_enabled`` written straight to the config table is
    therefore picked up only at the next of those points (or an explicit
    ``reload()``), and ``next_run_time()`` reports the old schedule until then.
    """

    def __init__(
        self,
        sync_engine: SyncEngine,
        config_service: ConfigService,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.sync_engine = sync_engine
        self.config_service = config_service
        self.scheduler = scheduler or AsyncIOScheduler()
        self._started = False

    async def start(self):
        """Register the job from persisted config and start the scheduler."""
        if self._started:
            return
        await self.reload()
        self.scheduler.start()
        self._started = True
        logger.info("Sync scheduler started")

    async def stop(self):
        if self._started:
            self.scheduler.shutdown(wait=False)
            self._started = False
            logger.info("Sync scheduler stopped")

    async def reload(self):
        config = await self.config_service.load_sync_config()
        return self.apply(config)

    def apply(self, config: SyncConfig):
        """Schedule, reschedule or unschedule the daily job. Returns the job or None."""
        self.remove_job()

        if not config.is_local:
            logger.info("Automatic sync not scheduled: node is in %s mode", config.mode)
            return None
        if not config.sync_enabled:
            logger.info("Automatic sync disabled")
            return None

        try:
            hour, minute = parse_sync_time(config.sync_time)
        except ValueError as exc:
            logger.error("Automatic sync not scheduled: %s", exc)
            return None

        job = self.scheduler.add_job(
            self.run_scheduled_sync,
            CronTrigger(hour=hour, minute=minute),
            id=SYNC_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        logger.info("Automatic sync scheduled daily at %02d:%02d", hour, minute)
        return job

    def remove_job(self):
        if self.scheduler.get_job(SYNC_JOB_ID):
            self.scheduler.remove_job(SYNC_JOB_ID)

    def next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(SYNC_JOB_ID)
        return getattr(job, "next_run_time", None) if job else None

    async def run_scheduled_sync(self):
        """Job body: one pass, then pick up any schedule change made meanwhile."""
        logger.info("Running scheduled sync")
        result = await self.sync_engine.sync()
        if result.get("success"):
            logger.info("Scheduled sync finished: %s records", result.get("recordsSynced"))
        else:
            logger.warning(
                "Scheduled sync did not complete: %s",
                result.get("error") or result.get("message"),
            )

        try:
            await self.reload()
        except Exception as exc:  # noqa: BLE001
            logger.exception("Could not refresh sync schedule: %s", exc)
