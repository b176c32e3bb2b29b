"""Sync endpoints: manual trigger, run history and status, plus the cloud catalog export."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from noc_dashboard.api.dependencies import (
    READ,
    RESOURCE_SETTINGS,
    WRITE,
    get_config_service,
    get_sync_engine,
    get_sync_scheduler,
    require_permission,
    verify_sync_key,
)
from noc_dashboard.core.config import settings
from noc_dashboard.database.session import get_db
from noc_dashboard.schemas.sync import (
    AnalystRecord,
    PopRecord,
    ScheduleRecord,
    ShiftRecord,
    SyncLogResponse,
    SyncResultResponse,
    SyncStatusResponse,
)
from noc_dashboard.services.config_service import ConfigService
from noc_dashboard.services.export_service import export_service
from noc_dashboard.services.scheduler_service import SyncScheduler
from noc_dashboard.services.sync_service import SyncEngine

router = APIRouter(prefix="/sync", tags=["sync"])


# ---------------------------------------------------------------------------
# Local node: trigger, history, status
# ---------------------------------------------------------------------------

@router.post(
    "/manual",
    response_model=SyncResultResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_permission(RESOURCE_SETTINGS, WRITE))],
)
async def manual_sync(sync_engine: SyncEngine = Depends(get_sync_engine)):
    """Run one pass now. Pass failures still answer 200 with ``success: false``."""
    return await sync_engine.sync()


@router.get(
    "/history",
    response_model=List[SyncLogResponse],
    dependencies=[Depends(require_permission(RESOURCE_SETTINGS, READ))],
)
async def sync_history(
    limit: int = Query(settings.SYNC_HISTORY_LIMIT, ge=1, le=100),
    sync_engine: SyncEngine = Depends(get_sync_engine),
):
    """Most recent sync runs, newest first."""
    return await sync_engine.get_sync_history(limit)


@router.get(
    "/status",
    response_model=SyncStatusResponse,
    dependencies=[Depends(require_permission(RESOURCE_SETTINGS, READ))],
)
async def sync_status(
    config_service: ConfigService = Depends(get_config_service),
    sync_engine: SyncEngine = Depends(get_sync_engine),
    scheduler: Optional[SyncScheduler] = Depends(get_sync_scheduler),
):
    config = await config_service.load_sync_config()
    return SyncStatusResponse(
        mode=config.mode,
        cloud_server_url=config.cloud_url,
        sync_enabled=config.sync_enabled,
        sync_time=config.sync_time,
        next_run_at=scheduler.next_run_time() if scheduler else None,
        running=sync_engine.running,
    )


# ---------------------------------------------------------------------------
# Cloud node: catalog export read by local nodes
# ---------------------------------------------------------------------------

@router.get("/clients", response_model=List[str], dependencies=[Depends(verify_sync_key)])
async def export_clients(db: AsyncSession = Depends(get_db)):
    return await export_service.list_clients(db)


@router.get("/pops/{client:path}", response_model=List[PopRecord], dependencies=[Depends(verify_sync_key)])
async def export_pops(client: str, db: AsyncSession = Depends(get_db)):
    return await export_service.list_pops(db, client)


@router.get("/analysts", response_model=List[AnalystRecord], dependencies=[Depends(verify_sync_key)])
async def export_analysts(db: AsyncSession = Depends(get_db)):
    return await export_service.list_analysts(db)


@router.get("/shifts", response_model=List[ShiftRecord], dependencies=[Depends(verify_sync_key)])
async def export_shifts(db: AsyncSession = Depends(get_db)):
    return await export_service.list_shifts(db)


@router.get("/schedules", response_model=List[ScheduleRecord], dependencies=[Depends(verify_sync_key)])
async def export_schedules(db: AsyncSession = Depends(get_db)):
    return await export_service.list_schedules(db)
