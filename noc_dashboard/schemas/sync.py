"""Wire shapes for the cloud catalog export and the sync status API.

The record models double as the validation layer for payloads fetched from
the cloud node: ``model_dump()`` yields rows ready for a Core ``insert()``.
"""

import datetime as dt
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Catalog records
# ---------------------------------------------------------------------------

class PopRecord(BaseModel):
    id: Optional[int] = None
    client: str
    filename: str
    title: str
    category: Optional[str] = None
    icon: Optional[str] = None
    data: str
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AnalystRecord(BaseModel):
    id: int
    name: str
    role: str
    phone: str
    email: Optional[str] = None
    active: bool = True
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ShiftRecord(BaseModel):
    id: int
    name: str
    start_time: str = Field(validation_alias=AliasChoices("start_time", "start"))
    end_time: str = Field(validation_alias=AliasChoices("end_time", "end"))
    color: str
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ScheduleRecord(BaseModel):
    id: Optional[int] = None
    date: dt.date
    shift_id: int = Field(validation_alias=AliasChoices("shift_id", "shift"))
    analyst_id: int = Field(validation_alias=AliasChoices("analyst_id", "analyst"))
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Sync status API
# ---------------------------------------------------------------------------

class SyncDetails(BaseModel):
    pops: int
    analysts: int
    shifts: int
    schedules: int


class SyncResultResponse(BaseModel):
    """Outcome of one sync invocation; ``success`` carries the pass result."""

    success: bool
    records_synced: Optional[int] = Field(default=None, alias="recordsSynced")
    details: Optional[SyncDetails] = None
    error: Optional[str] = None
    message: Optional[str] = None
    disabled: Optional[bool] = None

    model_config = ConfigDict(populate_by_name=True)


class SyncLogResponse(BaseModel):
    id: int
    sync_type: str
    status: str
    records_synced: Optional[int] = None
    error_message: Optional[str] = None
    started_at: dt.datetime
    completed_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SyncStatusResponse(BaseModel):
    mode: str
    cloud_server_url: str
    sync_enabled: bool
    sync_time: str
    next_run_at: Optional[dt.datetime] = None
    running: bool
