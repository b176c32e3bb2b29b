"""Persisted node configuration layered over environment settings.

Rows in the ``config`` table win over ``Settings`` defaults and are re-read on
every sync trigger, so an operator can flip mode or cloud URL without a
restart.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy import delete, insert, select

from noc_dashboard.core.config import Settings, settings as default_settings
from noc_dashboard.database.store import Store
from noc_dashboard.models.config_entry import ConfigEntry

logger = logging.getLogger(__name__)

MODE_CLOUD = "cloud"
MODE_LOCAL = "local"

KEY_MODE = "mode"
KEY_CLOUD_URL = "cloud_server_url"
KEY_SYNC_ENABLED = "sync_enabled"
KEY_SYNC_TIME = "sync_time"
KEY_AUTH_ENABLED = "auth_enabled"


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class SyncConfig:
    mode: str
    cloud_url: str
    sync_enabled: bool
    sync_time: str
    timeout: float = 30.0
    api_key: str = ""

    @property
    def is_local(self) -> bool:
        return self.mode == MODE_LOCAL


class ConfigService:
    def __init__(self, store: Store, settings: Settings = default_settings):
        self.store = store
        self.settings = settings

    async def get_all(self) -> Dict[str, Optional[str]]:
        rows = await self.store.all(select(ConfigEntry.key, ConfigEntry.value))
        return {row["key"]: row["value"] for row in rows}

    async def get(self, key: str) -> Optional[str]:
        row = await self.store.get(select(ConfigEntry.value).where(ConfigEntry.key == key))
        return row["value"] if row else None

    async def set(self, key: str, value: Optional[str]) -> None:
        async with self.store.transaction("config") as tx:
            await tx.run(delete(ConfigEntry).where(ConfigEntry.key == key))
            await tx.run(insert(ConfigEntry).values(key=key, value=value))
        logger.info("Config %s updated", key)

    async def load_sync_config(self) -> SyncConfig:
        values = await self.get_all()
        mode = (values.get(KEY_MODE) or self.settings.NOC_MODE).strip().lower()
        cloud_url = values.get(KEY_CLOUD_URL) or self.settings.CLOUD_SERVER_URL
        return SyncConfig(
            mode=mode,
            cloud_url=cloud_url.strip().rstrip("/"),
            sync_enabled=_as_bool(values.get(KEY_SYNC_ENABLED), self.settings.SYNC_ENABLED),
            sync_time=(values.get(KEY_SYNC_TIME) or self.settings.SYNC_TIME).strip(),
            timeout=self.settings.SYNC_HTTP_TIMEOUT_SECONDS,
            api_key=self.settings.SYNC_API_KEY,
        )

    async def auth_enabled(self) -> bool:
        return _as_bool(await self.get(KEY_AUTH_ENABLED), self.settings.AUTH_ENABLED)
