import json
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from noc_dashboard.core.config import Settings
from noc_dashboard.database.session import init_db
from noc_dashboard.database.store import Store
from noc_dashboard.models import Analyst, Pop, Schedule, Shift, SyncLog
from noc_dashboard.services.catalog_client import RemoteCatalogClient
from noc_dashboard.services.config_service import ConfigService
from noc_dashboard.services.sync_service import SyncEngine

CLOUD_URL = "http://cloud.test"


def make_pop(pop_id: int, client: str, slug: str) -> Dict[str, Any]:
    return {
        "id": pop_id,
        "client": client,
        "filename": f"{slug}.json",
        "title": slug.replace("-", " ").title(),
        "category": "network",
        "icon": "bolt",
        "data": json.dumps({"title": slug, "steps": ["check link", "escalate"]}),
        "created_at": "2024-06-01 08:00:00",
        "updated_at": "2024-06-02 09:30:00",
    }


def default_catalog() -> Dict[str, Any]:
    return {
        "pops": {
            "acme": [make_pop(i, "acme", f"acme-runbook-{i}") for i in range(1, 4)],
            "globex": [make_pop(i, "globex", f"globex-runbook-{i}") for i in range(4, 9)],
        },
        "analysts": [
            {"id": 7, "name": "Ana", "role": "N2", "phone": "+55 11 9999-0007", "email": "ana@noc.test",
             "active": 1, "created_at": "2024-05-01 10:00:00", "updated_at": "2024-05-01 10:00:00"},
            {"id": 9, "name": "Bruno", "role": "N1", "phone": "+55 11 9999-0009", "email": None,
             "active": 0, "created_at": "2024-05-01 10:00:00", "updated_at": "2024-05-03 10:00:00"},
        ],
        "shifts": [
            {"id": 1, "name": "Morning", "start_time": "06:00", "end_time": "14:00", "color": "#f5a623",
             "created_at": "2024-05-01 10:00:00", "updated_at": "2024-05-01 10:00:00"},
            {"id": 2, "name": "Night", "start_time": "22:00", "end_time": "06:00", "color": "#4a90e2",
             "created_at": "2024-05-01 10:00:00", "updated_at": "2024-05-01 10:00:00"},
        ],
        "schedules": [
            {"id": 100, "date": "2024-06-10", "shift_id": 1, "analyst_id": 7,
             "created_at": "2024-06-01 12:00:00", "updated_at": "2024-06-01 12:00:00"},
            {"id": 101, "date": "2024-06-10", "shift_id": 2, "analyst_id": 9,
             "created_at": "2024-06-01 12:00:00", "updated_at": "2024-06-01 12:00:00"},
        ],
    }


Failure = Union[int, Callable[[httpx.Request], Exception]]


class FakeCloud:
    """In-process stand-in for the cloud node's export endpoints."""

    def __init__(self, catalog: Optional[Dict[str, Any]] = None):
        self.catalog = catalog or default_catalog()
        self.requests: List[str] = []
        self.failures: Dict[str, Failure] = {}
        self.hooks: Dict[str, Callable[[], Awaitable[None]]] = {}

    def fail(self, path: str, failure: Failure) -> None:
        self.failures[f"/api/sync{path}"] = failure

    def on(self, path: str, hook: Callable[[], Awaitable[None]]) -> None:
        self.hooks[f"/api/sync{path}"] = hook

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(path)

        hook = self.hooks.get(path)
        if hook is not None:
            await hook()

        failure = self.failures.get(path)
        if isinstance(failure, int):
            return httpx.Response(failure, json={"error": "boom"})
        if failure is not None:
            raise failure(request)

        resource = path.removeprefix("/api/sync/")
        if resource == "clients":
            return httpx.Response(200, json=list(self.catalog["pops"]))
        if resource.startswith("pops/"):
            return httpx.Response(200, json=self.catalog["pops"].get(resource.split("/", 1)[1], []))
        if resource in ("analysts", "shifts", "schedules"):
            return httpx.Response(200, json=self.catalog[resource])
        return httpx.Response(404, json={"error": "not found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self, base_url: str = CLOUD_URL, **kwargs: Any) -> RemoteCatalogClient:
        return RemoteCatalogClient(base_url, transport=self.transport(), **kwargs)


def connection_refused(request: httpx.Request) -> Exception:
    return httpx.ConnectError("[Errno 111] Connection refused", request=request)


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "NOC_MODE": "local",
        "CLOUD_SERVER_URL": CLOUD_URL,
        "SYNC_ENABLED": True,
        "SYNC_TIME": "03:00",
        "AUTH_ENABLED": False,
        "SYNC_API_KEY": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'noc.db'}", poolclass=NullPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(db_engine):
    return Store(db_engine)


@pytest.fixture
def settings_local():
    return make_settings()


@pytest.fixture
def config_service(store, settings_local):
    return ConfigService(store, settings_local)


@pytest.fixture
def cloud():
    return FakeCloud()


@pytest.fixture
def sync_engine(store, config_service, cloud):
    def client_factory(config):
        return cloud.client(config.cloud_url, timeout=config.timeout)

    return SyncEngine(store, config_service, client_factory=client_factory)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def count_rows(store: Store, model) -> int:
    row = await store.get(select(func.count().label("n")).select_from(model))
    return row["n"]


async def dump_table(store: Store, model) -> List[Dict[str, Any]]:
    rows = await store.all(select(model.__table__).order_by(*model.__table__.primary_key.columns))
    return [dict(row) for row in rows]


async def sync_log_rows(store: Store) -> List[Dict[str, Any]]:
    return await dump_table(store, SyncLog)


async def seed_stale_mirror(store: Store) -> None:
    """Local contents as left by some earlier pass."""
    async with store.transaction() as tx:
        await tx.run(insert(Pop), [{"id": 50, "client": "initech", "filename": "old.json", "title": "Old",
                                    "category": None, "icon": None, "data": "{}"}])
        await tx.run(insert(Analyst), [{"id": 1, "name": "Old Analyst", "role": "N1", "phone": "0",
                                        "email": None, "active": True}])
        await tx.run(insert(Shift), [{"id": 5, "name": "Old Shift", "start_time": "08:00",
                                      "end_time": "16:00", "color": "#000"}])
        await tx.run(insert(Schedule), [{"id": 500, "date": date(2024, 1, 1), "shift_id": 5, "analyst_id": 1}])
