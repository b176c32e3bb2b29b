import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from jose import jwt
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from conftest import CLOUD_URL, connection_refused, default_catalog, dump_table, make_pop
from main import app
from noc_dashboard.api import sync
from noc_dashboard.core.config import settings
from noc_dashboard.database.engine import create_session_factory
from noc_dashboard.database.session import init_db
from noc_dashboard.database.store import Store
from noc_dashboard.models import Analyst, Pop, Schedule, Shift, User, UserPermission
from noc_dashboard.schemas.sync import AnalystRecord, PopRecord, ScheduleRecord, ShiftRecord
from noc_dashboard.services.catalog_client import RemoteCatalogClient
from noc_dashboard.services.config_service import ConfigService
from noc_dashboard.services.scheduler_service import SyncScheduler
from noc_dashboard.services.sync_service import SyncEngine

JWT_SECRET = "test-secret"


@pytest_asyncio.fixture
async def api(db_engine, store, config_service, sync_engine):
    app.state.session_factory = create_session_factory(db_engine)
    app.state.config_service = config_service
    app.state.sync_engine = sync_engine
    app.state.sync_scheduler = SyncScheduler(sync_engine, config_service)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://noc.test") as client:
        yield client


@pytest_asyncio.fixture
async def auth_on(config_service, store, monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET", JWT_SECRET)
    await config_service.set("auth_enabled", "true")
    await store.run(insert(User), [
        {"id": 1, "email": "admin@noc.test", "user_type": "full", "active": True},
        {"id": 2, "email": "viewer@noc.test", "user_type": "standard", "active": True},
        {"id": 3, "email": "gone@noc.test", "user_type": "full", "active": False},
    ])
    await store.run(insert(UserPermission).values(user_id=2, resource="settings", permission_level=1))


def bearer(user_id) -> dict:
    token = jwt.encode({"id": user_id}, JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Manual trigger
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_manual_sync_reports_counts(api):
    resp = await api.post("/api/sync/manual")

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "recordsSynced": 14,
        "details": {"pops": 8, "analysts": 2, "shifts": 2, "schedules": 2},
    }


@pytest.mark.asyncio
async def test_manual_sync_failure_is_a_result_not_an_http_error(api, cloud):
    cloud.fail("/clients", connection_refused)

    resp = await api.post("/api/sync/manual")

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert "recordsSynced" not in body
    assert "network failure" in body["error"]


@pytest.mark.asyncio
async def test_manual_sync_in_cloud_mode_is_disabled(api, config_service, cloud):
    await config_service.set("mode", "cloud")

    resp = await api.post("/api/sync/manual")

    body = resp.json()
    assert body["success"] is False
    assert body["disabled"] is True
    assert "error" not in body
    assert cloud.requests == []


# ---------------------------------------------------------------------------
# History and status
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_history_newest_first_with_limit(api, sync_engine, cloud):
    await sync_engine.sync()
    cloud.fail("/schedules", 500)
    await sync_engine.sync()
    cloud.failures.clear()
    await sync_engine.sync()

    resp = await api.get("/api/sync/history")
    assert resp.status_code == 200
    history = resp.json()
    assert [h["status"] for h in history] == ["completed", "failed", "completed"]
    assert history[1]["error_message"].startswith("schedules:")
    assert history[1]["records_synced"] is None
    assert history[0]["records_synced"] == 14

    resp = await api.get("/api/sync/history", params={"limit": 1})
    assert [h["id"] for h in resp.json()] == [history[0]["id"]]

    resp = await api.get("/api/sync/history", params={"limit": 0})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_status_reflects_effective_config(api, config_service):
    await config_service.set("sync_time", "05:45")

    resp = await api.get("/api/sync/status")

    assert resp.status_code == 200
    body = resp.json()
    assert body["mode"] == "local"
    assert body["cloud_server_url"] == CLOUD_URL
    assert body["sync_enabled"] is True
    assert body["sync_time"] == "05:45"
    assert body["running"] is False


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_missing_or_bad_token_is_unauthorized(api, auth_on):
    assert (await api.get("/api/sync/history")).status_code == 401
    resp = await api.get("/api/sync/history", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_is_forbidden(api, auth_on):
    resp = await api.get("/api/sync/history", headers=bearer(3))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_standard_user_needs_write_to_trigger(api, auth_on, cloud):
    assert (await api.get("/api/sync/history", headers=bearer(2))).status_code == 200

    resp = await api.post("/api/sync/manual", headers=bearer(2))

    assert resp.status_code == 403
    assert resp.json()["detail"] == {"error": "Permission denied", "required": 2, "current": 1}
    assert cloud.requests == []


@pytest.mark.asyncio
async def test_full_user_can_trigger(api, auth_on):
    resp = await api.post("/api/sync/manual", headers=bearer(1))
    assert resp.status_code == 200
    assert resp.json()["success"] is True


# ---------------------------------------------------------------------------
# Catalog export
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_export_endpoints_serve_the_catalog(api, sync_engine):
    await sync_engine.sync()

    assert (await api.get("/api/sync/clients")).json() == ["acme", "globex"]

    pops = (await api.get("/api/sync/pops/acme")).json()
    assert [p["id"] for p in pops] == [1, 2, 3]
    assert (await api.get("/api/sync/pops/nobody")).json() == []

    shifts = (await api.get("/api/sync/shifts")).json()
    assert shifts[0]["start_time"] == "06:00"

    schedules = (await api.get("/api/sync/schedules")).json()
    assert schedules[0] == {
        "id": 100,
        "date": "2024-06-10",
        "shift_id": 1,
        "analyst_id": 7,
        "created_at": "2024-06-01T12:00:00",
        "updated_at": "2024-06-01T12:00:00",
    }
    assert len((await api.get("/api/sync/analysts")).json()) == 2


@pytest.mark.asyncio
async def test_export_requires_sync_key_when_configured(api, monkeypatch):
    monkeypatch.setattr(settings, "SYNC_API_KEY", "s3cret")

    assert (await api.get("/api/sync/analysts")).status_code == 401
    assert (await api.get("/api/sync/analysts", headers={"X-Sync-Key": "wrong"})).status_code == 401
    assert (await api.get("/api/sync/analysts", headers={"X-Sync-Key": "s3cret"})).status_code == 200


# ---------------------------------------------------------------------------
# Cloud to local round trip over the real export endpoints
# ---------------------------------------------------------------------------

def catalog_rows(catalog):
    pops = [p for client_pops in catalog["pops"].values() for p in client_pops]
    return {
        Pop: [PopRecord.model_validate(p).model_dump() for p in pops],
        Analyst: [AnalystRecord.model_validate(a).model_dump() for a in catalog["analysts"]],
        Shift: [ShiftRecord.model_validate(s).model_dump() for s in catalog["shifts"]],
        Schedule: [ScheduleRecord.model_validate(s).model_dump() for s in catalog["schedules"]],
    }


@pytest_asyncio.fixture
async def cloud_node(tmp_path):
    """A second node in cloud mode: its own database behind the real export router."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cloud.db'}", poolclass=NullPool)
    await init_db(engine)

    cloud_app = FastAPI()
    cloud_app.include_router(sync.router, prefix="/api")
    cloud_app.state.session_factory = create_session_factory(engine)
    cloud_app.state.store = Store(engine)
    yield cloud_app
    await engine.dispose()


async def seed_cloud(cloud_app, catalog) -> None:
    async with cloud_app.state.store.transaction() as tx:
        for model, rows in catalog_rows(catalog).items():
            await tx.run(insert(model), rows)


def local_engine_for(cloud_app, store, settings_local) -> SyncEngine:
    def client_factory(config):
        return RemoteCatalogClient(config.cloud_url, transport=httpx.ASGITransport(app=cloud_app))

    return SyncEngine(store, ConfigService(store, settings_local), client_factory)


@pytest.mark.asyncio
async def test_local_node_mirrors_a_cloud_node(cloud_node, store, settings_local):
    await seed_cloud(cloud_node, default_catalog())

    result = await local_engine_for(cloud_node, store, settings_local).sync()

    assert result["success"] is True
    assert result["recordsSynced"] == 14
    for model in (Pop, Analyst, Shift, Schedule):
        assert await dump_table(store, model) == await dump_table(cloud_node.state.store, model)


@pytest.mark.asyncio
async def test_client_names_with_a_slash_reach_the_export_route(cloud_node, store, settings_local):
    catalog = default_catalog()
    catalog["pops"] = {"Acme/BR": [make_pop(1, "Acme/BR", "sao-paulo-uplink")]}
    await seed_cloud(cloud_node, catalog)

    result = await local_engine_for(cloud_node, store, settings_local).sync()

    assert result["success"] is True, result.get("error")
    assert result["details"] == {"pops": 1, "analysts": 2, "shifts": 2, "schedules": 2}
    pops = await dump_table(store, Pop)
    assert [(p["id"], p["client"]) for p in pops] == [(1, "Acme/BR")]
