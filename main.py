"""NOC Dashboard - FastAPI Backend

Runbooks (POPs), analyst shift schedules, and the cloud to local sync that
keeps local deployments mirrored from the authoritative cloud node.
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from noc_dashboard.api import sync
from noc_dashboard.core.config import settings
from noc_dashboard.database.engine import create_session_factory, get_engine
from noc_dashboard.database.session import init_db
from noc_dashboard.database.store import Store
from noc_dashboard.observability import setup_structured_logging
from noc_dashboard.services.config_service import ConfigService
from noc_dashboard.services.scheduler_service import SyncScheduler
from noc_dashboard.services.sync_service import SyncEngine

setup_structured_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("NOC Dashboard starting up")
    engine = get_engine()
    if settings.AUTO_CREATE_TABLES:
        await init_db(engine)

    store = Store(engine)
    config_service = ConfigService(store)
    sync_engine = SyncEngine(store, config_service)
    sync_scheduler = SyncScheduler(sync_engine, config_service)

    app.state.session_factory = create_session_factory(engine)
    app.state.config_service = config_service
    app.state.sync_engine = sync_engine
    app.state.sync_scheduler = sync_scheduler

    await sync_scheduler.start()
    yield
    await sync_scheduler.stop()
    await engine.dispose()
    logger.info("NOC Dashboard shutting down")


app = FastAPI(
    title="NOC Dashboard API",
    description="Backend for the NOC operations dashboard: runbooks, "
                "analyst schedules, cloud to local sync.",
    version="0.1.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error("Internal error", exc_info=exc, extra={"request_id": request_id})
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "request_id": request_id},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, "request_id", "unknown")
    return JSONResponse(
        status_code=422,
        content={
            "detail": exc.errors(),
            "request_id": request_id,
        },
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(sync.router, prefix=settings.API_PREFIX)

# ---------------------------------------------------------------------------
# Prometheus
# ---------------------------------------------------------------------------

Instrumentator().instrument(app).expose(app, include_in_schema=False)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["system"])
@app.get(f"{settings.API_PREFIX}/health", tags=["system"], include_in_schema=False)
def health():
    return {"status": "ok"}
