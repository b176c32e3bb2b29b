from pathlib import Path
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from noc_dashboard.database.base import Base


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Provides an async database session bound to the app's engine."""
    async with request.app.state.session_factory() as db:
        yield db


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables (for quick dev bootstrap, prefer Alembic in prod)."""
    import noc_dashboard.models  # noqa: F401

    url = engine.url
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
