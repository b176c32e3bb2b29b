"""Shared FastAPI dependencies for authentication and service access."""

import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from noc_dashboard.core.config import settings
from noc_dashboard.database.session import get_db
from noc_dashboard.models.user import User, UserPermission
from noc_dashboard.services.config_service import ConfigService
from noc_dashboard.services.scheduler_service import SyncScheduler
from noc_dashboard.services.sync_service import SyncEngine

bearer_scheme = HTTPBearer(auto_error=False)
sync_key_header = APIKeyHeader(name="X-Sync-Key", auto_error=False)

# Permission levels
NONE = 0
READ = 1
WRITE = 2

USER_TYPE_STANDARD = "standard"
USER_TYPE_FULL = "full"

# Resources
RESOURCE_SETTINGS = "settings"


@dataclass
class AuthContext:
    user_id: Optional[int]
    email: Optional[str]
    user_type: str
    bypass: bool = False


# ---------------------------------------------------------------------------
# Services wired in the app lifespan
# ---------------------------------------------------------------------------

def get_config_service(request: Request) -> ConfigService:
    return request.app.state.config_service


def get_sync_engine(request: Request) -> SyncEngine:
    return request.app.state.sync_engine


def get_sync_scheduler(request: Request) -> Optional[SyncScheduler]:
    return getattr(request.app.state, "sync_scheduler", None)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    config_service: ConfigService = Depends(get_config_service),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Verify the bearer JWT and return the active user behind it.

    With authentication disabled every caller is treated as a full user.
    """
    if not await config_service.auth_enabled():
        return AuthContext(user_id=None, email=None, user_type=USER_TYPE_FULL, bypass=True)

    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not settings.JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT secret not configured",
        )

    try:
        payload = jwt.decode(credentials.credentials, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        user_id = int(payload["id"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await db.get(User, user_id)
    if not user or not user.active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User inactive",
        )

    return AuthContext(user_id=user.id, email=user.email, user_type=user.user_type)


def require_permission(resource: str, level: int = READ):
    """Dependency factory gating a route on a per-resource permission level."""

    async def _check(
        user: AuthContext = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ) -> AuthContext:
        if user.bypass or user.user_type == USER_TYPE_FULL:
            return user

        result = await db.execute(
            select(UserPermission.permission_level).where(
                UserPermission.user_id == user.user_id,
                UserPermission.resource == resource,
            )
        )
        current = result.scalar_one_or_none() or NONE
        if current < level:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"error": "Permission denied", "required": level, "current": current},
            )
        return user

    return _check


def verify_sync_key(x_sync_key: str | None = Depends(sync_key_header)) -> None:
    """Guard the catalog export endpoints with the shared sync key, when one is set."""
    if not settings.SYNC_API_KEY:
        return
    if not x_sync_key or not secrets.compare_digest(x_sync_key, settings.SYNC_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sync key",
        )
