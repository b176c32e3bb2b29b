"""Application configuration loaded from environment variables."""

from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/noc.db"
    AUTO_CREATE_TABLES: bool = True

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    API_PREFIX: str = "/api"

    # Node role and cloud sync defaults (overridden by rows in the config table)
    NOC_MODE: Literal["cloud", "local"] = "cloud"
    CLOUD_SERVER_URL: str = ""
    SYNC_ENABLED: bool = False
    SYNC_TIME: str = "03:00"
    SYNC_HTTP_TIMEOUT_SECONDS: float = 30.0
    SYNC_HISTORY_LIMIT: int = 10

    # Shared secret for the catalog export endpoints; empty disables the check
    SYNC_API_KEY: str = ""

    AUTH_ENABLED: bool = False
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
