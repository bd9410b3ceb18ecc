# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()


class ServerSettings(BaseSettings):
    """Ingestion server settings."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Listen port")

    @property
    def base_url(self) -> str:
        """URL clients on this machine use to reach the server."""
        host = "localhost" if self.host in ("0.0.0.0", "") else self.host
        return f"http://{host}:{self.port}"


class StoreSettings(BaseSettings):
    """Aggregation store retention and report sizes."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    max_log_entries: int = Field(
        default=10_000, ge=1, description="Cap for the master log and each category log"
    )
    recent_events: int = Field(default=50, ge=0, description="Events shown in recentEvents")
    top_pages: int = Field(default=10, ge=0, description="Pages shown in topPages")
    recent_sessions: int = Field(default=20, ge=0, description="Sessions shown in sessions")


class TrackerSettings(BaseSettings):
    """Client tracker settings (batching, identity, transport)."""

    model_config = SettingsConfigDict(env_prefix="TRACKER_")

    endpoint: str = Field(
        default="http://localhost:3000/api/track", description="Ingestion endpoint URL"
    )
    session_timeout_minutes: int = Field(
        default=30, ge=1, description="Session id renewal timeout in minutes"
    )
    batch_size: int = Field(default=10, ge=1, description="Events per batch before flushing")
    batch_timeout_ms: int = Field(
        default=5000, ge=1, description="Maximum time an event waits in the queue"
    )
    heartbeat_interval_seconds: float = Field(
        default=60.0, gt=0, description="Interval between heartbeat events"
    )
    request_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout for reliable batch requests"
    )
    beacon_timeout_seconds: float = Field(
        default=2.0, gt=0, description="Timeout for fire-and-forget batch requests"
    )
    storage_backend: Literal["file", "valkey", "memory"] = Field(
        default="file", description="Durable storage for the user id (file, valkey, memory)"
    )
    storage_file: Path = Field(
        default=Path.home() / ".sitepulse" / "storage.json",
        description="JSON file used by the file storage backend",
    )

    @property
    def session_timeout_ms(self) -> int:
        return self.session_timeout_minutes * 60 * 1000


class ValkeySettings(BaseSettings):
    """Valkey (Redis-compatible) connection settings for durable client storage."""

    model_config = SettingsConfigDict(env_prefix="VALKEY_")

    host: str = Field(default="localhost", description="Valkey host")
    port: int = Field(default=6379, description="Valkey port")
    password: Optional[str] = Field(default=None, description="Valkey password")
    db: int = Field(default=0, description="Valkey database number")
    ssl: bool = Field(default=False, description="Use SSL/TLS connection")
    key_prefix: str = Field(default="sitepulse:", description="Prefix for storage keys")

    @property
    def url(self) -> str:
        """Build Valkey connection URL."""
        scheme = "rediss" if self.ssl else "redis"
        if self.password:
            return f"{scheme}://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"{scheme}://{self.host}:{self.port}/{self.db}"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    server: ServerSettings = Field(default_factory=ServerSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    tracker: TrackerSettings = Field(default_factory=TrackerSettings)
    valkey: ValkeySettings = Field(default_factory=ValkeySettings)

    # General settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()
