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
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()


class DatasetRetention(BaseModel):
    """Retention caps for one local JSON dataset."""

    max_records: int = Field(default=99999, description="Keep at most this many records")
    max_age_days: int = Field(default=7, description="Drop records older than this")
    max_file_size_mb: float = Field(default=50, description="Cleanup threshold file size")


def _default_datasets() -> dict[str, DatasetRetention]:
    # Rolling 7-day window for every analytics file; older data lives in PostgreSQL
    sizes = {
        "analytics-sessions.json": 50,
        "analytics-views.json": 100,
        "performance-metrics.json": 10,
        "realtime-visitors.json": 5,
        "engagement-heatmap.json": 20,
        "conversion-funnel.json": 15,
    }
    return {
        name: DatasetRetention(max_records=99999, max_age_days=7, max_file_size_mb=size)
        for name, size in sizes.items()
    }


class PostgresSettings(BaseSettings):
    """PostgreSQL connection settings for the durable store."""

    model_config = SettingsConfigDict(env_prefix="PG_")

    host: str = Field(default="localhost", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    user: str = Field(default="postgres", description="PostgreSQL username")
    password: str = Field(default="postgres", description="PostgreSQL password")
    database: str = Field(default="analytics", description="Database name")
    schema_name: str = Field(default="analytics", description="Schema name")
    sslmode: str = Field(default="prefer", description="SSL mode")

    @property
    def connection_string(self) -> str:
        """Build PostgreSQL connection string."""
        return (
            f"postgresql://{self.user}:{self.password}@"
            f"{self.host}:{self.port}/{self.database}?sslmode={self.sslmode}"
        )


class ValkeySettings(BaseSettings):
    """Valkey (Redis-compatible) connection settings for sync state."""

    model_config = SettingsConfigDict(env_prefix="VALKEY_")

    host: str = Field(default="localhost", description="Valkey host")
    port: int = Field(default=6379, description="Valkey port")
    password: Optional[str] = Field(default=None, description="Valkey password")
    db: int = Field(default=0, description="Valkey database number")
    ssl: bool = Field(default=False, description="Use SSL/TLS connection")

    @property
    def url(self) -> str:
        """Build Valkey connection URL."""
        scheme = "rediss" if self.ssl else "redis"
        if self.password:
            return f"{scheme}://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"{scheme}://{self.host}:{self.port}/{self.db}"


class LocalStoreSettings(BaseSettings):
    """Location of the local append-only JSON datasets."""

    model_config = SettingsConfigDict(env_prefix="LOCAL_")

    data_dir: Path = Field(default=Path("data"), description="Directory holding JSON datasets")
    sessions_file: str = Field(
        default="analytics-sessions.json", description="Local sessions dataset file name"
    )
    sync_state_file: str = Field(
        default="analytics-sync-state.json", description="Reconciler state file name"
    )

    @property
    def data_dir_path(self) -> Path:
        """Resolve data directory to absolute path from project root."""
        from eventsync.utils.paths import resolve_project_path

        return resolve_project_path(self.data_dir)

    @property
    def sessions_path(self) -> Path:
        return self.data_dir_path / self.sessions_file

    @property
    def sync_state_path(self) -> Path:
        return self.data_dir_path / self.sync_state_file


class ReconcilerSettings(BaseSettings):
    """Local -> durable reconciliation settings."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    batch_size: int = Field(default=100, description="Sessions upserted per batch")
    batch_cap: int = Field(default=50, description="Maximum batches per run")
    batch_delay_ms: int = Field(default=50, description="Pause between batches in milliseconds")
    state_backend: Literal["file", "valkey"] = Field(
        default="file", description="Where sync state is persisted (file, valkey)"
    )
    enrich_missing_geo: bool = Field(
        default=True, description="Resolve location for sessions without a country"
    )


class GeoSettings(BaseSettings):
    """IP geolocation lookup settings."""

    model_config = SettingsConfigDict(env_prefix="GEO_")

    rate_limit: int = Field(default=5, description="Maximum new lookups per window")
    rate_window_seconds: float = Field(default=60, description="Rate limit window length")
    cache_ttl_hours: float = Field(default=24, description="Freshness of a cached lookup")
    timeout_seconds: float = Field(default=5, description="HTTP timeout for one lookup")
    sweep_probability: float = Field(
        default=0.1, description="Chance per call of sweeping expired cache entries"
    )
    base_url: str = Field(default="http://ipapi.co", description="ipapi.co base URL")
    user_agent: str = Field(default="eventsync-geo/1.0", description="User-Agent header")


class RetentionSettings(BaseSettings):
    """Local dataset retention settings."""

    model_config = SettingsConfigDict(env_prefix="RETENTION_")

    skip_threshold: float = Field(
        default=0.8, description="Skip cleanup while file size is below this share of the cap"
    )
    backup_retention_days: int = Field(default=7, description="Delete backups older than this")
    datasets: dict[str, DatasetRetention] = Field(
        default_factory=_default_datasets, description="Per-dataset retention caps"
    )


class WarehouseSettings(BaseSettings):
    """BigQuery raw-event export settings."""

    model_config = SettingsConfigDict(env_prefix="WAREHOUSE_")

    project_id: Optional[str] = Field(default=None, description="GCP project hosting the dataset")
    dataset: Optional[str] = Field(default=None, description="Export dataset name")
    location: str = Field(default="US", description="BigQuery job location")
    credentials_file: Optional[Path] = Field(
        default=None, description="Service account JSON key file"
    )
    chunk_size: int = Field(default=500, description="Rows per durable-store upsert request")
    table_prefix: str = Field(default="events_", description="Day-partitioned table prefix")

    @property
    def is_configured(self) -> bool:
        """Check if the warehouse is configured."""
        return bool(self.project_id and self.dataset)


class SchedulerSettings(BaseSettings):
    """Daily job schedule."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_")

    maintenance_hour: int = Field(default=2, description="Hour of the daily maintenance run")
    maintenance_minute: int = Field(default=0, description="Minute of the daily maintenance run")
    warehouse_enabled: bool = Field(default=False, description="Schedule the warehouse sync")
    warehouse_hour: int = Field(default=0, description="Hour of the daily warehouse sync")
    warehouse_minute: int = Field(default=15, description="Minute of the daily warehouse sync")
    timezone: str = Field(default="UTC", description="Timezone for the wall-clock schedule")


class OpsApiSettings(BaseSettings):
    """Operator HTTP API settings."""

    model_config = SettingsConfigDict(env_prefix="OPS_API_")

    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8085, description="Bind port")
    start_scheduler: bool = Field(default=True, description="Run the scheduler with the API")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    valkey: ValkeySettings = Field(default_factory=ValkeySettings)
    local: LocalStoreSettings = Field(default_factory=LocalStoreSettings)
    sync: ReconcilerSettings = Field(default_factory=ReconcilerSettings)
    geo: GeoSettings = Field(default_factory=GeoSettings)
    retention: RetentionSettings = Field(default_factory=RetentionSettings)
    warehouse: WarehouseSettings = Field(default_factory=WarehouseSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    ops_api: OpsApiSettings = Field(default_factory=OpsApiSettings)

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
