"""Runtime settings.

Values come from ``ESMIGRATE_*`` environment variables or a ``.env`` file;
command-line flags override them.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MigrationSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ESMIGRATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Sink
    db_path: str = "esmigrate.db"
    pool_size: int = Field(default=4, ge=1)
    busy_timeout: float = Field(default=30.0, gt=0)

    # Source
    page_size: int = Field(default=100, ge=1)
    log_index: str = "logs-*"
    metrics_index: str = "analytics-*"
    request_timeout: float = Field(default=30.0, gt=0)

    # Treat the first record-level failure as fatal
    fail_fast: bool = False

    log_level: str = "INFO"
