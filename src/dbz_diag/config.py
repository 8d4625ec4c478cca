"""Configuration management for dbz-oracle-diag."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


CONNECTION_ENV_VARS = {
    "oracle_host": "ORACLE_HOST",
    "oracle_service": "ORACLE_SERVICE",
    "oracle_user": "ORACLE_USER",
    "oracle_password": "ORACLE_PASSWORD",
}

CAPTURE_ENV_VARS = {
    "capture_schema": "CAPTURE_SCHEMA",
    "capture_table_pattern": "CAPTURE_TABLE_PATTERN",
}


class SettingsNotConfiguredError(Exception):
    """Raised when required environment variables are not configured."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        lines = "\n".join(f"│    {name:<64} │" for name in missing)
        self.message = f"""
╭─────────────────────────────────────────────────────────────────────╮
│                 ⚠️  MISSING ENVIRONMENT VARIABLES                   │
├─────────────────────────────────────────────────────────────────────┤
│                                                                     │
│  The following settings are required but not set:                  │
│                                                                     │
{lines}
│                                                                     │
│  Set them in the environment or in a .env file, e.g.                │
│    echo "ORACLE_HOST=db.example.com" >> .env                        │
│                                                                     │
╰─────────────────────────────────────────────────────────────────────╯
"""
        super().__init__(f"Missing env var(s): {', '.join(missing)}")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Oracle connection
    oracle_host: str = Field(default="", description="Oracle host name")
    oracle_port: int = Field(default=1521, description="Oracle listener port")
    oracle_service: str = Field(default="", description="Oracle service name")
    oracle_user: str = Field(default="", description="Diagnostic user (owns the sample tables)")
    oracle_password: str = Field(default="", description="Diagnostic user password")
    oracle_privilege: str = Field(
        default="",
        description="Optional administrative privilege (SYSDBA, SYSOPER)",
    )

    # Capture scope
    capture_schema: str = Field(default="", description="Schema captured by the connector")
    capture_table_pattern: str = Field(
        default="",
        description="Regular expression matching captured table names",
    )

    # Sampling
    sample_interval_minutes: int = Field(
        default=15,
        ge=1,
        description="Minutes between sampler job runs",
    )

    # Output
    output_dir: str = Field(default=".", description="Directory for report files")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def dsn(self) -> str:
        """Easy Connect string for the configured database."""
        return f"{self.oracle_host}:{self.oracle_port}/{self.oracle_service}"

    @property
    def output_path(self) -> Path:
        """Get resolved output directory."""
        return Path(self.output_dir).expanduser()

    @property
    def hour_multiplier(self) -> float:
        """Factor converting a per-interval sample to a per-hour rate."""
        return 60 / self.sample_interval_minutes

    def missing_connection_settings(self) -> list[str]:
        """List connection env vars that are not set (does not raise)."""
        return [
            env_var
            for attr, env_var in CONNECTION_ENV_VARS.items()
            if not getattr(self, attr).strip()
        ]

    def require_connection(self) -> None:
        """
        Ensure every connection setting is present.

        Raises:
            SettingsNotConfiguredError: If any connection variable is unset
        """
        missing = self.missing_connection_settings()
        if missing:
            raise SettingsNotConfiguredError(missing)

    def require_capture(self) -> tuple[str, str]:
        """
        Get capture schema and table pattern or raise if either is unset.

        Returns:
            Tuple of (schema, table pattern)

        Raises:
            SettingsNotConfiguredError: If either capture variable is unset
        """
        missing = [
            env_var
            for attr, env_var in CAPTURE_ENV_VARS.items()
            if not getattr(self, attr).strip()
        ]
        if missing:
            raise SettingsNotConfiguredError(missing)
        return self.capture_schema, self.capture_table_pattern


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
