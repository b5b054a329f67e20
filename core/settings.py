"""
Centralized Settings Configuration

Uses Pydantic Settings to load configuration from environment variables
with validation and type coercion.
"""

from typing import Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_LEAGUE_IDS: dict[str, str] = {
    "LCK": "98767991310872058",
    "LPL": "98767991314006698",
    "LEC": "98767991302996019",
    "LCS": "98767991299243165",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database (pipeline run audit + snapshot table)
    database_url: str = "sqlite:///esports_backtest.db"

    # LoL Esports API (schedule, keyed)
    esports_api_url: str = "https://esports-api.lolesports.com/persisted/gw"
    esports_api_key: SecretStr = SecretStr("0TvQnueqKa5mxJntVWt0w4LpLfEkrV1Ta8rQBb9Z")

    # LoL Esports Live Stats feed (drafts, no auth)
    live_stats_api_url: str = "https://feed.lolesports.com/livestats/v1"

    # Leaguepedia cargo API (historical stats, strictly rate limited)
    leaguepedia_api_url: str = "https://lol.fandom.com/api.php"

    # League tag -> LoL Esports league id
    league_ids: dict[str, str] = DEFAULT_LEAGUE_IDS

    # Windows
    match_window_days: int = 14
    stats_window_start: str = "2024-01-01"

    # Per-source throttling
    esports_min_interval: float = 0.0
    live_stats_min_interval: float = 0.0
    leaguepedia_min_interval: float = 8.0
    rate_limit_cooldown: float = 30.0
    rate_limit_retries: int = 3
    draft_request_delay: float = 0.3

    # Resilience
    retry_max_attempts: int = 3
    retry_base_delay: float = 2.0
    retry_max_delay: float = 30.0
    circuit_breaker_threshold: int = 5
    circuit_breaker_timeout: int = 60
    http_timeout: int = 30

    # Historical stat lookups per run
    max_new_stats: int = 100
    live_max_new_stats: int = 20

    # Snapshot storage
    snapshot_backend: str = "file"  # "file" or "database"
    snapshot_path: str = "cache/seed-data.json"
    seed_path: Optional[str] = None
    snapshot_max_age_minutes: int = 120

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"
    service_name: str = "esports-backtest"

    # Pipeline Auth
    pipeline_api_token: Optional[SecretStr] = None

    # CORS origins allowed to call the read API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Development mode
    development_mode: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format is either json or console."""
        lower_v = v.lower()
        if lower_v not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return lower_v

    @field_validator("snapshot_backend")
    @classmethod
    def validate_snapshot_backend(cls, v: str) -> str:
        lower_v = v.lower()
        if lower_v not in {"file", "database"}:
            raise ValueError("snapshot_backend must be 'file' or 'database'")
        return lower_v

    @property
    def snapshot_max_age_seconds(self) -> float:
        return self.snapshot_max_age_minutes * 60.0


def get_settings() -> Settings:
    """
    Get application settings.

    Creates a new Settings instance each time, so tests can build
    configurations from a patched environment.
    """
    return Settings()


# Default settings instance for convenience
# Import this for quick access: from core.settings import settings
settings = Settings()
