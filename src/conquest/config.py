"""Runtime configuration for the conquest engine."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings read from the environment or ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="CONQUEST_"
    )

    data_dir: Path = Field(default=Path("saves"), description="Where engine snapshots live")
    check_interval_seconds: float = Field(
        default=5.0,
        description="Initial delay between automation cycles",
        gt=0.0,
    )
    interval_cap_seconds: float = Field(
        default=120.0,
        description="Upper bound the cycle interval grows towards",
        gt=0.0,
    )
    siege_seconds_per_day: float = Field(
        default=2.0,
        description="Real-time seconds standing in for one in-game siege day",
        ge=0.0,
    )
    history_size: int = Field(default=50, description="Resolved battles kept in history", ge=1)
    autostart: bool = Field(default=True, description="Start the automation loop with the app")
    run_id: str = Field(default="conquest", min_length=1, description="Seed prefix for battle rolls")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Origins allowed to call the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings
