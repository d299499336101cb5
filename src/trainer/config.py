"""
Trainer - Configuration and settings.

Settings are read from the environment (or a local .env file) once and cached.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class TrainerSettings(BaseSettings):
    """
    Client settings.

    Only the backend base URL is required for API calls; Supabase fields are
    needed for the email OTP flow.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    trainer_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Trainer backend (REST + SSE)
    api_base_url: str = "http://localhost:3000"
    request_timeout_seconds: float = 60.0

    # Supabase (email OTP auth)
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Local durable state (onboarding state, active workout session id)
    data_dir: Path = Path.home() / ".trainer"

    @property
    def is_development(self) -> bool:
        return self.trainer_env == "development"

    @property
    def is_production(self) -> bool:
        return self.trainer_env == "production"

    @property
    def onboarding_state_path(self) -> Path:
        return self.data_dir / "onboarding_state.json"

    @property
    def workout_session_path(self) -> Path:
        return self.data_dir / "active_workout_session.json"


@lru_cache
def get_settings() -> TrainerSettings:
    """Get cached settings instance."""
    return TrainerSettings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: TrainerSettings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
