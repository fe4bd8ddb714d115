"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Nova configuration. All values come from environment variables."""

    # Anthropic
    anthropic_api_key: str = Field(default="")
    default_chat_model: str = Field(default="sonnet")
    default_memory_model: str = Field(default="haiku")

    # Database
    database_path: Path = Field(default=Path("data/nova.db"))

    # Turso (hosted libSQL); overrides local database_path
    turso_database_url: str = Field(default="")
    turso_auth_token: str = Field(default="")

    # Conversation
    reply_context_size: int = Field(default=10)
    welcome_back_hours: int = Field(default=1)
    fact_notice_seconds: float = Field(default=5.0)

    # Re-engagement
    quiet_period_seconds: float = Field(default=120.0)
    scheduler_timezone: str = Field(default="UTC")

    # Audio
    whisper_model_size: str = Field(default="base")
    whisper_device: str = Field(default="cpu")
    whisper_compute_type: str = Field(default="int8")
    muted: bool = Field(default=False)

    # Backups
    backup_dir: Path = Field(default=Path("data/backups"))

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def get_quiet_period(self) -> float:
        """Quiet period in seconds, never negative."""
        return max(0.0, self.quiet_period_seconds)


settings = Settings()
