"""Application configuration via environment variables and .env file."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings.sources import DotEnvSettingsSource, PydanticBaseSettingsSource

# Path to .env file (patch in tests to use tmp_path / ".env")
_ENV_FILE: Path = Path(".env")

BACKEND_MODES = ("http", "mock")


class Settings(BaseSettings):
    model_config = {
        "env_prefix": "PRESENCEBOARD_",
        "env_file_encoding": "utf-8",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Load .env from _ENV_FILE (patchable in tests)
        return (
            init_settings,
            env_settings,
            DotEnvSettingsSource(
                settings_cls,
                env_file=_ENV_FILE,
                env_file_encoding="utf-8",
            ),
            file_secret_settings,
        )

    # Logging
    log_level: str = "info"

    # Device/owner backend
    # "http" talks to api_base_url, "mock" serves an in-process demo household
    backend_mode: str = "http"
    api_base_url: str = "http://localhost:4000"
    request_timeout: float = 10.0  # seconds per backend request

    # Presence
    consider_home_minutes: int = 5  # initial grace window, adjustable in the UI

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("backend_mode", mode="before")
    @classmethod
    def parse_backend_mode(cls, v: object) -> str:
        mode = str(v or "http").strip().lower()
        if mode not in BACKEND_MODES:
            raise ValueError(f"backend_mode must be one of {', '.join(BACKEND_MODES)}")
        return mode

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("consider_home_minutes")
    @classmethod
    def non_negative_window(cls, v: int) -> int:
        return max(0, v)


def load_config() -> Settings:
    """Load configuration from .env and environment (env overrides .env)."""
    return Settings()


settings = Settings()
