"""Global configuration using Pydantic settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.timecode.smpte import DEFAULT_FRAME_RATE, validate_frame_rate


class Settings(BaseSettings):
    """Application wide settings loaded from environment variables."""

    database_path: Path = Field(default_factory=lambda: Path("takenote.db"))
    cache_path: Path = Field(default_factory=lambda: Path("takenote-cache.db"))
    user_id: str = "local"
    pro: bool = False
    remote_backend: str = "sqlite"
    default_fps: float = DEFAULT_FRAME_RATE
    save_debounce_seconds: float = 2.0
    free_session_limit: int = 1
    free_note_limit: int = 20
    session_prefix: str = "session"
    note_prefix: str = "note"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TAKENOTE_",
        env_file=".env",
        case_sensitive=False,
    )

    @field_validator("default_fps")
    @classmethod
    def _check_fps(cls, value: float) -> float:
        return validate_frame_rate(value)

    @field_validator("save_debounce_seconds")
    @classmethod
    def _check_debounce(cls, value: float) -> float:
        if value < 0:
            raise ValueError("save_debounce_seconds must not be negative")
        return value


_settings: Optional[Settings] = None

_ENV_PREFIX: str = (Settings.model_config.get("env_prefix") or "").upper()


@dataclass
class EnvironmentSetting:
    """A settings field together with the variable that overrides it."""

    field: str
    env_name: str
    value: Any
    default: Any


def list_environment_settings(settings: Optional[Settings] = None) -> Iterable[EnvironmentSetting]:
    """Yield every setting with its current value and default."""

    settings = settings or get_settings()
    for name, info in Settings.model_fields.items():
        if info.default_factory is not None:
            default = info.default_factory()
        else:
            default = info.default
        yield EnvironmentSetting(
            field=name,
            env_name=f"{_ENV_PREFIX}{name}".upper(),
            value=getattr(settings, name),
            default=default,
        )


def get_settings() -> Settings:
    """Return a singleton instance of the application settings."""

    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next lookup re-reads the environment."""

    global _settings
    _settings = None


__all__ = [
    "EnvironmentSetting",
    "Settings",
    "get_settings",
    "list_environment_settings",
    "reset_settings",
]
