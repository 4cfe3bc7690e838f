"""
Runtime configuration.

Settings come from environment variables, with a ``.env`` file loaded
first when present. Unknown or malformed values fall back to defaults.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


class Settings(BaseModel):
    """
    Application settings.

    Example:
        >>> settings = Settings(openai_api_key="sk-test")
        >>> settings.vision_enabled
        True
    """

    model_config = ConfigDict(frozen=True)

    ai_provider: str = "openai"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    vision_timeout_seconds: float = Field(default=30.0, gt=0)
    off_timeout_seconds: int = Field(default=10, gt=0)
    off_max_retries: int = Field(default=3, ge=1)
    off_page_size: int = Field(default=20, ge=1, le=100)
    repository_backend: str = "inmemory"
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("ai_provider", "repository_backend")
    @classmethod
    def lower(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("log_level")
    @classmethod
    def upper(cls, v: str) -> str:
        return v.strip().upper() or "INFO"

    @property
    def vision_enabled(self) -> bool:
        """True when the configured provider can actually be called."""
        return self.ai_provider == "openai" and bool(self.openai_api_key)

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from the current process environment."""
        return cls(
            ai_provider=os.getenv("AI_PROVIDER", "openai"),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            vision_timeout_seconds=_env_float("VISION_TIMEOUT_SECONDS", 30.0),
            off_timeout_seconds=_env_int("OFF_TIMEOUT_SECONDS", 10),
            off_max_retries=_env_int("OFF_MAX_RETRIES", 3),
            off_page_size=_env_int("OFF_PAGE_SIZE", 20),
            repository_backend=os.getenv("REPOSITORY_BACKEND", "inmemory"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=_env_bool("LOG_JSON", False),
        )


@lru_cache(maxsize=1)
def get_settings(env_file: Optional[str] = None) -> Settings:
    """
    Load settings once per process.

    Values already in the environment win over the ``.env`` file.
    Call ``get_settings.cache_clear()`` in tests after changing env vars.
    """
    path = Path(env_file) if env_file else Path.cwd() / ".env"
    if path.exists():
        load_dotenv(path)
    return Settings.from_env()
