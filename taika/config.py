"""
Engine settings.

Loaded from an optional YAML file, then overridden by TAIKA_* environment
variables through pydantic-settings. Scripts call dotenv.load_dotenv()
first so a project .env works the same way as exported variables.
"""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from taika.classroom.store import DEFAULT_STORE_DB


ENV_PREFIX = "TAIKA_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class EngineSettings(BaseSettings):
    """Engine settings. Each field reads TAIKA_<FIELD_NAME> from the environment."""

    store_path: Optional[Path] = DEFAULT_STORE_DB   # None -> in-memory store
    catalog_path: Optional[Path] = None
    save_delay: float = Field(0.25, ge=0)           # seconds
    favorites_debounce: float = Field(0.2, ge=0)    # seconds
    lesson_probe_limit: int = Field(99, ge=1)
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats values passed in (the YAML file)
        return env_settings, init_settings

    @field_validator('store_path', 'catalog_path', mode='before')
    @classmethod
    def empty_path_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('log_level')
    @classmethod
    def known_log_level(cls, v):
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {'|'.join(LOG_LEVELS)} (got {v!r})")
        return level


def load_settings(config_path: Optional[Path] = None) -> EngineSettings:
    """
    Load engine settings.

    Args:
        config_path: Optional YAML file with setting names as keys

    Returns:
        Validated settings, TAIKA_* environment variables taking precedence

    Raises:
        FileNotFoundError: If config_path is given but doesn't exist
        yaml.YAMLError: If YAML parsing fails
        pydantic.ValidationError: If a value is invalid
    """
    values: dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with open(config_path, "r", encoding="utf-8") as f:
            values.update(yaml.safe_load(f) or {})

    return EngineSettings(**values)
