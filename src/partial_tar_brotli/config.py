"""Configuration models and loading logic."""

from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from partial_tar_brotli.errors import ConfigError

DEFAULT_SETTINGS_FILE = Path("partial-tar-brotli.yaml")
SETTINGS_FILE_ENV = "PARTIAL_TAR_BROTLI_SETTINGS_FILE"

BrotliMode = Literal["generic", "text", "font"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class BrotliConfig(BaseModel):
    """Encoder settings for the archive's brotli stream."""

    quality: int = Field(default=11, ge=0, le=11)
    lgwin: int = Field(default=22, ge=10, le=24)
    lgblock: int = Field(default=0, ge=0, le=24)
    mode: BrotliMode = "generic"

    @field_validator("lgblock")
    @classmethod
    def _check_lgblock(cls, value: int) -> int:
        if value != 0 and value < 16:
            raise ValueError("lgblock must be 0 (automatic) or between 16 and 24")
        return value


class PackConfig(BaseModel):
    """Defaults for the packing run that CLI flags may override."""

    max_size: int | None = Field(default=None, gt=0)
    stop_on_first_skip: bool = False
    reserve_bytes: int = Field(default=0, ge=0)


class LoggingConfig(BaseModel):
    """Process logging settings."""

    level: LogLevel = "WARNING"
    log_file: Path | None = None

    def resolved(self, base_dir: Path) -> "LoggingConfig":
        """Return a copy with a relative log file resolved against base_dir."""

        if self.log_file is None or self.log_file.is_absolute():
            return self
        return self.model_copy(update={"log_file": (base_dir / self.log_file).resolve()})


class AppSettings(BaseSettings):
    """Top-level application settings."""

    _yaml_file_override: ClassVar[Path | None] = None

    brotli: BrotliConfig = Field(default_factory=BrotliConfig)
    pack: PackConfig = Field(default_factory=PackConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="PARTIAL_TAR_BROTLI_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
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
        """Use YAML defaults while allowing env vars to override values."""

        yaml_file = resolve_settings_file(cls._yaml_file_override)
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )

    def as_dict(self) -> dict[str, object]:
        """Return settings as a standard nested dictionary."""

        return self.model_dump(mode="json")


def find_project_root(start: Path | None = None) -> Path:
    """Locate the nearest directory holding a settings file, walking upward."""

    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / DEFAULT_SETTINGS_FILE).exists():
            return candidate
    return current


def resolve_settings_file(override: Path | None = None) -> Path:
    """Resolve settings file from explicit override, env var, or default."""

    chosen = override
    if chosen is None:
        env_value = os.getenv(SETTINGS_FILE_ENV)
        if env_value:
            chosen = Path(env_value)
    if chosen is None:
        return (find_project_root() / DEFAULT_SETTINGS_FILE).resolve()

    # Explicit paths are relative to the working directory.
    return chosen.resolve()


def load_settings(config_file: Path | None = None) -> AppSettings:
    """Load settings with YAML defaults and environment variable overrides."""

    settings_file = resolve_settings_file(config_file)
    AppSettings._yaml_file_override = settings_file
    try:
        settings = AppSettings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings ({settings_file}): {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Settings file is not valid YAML ({settings_file}): {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Could not read settings file {settings_file}: {exc}") from exc
    finally:
        AppSettings._yaml_file_override = None
    resolved_logging = settings.logging.resolved(base_dir=settings_file.parent)
    return settings.model_copy(update={"logging": resolved_logging})
