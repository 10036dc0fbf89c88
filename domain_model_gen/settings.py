"""Process-level settings: an optional YAML/JSON file overlaid with environment variables."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .constants import NAMESPACE_DEFAULT, SCHEMA_VERSION_DEFAULT
from .diagrams.render_config import DiagramFormat, Direction
from .errors import ConfigError

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _env(field_name: str, env_var: str) -> AliasChoices:
    # File keys use the field name; the environment uses the variable name.
    return AliasChoices(field_name, env_var)


class Settings(BaseSettings):
    """Process configuration.

    Environment variables: MODELS_DIRECTORY, OUTPUT_DIRECTORY,
    DEFAULT_DIAGRAM_FORMAT, DIAGRAM_DIRECTION, AFD_SCHEMA_VERSION,
    MODEL_NAMESPACE, LOG_LEVEL, LOG_FILE, GIT_REPOSITORY_URL, GIT_BRANCH.
    """

    models_directory: Path = Field(
        Path("models"), validation_alias=_env("models_directory", "MODELS_DIRECTORY")
    )
    output_directory: Path = Field(
        Path("diagrams"), validation_alias=_env("output_directory", "OUTPUT_DIRECTORY")
    )
    default_format: DiagramFormat = Field(
        DiagramFormat.MERMAID,
        validation_alias=_env("default_format", "DEFAULT_DIAGRAM_FORMAT"),
    )
    direction: Direction = Field(
        Direction.TOP_TO_BOTTOM, validation_alias=_env("direction", "DIAGRAM_DIRECTION")
    )
    schema_version: str = Field(
        SCHEMA_VERSION_DEFAULT, validation_alias=_env("schema_version", "AFD_SCHEMA_VERSION")
    )
    namespace: str = Field(NAMESPACE_DEFAULT, validation_alias=_env("namespace", "MODEL_NAMESPACE"))
    log_level: LogLevel = Field("WARNING", validation_alias=_env("log_level", "LOG_LEVEL"))
    log_file: Optional[Path] = Field(None, validation_alias=_env("log_file", "LOG_FILE"))
    repository_url: Optional[str] = Field(
        None, validation_alias=_env("repository_url", "GIT_REPOSITORY_URL")
    )
    branch: str = Field("main", validation_alias=_env("branch", "GIT_BRANCH"))

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_ignore_empty=True,
        extra="forbid",
        frozen=True,
    )

    @field_validator("default_format", mode="before")
    @classmethod
    def _parse_format(cls, value: Any) -> DiagramFormat:
        return DiagramFormat.parse(value)

    @field_validator("direction", mode="before")
    @classmethod
    def _parse_direction(cls, value: Any) -> Direction:
        return Direction.parse(value)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment variables override values passed in from the settings file.
        return env_settings, init_settings


def _read_settings_file(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read settings file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid settings file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")
    return {k: v for k, v in data.items() if v is not None}


def _describe(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        where = ".".join(str(part) for part in err["loc"]) or "settings"
        if err["type"] == "extra_forbidden":
            problems.append(f"Unknown setting {where!r}")
        else:
            problems.append(f"{where}: {err['msg']}")
    return "Invalid settings: " + "; ".join(problems)


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """Build `Settings` from defaults, then `path` (if given), then the environment.

    File keys are the `Settings` field names. Empty environment values are
    ignored.
    """
    file_values = _read_settings_file(Path(path)) if path is not None else {}
    try:
        return Settings(**file_values)
    except ValidationError as exc:
        raise ConfigError(_describe(exc), details={"errors": exc.errors()}) from exc
