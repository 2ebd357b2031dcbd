"""Harness configuration with pydantic-settings.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config() (CLI flags)
2. Environment variables (QUERYCHECK__KEY, QUERYCHECK__SECTION__KEY)
3. YAML config file (--config, or ./querycheck.yaml when present)
4. Built-in defaults (this file)

Examples:
    QUERYCHECK__DIALECT=postgres
    QUERYCHECK__SCHEMA_PATH=reference/schema.yaml
    QUERYCHECK__LOGGING__LEVEL=DEBUG
"""

from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    SettingsError,
)

from harness.errors import ConfigError

DEFAULT_CONFIG_FILE = Path("querycheck.yaml")

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Engine = Literal["relational", "document"]

# Fence tags understood out of the box and the engine each one targets
KNOWN_LANGUAGES: Dict[str, Engine] = {
    "sql": "relational",
    "mysql": "relational",
    "postgresql": "relational",
    "postgres": "relational",
    "sqlite": "relational",
    "mongodb": "document",
    "mongo": "document",
    "mongosh": "document",
}

DEFAULT_LANGUAGES: Dict[str, Engine] = {
    "sql": "relational",
    "mysql": "relational",
    "mongodb": "document",
    "mongo": "document",
    "mongosh": "document",
}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        QUERYCHECK__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        QUERYCHECK__LOGGING__FORMAT: console or json
        QUERYCHECK__LOGGING__DESTINATION: stderr, stdout or a file path
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. INFO logs one event per document and block.",
    )
    format: Literal["json", "console"] = "console"
    destination: str = Field(
        default="stderr",
        description="stderr, stdout, or a file path. Avoid stdout when the report goes there.",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class HarnessConfig(BaseSettings):
    """Fully resolved settings for one validation run."""

    model_config = SettingsConfigDict(
        env_prefix="QUERYCHECK__",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    schema_path: Optional[Path] = Field(
        default=None,
        description="Reference schema (YAML, JSON or SQL DDL). Embedded sample schema if unset.",
    )
    seed_path: Optional[Path] = Field(
        default=None,
        description="Reference collection seed (YAML or JSON). Embedded seed if unset.",
    )
    include_languages: Dict[str, Engine] = Field(
        default_factory=lambda: dict(DEFAULT_LANGUAGES),
        description="Fence tag -> engine. A plain list of known tags is also accepted.",
    )
    dialect: str = Field(default="mysql", description="sqlglot dialect of relational snippets.")
    execute_snippets: bool = Field(
        default=False,
        description="Also run relational snippets against an in-memory sample database.",
    )
    report_format: Literal["summary", "json", "csv"] = "summary"
    output_path: Optional[Path] = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("include_languages", mode="before")
    @classmethod
    def expand_language_list(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [tag for tag in v.split(",") if tag.strip()]
        if isinstance(v, (list, tuple, set)):
            expanded = {}
            for tag in v:
                key = str(tag).strip().lower()
                if key not in KNOWN_LANGUAGES:
                    raise ValueError(
                        f"unknown fence tag '{key}'; map it to an engine explicitly "
                        f"(e.g. {key}: relational)"
                    )
                expanded[key] = KNOWN_LANGUAGES[key]
            return expanded
        if isinstance(v, dict):
            return {str(k).strip().lower(): val for k, val in v.items()}
        return v

    @field_validator("include_languages")
    @classmethod
    def require_languages(cls, v: Dict[str, Engine]) -> Dict[str, Engine]:
        if not v:
            raise ValueError("at least one fence tag is required")
        return v

    @field_validator("dialect")
    @classmethod
    def normalize_dialect(cls, v: str) -> str:
        return v.strip().lower()


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: Dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> Dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: Dict[str, Any]) -> type[HarnessConfig]:
    """Create a Settings class bound to one YAML document."""

    class QueryCheckSettings(HarnessConfig):
        """Env vars: QUERYCHECK__DIALECT, QUERYCHECK__LOGGING__LEVEL, etc."""

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml file
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return QueryCheckSettings


def load_config(config_path: Optional[Path] = None, **overrides: Any) -> HarnessConfig:
    """Load config: defaults < yaml file < env vars < overrides.

    Relative schema/seed paths in the YAML file are resolved against the
    file's directory.

    Args:
        config_path: Explicit YAML file. Must exist when given.
        **overrides: Values from the command line; None values are ignored.

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On a missing explicit file, invalid YAML or invalid values.
    """
    if config_path is not None and not config_path.exists():
        raise ConfigError.file_not_found(str(config_path))
    path = config_path or DEFAULT_CONFIG_FILE
    yaml_config = _load_yaml(path)

    for key in ("schema_path", "seed_path"):
        value = yaml_config.get(key)
        if isinstance(value, str) and not Path(value).is_absolute():
            yaml_config[key] = str(path.parent / value)

    kwargs = {k: v for k, v in overrides.items() if v is not None}
    settings_cls = _make_settings_class(yaml_config)
    try:
        return settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    except SettingsError as e:
        raise ConfigError.parse_error("environment", str(e)) from e
