"""Engine settings with Pydantic Settings validation.

Operational knobs come from the environment (or a ``.env`` file) and from
``config/*.yaml``. All YAML files are merged and validated against JSON
schemas in ``config/schemas`` when one exists. Scoring, reputation and
consensus policy are compiled-in constants and are not configurable here.
"""

import json
from pathlib import Path
from typing import Any, Final, Literal, cast

import yaml
from jsonschema import ValidationError as JSONSchemaValidationError
from jsonschema import validate
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.config.logging_config import get_logger

CONFIG_DIR: Final[Path] = Path("config")
SCHEMA_DIR: Final[Path] = CONFIG_DIR / "schemas"
MAIN_CONFIG_NAME: Final[str] = "main.yaml"

AUTO_ASSIGN_BATCH_LIMIT_DEFAULT: Final[int] = 1000
REPUTATION_EVENTS_LIMIT_DEFAULT: Final[int] = 20
LEADERBOARD_LIMIT_DEFAULT: Final[int] = 50
METRICS_PORT_DEFAULT: Final[int] = 9000

_LOG_LEVELS: Final[frozenset[str]] = frozenset(
    {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
)

logger = cast(Any, get_logger(__name__))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge into base (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_schema(schema_name: str, schema_dir: Path = SCHEMA_DIR) -> dict[str, Any]:
    """Load JSON Schema from the schema directory.

    Args:
        schema_name: Schema name without extension (e.g., "main")
        schema_dir: Directory holding ``<name>.schema.json`` files

    Returns:
        JSON Schema dictionary or empty dict if not found
    """
    schema_path = schema_dir / f"{schema_name}.schema.json"
    if not schema_path.exists():
        return {}

    try:
        with open(schema_path, encoding="utf-8") as f:
            return cast(dict[str, Any], json.load(f))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(
            "config_schema_load_failed",
            schema=schema_name,
            error=str(e),
        )
        return {}


def validate_config_section(
    config: dict[str, Any],
    schema_name: str,
    file_path: str = "",
    schema_dir: Path = SCHEMA_DIR,
) -> None:
    """Validate config section against JSON Schema.

    Args:
        config: Configuration dictionary to validate
        schema_name: Name of schema to validate against
        file_path: Optional file path for error messages
        schema_dir: Directory holding the schemas

    Raises:
        ValueError: If validation fails
    """
    schema = load_schema(schema_name, schema_dir)
    if not schema:
        return

    try:
        validate(instance=config, schema=schema)
        logger.debug("config_validation_succeeded", schema=schema_name)
    except JSONSchemaValidationError as e:
        error_msg = f"Config validation failed for {schema_name}"
        if file_path:
            error_msg += f" (file: {file_path})"
        error_msg += f": {e.message}"
        raise ValueError(error_msg) from e


def normalize_log_level(value: Any) -> str:
    """Upper-case a log level name and reject unknown levels.

    Raises:
        ValueError: If the level is not a standard logging level name
    """
    level = str(value).strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
    return level


def _read_yaml(path: Path) -> dict[str, Any] | None:
    try:
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        logger.warning("config_file_load_failed", path=str(path), error=str(e))
        return None
    if not isinstance(loaded, dict):
        logger.warning("config_file_not_mapping", path=str(path))
        return None
    return loaded


def load_all_configs(config_dir: Path = CONFIG_DIR) -> dict[str, Any]:
    """Load and merge all YAML configs from the config directory.

    Loading order (later overrides earlier):
    1. ``main.yaml``
    2. every other ``*.yaml`` file, sorted alphabetically

    Each file is validated against ``schemas/<stem>.schema.json`` if present.

    Args:
        config_dir: Directory to scan

    Returns:
        Merged configuration dictionary

    Raises:
        ValueError: If a file fails schema validation
    """
    merged_config: dict[str, Any] = {}
    if not config_dir.is_dir():
        return merged_config

    schema_dir = config_dir / "schemas"
    main_path = config_dir / MAIN_CONFIG_NAME
    yaml_files = sorted(
        f for f in config_dir.glob("*.yaml") if f.name != MAIN_CONFIG_NAME
    )
    if main_path.exists():
        yaml_files.insert(0, main_path)

    loaded_count = 0
    for yaml_file in yaml_files:
        file_config = _read_yaml(yaml_file)
        if file_config is None:
            continue

        schema_name = yaml_file.stem
        try:
            validate_config_section(
                file_config, schema_name, str(yaml_file), schema_dir
            )
        except ValueError as e:
            logger.error(
                "config_validation_failed",
                path=str(yaml_file),
                schema=schema_name,
                error=str(e),
            )
            raise

        merged_config = deep_merge(merged_config, file_config)
        loaded_count += 1
        logger.debug("config_file_loaded", path=str(yaml_file), schema=schema_name)

    logger.info("config_load_complete", file_count=loaded_count)
    return merged_config


class Settings(BaseSettings):
    """Engine settings.

    Environment variables win over YAML values, YAML values win over the
    declared defaults.
    """

    model_config = SettingsConfigDict(
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(
        default=False, description="Render logs as JSON instead of console output"
    )
    repository_backend: Literal["memory"] = Field(
        default="memory", description="Repository implementation to construct"
    )
    auto_assign_batch_limit: int = Field(
        default=AUTO_ASSIGN_BATCH_LIMIT_DEFAULT,
        gt=0,
        description="Maximum active sightings scanned per auto-assign batch",
    )
    reputation_events_limit: int = Field(
        default=REPUTATION_EVENTS_LIMIT_DEFAULT,
        gt=0,
        description="Default number of events returned with a user's reputation",
    )
    leaderboard_limit: int = Field(
        default=LEADERBOARD_LIMIT_DEFAULT,
        gt=0,
        description="Default leaderboard size",
    )
    metrics_port: int = Field(
        default=METRICS_PORT_DEFAULT,
        gt=0,
        lt=65536,
        description="Port for the Prometheus exporter",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Any) -> str:
        return normalize_log_level(value)

    def __init__(self, **data: Any):
        """Initialize settings with auto-loaded configs from all YAML files."""
        config = load_all_configs()

        super().__init__(**data)
        self._apply_yaml_defaults(config)

    def _apply_yaml_defaults(self, config: dict[str, Any]) -> None:
        """Apply YAML-sourced defaults without overriding env-provided values."""

        fields_from_env = set(self.model_fields_set)

        def _assign(field_name: str, value: Any) -> None:
            if value is None:
                return
            if field_name in fields_from_env:
                return

            object.__setattr__(self, field_name, value)
            self.model_fields_set.add(field_name)

        logging_config = config.get("logging") or {}
        if "level" in logging_config:
            _assign("log_level", normalize_log_level(logging_config["level"]))
        _assign("log_json", logging_config.get("json"))

        repository_config = config.get("repository") or {}
        _assign("repository_backend", repository_config.get("backend"))

        flair_config = config.get("flairs") or {}
        _assign("auto_assign_batch_limit", flair_config.get("auto_assign_batch_limit"))

        reputation_config = config.get("reputation") or {}
        _assign("reputation_events_limit", reputation_config.get("events_limit"))
        _assign("leaderboard_limit", reputation_config.get("leaderboard_limit"))

        metrics_config = config.get("metrics") or {}
        _assign("metrics_port", metrics_config.get("port"))


def get_settings() -> Settings:
    """Build settings from the environment and ``config/``."""
    return Settings()
