from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from json_toolbox.core.common.exceptions import ConfigurationError
from json_toolbox.core.interfaces.model_bases import DomainModel

logger = logging.getLogger(__name__)

ENV_PREFIX = "JSON_TOOLBOX_"


def _env_to_bool(name: str, default: bool, env: Mapping[str, str]) -> bool:
    """Return an environment variable parsed as a boolean flag."""
    value = env.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_to_int(name: str, default: int, env: Mapping[str, str]) -> int:
    """Return an environment variable parsed as an integer."""
    value = env.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer value for %s: %r", name, value)
        return default


class LogLevel(str, Enum):
    """Log levels for configuration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(DomainModel):
    """Logging configuration."""

    level: LogLevel = LogLevel.WARNING
    log_file: str | None = None

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v


class RepairConfig(DomainModel):
    """Configuration for the JSON repairer."""

    aggressive_fallback: bool = True
    """Whether structural wrapping is attempted after the pass pipeline fails."""


class ToolboxConfig(DomainModel):
    """Top-level toolbox configuration."""

    indent: int = Field(default=2, ge=0, le=8)
    ensure_ascii: bool = False
    nested_field: str = "request_body"
    xml_root: str = "root"
    repair: RepairConfig = Field(default_factory=RepairConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("nested_field")
    @classmethod
    def validate_nested_field(cls, v: str) -> str:
        if not v:
            raise ValueError("nested_field must not be empty")
        return v

    @field_validator("xml_root")
    @classmethod
    def validate_xml_root(cls, v: str) -> str:
        if not v or any(ch.isspace() for ch in v):
            raise ValueError("xml_root must be a non-empty name without whitespace")
        return v


def _apply_env_overrides(config_data: dict[str, Any], env: Mapping[str, str]) -> None:
    config_data["indent"] = _env_to_int(
        f"{ENV_PREFIX}INDENT", config_data["indent"], env
    )
    config_data["ensure_ascii"] = _env_to_bool(
        f"{ENV_PREFIX}ENSURE_ASCII", config_data["ensure_ascii"], env
    )
    config_data["nested_field"] = env.get(
        f"{ENV_PREFIX}NESTED_FIELD", config_data["nested_field"]
    )
    config_data["xml_root"] = env.get(f"{ENV_PREFIX}XML_ROOT", config_data["xml_root"])

    repair = config_data.setdefault("repair", {})
    repair["aggressive_fallback"] = _env_to_bool(
        f"{ENV_PREFIX}AGGRESSIVE_FALLBACK",
        repair.get("aggressive_fallback", True),
        env,
    )

    logging_cfg = config_data.setdefault("logging", {})
    if f"{ENV_PREFIX}LOG_LEVEL" in env:
        logging_cfg["level"] = env[f"{ENV_PREFIX}LOG_LEVEL"]
    if f"{ENV_PREFIX}LOG_FILE" in env:
        logging_cfg["log_file"] = env[f"{ENV_PREFIX}LOG_FILE"] or None


def _merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_config_file(path: Path) -> dict[str, Any]:
    if path.suffix.lower() not in (".yaml", ".yml"):
        raise ConfigurationError(
            f"Unsupported configuration file format: {path.suffix}. Use YAML (.yaml/.yml).",
            details={"config_path": str(path)},
        )
    try:
        with open(path, encoding="utf-8") as f:
            file_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Invalid configuration file format: {exc}",
            details={"config_path": str(path)},
        ) from exc
    if not isinstance(file_config, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping",
            details={"config_path": str(path), "found": type(file_config).__name__},
        )
    return file_config


def load_config(
    config_path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ToolboxConfig:
    """
    Load configuration from file and environment.

    Values come from the model defaults, then the YAML file, then
    ``JSON_TOOLBOX_*`` environment variables.

    Args:
        config_path: Optional path to a YAML configuration file
        environ: Environment mapping; defaults to ``os.environ``

    Returns:
        ToolboxConfig instance

    Raises:
        ConfigurationError: If the file or the resulting values are invalid
    """
    env = os.environ if environ is None else environ
    config_data: dict[str, Any] = ToolboxConfig().model_dump(mode="json")

    if config_path:
        path = Path(config_path)
        if not path.exists():
            logger.warning("Configuration file not found: %s", config_path)
        else:
            config_data = _merge(config_data, _load_config_file(path))

    _apply_env_overrides(config_data, env)

    try:
        return ToolboxConfig.model_validate(config_data)
    except PydanticValidationError as exc:
        raise ConfigurationError(
            f"Invalid configuration: {exc.error_count()} error(s)",
            details={
                "errors": [
                    {"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()
                ]
            },
        ) from exc
