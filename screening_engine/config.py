"""
Engine configuration.

Settings come from defaults overridden by environment variables with the
``SCREENING_ENGINE_`` prefix:

- ``SCREENING_ENGINE_LOG_LEVEL``: root log level (default INFO)
- ``SCREENING_ENGINE_LOG_FILE``: optional log file path
- ``SCREENING_ENGINE_LOG_JSON``: emit JSON log lines when true
- ``SCREENING_ENGINE_GENERATION_TIMEOUT``: default seconds allowed for a
  document or export generation call

Entry point: ``load_config(environ=None) -> AppConfig``. ``get_config()``
returns a process-wide instance loaded on first use.
"""

import os
from functools import lru_cache
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator

ENV_PREFIX = "SCREENING_ENGINE_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: Optional[str] = None
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class GenerationConfig(BaseModel):
    """Document and export generation settings."""

    model_config = ConfigDict(frozen=True)

    timeout_seconds: float = 30.0

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {v}.")
        return v


class AppConfig(BaseModel):
    """Top-level engine configuration."""

    model_config = ConfigDict(frozen=True)

    logging: LoggingConfig = LoggingConfig()
    generation: GenerationConfig = GenerationConfig()


def load_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Build an AppConfig from defaults and environment variables.

    Args:
        environ: Mapping to read instead of os.environ (for tests)

    Raises:
        pydantic.ValidationError: If a variable holds an invalid value
    """
    env = os.environ if environ is None else environ

    logging_values: dict = {}
    if f"{ENV_PREFIX}LOG_LEVEL" in env:
        logging_values["level"] = env[f"{ENV_PREFIX}LOG_LEVEL"]
    if env.get(f"{ENV_PREFIX}LOG_FILE"):
        logging_values["log_file"] = env[f"{ENV_PREFIX}LOG_FILE"]
    if f"{ENV_PREFIX}LOG_JSON" in env:
        logging_values["json_format"] = (
            env[f"{ENV_PREFIX}LOG_JSON"].strip().lower() in _TRUE_VALUES
        )

    generation_values: dict = {}
    if f"{ENV_PREFIX}GENERATION_TIMEOUT" in env:
        generation_values["timeout_seconds"] = env[f"{ENV_PREFIX}GENERATION_TIMEOUT"]

    return AppConfig(
        logging=LoggingConfig(**logging_values),
        generation=GenerationConfig(**generation_values),
    )


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Process-wide configuration, loaded from the environment on first use."""
    return load_config()
