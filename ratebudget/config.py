"""Configuration management for ratebudget."""

from __future__ import annotations

import os
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from .logging_utils import configure_logging, log_operation

CONFIG_ENV_VAR = "RATEBUDGET_CONFIG"
DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")


class UnitLimits(BaseModel):
    """Limits for one named limitation unit."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    fill_rate: int = Field(ge=0)
    max_budget: int = Field(ge=0)


class RateLimitingSettings(BaseModel):
    """
    Settings consumed by ``ConfiguredStrategy``.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True
    default_fill_rate: int = Field(ge=0)
    default_max_budget: int = Field(ge=0)
    unit_prefix: str = ""
    exempt_units: frozenset[str] = Field(default_factory=frozenset)
    units: dict[str, UnitLimits] = Field(default_factory=dict)


class Configuration:
    """Loads YAML configuration and environment variables for ratebudget."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables.

        Args:
            config_path: Explicit YAML path. Falls back to the
                RATEBUDGET_CONFIG environment variable, then the packaged
                config.yaml.
        """
        self.load_env()
        self.config_path = (
            config_path or os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
        )
        self._config = self._load_yaml_config(self.config_path)

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    @staticmethod
    @log_operation("load_config")
    def _load_yaml_config(config_path: str) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    def get_config_dict(self) -> dict[str, Any]:
        """Get the full configuration dictionary."""
        return self._config

    def get_rate_limiting_settings(self) -> RateLimitingSettings:
        """Get validated rate limiting settings.

        Returns:
            RateLimitingSettings built from the rate_limiting section.

        Raises:
            ValueError: If the section is missing or holds invalid values.
        """
        section = self._config.get("rate_limiting")
        if section is None:
            raise ValueError(
                "rate_limiting must be explicitly configured in config.yaml"
            )
        if not isinstance(section, dict):
            raise ValueError(
                f"rate_limiting must be a mapping, got {type(section).__name__}"
            )
        return RateLimitingSettings.model_validate(section)

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML.

        Returns:
            Logging configuration dictionary.
        """
        return self._config.get("logging", {})

    def apply_logging(self) -> None:
        """Apply the configured log level."""
        configure_logging(self.get_logging_config().get("level", "INFO"))
