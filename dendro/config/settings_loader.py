"""
settings_loader.py

Configuration management for the dendrogram builder.
Loads and validates settings from YAML configuration with environment variable substitution.

Features:
- YAML configuration loading with validation
- Environment variable substitution (${VAR_NAME} syntax)
- Singleton pattern for global settings access
- Type-safe configuration with Pydantic models
- Falls back to defaults when no file is found on the search path
"""

import os
import re
import yaml
import logging
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator
from pathlib import Path

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models (Pydantic)
# =============================================================================

class ServiceSettings(BaseModel):
    """General settings."""
    name: str = Field(default="dendro", description="Service name")
    version: str = Field(default="0.1.0", description="Service version")
    environment: str = Field(default="development", description="Environment (development, staging, production)")


class AgglomerationSettings(BaseModel):
    """Agglomeration driver settings."""
    metric: str = Field(default="euclidean", description="Separability metric name")
    metric_params: Dict[str, Any] = Field(default_factory=dict, description="Metric constructor parameters")
    verbose: bool = Field(default=False, description="Enable clustering context log sinks")
    copy_data: bool = Field(default=True, description="Work on a private copy of the point matrix")
    deadline_seconds: Optional[float] = Field(default=None, gt=0.0, description="Abort builds running longer than this")
    progress_log_interval: int = Field(default=100, ge=1, description="Merges between progress log events")
    large_dataset_warning: int = Field(default=2000, ge=1, description="Warn above this many points (O(m^3) build)")

    @field_validator("metric")
    @classmethod
    def normalise_metric(cls, value: str) -> str:
        return value.strip().lower()


class PreprocessSettings(BaseModel):
    """Input preprocessing settings."""
    reject_missing_values: bool = Field(default=True, description="Reject point matrices containing NaN")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format (json or console)")
    file: Optional[str] = Field(default=None, description="Optional log file path")

    @field_validator("format")
    @classmethod
    def check_format(cls, value: str) -> str:
        if value not in ("json", "console"):
            raise ValueError("format must be 'json' or 'console'")
        return value


class PerformanceSettings(BaseModel):
    """Performance tracking configuration."""
    track_build_time: bool = Field(default=True, description="Log build duration")
    track_memory_usage: bool = Field(default=False, description="Log process memory after each build")


class Settings(BaseModel):
    """Root configuration model."""
    service: ServiceSettings = Field(default_factory=ServiceSettings)
    agglomeration: AgglomerationSettings = Field(default_factory=AgglomerationSettings)
    preprocess: PreprocessSettings = Field(default_factory=PreprocessSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    performance: PerformanceSettings = Field(default_factory=PerformanceSettings)


# =============================================================================
# Configuration Manager (Singleton)
# =============================================================================

class ConfigManager:
    """
    Singleton configuration manager that loads and caches settings.
    """

    _instance: Optional['ConfigManager'] = None
    _settings: Optional[Settings] = None

    def __new__(cls):
        """Ensure singleton pattern."""
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
        return cls._instance

    @classmethod
    def load_config(cls, config_path: Optional[str] = None) -> Settings:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to configuration file. If None, searches the default
                locations and falls back to built-in defaults.

        Returns:
            Settings object with validated configuration

        Raises:
            FileNotFoundError: If an explicit configuration file is missing
            ValueError: If configuration is invalid
        """
        if cls._settings is not None:
            return cls._settings

        if config_path is None:
            possible_paths = [
                Path(os.getenv("CONFIG_PATH", "config/settings.yaml")),
                Path("config/settings.yaml"),
            ]

            config_path_obj = None
            for path in possible_paths:
                if path.exists():
                    config_path_obj = path
                    break

            if config_path_obj is None:
                logger.warning(
                    f"Configuration file not found in any of: {[str(p) for p in possible_paths]}. "
                    "Using defaults."
                )
                cls._settings = Settings()
                return cls._settings
        else:
            config_path_obj = Path(config_path)
            if not config_path_obj.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")

        logger.info(f"Loading configuration from: {config_path_obj}")

        try:
            with open(config_path_obj, 'r') as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to load YAML configuration: {e}")
            raise ValueError(f"Invalid YAML configuration: {e}") from e

        config_dict = cls._substitute_env_vars(raw_config)

        try:
            cls._settings = Settings(**config_dict)
            logger.info("Configuration loaded and validated successfully")
            return cls._settings
        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            raise ValueError(f"Invalid configuration: {e}") from e

    @classmethod
    def get_settings(cls) -> Settings:
        """
        Get cached settings. Loads from default path if not already loaded.

        Returns:
            Settings object
        """
        if cls._settings is None:
            cls.load_config()
        return cls._settings

    @classmethod
    def _substitute_env_vars(cls, config: Any) -> Any:
        """
        Recursively substitute environment variables in configuration.

        Supports ${VAR_NAME} and ${VAR_NAME:default_value} syntax.

        Args:
            config: Configuration dictionary or value

        Returns:
            Configuration with substituted values
        """
        if isinstance(config, dict):
            return {k: cls._substitute_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [cls._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'

            def replace_var(match):
                var_name = match.group(1)
                default_value = match.group(2) if match.group(2) is not None else ""
                return os.getenv(var_name, default_value)

            return re.sub(pattern, replace_var, config)
        else:
            return config

    @classmethod
    def reload_config(cls, config_path: Optional[str] = None) -> Settings:
        """
        Reload configuration from file.

        Args:
            config_path: Path to configuration file

        Returns:
            Reloaded Settings object
        """
        cls._settings = None
        return cls.load_config(config_path)

    @classmethod
    def reset(cls) -> None:
        """Drop cached settings."""
        cls._settings = None


# =============================================================================
# Convenience Functions
# =============================================================================

def get_settings() -> Settings:
    """
    Get application settings (convenience function).

    Returns:
        Settings object
    """
    return ConfigManager.get_settings()
