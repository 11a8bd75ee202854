"""Configuration loading and validation utilities for the heal plugin."""

import dataclasses
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from .models.healing_models import HealConfiguration, DEFAULT_HEAL_STEPS
from .config import settings

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


class HealConfigLoader:
    """Loads and validates heal plugin configuration."""

    DEFAULT_CONFIG = {
        "self_healing": {
            "enabled": True,
            "heal_limit": 10,
            "heal_steps": list(DEFAULT_HEAL_STEPS),
            "html_context": {
                "chunk_size": 50000
            },
            "scenario_rewrite": {
                "enabled": True,
                "create_backup": True,
                "backup_retention_days": 7
            }
        }
    }

    def __init__(self, config_path: Optional[str] = None):
        """Initialize config loader with optional custom path."""
        self.config_path = Path(config_path or settings.HEAL_CONFIG_PATH)
        self._config_cache: Optional[HealConfiguration] = None
        self._config_file_mtime: Optional[float] = None

    def load_config(self, force_reload: bool = False) -> HealConfiguration:
        """Load and validate heal configuration.

        Args:
            force_reload: Force reload even if cached config exists

        Returns:
            HealConfiguration: Validated configuration object

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not force_reload and self._config_cache and self._is_config_current():
            return self._config_cache

        try:
            config_data = self._load_config_file()
            heal_config = self._parse_heal_config(config_data)
            self._validate_config(heal_config)

            self._config_cache = heal_config
            if self.config_path.exists():
                self._config_file_mtime = self.config_path.stat().st_mtime

            logger.info(f"Loaded heal configuration from {self.config_path}")
            return heal_config

        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Failed to load heal configuration: {e}")
            raise ConfigurationError(f"Configuration loading failed: {e}") from e

    def save_config(self, config: HealConfiguration) -> None:
        """Save configuration to file.

        Raises:
            ConfigurationError: If saving fails
        """
        self._validate_config(config)
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

            config_data = {
                "self_healing": self._config_to_dict(config)
            }

            with open(self.config_path, 'w', encoding='utf-8') as f:
                yaml.dump(config_data, f, default_flow_style=False, indent=2)

            self._config_cache = config
            self._config_file_mtime = self.config_path.stat().st_mtime

            logger.info(f"Saved heal configuration to {self.config_path}")

        except Exception as e:
            logger.error(f"Failed to save heal configuration: {e}")
            raise ConfigurationError(f"Configuration saving failed: {e}") from e

    def _load_config_file(self) -> Dict[str, Any]:
        """Load configuration from file or return defaults."""
        if not self.config_path.exists():
            logger.info(f"Config file {self.config_path} not found, using defaults")
            return self._deep_merge(self.DEFAULT_CONFIG, {})

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read config file: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError("Config file must contain a mapping at the top level")

        # Merge with defaults to ensure all keys exist
        return self._deep_merge(self.DEFAULT_CONFIG, config_data)

    def _parse_heal_config(self, config_data: Dict[str, Any]) -> HealConfiguration:
        """Parse configuration data into a HealConfiguration object."""
        section = config_data.get("self_healing") or {}
        html_context = section.get("html_context") or {}
        scenario_rewrite = section.get("scenario_rewrite") or {}

        heal_steps = section.get("heal_steps", list(DEFAULT_HEAL_STEPS))
        if isinstance(heal_steps, str) or not isinstance(heal_steps, (list, tuple)):
            raise ConfigurationError("heal_steps must be a list of step names")

        try:
            return HealConfiguration(
                enabled=bool(section.get("enabled", True)),
                heal_limit=int(section.get("heal_limit", 10)),
                heal_steps=tuple(str(s) for s in heal_steps),
                html_chunk_size=int(html_context.get("chunk_size", 50000)),
                rewrite_scenarios=bool(scenario_rewrite.get("enabled", True)),
                backup_scenarios=bool(scenario_rewrite.get("create_backup", True)),
                backup_retention_days=int(scenario_rewrite.get("backup_retention_days", 7))
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e

    def _config_to_dict(self, config: HealConfiguration) -> Dict[str, Any]:
        """Convert HealConfiguration to the nested file structure."""
        return {
            "enabled": config.enabled,
            "heal_limit": config.heal_limit,
            "heal_steps": list(config.heal_steps),
            "html_context": {
                "chunk_size": config.html_chunk_size
            },
            "scenario_rewrite": {
                "enabled": config.rewrite_scenarios,
                "create_backup": config.backup_scenarios,
                "backup_retention_days": config.backup_retention_days
            }
        }

    def _validate_config(self, config: HealConfiguration) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If validation fails
        """
        errors = []

        if config.heal_limit < 1 or config.heal_limit > 100:
            errors.append("heal_limit must be between 1 and 100")

        if config.html_chunk_size < 1000 or config.html_chunk_size > 1_000_000:
            errors.append("html_chunk_size must be between 1000 and 1000000 characters")

        if config.backup_retention_days < 1 or config.backup_retention_days > 365:
            errors.append("backup_retention_days must be between 1 and 365")

        if not config.heal_steps:
            errors.append("At least one healable step must be specified")

        if len(config.heal_steps) != len(set(config.heal_steps)):
            errors.append("Duplicate heal steps are not allowed")

        if errors:
            raise ConfigurationError(
                "Configuration validation failed: " + "; ".join(errors))

    def _is_config_current(self) -> bool:
        """Check if cached config is still current."""
        if not self.config_path.exists():
            return self._config_file_mtime is None

        current_mtime = self.config_path.stat().st_mtime
        return self._config_file_mtime == current_mtime

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = {k: (self._deep_merge(v, {}) if isinstance(v, dict) else v) for k, v in base.items()}

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def get_heal_config(config_path: Optional[str] = None, force_reload: bool = False) -> HealConfiguration:
    """Get the heal plugin configuration.

    The AI_HEALING setting overrides the file's ``enabled`` flag when off.
    """
    config = HealConfigLoader(config_path).load_config(force_reload)
    if not settings.AI_HEALING:
        return dataclasses.replace(config, enabled=False)
    return config


def create_default_config_file(config_path: Optional[str] = None) -> Path:
    """Create a default configuration file if it doesn't exist."""
    loader = HealConfigLoader(config_path)
    if not loader.config_path.exists():
        loader.save_config(HealConfiguration())
        logger.info(f"Created default heal config at {loader.config_path}")
    return loader.config_path
