"""Configuration management for FixtureDB."""

import os
from pathlib import Path
from typing import Any, Optional, get_origin

import yaml
from loguru import logger
from pydantic import BaseModel, ValidationError

from fixturedb.core.exceptions import ConfigError
from fixturedb.models.config import FixtureDBConfig


class ConfigManager:
    """Manages FixtureDB configuration with YAML and environment variable support."""

    CONFIG_FILE_NAME = "fixturedb.yaml"
    ENV_PREFIX = "FIXTUREDB_"

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to configuration file.
                        If not provided, uses ~/.fixturedb/fixturedb.yaml
        """
        # Respect FIXTUREDB_HOME_DIR environment variable
        self.base_path = Path(os.environ.get("FIXTUREDB_HOME_DIR", str(Path.home() / ".fixturedb")))
        self.config_path = config_path or self.base_path / self.CONFIG_FILE_NAME
        self._config: Optional[FixtureDBConfig] = None

    def load(self) -> FixtureDBConfig:
        """Load configuration from YAML file and environment variables.

        Configuration precedence:
        1. Default values (from Pydantic models)
        2. YAML file values
        3. Environment variables (highest priority)

        Returns:
            FixtureDBConfig: Loaded configuration

        Raises:
            ConfigError: If configuration is invalid
        """
        if self._config is not None:
            return self._config

        config_dict: dict[str, Any] = {}

        if self.config_path.exists():
            try:
                config_dict = self._load_yaml()
            except Exception as e:
                raise ConfigError(f"Failed to load configuration from {self.config_path}: {e}") from e

        # Apply environment variables (override YAML)
        config_dict = self._apply_environment_variables(config_dict)

        try:
            self._config = FixtureDBConfig(**config_dict)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        return self._config

    def save(self, config: FixtureDBConfig, path: Optional[Path] = None) -> None:
        """Save configuration to YAML file.

        Args:
            config: Configuration to save
            path: Optional path to save to (defaults to config_path)

        Raises:
            ConfigError: If save fails
        """
        save_path = path or self.config_path

        try:
            save_path.parent.mkdir(parents=True, exist_ok=True)
            config_dict = config.model_dump(exclude_defaults=True)

            with save_path.open("w") as f:
                yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

        except Exception as e:
            raise ConfigError(f"Failed to save configuration to {save_path}: {e}") from e

    def _load_yaml(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with self.config_path.open() as f:
            return yaml.safe_load(f) or {}

    def _apply_environment_variables(self, config_dict: dict[str, Any]) -> dict[str, Any]:
        """Apply environment variables to configuration.

        Environment variables follow the pattern:
        FIXTUREDB_<SECTION>_<KEY> or FIXTUREDB_<SECTION>_<SUBSECTION>_<KEY>.
        Underscores inside key names are matched against the model fields,
        so the longest matching field name wins.

        Examples:
        - FIXTUREDB_DRIVERS_TEST_DRIVERS=sqlite,postgres
        - FIXTUREDB_PERFORMANCE_BATCH_SIZE=500
        - FIXTUREDB_DATABASE_SQLITE_JOURNAL_MODE=WAL
        - FIXTUREDB_DRIVERS_MODULES_MYSQL=my_plugin.test_extensions
        """
        for env_key, env_value in os.environ.items():
            if not env_key.startswith(self.ENV_PREFIX):
                continue

            parts = env_key[len(self.ENV_PREFIX):].lower().split("_")
            if not self._set_from_env(config_dict, FixtureDBConfig, parts, env_value):
                logger.debug(f"Ignoring unknown configuration variable {env_key}")

        return config_dict

    def _set_from_env(
        self, current: dict[str, Any], model: type[BaseModel], parts: list[str], env_value: str
    ) -> bool:
        """Set ``env_value`` at the field path spelled by ``parts``."""
        for end in range(len(parts), 0, -1):
            field_name = "_".join(parts[:end])
            field = model.model_fields.get(field_name)
            if field is None:
                continue

            rest = parts[end:]
            annotation = field.annotation
            if isinstance(annotation, type) and issubclass(annotation, BaseModel):
                if not rest:
                    return False
                section = current.setdefault(field_name, {})
                if not isinstance(section, dict):
                    return False
                return self._set_from_env(section, annotation, rest, env_value)

            if get_origin(annotation) is dict:
                if not rest:
                    return False
                mapping = current.setdefault(field_name, {})
                mapping["_".join(rest)] = self._convert_env_value(env_value)
                return True

            if rest:
                continue
            current[field_name] = self._convert_env_value(env_value)
            return True

        return False

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable string to appropriate type."""
        # Boolean
        if value.lower() in ("true", "false"):
            return value.lower() == "true"

        # List (comma-separated) - check this before numbers
        if "," in value:
            return [v.strip() for v in value.split(",")]

        # Integer
        try:
            return int(value)
        except ValueError:
            pass

        # String
        return value

    @property
    def config(self) -> FixtureDBConfig:
        """Get current configuration (load if necessary)."""
        if self._config is None:
            self._config = self.load()
        return self._config


# Global configuration instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def reset_config_manager() -> None:
    """Reset configuration manager (useful for testing)."""
    global _config_manager
    _config_manager = None


def get_config() -> FixtureDBConfig:
    """Get current configuration."""
    return get_config_manager().config
