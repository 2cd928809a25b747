"""Configuration management for FixtureDB."""

from fixturedb.config.config import ConfigManager, get_config, get_config_manager, reset_config_manager

__all__ = ["ConfigManager", "get_config", "get_config_manager", "reset_config_manager"]
