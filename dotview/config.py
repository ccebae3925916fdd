"""
Config system - Layered configuration for the template engine.

Merge order (later overrides earlier):
    config files (YAML/JSON) < .env file < DV_* environment variables < overrides
"""

from typing import Any, Dict, List, Optional
from pathlib import Path
import json
import logging
import os

import yaml
from dotenv import dotenv_values

from dotview.templates.config import TemplateConfig

logger = logging.getLogger("dotview.config")


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or validated."""
    pass


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env file > config files > defaults
    """

    def __init__(self, env_prefix: str = "DV_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[List[str]] = None,
        env_prefix: str = "DV_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from multiple sources.

        Args:
            paths: Config file paths (glob patterns supported)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Configured ConfigLoader instance

        Raises:
            ConfigError: A config file is unreadable or not a mapping
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or []:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        from glob import glob

        matches = sorted(glob(pattern))
        if not matches and not any(ch in pattern for ch in "*?["):
            raise ConfigError(f"Config file not found: {pattern}")

        for path_str in matches:
            path = Path(path_str)
            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)
            else:
                logger.warning(f"Ignoring config file with unknown type: {path}")

    def _load_json_file(self, path: Path):
        """Load config from JSON file."""
        try:
            with open(path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        self._merge_file_data(path, data)

    def _load_yaml_file(self, path: Path):
        """Load config from YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        self._merge_file_data(path, data)

    def _merge_file_data(self, path: Path, data: Any):
        if data is None:
            return
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        self._merge_dict(self.config_data, data)
        logger.debug(f"Loaded config from {path}")

    def _load_env_file(self, path: str):
        """Load prefixed keys from a .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return

        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert DV_TEMPLATES__VIEWS_DIR to nested dict."""
        key = key[len(self.env_prefix):]

        # Double underscore separates nesting levels
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def get_template_config(self) -> TemplateConfig:
        """
        Template engine configuration from the ``templates`` section.

        Raises:
            ConfigError: Section is not a mapping or holds invalid values
        """
        section = self.get("templates", {})
        if not isinstance(section, dict):
            raise ConfigError("'templates' config section must be a mapping")

        config = TemplateConfig.from_dict(section)
        if not isinstance(config.max_layout_depth, int) or config.max_layout_depth < 1:
            raise ConfigError(
                f"templates.max_layout_depth must be a positive integer, got {config.max_layout_depth!r}"
            )
        if not isinstance(config.cache_size, int) or config.cache_size < 1:
            raise ConfigError(
                f"templates.cache_size must be a positive integer, got {config.cache_size!r}"
            )
        return config

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.config_data)
