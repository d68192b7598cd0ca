"""
Configuration management for klog.

Handles loading and merging configuration from:
- Built-in defaults
- An optional YAML configuration file
- Environment variables

Configuration is an explicit object: the CLI builds one and derives the
LookupConfig that it passes to every lookup.
"""

import os
import shlex
from typing import Any, Dict, Optional

import yaml

from klog.core.lookup import LookupConfig
from klog.dump import DEFAULT_DUMP_COMMAND, SegmentDumper

DEFAULT_CONFIG: Dict[str, Any] = {
    "log": {
        "root": "/tmp/kafka-logs-0",
    },
    "lookup": {
        "search": "linear",
        "relative_offsets": False,
        "workers": 1,
    },
    "dump": {
        "command": list(DEFAULT_DUMP_COMMAND),
        "timeout": None,
    },
    "logging": {
        "level": "WARNING",
        "format": "console",
    },
}


class Config:
    """Configuration manager for klog."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to a YAML configuration file. If None, only
                defaults and environment overrides apply.
        """
        self._config: Dict[str, Any] = self._deep_merge({}, DEFAULT_CONFIG)

        if config_file:
            self._load_config_file(config_file)

        self._apply_env_overrides()

    def _load_config_file(self, config_file: str) -> None:
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML configuration file
        """
        with open(config_file, "r") as f:
            file_config = yaml.safe_load(f)
        if file_config:
            self._merge_config(file_config)

    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        self._config = self._deep_merge(self._config, new_config)

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two dictionaries.

        Args:
            base: Base dictionary
            override: Override dictionary

        Returns:
            Merged dictionary
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            elif isinstance(value, dict):
                result[key] = self._deep_merge({}, value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        if root := os.getenv("KLOG_ROOT"):
            self.set("log.root", root)

        if command := os.getenv("KLOG_DUMP_COMMAND"):
            self.set("dump.command", shlex.split(command))

        if search := os.getenv("KLOG_SEARCH"):
            self.set("lookup.search", search)

        if log_level := os.getenv("LOG_LEVEL"):
            self.set("logging.level", log_level)

        if log_format := os.getenv("LOG_FORMAT"):
            self.set("logging.format", log_format)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "lookup.search")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self._config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key in dot notation
            value: Value to set
        """
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    def lookup_config(self) -> LookupConfig:
        """
        Build the immutable lookup configuration.

        Returns:
            LookupConfig for lookup_window and lookup_windows

        Raises:
            ValueError: If the configured search strategy is unknown
        """
        return LookupConfig(
            search=self.get("lookup.search", "linear"),
            relative_offsets=bool(self.get("lookup.relative_offsets", False)),
        )

    def lookup_workers(self) -> int:
        """
        Get the number of segments to look up in parallel.

        Returns:
            Worker count from lookup.workers

        Raises:
            ValueError: If the value is not a positive integer
        """
        workers = self.get("lookup.workers", 1)
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise ValueError(f"lookup.workers must be a positive integer, got {workers!r}")
        return workers

    def dumper(self) -> SegmentDumper:
        """Build the dump tool runner from the dump.* settings."""
        return SegmentDumper(
            command=self.get("dump.command", list(DEFAULT_DUMP_COMMAND)),
            timeout=self.get("dump.timeout"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Get entire configuration as dictionary.

        Returns:
            Configuration dictionary
        """
        return self._deep_merge({}, self._config)
