"""
Configuration management for HitScope.

Loads and validates configuration from YAML files with environment
variable interpolation support. Values from a file are merged over the
built-in defaults so partial configuration files are valid.
"""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from hitscope.utils.errors import ConfigurationError


class ConfigManager:
    """
    Manages application configuration loaded from YAML files.

    Features:
    - YAML configuration loading
    - Environment variable interpolation (${VAR_NAME})
    - Nested key access with dot notation
    - Schema validation
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = config_dict or {}
        self._env_pattern = re.compile(r'\$\{([^}]+)\}')

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Create ConfigManager from a YAML file.

        Raises:
            ConfigurationError: If the file is missing, unparseable or
                not a mapping at the top level
        """
        if not file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                config_key=str(file_path)
            )

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML configuration: {e}",
                config_key=str(file_path)
            ) from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                config_key=str(file_path)
            )

        manager = cls(config_dict)
        manager._interpolate_env_vars()
        return manager

    def _interpolate_env_vars(self) -> None:
        """Replace ${ENV_VAR} patterns throughout the configuration."""
        self._config = self._interpolate(self._config)

    def _interpolate(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {key: self._interpolate(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self._interpolate(item) for item in value]
        if isinstance(value, str):
            return self._interpolate_string(value)
        return value

    def _interpolate_string(self, s: str) -> str:
        """Replace ${ENV_VAR} with the variable's value, if it is set."""
        def replace(match: re.Match) -> str:
            value = os.environ.get(match.group(1))
            if value is None:
                return match.group(0)
            return value

        return self._env_pattern.sub(replace, s)

    def get(
        self,
        key: str,
        default: Any = None,
        required: bool = False
    ) -> Any:
        """
        Get configuration value using dot notation.

        Example:
            config.get("analysis.frame_size", default=2048)
            config.get("market.snapshot_path", required=True)

        Raises:
            ConfigurationError: If required key is not found
        """
        value: Any = self._config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                if required:
                    raise ConfigurationError(
                        f"Required configuration key not found: {key}",
                        config_key=key
                    )
                return default

        return value

    def get_section(self, key: str) -> Dict[str, Any]:
        """Return a configuration section, or an empty dict."""
        value = self.get(key, default={})
        if not isinstance(value, dict):
            return {}
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation."""
        keys = key.split('.')
        current = self._config

        for k in keys[:-1]:
            if not isinstance(current.get(k), dict):
                current[k] = {}
            current = current[k]

        current[keys[-1]] = value

    def merge_over(self, base: Dict[str, Any]) -> None:
        """Merge this configuration over ``base``, section by section."""
        self._config = _deep_merge(copy.deepcopy(base), self._config)

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as a (deep) copy."""
        return copy.deepcopy(self._config)

    def validate(self, schema: Dict[str, Any]) -> None:
        """
        Validate configuration against a schema.

        Schema format:
            {
                "analysis.frame_size": {"type": int, "required": True},
                "market.timeout": {"type": (int, float)},
                "market.provider": {"type": str, "choices": ("static", "file", "none")},
            }

        Raises:
            ConfigurationError: If validation fails
        """
        for key, rules in schema.items():
            value = self.get(key)
            expected_type = rules.get("type")

            if value is None:
                if rules.get("required", False):
                    raise ConfigurationError(
                        f"Required configuration missing: {key}",
                        config_key=key
                    )
                continue

            # bool is an int subclass; never accept it for numeric keys
            if expected_type and (
                not isinstance(value, expected_type)
                or (isinstance(value, bool) and expected_type is not bool)
            ):
                type_name = getattr(expected_type, "__name__", str(expected_type))
                raise ConfigurationError(
                    f"Invalid type for {key}: expected {type_name}, "
                    f"got {type(value).__name__}",
                    config_key=key
                )

            choices = rules.get("choices")
            if choices and value not in choices:
                raise ConfigurationError(
                    f"Invalid value for {key}: {value!r} not in {list(choices)}",
                    config_key=key
                )

            minimum = rules.get("min")
            if minimum is not None and value < minimum:
                raise ConfigurationError(
                    f"Invalid value for {key}: {value} < {minimum}",
                    config_key=key
                )

        frame_size = self.get("analysis.frame_size")
        if isinstance(frame_size, int) and frame_size & (frame_size - 1):
            raise ConfigurationError(
                f"analysis.frame_size must be a power of two, got {frame_size}",
                config_key="analysis.frame_size"
            )


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


CONFIG_SCHEMA: Dict[str, Dict[str, Any]] = {
    "audio.max_file_size": {"type": int, "required": True, "min": 1},
    "audio.supported_formats": {"type": list},
    "audio.target_sample_rate": {"type": int, "min": 1},
    "analysis.frame_size": {"type": int, "required": True, "min": 2},
    "analysis.max_frames": {"type": int, "min": 1},
    "analysis.onset_threshold": {"type": (int, float), "min": 0},
    "analysis.rolloff_percent": {"type": (int, float), "min": 0},
    "analysis.beat_tolerance": {"type": (int, float), "min": 0},
    "analysis.harmonic_peak_cap": {"type": int, "min": 1},
    "market.provider": {"type": str, "choices": ("static", "file", "none")},
    "market.snapshot_path": {"type": str},
    "market.timeout": {"type": (int, float), "min": 0},
    "scoring.estimated_confidence_factor": {"type": (int, float), "min": 0},
    "cache.enabled": {"type": bool},
    "cache.max_size": {"type": int, "min": 1},
    "cache.ttl": {"type": int, "min": 0},
    "logging.level": {
        "type": str,
        "choices": ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
    },
    "logging.format": {"type": str, "choices": ("json", "text")},
    "performance.max_workers": {"type": int, "min": 1},
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file, merged over the defaults.

    Args:
        config_path: Optional path to config file.
                    If None, tries "config/config.yaml" and "config.yaml"

    Returns:
        Dict[str, Any]: Validated configuration dictionary

    Raises:
        ConfigurationError: If an explicit path does not exist or the
            merged configuration fails validation
    """
    load_dotenv()

    if config_path is None:
        default_paths = [
            Path("config/config.yaml"),
            Path("config.yaml"),
            Path(__file__).parent.parent.parent / "config" / "config.yaml",
        ]
        for path in default_paths:
            if path.exists():
                config_path = str(path)
                break

    if config_path:
        manager = ConfigManager.from_file(Path(config_path))
        manager.merge_over(get_default_config())
    else:
        manager = ConfigManager(get_default_config())

    manager.validate(CONFIG_SCHEMA)
    return manager.to_dict()


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "audio": {
            "supported_formats": [".wav", ".aiff", ".aif", ".flac", ".ogg", ".mp3"],
            "max_file_size": 209715200,  # 200MB
            "target_sample_rate": None,
        },
        "analysis": {
            "frame_size": 2048,
            "max_frames": None,
            "onset_threshold": 0.1,
            "rolloff_percent": 0.85,
            "beat_tolerance": 0.2,
            "harmonic_peak_cap": 100,
        },
        "market": {
            "provider": "none",
            "snapshot_path": None,
            "timeout": 5.0,
        },
        "scoring": {
            "estimated_confidence_factor": 0.5,
        },
        "cache": {
            "enabled": True,
            "max_size": 256,
            "ttl": 3600,
        },
        "logging": {
            "level": "INFO",
            "format": "text",
            "file": None,
        },
        "performance": {
            "max_workers": 4,
        },
    }
