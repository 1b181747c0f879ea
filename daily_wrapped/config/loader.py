"""
Configuration management and loading.

Handles scheduling, storage, generation and logging settings.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from daily_wrapped.core.card import DESIGN_COUNT
from daily_wrapped.core.clock import DEFAULT_TIMEZONE
from daily_wrapped.storage.artifacts import DEFAULT_ARTIFACT_DIR
from daily_wrapped.storage.db import DEFAULT_DB_PATH


@dataclass(frozen=True)
class ScheduleConfig:
    """When the daily batch runs, in local wall-clock time."""
    timezone: str = DEFAULT_TIMEZONE
    hour: int = 9
    minute: int = 30

    def __post_init__(self):
        """Validate wall-clock values."""
        if not 0 <= self.hour <= 23:
            raise ValueError("schedule.hour must be between 0 and 23")
        if not 0 <= self.minute <= 59:
            raise ValueError("schedule.minute must be between 0 and 59")
        if not self.timezone:
            raise ValueError("schedule.timezone cannot be empty")


@dataclass(frozen=True)
class StorageConfig:
    """Where snapshots, events and artifacts live."""
    db_path: str = DEFAULT_DB_PATH
    artifact_dir: str = DEFAULT_ARTIFACT_DIR


@dataclass(frozen=True)
class GenerationConfig:
    """Batch generation limits."""
    max_workers: int = 4
    design_count: int = DESIGN_COUNT

    def __post_init__(self):
        """Validate generation limits are positive."""
        if self.max_workers <= 0:
            raise ValueError("generation.max_workers must be > 0")
        if self.design_count <= 0:
            raise ValueError("generation.design_count must be > 0")


@dataclass(frozen=True)
class LoggingConfig:
    """Log verbosity."""
    level: str = "INFO"

    def __post_init__(self):
        """Validate level is a known logging level name."""
        if not isinstance(logging.getLevelName(self.level.upper()), int):
            raise ValueError(f"logging.level must be a logging level name, got {self.level!r}")


@dataclass(frozen=True)
class WrappedConfig:
    """Complete Daily Wrapped configuration."""
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


_SECTION_KEYS = {
    'schedule': {'timezone', 'hour', 'minute'},
    'storage': {'db_path', 'artifact_dir'},
    'generation': {'max_workers', 'design_count'},
    'logging': {'level'},
}


def load_config(path: Optional[str] = None) -> WrappedConfig:
    """Load and validate configuration from a YAML file.

    Every section and key is optional. Unknown keys are rejected so a typo
    cannot silently fall back to a default.

    Args:
        path: Path to YAML configuration file, or None for defaults

    Returns:
        Validated WrappedConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    if path is None:
        return WrappedConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return WrappedConfig()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    unknown_keys = set(raw_config.keys()) - set(_SECTION_KEYS)
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    schedule = _section(raw_config, 'schedule')
    storage = _section(raw_config, 'storage')
    generation = _section(raw_config, 'generation')
    logging_section = _section(raw_config, 'logging')

    return WrappedConfig(
        schedule=ScheduleConfig(
            timezone=_get_str(schedule, 'timezone', 'schedule', DEFAULT_TIMEZONE),
            hour=_get_int(schedule, 'hour', 'schedule', 9),
            minute=_get_int(schedule, 'minute', 'schedule', 30),
        ),
        storage=StorageConfig(
            db_path=_get_str(storage, 'db_path', 'storage', DEFAULT_DB_PATH),
            artifact_dir=_get_str(storage, 'artifact_dir', 'storage', DEFAULT_ARTIFACT_DIR),
        ),
        generation=GenerationConfig(
            max_workers=_get_int(generation, 'max_workers', 'generation', 4),
            design_count=_get_int(generation, 'design_count', 'generation', DESIGN_COUNT),
        ),
        logging=LoggingConfig(
            level=_get_str(logging_section, 'level', 'logging', "INFO"),
        ),
    )


def _section(raw_config: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Extract and validate one top-level section.

    Raises:
        ValueError: If the section is not a mapping or has unknown keys
    """
    data = raw_config.get(name)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")

    unknown_keys = set(data.keys()) - _SECTION_KEYS[name]
    if unknown_keys:
        raise ValueError(f"Unknown {name} keys: {unknown_keys}")
    return data


def _get_int(data: Dict[str, Any], key: str, path: str, default: int) -> int:
    value = data.get(key, default)
    # bool is a subclass of int; "hour: yes" is a mistake
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{key}' in {path} must be an integer")
    return value


def _get_str(data: Dict[str, Any], key: str, path: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"'{key}' in {path} must be a non-empty string")
    return value
