#!/usr/bin/env python3

"""
Configuration management for the transcript unification pipeline.

Centralized configuration with support for JSON/YAML files and environment
variable overrides.
"""

import os
import json
from dataclasses import dataclass, asdict, field
from typing import Optional, Dict, Any, List

import yaml

from .exceptions import ConfigurationError


DEFAULT_TOP_LEVEL_FEATURES = [
    'gene', 'region', 'chromosome', 'contig', 'scaffold', 'supercontig',
    'biological_region',
]


def read_config_file(config_path: str) -> Dict[str, Any]:
    """Read a JSON or YAML configuration file into a dictionary."""
    if not os.path.exists(config_path):
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            if config_path.lower().endswith(('.yaml', '.yml')):
                config_data = yaml.safe_load(f)
            else:
                config_data = json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Invalid configuration file format: {e}")
    except OSError as e:
        raise ConfigurationError(f"Error loading configuration: {e}")

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")
    return config_data


def _parse_bool(value: str) -> bool:
    return value.lower() in ('true', '1', 'yes')


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


@dataclass
class UnificationConfig:
    """Centralized configuration for the transcript unification pipeline."""

    # Scheduling
    parallel_workers: int = 1
    batch_size: int = 100000  # lines between memory checks

    # Identity
    include_cds_in_key: bool = False
    top_level_features: List[str] = field(default_factory=lambda: list(DEFAULT_TOP_LEVEL_FEATURES))

    # Output settings
    attribute_name: str = "tuni_id"
    id_prefix: str = "tuni_"
    output_tag: str = "tuni"
    overwrite: bool = True
    write_mapping: bool = False

    # I/O
    io_retries: int = 2
    io_retry_delay: float = 0.5  # seconds

    # Monitoring
    memory_limit_mb: int = 8192
    enable_memory_monitoring: bool = True

    # Logging
    log_file: Optional[str] = None
    debug_mode: bool = False

    @classmethod
    def from_file(cls, config_path: str) -> 'UnificationConfig':
        """Load configuration from file (JSON or YAML)."""
        return cls.from_dict(read_config_file(config_path))

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'UnificationConfig':
        """Create configuration from dictionary."""
        # Filter out unknown keys
        known_keys = set(cls.__dataclass_fields__.keys())
        filtered_dict = {k: v for k, v in config_dict.items() if k in known_keys}

        try:
            return cls(**filtered_dict)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration parameters: {e}")

    @classmethod
    def from_env(cls) -> 'UnificationConfig':
        """Load configuration from environment variables."""
        config = cls()

        env_mappings = {
            'TUNI_PARALLEL_WORKERS': ('parallel_workers', int),
            'TUNI_BATCH_SIZE': ('batch_size', int),
            'TUNI_INCLUDE_CDS_IN_KEY': ('include_cds_in_key', _parse_bool),
            'TUNI_TOP_LEVEL_FEATURES': ('top_level_features', _parse_list),
            'TUNI_OVERWRITE': ('overwrite', _parse_bool),
            'TUNI_IO_RETRIES': ('io_retries', int),
            'TUNI_IO_RETRY_DELAY': ('io_retry_delay', float),
            'TUNI_MEMORY_LIMIT_MB': ('memory_limit_mb', int),
            'TUNI_LOG_FILE': ('log_file', str),
            'TUNI_DEBUG_MODE': ('debug_mode', _parse_bool),
        }

        for env_var, (field_name, converter) in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value:
                try:
                    setattr(config, field_name, converter(env_value))
                except (ValueError, TypeError) as e:
                    raise ConfigurationError(f"Invalid environment variable {env_var}: {e}")

        config.validate()
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def save_to_file(self, config_path: str) -> None:
        """Save configuration to file."""
        config_dict = self.to_dict()

        try:
            with open(config_path, 'w') as f:
                if config_path.lower().endswith(('.yaml', '.yml')):
                    yaml.safe_dump(config_dict, f, default_flow_style=False)
                else:
                    json.dump(config_dict, f, indent=2)
        except OSError as e:
            raise ConfigurationError(f"Error saving configuration: {e}")

    def validate(self) -> None:
        """Validate configuration parameters."""
        if self.parallel_workers < 1:
            raise ConfigurationError("parallel_workers must be >= 1")

        if self.batch_size < 1:
            raise ConfigurationError("batch_size must be >= 1")

        if self.io_retries < 0:
            raise ConfigurationError("io_retries must be >= 0")

        if self.io_retry_delay < 0:
            raise ConfigurationError("io_retry_delay must be >= 0")

        if self.memory_limit_mb < 100:
            raise ConfigurationError("memory_limit_mb must be >= 100")

        if not self.attribute_name or any(c in self.attribute_name for c in ' \t;="'):
            raise ConfigurationError(f"attribute_name is not a valid GTF key: {self.attribute_name!r}")

        if any(c in self.id_prefix for c in '\t;"'):
            raise ConfigurationError(f"id_prefix contains reserved characters: {self.id_prefix!r}")

        if not self.output_tag or '/' in self.output_tag or os.sep in self.output_tag:
            raise ConfigurationError(f"output_tag must be a plain file name component: {self.output_tag!r}")

        if isinstance(self.top_level_features, str):
            raise ConfigurationError("top_level_features must be a list of feature types")

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()


def load_config(config_path: Optional[str] = None,
                use_env: bool = True) -> UnificationConfig:
    """
    Load configuration with priority: file > environment > defaults.

    Args:
        config_path: Path to configuration file (optional)
        use_env: Whether to load environment variables

    Returns:
        UnificationConfig: Loaded configuration
    """
    config = UnificationConfig()

    if use_env:
        env_config = UnificationConfig.from_env()
        for field_name in UnificationConfig.__dataclass_fields__:
            env_value = getattr(env_config, field_name)
            if env_value != getattr(config, field_name):
                setattr(config, field_name, env_value)

    if config_path:
        file_data = read_config_file(config_path)
        file_config = UnificationConfig.from_dict(file_data)
        # Only keys present in the file override earlier layers
        for field_name in UnificationConfig.__dataclass_fields__:
            if field_name in file_data:
                setattr(config, field_name, getattr(file_config, field_name))

    config.validate()
    return config
