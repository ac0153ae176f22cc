#!/usr/bin/env python3

"""
Configuration management for the transcript selection pipeline.

Centralized configuration with support for file-based configuration
and environment variable overrides. All thresholds used by the filters
have their defaults here and nowhere else.
"""

import os
import json
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any

import yaml

from .exceptions import ConfigurationError


def _parse_bool(value: str) -> bool:
    return value.lower() in ('true', '1', 'yes')


def read_config_file(config_path: str) -> Dict[str, Any]:
    """Read the raw settings mapping from a JSON or YAML file."""
    if not os.path.exists(config_path):
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            if config_path.lower().endswith(('.yaml', '.yml')):
                config_data = yaml.safe_load(f)
            else:
                config_data = json.load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML configuration file format: {e}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid configuration file format: {e}")
    except OSError as e:
        raise ConfigurationError(f"Error loading configuration: {e}")

    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")

    return config_data


@dataclass
class PipelineConfig:
    """Centralized configuration for the transcript selection pipeline."""

    # Coordinate consistency
    position_tolerance: int = 10
    confident_end_tolerance: int = 2
    min_putative_cds_length: int = 200
    cds_len_ratio: float = 0.4
    cdna_len_ratio: float = 0.5
    include_putative: bool = False
    # Added to the translated CDS end (e.g. 3 when the external ORF end includes the stop codon)
    stop_codon_adjustment: int = 0

    # Overlap
    window_size: int = 1000

    # Optional CDS/cDNA ratio filter
    enable_cds_cdna_filter: bool = False
    min_cds_cdna_ratio: float = 0.4

    # Output settings
    output_all_stages: bool = False
    output_source: str = "gts"

    # Performance settings
    memory_limit_mb: int = 4096
    enable_memory_monitoring: bool = True

    debug_mode: bool = False

    @classmethod
    def from_file(cls, config_path: str) -> 'PipelineConfig':
        """Load configuration from file (JSON or YAML)."""
        return cls.from_dict(read_config_file(config_path))

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'PipelineConfig':
        """Create configuration from dictionary."""
        # Filter out unknown keys
        known_keys = set(cls.__dataclass_fields__.keys())
        filtered_dict = {k: v for k, v in config_dict.items() if k in known_keys}

        try:
            return cls(**filtered_dict)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration parameters: {e}")

    @classmethod
    def from_env(cls) -> 'PipelineConfig':
        """Load configuration from environment variables."""
        config = cls()

        env_mappings = {
            'GTS_POSITION_TOLERANCE': ('position_tolerance', int),
            'GTS_CONFIDENT_END_TOLERANCE': ('confident_end_tolerance', int),
            'GTS_MIN_PUTATIVE_CDS_LENGTH': ('min_putative_cds_length', int),
            'GTS_CDS_LEN_RATIO': ('cds_len_ratio', float),
            'GTS_CDNA_LEN_RATIO': ('cdna_len_ratio', float),
            'GTS_INCLUDE_PUTATIVE': ('include_putative', _parse_bool),
            'GTS_STOP_CODON_ADJUSTMENT': ('stop_codon_adjustment', int),
            'GTS_WINDOW_SIZE': ('window_size', int),
            'GTS_MEMORY_LIMIT_MB': ('memory_limit_mb', int),
            'GTS_DEBUG_MODE': ('debug_mode', _parse_bool),
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
        if self.position_tolerance < 0:
            raise ConfigurationError("position_tolerance must be >= 0")

        if self.confident_end_tolerance < 0:
            raise ConfigurationError("confident_end_tolerance must be >= 0")

        if self.min_putative_cds_length < 0:
            raise ConfigurationError("min_putative_cds_length must be >= 0")

        for name in ('cds_len_ratio', 'cdna_len_ratio', 'min_cds_cdna_ratio'):
            if not 0 <= getattr(self, name) <= 1:
                raise ConfigurationError(f"{name} must be between 0 and 1 (inclusive)")

        if self.window_size < 0:
            raise ConfigurationError("window_size must be >= 0")

        if self.memory_limit_mb < 100:
            raise ConfigurationError("memory_limit_mb must be >= 100")

        if not self.output_source or '\t' in self.output_source:
            raise ConfigurationError("output_source must be a non-empty string without tabs")

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()


def load_config(config_path: Optional[str] = None,
                use_env: bool = True) -> PipelineConfig:
    """
    Load configuration with priority: file > environment > defaults.

    Args:
        config_path: Path to configuration file (optional)
        use_env: Whether to load environment variables

    Returns:
        PipelineConfig: Loaded configuration
    """
    config = PipelineConfig()

    if use_env:
        env_config = PipelineConfig.from_env()
        for field_name in PipelineConfig.__dataclass_fields__:
            env_value = getattr(env_config, field_name)
            if env_value != getattr(config, field_name):
                setattr(config, field_name, env_value)

    if config_path:
        # Only the keys present in the file override env and defaults
        merged = config.to_dict()
        merged.update(read_config_file(config_path))
        config = PipelineConfig.from_dict(merged)

    return config
