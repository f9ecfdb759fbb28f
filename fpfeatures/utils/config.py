"""
Configuration management for the feature extraction pipeline.

This module provides utilities for loading, validating, and accessing
pipeline parameters from YAML files.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union
import yaml

from ..exceptions import ConfigurationError


@dataclass
class NormalizationConfig:
    """Target intensity statistics of the normalized image."""
    target_mean: float = 100.0
    target_variance: float = 100.0


@dataclass
class SkeletonConfig:
    """Configuration for iterative thinning."""
    max_iterations: int = 7


@dataclass
class MinutiaeConfig:
    """
    Configuration for minutiae extraction.

    Attributes:
        min_wavelength: Expected ridge period in pixels; sizes both the
            exclusion zone and the noise window
        block_size: Pixels per orientation block
        noise_threshold: Window counts above this mark a region noisy
    """
    min_wavelength: int = 8
    block_size: int = 16
    noise_threshold: int = 4


@dataclass
class ParallelConfig:
    """Configuration for row-parallel traversal."""
    num_workers: Optional[int] = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    log_dir: str = "logs"
    file_output: bool = False


@dataclass
class Config:
    """
    Main configuration container for the feature extraction pipeline.

    Attributes:
        normalization: Normalizer targets
        skeleton: Thinning settings
        minutiae: Minutiae extraction settings
        parallel: Worker pool settings
        logging: Logging configuration
        extra: Unrecognized top-level sections, kept verbatim
    """
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)
    skeleton: SkeletonConfig = field(default_factory=SkeletonConfig)
    minutiae: MinutiaeConfig = field(default_factory=MinutiaeConfig)
    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extra: Dict[str, Any] = field(default_factory=dict)


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: Path to the YAML file

    Returns:
        Dictionary containing the configuration

    Raises:
        FileNotFoundError: If the configuration file does not exist
        yaml.YAMLError: If the YAML file is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, 'r') as f:
        return yaml.safe_load(f) or {}


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two configuration dictionaries.

    The override dictionary values take precedence over base values.

    Args:
        base: Base configuration dictionary
        override: Override configuration dictionary

    Returns:
        Merged configuration dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def validate_config(config: Config) -> Config:
    """
    Check that every parameter lies in its valid range.

    Args:
        config: Configuration to check

    Returns:
        The same configuration object

    Raises:
        ConfigurationError: On the first invalid value found
    """
    if config.normalization.target_variance < 0:
        raise ConfigurationError(
            f"target_variance must be >= 0, got {config.normalization.target_variance}"
        )
    if config.skeleton.max_iterations < 1:
        raise ConfigurationError(
            f"max_iterations must be >= 1, got {config.skeleton.max_iterations}"
        )
    if config.minutiae.min_wavelength < 1:
        raise ConfigurationError(
            f"min_wavelength must be >= 1, got {config.minutiae.min_wavelength}"
        )
    if config.minutiae.block_size < 1:
        raise ConfigurationError(
            f"block_size must be >= 1, got {config.minutiae.block_size}"
        )
    if config.minutiae.noise_threshold < 0:
        raise ConfigurationError(
            f"noise_threshold must be >= 0, got {config.minutiae.noise_threshold}"
        )
    workers = config.parallel.num_workers
    if workers is not None and workers < 1:
        raise ConfigurationError(f"num_workers must be >= 1, got {workers}")
    return config


def config_from_dict(config_dict: Dict[str, Any]) -> Config:
    """
    Build a validated Config from a plain dictionary.

    Args:
        config_dict: Parsed configuration (e.g. from YAML)

    Returns:
        Config object with loaded settings
    """
    config_dict = dict(config_dict)

    # Extract standard configuration sections
    normalization_dict = config_dict.pop('normalization', None) or {}
    skeleton_dict = config_dict.pop('skeleton', None) or {}
    minutiae_dict = config_dict.pop('minutiae', None) or {}
    parallel_dict = config_dict.pop('parallel', None) or {}
    logging_dict = config_dict.pop('logging', None) or {}

    # Build configuration objects
    normalization_config = NormalizationConfig(
        target_mean=float(normalization_dict.get('target_mean', 100.0)),
        target_variance=float(normalization_dict.get('target_variance', 100.0))
    )

    skeleton_config = SkeletonConfig(
        max_iterations=int(skeleton_dict.get('max_iterations', 7))
    )

    minutiae_config = MinutiaeConfig(
        min_wavelength=int(minutiae_dict.get('min_wavelength', 8)),
        block_size=int(minutiae_dict.get('block_size', 16)),
        noise_threshold=int(minutiae_dict.get('noise_threshold', 4))
    )

    num_workers = parallel_dict.get('num_workers')
    parallel_config = ParallelConfig(
        num_workers=None if num_workers is None else int(num_workers)
    )

    logging_config = LoggingConfig(
        level=logging_dict.get('level', 'INFO'),
        log_dir=logging_dict.get('log_dir', 'logs'),
        file_output=logging_dict.get('file_output', False)
    )

    return validate_config(Config(
        normalization=normalization_config,
        skeleton=skeleton_config,
        minutiae=minutiae_config,
        parallel=parallel_config,
        logging=logging_config,
        extra=config_dict
    ))


def load_config(
    config_path: Union[str, Path],
    base_config_path: Optional[Union[str, Path]] = None
) -> Config:
    """
    Load configuration from YAML files.

    Optionally merges with a base configuration file.

    Args:
        config_path: Path to the main configuration file
        base_config_path: Optional path to base configuration to merge with

    Returns:
        Config object with loaded settings

    Raises:
        FileNotFoundError: If a configuration file does not exist
        ConfigurationError: If a value is out of range
    """
    config_dict = load_yaml(config_path)

    if base_config_path is not None:
        base_dict = load_yaml(base_config_path)
        config_dict = merge_configs(base_dict, config_dict)

    return config_from_dict(config_dict)


# Default configuration instance
DEFAULT_CONFIG = Config()
