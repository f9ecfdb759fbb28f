"""
Utility modules for the feature extraction pipeline.
"""

from .config import (
    Config,
    NormalizationConfig,
    SkeletonConfig,
    MinutiaeConfig,
    ParallelConfig,
    LoggingConfig,
    load_config,
    load_yaml,
    merge_configs,
    config_from_dict,
    validate_config,
    DEFAULT_CONFIG
)
from .logger import (
    StageTracker,
    setup_logging,
    get_logger
)
from .iteration import (
    for_each,
    for_each_parallel,
    reduce_sum,
    clamp_region,
    for_each_in,
    for_each_in_parallel,
    reduce_sum_in,
    block_region,
    for_each_block,
    reduce_sum_block
)

__all__ = [
    # Config
    'Config',
    'NormalizationConfig',
    'SkeletonConfig',
    'MinutiaeConfig',
    'ParallelConfig',
    'LoggingConfig',
    'load_config',
    'load_yaml',
    'merge_configs',
    'config_from_dict',
    'validate_config',
    'DEFAULT_CONFIG',
    # Logger
    'StageTracker',
    'setup_logging',
    'get_logger',
    # Iteration
    'for_each',
    'for_each_parallel',
    'reduce_sum',
    'clamp_region',
    'for_each_in',
    'for_each_in_parallel',
    'reduce_sum_in',
    'block_region',
    'for_each_block',
    'reduce_sum_block',
]
