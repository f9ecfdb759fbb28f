"""
Logging utilities for the feature extraction pipeline.

Provides package-wide logging setup and a tracker that records the
timing and counts of each pipeline stage.
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .config import LoggingConfig


ROOT_LOGGER_NAME = "fpfeatures"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(
    config: Optional[LoggingConfig] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    Configure the package root logger.

    Replaces any handlers installed by a previous call, so it is safe to
    call more than once.

    Args:
        config: Logging configuration (defaults when None)
        console_output: Whether to output to stdout

    Returns:
        The configured ``fpfeatures`` logger
    """
    config = config or LoggingConfig()

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, config.level.upper()))
    logger.handlers = []  # Clear existing handlers

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if config.file_output:
        log_dir = Path(config.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        file_handler = logging.FileHandler(log_dir / f"{ROOT_LOGGER_NAME}_{timestamp}.log")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger below the package root.

    Args:
        name: Module or component name; prefixed with ``fpfeatures.``
            unless it already is

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class StageTracker:
    """
    Track elapsed time and metrics of pipeline stages.

    Attributes:
        logger: Logger receiving one line per stage and metric
        stages: Mapping of stage name to list of elapsed seconds
        metrics: Mapping of metric name to list of logged values
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger("pipeline")
        self.stages: Dict[str, List[float]] = {}
        self.metrics: Dict[str, List[Any]] = {}

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """
        Time the enclosed block as one run of stage ``name``.

        The elapsed time is recorded even when the block raises.
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            self.stages.setdefault(name, []).append(elapsed)
            self.logger.info(f"Stage {name} finished in {elapsed:.3f}s")

    def log_metric(self, name: str, value: Any) -> None:
        """
        Log a metric value.

        Args:
            name: Metric name
            value: Metric value
        """
        self.metrics.setdefault(name, []).append(value)
        self.logger.info(f"Metric {name}: {value}")

    def summary(self) -> Dict[str, Any]:
        """Total time per stage and the latest value of every metric."""
        return {
            'stages': {name: sum(times) for name, times in self.stages.items()},
            'metrics': {name: values[-1] for name, values in self.metrics.items()},
        }
