"""
End-to-end minutiae feature extraction pipeline.

Binarization, segmentation and orientation estimation happen upstream;
this pipeline consumes their outputs.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from .minutiae.minutiae_extraction import Minutia, MinutiaeExtractor
from .minutiae.thinning import Thinner, ThinningStats
from .preprocessing.normalization import Normalizer
from .utils.config import Config, DEFAULT_CONFIG
from .utils.logger import StageTracker, get_logger, setup_logging


@dataclass
class ExtractionResult:
    """
    Output of FeatureExtractionPipeline.extract.

    Attributes:
        minutiae: Extracted minutiae in row-major order
        skeleton: The thinned ridge mask
        thinning: Statistics of the thinning run
    """
    minutiae: List[Minutia]
    skeleton: np.ndarray
    thinning: ThinningStats = field(default_factory=ThinningStats)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization (skeleton omitted)."""
        return {
            'minutiae': [m.to_dict() for m in self.minutiae],
            'thinning_iterations': self.thinning.iterations,
            'thinning_removed': self.thinning.total_removed,
        }


class FeatureExtractionPipeline:
    """
    Complete pipeline for minutiae feature extraction.

    Combines:
    - Normalization
    - Thinning
    - Minutiae extraction with noise suppression

    The ``logging`` section of the config is applied only when
    ``setup_logs`` is True; otherwise the caller owns logging setup
    (see ``fpfeatures.utils.setup_logging``).
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        normalizer: Optional[Normalizer] = None,
        thinner: Optional[Thinner] = None,
        extractor: Optional[MinutiaeExtractor] = None,
        tracker: Optional[StageTracker] = None,
        setup_logs: bool = False
    ):
        """
        Initialize pipeline.

        Components not given explicitly are built from ``config``.

        Args:
            config: Pipeline configuration
            normalizer: Normalizer instance
            thinner: Thinner instance
            extractor: MinutiaeExtractor instance
            tracker: StageTracker collecting timings and counts
            setup_logs: Configure the ``fpfeatures`` logger from
                ``config.logging``
        """
        self.config = config or DEFAULT_CONFIG
        if setup_logs:
            setup_logging(self.config.logging)
        self.normalizer = normalizer or Normalizer.from_config(self.config.normalization)
        self.thinner = thinner or Thinner.from_config(self.config.skeleton)
        self.extractor = extractor or MinutiaeExtractor.from_config(
            self.config.minutiae, self.config.parallel
        )
        self.tracker = tracker or StageTracker(get_logger("pipeline"))

    def normalize(self, image: np.ndarray) -> np.ndarray:
        """
        Normalize a raw grayscale image.

        Args:
            image: Input fingerprint image

        Returns:
            Normalized float image
        """
        with self.tracker.stage("normalize"):
            return self.normalizer(image)

    def skeletonize(
        self,
        binary_image: np.ndarray,
        in_place: bool = False
    ) -> Tuple[np.ndarray, ThinningStats]:
        """
        Thin a binary ridge mask.

        Args:
            binary_image: Binary ridge mask
            in_place: Thin ``binary_image`` itself instead of a copy

        Returns:
            Tuple of (skeleton, thinning statistics)
        """
        skeleton = binary_image if in_place else np.asarray(binary_image) > 0

        with self.tracker.stage("skeletonize"):
            stats = self.thinner.process_in_place(skeleton)

        self.tracker.log_metric("thinning_iterations", stats.iterations)
        self.tracker.log_metric("thinning_removed", stats.total_removed)
        return skeleton, stats

    def extract(
        self,
        binary_image: np.ndarray,
        orientation_field: np.ndarray,
        region_mask: Optional[np.ndarray] = None
    ) -> ExtractionResult:
        """
        Thin a ridge mask and extract its minutiae.

        The input mask is left untouched.

        Args:
            binary_image: Binary ridge mask with a background border
            orientation_field: Block orientation field (radians)
            region_mask: Valid fingerprint area (whole image when None)

        Returns:
            ExtractionResult with minutiae, skeleton and thinning stats
        """
        skeleton, stats = self.skeletonize(binary_image)

        with self.tracker.stage("extract_minutiae"):
            minutiae = self.extractor.extract(skeleton, orientation_field, region_mask)

        self.tracker.log_metric("minutiae", len(minutiae))
        return ExtractionResult(minutiae=minutiae, skeleton=skeleton, thinning=stats)
