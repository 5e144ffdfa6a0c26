"""
Preprocessing Pipeline
Turns raw images into binary edge images for line detection
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

import numpy as np

from linefinder.detection.types import is_binary
from linefinder.exceptions import ConfigurationError, PreprocessingError, TransformError
from linefinder.preprocessing.transforms import (
    Grayscale, ImageTransform, LaplacianOfGaussianEdges, OtsuBinarize, as_transform,
)

logger = logging.getLogger(__name__)


def default_binarization() -> List[ImageTransform]:
    """Otsu threshold followed by LoG edge detection."""
    return [OtsuBinarize(), LaplacianOfGaussianEdges()]


@dataclass
class PreprocessingReport:
    """Outcome of a preprocessing run."""

    image: np.ndarray
    applied: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    used_fallback: bool = False


class PreprocessingPipeline:
    """Ordered image transforms with per-step fault isolation."""

    def __init__(self, transforms: Optional[Iterable] = None,
                 fallback: Optional[Sequence[ImageTransform]] = None):
        """
        Initialize pipeline.

        Args:
            transforms: ImageTransforms or plain callables, applied left to right
            fallback: Steps applied when the result is not binary
                (default: Otsu binarization then LoG edges)
        """
        self.transforms = [as_transform(step) for step in (transforms or [])]
        self.fallback = list(fallback) if fallback is not None else default_binarization()

    def run(self, image: np.ndarray) -> PreprocessingReport:
        """
        Run all steps on ``image``.

        Failing steps are skipped with a warning. A non-binary result goes
        through the fallback binarization. Any image that is already binary
        (bool, or numeric with values in {0, 1} or {0, 255}) is taken as an
        edge map and skips the fallback.

        Args:
            image: Grayscale, BGR or binary image

        Returns:
            PreprocessingReport whose ``image`` is binary

        Raises:
            ConfigurationError: if ``image`` is not a 2-D or 3-D array
            PreprocessingError: if no binary image could be produced
        """
        if not isinstance(image, np.ndarray) or image.ndim not in (2, 3):
            raise ConfigurationError("Expected a 2-D grayscale or 3-D color image array")

        report = PreprocessingReport(image=image)
        current = image
        if current.ndim == 3:
            try:
                current = Grayscale()(current)
                report.applied.append("Grayscale")
            except TransformError as e:
                raise PreprocessingError(str(e)) from e

        for step in self.transforms:
            try:
                current = step(current)
            except TransformError as e:
                message = f"Skipping preprocessing step {step.name}: {e}"
                logger.warning(message)
                report.warnings.append(message)
                continue
            report.applied.append(step.name)

        if not is_binary(current):
            logger.debug("Preprocessed image is not binary, applying default binarization")
            report.used_fallback = True
            for step in self.fallback:
                try:
                    current = step(current)
                except TransformError as e:
                    raise PreprocessingError(f"Default binarization failed: {e}") from e
                report.applied.append(step.name)
            if not is_binary(current):
                raise PreprocessingError(
                    "Preprocessing did not produce a binary image; check the configured transforms")

        report.image = current.astype(bool)
        return report


def preprocess(image: np.ndarray, transforms: Optional[Iterable] = None) -> np.ndarray:
    """Convenience function returning only the binary image."""
    return PreprocessingPipeline(transforms).run(image).image
