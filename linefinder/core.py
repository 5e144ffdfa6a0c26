"""
linefinder Core
Hough line detection entry points and the reusable detection session
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import numpy as np

from linefinder.config import DetectionConfig, load_config
from linefinder.detection.hough_transform import HoughTransformer
from linefinder.detection.line_extractor import LineExtractor
from linefinder.detection.peak_detector import PeakDetector
from linefinder.detection.types import HoughSpace, LineSegment, Peak, as_binary_image
from linefinder.exceptions import SessionStateError
from linefinder.preprocessing.pipeline import PreprocessingPipeline, PreprocessingReport
from linefinder.utils.metrics import PerformanceMetrics
from linefinder.utils.visualization import LineStyle, SegmentOverlay, create_overlays

__version__ = "1.0.0"

logger = logging.getLogger(__name__)


@dataclass
class DetectionResult:
    """Everything computed by one detection run."""

    hough: HoughSpace
    peaks: List[Peak]
    segments: List[LineSegment]
    threshold: float
    nhood_size: Tuple[int, int]
    config: DetectionConfig
    timings_ms: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready summary (the accumulator itself is left out)."""
        return {
            "version": __version__,
            "config": self.config.to_dict(),
            "threshold": self.threshold,
            "nhood_size": list(self.nhood_size),
            "peaks": [
                {
                    "rho_index": p.rho_index,
                    "theta_index": p.theta_index,
                    "rho": float(self.hough.rhos[p.rho_index]),
                    "theta": float(self.hough.thetas[p.theta_index]),
                    "votes": p.votes,
                }
                for p in self.peaks
            ],
            "segments": [s.to_dict() for s in self.segments],
            "processing_metadata": {
                "accumulator_shape": list(self.hough.shape),
                "timings_ms": {k: round(v, 3) for k, v in self.timings_ms.items()},
            },
        }


def detect(image: np.ndarray, config: Optional[DetectionConfig] = None,
           n_workers: int = 1) -> DetectionResult:
    """
    Detect line segments in a binary image.

    Always recomputes the accumulator, peaks and segments from the inputs.

    Args:
        image: Binary image (bool, {0, 1} or {0, 255})
        config: Detection parameters, a mapping, or a YAML path (optional)
        n_workers: Threads for the vote and extraction stages

    Returns:
        DetectionResult

    Raises:
        ConfigurationError: on invalid parameters or a non-binary image
    """
    config = load_config(config)
    binary = as_binary_image(image)
    effective = config.resolve(binary.shape)
    metrics = PerformanceMetrics()

    metrics.start_timer("hough")
    transformer = HoughTransformer(
        theta_min=effective.theta_min,
        theta_max=effective.theta_max,
        theta_step=effective.theta_step,
        rho_resolution=effective.rho_resolution,
        n_workers=n_workers,
    )
    hough = transformer.transform(binary)
    metrics.stop_timer("hough")

    metrics.start_timer("peaks")
    peak_detector = PeakDetector(
        num_peaks=effective.num_peaks,
        threshold=effective.threshold,
        nhood_size=effective.nhood_size,
    )
    peaks = peak_detector.find_peaks(hough.votes)
    metrics.stop_timer("peaks")

    metrics.start_timer("lines")
    extractor = LineExtractor(
        fill_gap=effective.fill_gap,
        min_length=effective.min_length,
        n_workers=n_workers,
    )
    segments = extractor.extract(binary, hough.thetas, hough.rhos, peaks)
    metrics.stop_timer("lines")

    logger.debug("Detected %d segments from %d peaks in %.1f ms",
                 len(segments), len(peaks), metrics.total)

    return DetectionResult(
        hough=hough,
        peaks=peaks,
        segments=segments,
        threshold=peak_detector.resolve_threshold(hough.votes),
        nhood_size=peak_detector.resolve_nhood_size(hough.shape),
        config=effective,
        timings_ms=metrics.get_summary(),
    )


class SessionState(Enum):
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    DETECTED = "detected"


class DetectionSession:
    """Holds an image and configuration and re-runs detection on demand."""

    def __init__(self, image: np.ndarray = None, config: Optional[DetectionConfig] = None,
                 preprocessing: Optional[Iterable] = None,
                 on_preprocessed: Optional[Callable[[np.ndarray], Any]] = None,
                 n_workers: int = 1):
        """
        Initialize detection session.

        Args:
            image: Raw image; preprocessed immediately when given
            config: Detection parameters, a mapping, or a YAML path (optional)
            preprocessing: ImageTransforms or callables applied before detection
            on_preprocessed: Receives each new binary image (e.g. a tuning tool)
            n_workers: Threads for the vote and extraction stages
        """
        self.config = load_config(config)
        self.pipeline = PreprocessingPipeline(preprocessing)
        self.on_preprocessed = on_preprocessed
        self.n_workers = n_workers

        self.raw_image = None
        self.processed_image = None
        self.preprocessing_report: Optional[PreprocessingReport] = None
        self._result: Optional[DetectionResult] = None
        self._state = SessionState.UNCONFIGURED

        if image is not None:
            self.set_image(image)

    @property
    def state(self) -> SessionState:
        return self._state

    def set_image(self, image: np.ndarray) -> np.ndarray:
        """Preprocess and store a new source image; returns the binary image."""
        report = self.pipeline.run(image)
        self.raw_image = image
        self.processed_image = report.image
        self.preprocessing_report = report
        self._result = None
        self._state = SessionState.CONFIGURED
        self._hand_off(report.image)
        return report.image

    def _hand_off(self, binary: np.ndarray):
        if self.on_preprocessed is None:
            return
        try:
            self.on_preprocessed(binary.copy())
        except Exception as e:
            logger.warning(f"Preprocessed-image callback failed: {e}")

    def configure(self, config: Optional[DetectionConfig] = None, **changes) -> DetectionConfig:
        """
        Replace the configuration and/or edit individual parameters.

        Args:
            config: New base configuration (optional)
            **changes: Parameter overrides, e.g. ``num_peaks=5``

        Returns:
            The new configuration
        """
        base = self.config if config is None else load_config(config)
        self.config = base.replace(**changes) if changes else base
        if self._state is SessionState.DETECTED:
            self._state = SessionState.CONFIGURED
        return self.config

    def detect(self) -> DetectionResult:
        """Run the full pipeline on the current image and configuration."""
        if self.processed_image is None:
            raise SessionStateError("No image set; call set_image() before detect()")
        self._result = detect(self.processed_image, self.config, n_workers=self.n_workers)
        self._state = SessionState.DETECTED
        return self._result

    @property
    def result(self) -> Optional[DetectionResult]:
        return self._result

    @property
    def hough(self) -> Optional[HoughSpace]:
        return self._result.hough if self._result else None

    @property
    def peaks(self) -> List[Peak]:
        return list(self._result.peaks) if self._result else []

    @property
    def segments(self) -> List[LineSegment]:
        return list(self._result.segments) if self._result else []

    def overlays(self, style: LineStyle = None) -> List[SegmentOverlay]:
        """Drawable handles for the last detected segments."""
        return create_overlays(self.segments, style)
