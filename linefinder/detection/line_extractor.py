"""Reconstruction of line segments from Hough peaks."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence

import numpy as np

from linefinder.config import validate_non_negative, validate_num_peaks
from linefinder.detection.hough_transform import axis_resolution, rho_bin, trig_tables
from linefinder.detection.types import LineSegment, Peak, as_binary_image

logger = logging.getLogger(__name__)

# projections are rounded to this many decimals; gaps within GAP_TOLERANCE of
# fill_gap count as equal
PROJECTION_DECIMALS = 9
GAP_TOLERANCE = 1e-6


def _peak_pixels(xs, ys, cos_t, sin_t, rhos, resolution, peak: Peak):
    """Pixels falling in the same accumulator cell as the peak."""
    t = peak.theta_index
    mask = rho_bin(xs * cos_t[t] + ys * sin_t[t], rhos, resolution) == peak.rho_index
    return xs[mask], ys[mask]


class LineExtractor:
    """Turns each peak's supporting pixels into gap-bridged segments."""

    def __init__(self, fill_gap: float = 20.0, min_length: float = 40.0, n_workers: int = 1):
        """
        Initialize line extractor.

        Args:
            fill_gap: Largest gap along the line that still joins two pixels
            min_length: Shortest segment kept in the output
            n_workers: Threads used to process peaks
        """
        self.fill_gap = validate_non_negative(fill_gap, "fill_gap")
        self.min_length = validate_non_negative(min_length, "min_length")
        self.n_workers = validate_num_peaks(n_workers, "n_workers")

    def extract(self, image: np.ndarray, thetas: np.ndarray, rhos: np.ndarray,
                peaks: Sequence[Peak]) -> List[LineSegment]:
        """
        Extract segments for all peaks.

        Args:
            image: Binary image the accumulator was built from
            thetas: Theta axis of the accumulator (degrees)
            rhos: Rho axis of the accumulator
            peaks: Peaks in discovery order

        Returns:
            Segments ordered by peak, then by position along each line
        """
        binary = as_binary_image(image)
        thetas = np.asarray(thetas, dtype=np.float64)
        rhos = np.asarray(rhos, dtype=np.float64)
        if not peaks:
            return []

        ys, xs = np.nonzero(binary)
        cos_t, sin_t = trig_tables(thetas)
        resolution = axis_resolution(rhos)

        def run(peak: Peak) -> List[LineSegment]:
            return self._segments_for_peak(xs, ys, cos_t, sin_t, thetas, rhos, resolution, peak)

        if self.n_workers > 1 and len(peaks) > 1:
            with ThreadPoolExecutor(max_workers=self.n_workers) as executor:
                futures = [executor.submit(run, peak) for peak in peaks]
                per_peak = [future.result() for future in futures]
        else:
            per_peak = [run(peak) for peak in peaks]

        segments = [segment for group in per_peak for segment in group]
        logger.debug("Extracted %d segments from %d peaks", len(segments), len(peaks))
        return segments

    def _segments_for_peak(self, xs, ys, cos_t, sin_t, thetas, rhos, resolution,
                           peak: Peak) -> List[LineSegment]:
        t = peak.theta_index
        px, py = _peak_pixels(xs, ys, cos_t, sin_t, rhos, resolution, peak)
        if len(px) == 0:
            return []

        # position along the direction (-sin, cos); ties ordered by (y, x)
        positions = np.round(-px * sin_t[t] + py * cos_t[t], PROJECTION_DECIMALS)
        order = np.lexsort((px, py, positions))
        px, py, positions = px[order], py[order], positions[order]

        breaks = np.nonzero(np.diff(positions) > self.fill_gap + GAP_TOLERANCE)[0] + 1
        starts = np.concatenate(([0], breaks))
        ends = np.concatenate((breaks, [len(positions)])) - 1

        theta = float(thetas[t])
        rho = float(rhos[peak.rho_index])
        segments = []
        for start, end in zip(starts, ends):
            segment = LineSegment(
                point1=(int(px[start]), int(py[start])),
                point2=(int(px[end]), int(py[end])),
                theta=theta,
                rho=rho,
            )
            if segment.length >= self.min_length:
                segments.append(segment)
        return segments

    def assigned_pixels(self, image: np.ndarray, thetas: np.ndarray, rhos: np.ndarray,
                        peak: Peak) -> np.ndarray:
        """Return the (x, y) pixels that voted for ``peak``, shape (N, 2)."""
        binary = as_binary_image(image)
        thetas = np.asarray(thetas, dtype=np.float64)
        rhos = np.asarray(rhos, dtype=np.float64)
        ys, xs = np.nonzero(binary)
        cos_t, sin_t = trig_tables(thetas)
        resolution = axis_resolution(rhos)
        px, py = _peak_pixels(xs, ys, cos_t, sin_t, rhos, resolution, peak)
        return np.column_stack((px, py))


def extract_segments(image: np.ndarray, thetas: np.ndarray, rhos: np.ndarray,
                     peaks: Sequence[Peak], fill_gap: float = 20.0,
                     min_length: float = 40.0) -> List[LineSegment]:
    """Convenience function for line extraction."""
    extractor = LineExtractor(fill_gap, min_length)
    return extractor.extract(image, thetas, rhos, peaks)
