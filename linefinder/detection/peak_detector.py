"""Peak selection in a Hough accumulator."""

import logging
import math
from typing import List, Optional, Tuple

import numpy as np

from linefinder.config import validate_nhood_size, validate_non_negative, validate_num_peaks
from linefinder.detection.types import Peak

logger = logging.getLogger(__name__)


def default_nhood_size(shape: Tuple[int, int]) -> Tuple[int, int]:
    """Smallest odd sizes >= accumulator size / 50, at least 1."""
    sizes = []
    for dim in shape[:2]:
        size = int(math.ceil(dim / 50.0))
        if size % 2 == 0:
            size += 1
        sizes.append(max(size, 1))
    return sizes[0], sizes[1]


def default_threshold(votes: np.ndarray) -> float:
    """Half of the strongest vote count."""
    if votes.size == 0:
        return 0.0
    return 0.5 * float(votes.max())


class PeakDetector:
    """Selects dominant accumulator cells with neighborhood suppression."""

    def __init__(self, num_peaks: int = 1, threshold: Optional[float] = None,
                 nhood_size: Optional[Tuple[int, int]] = None):
        """
        Initialize peak detector.

        Args:
            num_peaks: Maximum number of peaks to return
            threshold: Minimum vote count a peak must exceed; None means half
                the accumulator maximum
            nhood_size: (rows, cols) window zeroed around each peak; None
                means a size derived from the accumulator shape
        """
        self.num_peaks = validate_num_peaks(num_peaks)
        self.threshold = None if threshold is None else validate_non_negative(threshold, "threshold")
        self.nhood_size = None if nhood_size is None else validate_nhood_size(nhood_size)

    def resolve_threshold(self, votes: np.ndarray) -> float:
        return default_threshold(votes) if self.threshold is None else self.threshold

    def resolve_nhood_size(self, shape: Tuple[int, int]) -> Tuple[int, int]:
        return default_nhood_size(shape) if self.nhood_size is None else self.nhood_size

    def find_peaks(self, votes: np.ndarray) -> List[Peak]:
        """
        Find up to ``num_peaks`` peaks in discovery order.

        Each iteration takes the first maximum in row-major order, stops if it
        does not exceed the threshold, and otherwise suppresses a window around
        it before searching again.

        Args:
            votes: 2-D accumulator, rows = rho bins, cols = theta bins

        Returns:
            List of Peak
        """
        votes = np.asarray(votes)
        if votes.ndim != 2:
            raise ValueError(f"Accumulator must be 2-D, got shape {votes.shape}")
        if votes.size == 0:
            return []

        threshold = self.resolve_threshold(votes)
        half_rows, half_cols = (n // 2 for n in self.resolve_nhood_size(votes.shape))
        n_rows, n_cols = votes.shape
        work = votes.copy()

        peaks = []
        while len(peaks) < self.num_peaks:
            flat_index = int(np.argmax(work))
            row, col = divmod(flat_index, n_cols)
            value = work[row, col]
            if value <= threshold:
                break
            peaks.append(Peak(rho_index=row, theta_index=col, votes=int(value)))

            work[max(row - half_rows, 0):min(row + half_rows + 1, n_rows),
                 max(col - half_cols, 0):min(col + half_cols + 1, n_cols)] = 0

        logger.debug("Found %d peaks (threshold %.1f)", len(peaks), threshold)
        return peaks


def find_peaks(votes: np.ndarray, num_peaks: int = 1, threshold: Optional[float] = None,
               nhood_size: Optional[Tuple[int, int]] = None) -> List[Peak]:
    """Convenience function for peak detection."""
    detector = PeakDetector(num_peaks, threshold, nhood_size)
    return detector.find_peaks(votes)
