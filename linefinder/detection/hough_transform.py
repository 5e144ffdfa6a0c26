"""Standard Hough transform over binary images."""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Tuple

import numpy as np

from linefinder.config import (
    image_diagonal, validate_num_peaks, validate_rho_resolution, validate_theta_range,
)
from linefinder.detection.types import HoughSpace, as_binary_image

logger = logging.getLogger(__name__)


def theta_vector(theta_min: float, theta_max: float, theta_step: float) -> np.ndarray:
    """Angles in degrees from theta_min up to theta_max inclusive."""
    validate_theta_range(theta_min, theta_max, theta_step)
    count = int(math.floor((theta_max - theta_min) / theta_step + 1e-9)) + 1
    return theta_min + theta_step * np.arange(count, dtype=np.float64)


def rho_vector(shape: Tuple[int, ...], rho_resolution: float) -> np.ndarray:
    """Rho bin centers covering [-D, D], D = ceil(image diagonal)."""
    rho_resolution = validate_rho_resolution(rho_resolution)
    q = int(math.ceil(image_diagonal(shape) / rho_resolution))
    return np.arange(-q, q + 1, dtype=np.float64) * rho_resolution


def trig_tables(thetas: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Cosine and sine of each angle in degrees."""
    radians = np.deg2rad(thetas)
    return np.cos(radians), np.sin(radians)


def axis_resolution(rhos: np.ndarray) -> float:
    """Bin spacing of a rho axis."""
    return float(rhos[1] - rhos[0]) if len(rhos) > 1 else 1.0


def rho_bin(rho, rhos: np.ndarray, rho_resolution: float):
    """Index of the nearest rho bin; exact halves go to the upper bin."""
    return np.floor((rho - rhos[0]) / rho_resolution + 0.5).astype(np.intp)


class HoughTransformer:
    """Accumulates (rho, theta) votes from foreground pixels."""

    def __init__(self, theta_min: float = -90.0, theta_max: float = 89.0,
                 theta_step: float = 1.0, rho_resolution: float = 1.0,
                 n_workers: int = 1, chunk_size: int = 4096):
        """
        Initialize transformer.

        Args:
            theta_min: First normal angle in degrees
            theta_max: Last normal angle in degrees (inclusive)
            theta_step: Angle spacing in degrees
            rho_resolution: Spacing of the rho bins in pixels
            n_workers: Threads used to scatter votes
            chunk_size: Foreground pixels processed per vote batch
        """
        validate_theta_range(theta_min, theta_max, theta_step)
        self.theta_min = theta_min
        self.theta_max = theta_max
        self.theta_step = theta_step
        self.rho_resolution = validate_rho_resolution(rho_resolution)
        self.n_workers = validate_num_peaks(n_workers, "n_workers")
        self.chunk_size = validate_num_peaks(chunk_size, "chunk_size")

    def transform(self, image: np.ndarray) -> HoughSpace:
        """
        Build the vote accumulator for a binary image.

        Args:
            image: Binary image, foreground = nonzero

        Returns:
            HoughSpace with votes shaped (len(rhos), len(thetas))
        """
        binary = as_binary_image(image)
        thetas = theta_vector(self.theta_min, self.theta_max, self.theta_step)
        rhos = rho_vector(binary.shape, self.rho_resolution)
        n_rho, n_theta = len(rhos), len(thetas)

        ys, xs = np.nonzero(binary)
        if len(xs) == 0:
            votes = np.zeros((n_rho, n_theta), dtype=np.int64)
            return HoughSpace(votes=votes, thetas=thetas, rhos=rhos)

        cos_t, sin_t = trig_tables(thetas)
        resolution = axis_resolution(rhos)
        theta_offsets = np.arange(n_theta, dtype=np.intp)

        def scatter(start: int) -> np.ndarray:
            x = xs[start:start + self.chunk_size, None].astype(np.float64)
            y = ys[start:start + self.chunk_size, None].astype(np.float64)
            bins = rho_bin(x * cos_t + y * sin_t, rhos, resolution)
            flat = bins * n_theta + theta_offsets
            return np.bincount(flat.ravel(), minlength=n_rho * n_theta)

        def accumulate(chunk_starts) -> np.ndarray:
            buffer = np.zeros(n_rho * n_theta, dtype=np.int64)
            for start in chunk_starts:
                buffer += scatter(start)
            return buffer

        starts = range(0, len(xs), self.chunk_size)
        n_shares = min(self.n_workers, len(starts))
        if n_shares > 1:
            # one buffer per worker, each summing an interleaved share of chunks
            shares = [starts[i::n_shares] for i in range(n_shares)]
            with ThreadPoolExecutor(max_workers=n_shares) as executor:
                partials = list(executor.map(accumulate, shares))
            flat_votes = partials.pop()
            for partial in partials:
                flat_votes += partial
        else:
            flat_votes = accumulate(starts)
        votes = flat_votes.reshape(n_rho, n_theta)

        logger.debug("Hough transform: %d foreground pixels, %dx%d accumulator, max %d votes",
                     len(xs), n_rho, n_theta, int(votes.max()))
        return HoughSpace(votes=votes, thetas=thetas, rhos=rhos)


def hough_transform(image: np.ndarray, theta_min: float = -90.0, theta_max: float = 89.0,
                    theta_step: float = 1.0, rho_resolution: float = 1.0,
                    n_workers: int = 1) -> HoughSpace:
    """Convenience function for the Hough transform."""
    transformer = HoughTransformer(theta_min, theta_max, theta_step, rho_resolution, n_workers)
    return transformer.transform(image)
