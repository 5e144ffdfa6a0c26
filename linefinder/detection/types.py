"""Data types shared by the detection stages."""

import math
from dataclasses import dataclass
from typing import Any, Dict, Tuple

import numpy as np

from linefinder.exceptions import ConfigurationError


@dataclass(frozen=True)
class HoughSpace:
    """Vote accumulator with its theta (degrees) and rho axes."""

    votes: np.ndarray
    thetas: np.ndarray
    rhos: np.ndarray

    def __post_init__(self):
        expected = (len(self.rhos), len(self.thetas))
        if self.votes.shape != expected:
            raise ValueError(
                f"Accumulator shape {self.votes.shape} does not match (rho, theta) axes {expected}")

    @property
    def shape(self) -> Tuple[int, int]:
        return self.votes.shape

    @property
    def rho_resolution(self) -> float:
        if len(self.rhos) < 2:
            return 1.0
        return float(self.rhos[1] - self.rhos[0])

    @property
    def max_votes(self) -> int:
        return int(self.votes.max()) if self.votes.size else 0


@dataclass(frozen=True)
class Peak:
    """Accumulator cell selected as a line hypothesis."""

    rho_index: int
    theta_index: int
    votes: int

    def locate(self, hough: HoughSpace) -> Tuple[float, float]:
        """Return the (rho, theta) values of this peak."""
        return float(hough.rhos[self.rho_index]), float(hough.thetas[self.theta_index])


@dataclass(frozen=True)
class LineSegment:
    """Detected segment between two pixel coordinates (x, y)."""

    point1: Tuple[int, int]
    point2: Tuple[int, int]
    theta: float
    rho: float

    @property
    def length(self) -> float:
        return math.hypot(self.point2[0] - self.point1[0], self.point2[1] - self.point1[1])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "point1": list(self.point1),
            "point2": list(self.point2),
            "theta": self.theta,
            "rho": self.rho,
            "length": self.length,
        }


def is_binary(image: Any) -> bool:
    """True for a 2-D bool array or a 2-D array holding only {0, 1} or {0, 255}."""
    if not isinstance(image, np.ndarray) or image.ndim != 2:
        return False
    if image.dtype == bool:
        return True
    if not (np.issubdtype(image.dtype, np.integer) or np.issubdtype(image.dtype, np.floating)):
        return False
    values = np.unique(image)
    return set(values.tolist()) <= {0, 1} or set(values.tolist()) <= {0, 255}


def as_binary_image(image: Any) -> np.ndarray:
    """
    Return a read-only boolean copy of a binary image.

    Args:
        image: 2-D array accepted by :func:`is_binary`

    Returns:
        Boolean array of the same shape, foreground = True

    Raises:
        ConfigurationError: if the image is not binary
    """
    image = np.asarray(image)
    if image.ndim != 2:
        raise ConfigurationError(f"Expected a 2-D binary image, got shape {image.shape}")
    if not is_binary(image):
        raise ConfigurationError(
            "Image is not binary; run it through a PreprocessingPipeline first")
    binary = image.astype(bool, copy=True)
    binary.setflags(write=False)
    return binary
