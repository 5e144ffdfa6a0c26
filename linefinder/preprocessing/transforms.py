"""Image transforms used to prepare binary edge images."""

from typing import Callable, Optional

import cv2
import numpy as np
from scipy import ndimage
from skimage.filters import threshold_otsu

from linefinder.exceptions import TransformError


class ImageTransform:
    """One preprocessing step mapping an image to an image."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def apply(self, image: np.ndarray) -> np.ndarray:
        """Transform ``image``; raise TransformError on failure."""
        raise NotImplementedError

    def __call__(self, image: np.ndarray) -> np.ndarray:
        try:
            return self.apply(image)
        except TransformError:
            raise
        except Exception as e:
            raise TransformError(f"{self.name} failed: {e}") from e

    def __repr__(self) -> str:
        return f"{self.name}()"


class FunctionTransform(ImageTransform):
    """Wraps a plain ``image -> image`` callable."""

    def __init__(self, func: Callable[[np.ndarray], np.ndarray], name: Optional[str] = None):
        self.func = func
        self._name = name or getattr(func, "__name__", repr(func))

    @property
    def name(self) -> str:
        return self._name

    def apply(self, image: np.ndarray) -> np.ndarray:
        result = self.func(image)
        if not isinstance(result, np.ndarray):
            raise TransformError(f"{self.name} returned {type(result).__name__}, expected an array")
        return result


def as_transform(step) -> ImageTransform:
    """Return ``step`` as an ImageTransform, wrapping plain callables."""
    if isinstance(step, ImageTransform):
        return step
    if callable(step):
        return FunctionTransform(step)
    raise TypeError(f"Preprocessing step must be callable, got {type(step).__name__}")


def _to_unit_float(image: np.ndarray) -> np.ndarray:
    """Scale an image to float64 in [0, 1]."""
    if image.dtype == bool:
        return image.astype(np.float64)
    if np.issubdtype(image.dtype, np.integer):
        return image.astype(np.float64) / np.iinfo(image.dtype).max
    return np.clip(image.astype(np.float64), 0.0, 1.0)


def _from_unit_float(image: np.ndarray, dtype: np.dtype) -> np.ndarray:
    if np.issubdtype(dtype, np.integer):
        return np.round(image * np.iinfo(dtype).max).astype(dtype)
    return image


class Grayscale(ImageTransform):
    """BGR or BGRA to single-channel gray."""

    def apply(self, image: np.ndarray) -> np.ndarray:
        if image.ndim == 2:
            return image
        if image.ndim == 3 and image.shape[2] == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        if image.ndim == 3 and image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        raise TransformError(f"Cannot convert image of shape {image.shape} to grayscale")


class ContrastAdjust(ImageTransform):
    """Map intensities in [low_in, high_in] to [low_out, high_out]."""

    def __init__(self, low_in: float = 0.0, high_in: float = 1.0,
                 low_out: float = 0.0, high_out: float = 1.0, gamma: float = 1.0):
        """
        Initialize contrast adjustment.

        Args:
            low_in: Input level mapped to low_out (unit scale)
            high_in: Input level mapped to high_out (unit scale)
            low_out: Output level for dark pixels
            high_out: Output level for bright pixels
            gamma: Shape of the mapping curve
        """
        if high_in <= low_in:
            raise ValueError("high_in must be greater than low_in")
        self.low_in = low_in
        self.high_in = high_in
        self.low_out = low_out
        self.high_out = high_out
        self.gamma = gamma

    def apply(self, image: np.ndarray) -> np.ndarray:
        unit = _to_unit_float(image)
        scaled = np.clip((unit - self.low_in) / (self.high_in - self.low_in), 0.0, 1.0)
        adjusted = self.low_out + (self.high_out - self.low_out) * scaled ** self.gamma
        return _from_unit_float(adjusted, image.dtype)


class Complement(ImageTransform):
    """Invert an image."""

    def apply(self, image: np.ndarray) -> np.ndarray:
        if image.dtype == bool:
            return ~image
        if np.issubdtype(image.dtype, np.integer):
            info = np.iinfo(image.dtype)
            return (info.max - image.astype(np.int64) + info.min).astype(image.dtype)
        return 1.0 - image


class GaussianBlur(ImageTransform):
    """Apply Gaussian blur to reduce noise."""

    def __init__(self, kernel_size: int = 5):
        self.kernel_size = kernel_size

    def apply(self, image: np.ndarray) -> np.ndarray:
        if image.dtype == bool:
            image = image.astype(np.uint8) * 255
        return cv2.GaussianBlur(image, (self.kernel_size, self.kernel_size), 0)


class CannyEdges(ImageTransform):
    """Canny edge map as a boolean image."""

    def __init__(self, low_threshold: float = 50, high_threshold: float = 150):
        self.low_threshold = low_threshold
        self.high_threshold = high_threshold

    def apply(self, image: np.ndarray) -> np.ndarray:
        if image.ndim != 2:
            raise TransformError("CannyEdges expects a single-channel image")
        if image.dtype != np.uint8:
            image = _from_unit_float(_to_unit_float(image), np.dtype(np.uint8))
        return cv2.Canny(image, self.low_threshold, self.high_threshold) > 0


class LaplacianOfGaussianEdges(ImageTransform):
    """Zero crossings of the Laplacian of Gaussian."""

    def __init__(self, sigma: float = 2.0, threshold: Optional[float] = None):
        """
        Initialize LoG edge detector.

        Args:
            sigma: Standard deviation of the Gaussian
            threshold: Minimum response jump across a zero crossing; None
                means 0.75 * mean absolute response
        """
        self.sigma = sigma
        self.threshold = threshold

    def apply(self, image: np.ndarray) -> np.ndarray:
        if image.ndim != 2:
            raise TransformError("LaplacianOfGaussianEdges expects a single-channel image")
        response = ndimage.gaussian_laplace(_to_unit_float(image), sigma=self.sigma)
        edges = np.zeros(response.shape, dtype=bool)
        if not np.any(np.abs(response) > 1e-12):
            return edges
        threshold = self.threshold
        if threshold is None:
            threshold = 0.75 * float(np.mean(np.abs(response)))

        for axis in (0, 1):
            a = np.moveaxis(response, axis, 0)
            left, right = a[:-1], a[1:]
            crossing = (np.sign(left) * np.sign(right) < 0) & (np.abs(left - right) > threshold)
            # mark the side closer to zero
            left_closer = crossing & (np.abs(left) <= np.abs(right))
            right_closer = crossing & ~left_closer
            out = np.moveaxis(edges, axis, 0)
            out[:-1] |= left_closer
            out[1:] |= right_closer
        return edges


class OtsuBinarize(ImageTransform):
    """Global Otsu threshold, foreground = brighter than the threshold."""

    def apply(self, image: np.ndarray) -> np.ndarray:
        if image.ndim != 2:
            raise TransformError("OtsuBinarize expects a single-channel image")
        if image.dtype == bool:
            return image.copy()
        if np.all(image == image.flat[0]):
            return np.zeros(image.shape, dtype=bool)
        return image > threshold_otsu(image)
