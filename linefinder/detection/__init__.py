"""Hough transform, peak detection and segment extraction."""

from .types import HoughSpace, Peak, LineSegment, as_binary_image, is_binary
from .hough_transform import HoughTransformer, hough_transform
from .peak_detector import PeakDetector, find_peaks
from .line_extractor import LineExtractor, extract_segments

__all__ = [
    'HoughSpace', 'Peak', 'LineSegment', 'as_binary_image', 'is_binary',
    'HoughTransformer', 'hough_transform',
    'PeakDetector', 'find_peaks',
    'LineExtractor', 'extract_segments',
]
