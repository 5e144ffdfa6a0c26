"""
linefinder - Hough-transform line segment detection

Finds straight line segments in binary edge images.
"""

from .config import DetectionConfig, DEFAULT_CONFIG, load_config
from .core import DetectionResult, DetectionSession, SessionState, detect, __version__
from .detection import HoughSpace, LineSegment, Peak
from .exceptions import (
    LineDetectionError, ConfigurationError, TransformError, PreprocessingError, SessionStateError,
)

__all__ = [
    'DetectionConfig', 'DEFAULT_CONFIG', 'load_config',
    'DetectionResult', 'DetectionSession', 'SessionState', 'detect',
    'HoughSpace', 'LineSegment', 'Peak',
    'LineDetectionError', 'ConfigurationError', 'TransformError',
    'PreprocessingError', 'SessionStateError',
]
