"""Visualization utilities for detected segments."""

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

import cv2
import numpy as np

from linefinder.detection.types import HoughSpace, LineSegment, Peak

# single-letter color codes (BGR)
COLOR_CODES = {
    'r': (0, 0, 255),
    'g': (0, 255, 0),
    'b': (255, 0, 0),
    'c': (255, 255, 0),
    'm': (255, 0, 255),
    'y': (0, 255, 255),
    'k': (0, 0, 0),
    'w': (255, 255, 255),
}

Color = Union[str, Tuple[int, int, int]]


def resolve_color(color: Color) -> Tuple[int, int, int]:
    """Return a BGR tuple for a color code or BGR tuple."""
    if isinstance(color, str):
        try:
            return COLOR_CODES[color.lower()]
        except KeyError:
            raise ValueError(f"Unknown color code {color!r}; use one of {sorted(COLOR_CODES)}")
    if len(color) != 3:
        raise ValueError(f"Color must be a BGR triple, got {color!r}")
    return tuple(int(c) for c in color)


@dataclass(frozen=True)
class LineStyle:
    """Drawing options for segment overlays."""

    color: Color = 'g'
    stroke_width: int = 2

    def __post_init__(self):
        resolve_color(self.color)
        if self.stroke_width < 1:
            raise ValueError("stroke_width must be >= 1")


@dataclass(frozen=True)
class SegmentOverlay:
    """Drawable handle for one segment."""

    start: Tuple[int, int]
    end: Tuple[int, int]
    color: Tuple[int, int, int]
    thickness: int

    def draw(self, image: np.ndarray) -> np.ndarray:
        """Draw onto ``image`` in place and return it."""
        cv2.line(image, self.start, self.end, self.color, self.thickness)
        return image


def create_overlays(segments: Sequence[LineSegment], style: LineStyle = None) -> List[SegmentOverlay]:
    """One overlay per segment, in segment order."""
    style = style or LineStyle()
    color = resolve_color(style.color)
    return [
        SegmentOverlay(start=tuple(s.point1), end=tuple(s.point2),
                       color=color, thickness=style.stroke_width)
        for s in segments
    ]


def _as_bgr(image: np.ndarray) -> np.ndarray:
    if image.dtype == bool:
        image = image.astype(np.uint8) * 255
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image.copy()


def draw_overlays(image: np.ndarray, overlays: Sequence[SegmentOverlay]) -> np.ndarray:
    """Draw overlays on a BGR copy of image."""
    output = _as_bgr(image)
    for overlay in overlays:
        overlay.draw(output)
    return output


def draw_segments(image: np.ndarray, segments: Sequence[LineSegment],
                  style: LineStyle = None) -> np.ndarray:
    """Draw detected segments on image."""
    return draw_overlays(image, create_overlays(segments, style))


def draw_hough_space(hough: HoughSpace, peaks: Sequence[Peak] = (),
                     color: Color = 'r') -> np.ndarray:
    """Render the accumulator as an 8-bit image with peaks circled."""
    votes = hough.votes.astype(np.float64)
    peak_value = votes.max() if votes.size else 0
    scaled = (votes / peak_value * 255) if peak_value > 0 else votes
    output = cv2.cvtColor(scaled.astype(np.uint8), cv2.COLOR_GRAY2BGR)
    bgr = resolve_color(color)
    for peak in peaks:
        cv2.circle(output, (peak.theta_index, peak.rho_index), 3, bgr, 1)
    return output
