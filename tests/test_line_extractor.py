"""Tests for segment extraction."""

import numpy as np
import pytest
from linefinder.detection.hough_transform import hough_transform, rho_vector, theta_vector
from linefinder.detection.line_extractor import LineExtractor, extract_segments
from linefinder.detection.peak_detector import find_peaks
from linefinder.detection.types import LineSegment, Peak
from linefinder.exceptions import ConfigurationError

THETAS = theta_vector(-90, 89, 1)
RHOS = rho_vector((100, 100), 1)

# theta = -90 (index 0), rho = -50 (index 92)
ROW_50_PEAK = Peak(rho_index=92, theta_index=0, votes=60)


def row_image(runs, y=50, shape=(100, 100)):
    """Foreground runs [(x_start, x_end), ...] on one row, ends inclusive."""
    image = np.zeros(shape, dtype=bool)
    for x_start, x_end in runs:
        image[y, x_start:x_end + 1] = True
    return image


class TestLineExtractor:
    """Test gap bridging and length filtering."""

    def test_initialization(self):
        """Test default parameters."""
        extractor = LineExtractor()
        assert extractor.fill_gap == 20
        assert extractor.min_length == 40

    def test_invalid_parameters(self):
        """Test parameter validation."""
        with pytest.raises(ConfigurationError):
            LineExtractor(fill_gap=-1)
        with pytest.raises(ConfigurationError):
            LineExtractor(min_length=-1)

    def test_single_run(self):
        """Test one unbroken run becomes one segment."""
        segments = extract_segments(row_image([(20, 79)]), THETAS, RHOS, [ROW_50_PEAK],
                                    fill_gap=5, min_length=40)
        assert len(segments) == 1
        segment = segments[0]
        assert segment.point1 == (20, 50)
        assert segment.point2 == (79, 50)
        assert segment.length == pytest.approx(59)
        assert segment.theta == -90
        assert segment.rho == -50

    def test_gap_splits_segment(self):
        """Test a gap wider than fill_gap starts a new segment."""
        image = row_image([(20, 44), (55, 79)])
        segments = extract_segments(image, THETAS, RHOS, [ROW_50_PEAK], fill_gap=5, min_length=20)
        assert [(s.point1, s.point2) for s in segments] == [
            ((20, 50), (44, 50)),
            ((55, 50), (79, 50)),
        ]

    def test_gap_bridged(self):
        """Test a gap within fill_gap is bridged."""
        image = row_image([(20, 44), (55, 79)])
        segments = extract_segments(image, THETAS, RHOS, [ROW_50_PEAK], fill_gap=15, min_length=20)
        assert len(segments) == 1
        assert segments[0].point1 == (20, 50)
        assert segments[0].point2 == (79, 50)

    def test_gap_boundary(self):
        """Test that a gap exactly equal to fill_gap is bridged."""
        image = row_image([(20, 44), (55, 79)])   # positions 44 -> 55
        assert len(extract_segments(image, THETAS, RHOS, [ROW_50_PEAK],
                                    fill_gap=11, min_length=0)) == 1
        assert len(extract_segments(image, THETAS, RHOS, [ROW_50_PEAK],
                                    fill_gap=10.9, min_length=0)) == 2

    @pytest.mark.parametrize("y", [0, 13, 50, 99])
    def test_unit_gap_bridged_on_full_row(self, y):
        """Test adjacent pixels stay joined when fill_gap equals their spacing."""
        image = row_image([(0, 99)], y=y)
        peak = Peak(rho_index=142 - y, theta_index=0, votes=100)
        segments = extract_segments(image, THETAS, RHOS, [peak], fill_gap=1, min_length=0)
        assert [(s.point1, s.point2) for s in segments] == [((0, y), (99, y))]

    def test_unit_gap_bridged_on_diagonal(self):
        """Test a 45 degree run with fill_gap equal to the pixel spacing."""
        image = np.zeros((100, 100), dtype=bool)
        for i in range(10, 90):
            image[i, i] = True
        # normal angle -45: rho = (x - y) * cos(45) = 0
        peak = Peak(rho_index=142, theta_index=45, votes=80)
        segments = extract_segments(image, THETAS, RHOS, [peak],
                                    fill_gap=np.sqrt(2), min_length=0)
        assert len(segments) == 1
        assert segments[0].point1 == (10, 10)
        assert segments[0].point2 == (89, 89)

    def test_min_length_filter(self):
        """Test that short segments are discarded."""
        image = row_image([(20, 39)])
        assert extract_segments(image, THETAS, RHOS, [ROW_50_PEAK], min_length=40) == []
        kept = extract_segments(image, THETAS, RHOS, [ROW_50_PEAK], min_length=19)
        assert len(kept) == 1

    def test_min_length_invariant(self):
        """Test every returned segment is at least min_length long."""
        image = row_image([(0, 3), (10, 30), (40, 42), (50, 99)])
        for min_length in (0, 2, 5, 20, 49, 60):
            segments = extract_segments(image, THETAS, RHOS, [ROW_50_PEAK],
                                        fill_gap=2, min_length=min_length)
            assert all(s.length >= min_length for s in segments)

    def test_fill_gap_monotonic(self):
        """Test segment count never increases as fill_gap grows."""
        image = row_image([(0, 3), (6, 9), (15, 20), (31, 40), (60, 99)])
        counts = [
            len(extract_segments(image, THETAS, RHOS, [ROW_50_PEAK], fill_gap=g, min_length=0))
            for g in (1, 2, 3, 5, 6, 10, 11, 19, 20, 50)
        ]
        assert counts == sorted(counts, reverse=True)
        assert counts[0] == 5
        assert counts[-1] == 1

    def test_vertical_line(self):
        """Test a vertical run is scanned top to bottom."""
        image = np.zeros((100, 100), dtype=bool)
        image[10:70, 30] = True
        peak = Peak(rho_index=142 + 30, theta_index=90, votes=60)
        segments = extract_segments(image, THETAS, RHOS, [peak])
        assert len(segments) == 1
        assert segments[0].point1 == (30, 10)
        assert segments[0].point2 == (30, 69)
        assert segments[0].theta == 0
        assert segments[0].rho == 30

    def test_other_pixels_ignored(self):
        """Test pixels outside the peak's cell do not join its segments."""
        image = row_image([(20, 79)])
        image[10:45, 85] = True
        segments = extract_segments(image, THETAS, RHOS, [ROW_50_PEAK], fill_gap=5)
        assert len(segments) == 1
        assert segments[0].point2 == (79, 50)

    def test_no_peaks(self):
        """Test an empty peak list gives no segments."""
        assert extract_segments(row_image([(20, 79)]), THETAS, RHOS, []) == []

    def test_peak_without_pixels(self):
        """Test a peak whose cell holds no pixels."""
        peak = Peak(rho_index=0, theta_index=0, votes=1)
        assert extract_segments(row_image([(20, 79)]), THETAS, RHOS, [peak]) == []

    def test_segments_follow_peak_order(self):
        """Test output is grouped by peak in peak-list order."""
        image = row_image([(10, 89)], y=20)
        image |= row_image([(10, 89)], y=70)
        peak_20 = Peak(rho_index=142 - 20, theta_index=0, votes=80)
        peak_70 = Peak(rho_index=142 - 70, theta_index=0, votes=80)
        segments = extract_segments(image, THETAS, RHOS, [peak_70, peak_20])
        assert [s.point1[1] for s in segments] == [70, 20]

    def test_threaded_matches_serial(self):
        """Test per-peak workers keep peak-list order."""
        image = np.zeros((100, 100), dtype=bool)
        for y in (10, 30, 50, 70, 90):
            image[y, 5:95] = True
        image[5:95, 50] = False
        hough = hough_transform(image)
        peaks = find_peaks(hough.votes, num_peaks=5, threshold=0, nhood_size=(3, 3))
        serial = LineExtractor(fill_gap=1.5, min_length=10).extract(image, hough.thetas, hough.rhos, peaks)
        threaded = LineExtractor(fill_gap=1.5, min_length=10, n_workers=3).extract(
            image, hough.thetas, hough.rhos, peaks)
        assert len(serial) == 10
        assert threaded == serial

    def test_quantization(self):
        """Test assigned pixels lie within half a rho bin of the peak."""
        rng = np.random.default_rng(5)
        image = rng.random((80, 120)) > 0.85
        image[40, :] = True
        for resolution in (1, 2, 0.5):
            hough = hough_transform(image, rho_resolution=resolution)
            peaks = find_peaks(hough.votes, num_peaks=5, threshold=0)
            extractor = LineExtractor()
            for peak in peaks:
                pixels = extractor.assigned_pixels(image, hough.thetas, hough.rhos, peak)
                rho, theta = peak.locate(hough)
                t = np.deg2rad(theta)
                computed = pixels[:, 0] * np.cos(t) + pixels[:, 1] * np.sin(t)
                assert len(pixels) == peak.votes
                assert np.all(np.abs(computed - rho) <= resolution / 2 + 1e-9)

    def test_segment_record(self):
        """Test the output record layout."""
        segment = LineSegment(point1=(0, 0), point2=(3, 4), theta=10.0, rho=2.0)
        assert segment.length == 5
        assert segment.to_dict() == {
            "point1": [0, 0], "point2": [3, 4], "theta": 10.0, "rho": 2.0, "length": 5.0,
        }
