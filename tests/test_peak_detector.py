"""Tests for Hough peak detection."""

import numpy as np
import pytest
from linefinder.detection.peak_detector import (
    PeakDetector, default_nhood_size, default_threshold, find_peaks,
)
from linefinder.detection.types import Peak
from linefinder.exceptions import ConfigurationError


class TestDefaults:
    """Test computed default parameters."""

    @pytest.mark.parametrize("shape, expected", [
        ((285, 180), (7, 5)),
        ((50, 50), (1, 1)),
        ((100, 49), (3, 1)),
        ((10, 10), (1, 1)),
        ((567, 180), (13, 5)),
        ((550, 150), (11, 3)),
    ])
    def test_default_nhood_size(self, shape, expected):
        """Test smallest odd sizes >= shape / 50."""
        assert default_nhood_size(shape) == expected

    def test_default_threshold(self):
        """Test half of the maximum vote."""
        votes = np.array([[0, 3], [10, 1]])
        assert default_threshold(votes) == 5.0
        assert default_threshold(np.zeros((3, 3))) == 0.0


class TestPeakDetector:
    """Test iterative max-and-suppress peak search."""

    def test_initialization(self):
        """Test default parameters."""
        detector = PeakDetector()
        assert detector.num_peaks == 1
        assert detector.threshold is None
        assert detector.nhood_size is None

    @pytest.mark.parametrize("kwargs", [
        {"num_peaks": 0},
        {"threshold": -0.5},
        {"nhood_size": (4, 3)},
        {"nhood_size": (3, -1)},
    ])
    def test_invalid_parameters(self, kwargs):
        """Test that invalid parameters raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            PeakDetector(**kwargs)

    def test_two_peaks_in_discovery_order(self):
        """Test peaks come out strongest first."""
        votes = np.zeros((10, 10), dtype=np.int64)
        votes[7, 8] = 4
        votes[2, 3] = 5
        peaks = find_peaks(votes, num_peaks=2, threshold=0, nhood_size=(3, 3))
        assert peaks == [Peak(2, 3, 5), Peak(7, 8, 4)]

    def test_row_major_tie_break(self):
        """Test that equal maxima are taken in row-major order."""
        votes = np.zeros((10, 10), dtype=np.int64)
        votes[4, 2] = 5
        votes[1, 7] = 5
        votes[1, 5] = 5
        peaks = find_peaks(votes, num_peaks=3, threshold=0, nhood_size=(1, 1))
        assert [(p.rho_index, p.theta_index) for p in peaks] == [(1, 5), (1, 7), (4, 2)]

    def test_neighborhood_suppression(self):
        """Test that cells next to a peak are suppressed."""
        votes = np.zeros((10, 10), dtype=np.int64)
        votes[5, 5] = 10
        votes[5, 6] = 9
        votes[0, 0] = 3
        peaks = find_peaks(votes, num_peaks=3, threshold=0, nhood_size=(3, 3))
        assert peaks == [Peak(5, 5, 10), Peak(0, 0, 3)]

    def test_rectangular_neighborhood(self):
        """Test rows and columns use separate window sizes."""
        votes = np.zeros((10, 10), dtype=np.int64)
        votes[5, 5] = 10
        votes[7, 5] = 9   # inside 5 rows
        votes[5, 7] = 8   # outside 1 column
        peaks = find_peaks(votes, num_peaks=3, threshold=0, nhood_size=(5, 1))
        assert peaks == [Peak(5, 5, 10), Peak(5, 7, 8)]

    def test_window_clipped_at_border(self):
        """Test suppression near the accumulator edge."""
        votes = np.zeros((6, 6), dtype=np.int64)
        votes[0, 0] = 9
        votes[2, 2] = 8
        votes[3, 3] = 7
        peaks = find_peaks(votes, num_peaks=3, threshold=0, nhood_size=(5, 5))
        assert peaks == [Peak(0, 0, 9), Peak(3, 3, 7)]

    def test_threshold_is_strict(self):
        """Test that a maximum equal to the threshold is not a peak."""
        votes = np.zeros((5, 5), dtype=np.int64)
        votes[2, 2] = 5
        assert find_peaks(votes, threshold=5) == []
        assert find_peaks(votes, threshold=4.9) == [Peak(2, 2, 5)]

    def test_default_threshold_applied(self):
        """Test that weak cells below half the max are ignored."""
        votes = np.zeros((20, 20), dtype=np.int64)
        votes[2, 2] = 10
        votes[15, 15] = 5
        votes[10, 3] = 6
        peaks = find_peaks(votes, num_peaks=5, nhood_size=(1, 1))
        assert peaks == [Peak(2, 2, 10), Peak(10, 3, 6)]

    def test_all_zero_accumulator(self):
        """Test that an empty accumulator has no peaks."""
        assert find_peaks(np.zeros((30, 30), dtype=np.int64), num_peaks=5) == []

    def test_input_not_modified(self):
        """Test that suppression works on a copy."""
        votes = np.arange(100, dtype=np.int64).reshape(10, 10)
        original = votes.copy()
        find_peaks(votes, num_peaks=4, threshold=0, nhood_size=(3, 3))
        assert np.array_equal(votes, original)

    def test_peak_bound_and_threshold(self):
        """Test len(peaks) <= num_peaks and votes > threshold on random data."""
        rng = np.random.default_rng(4)
        for _ in range(20):
            votes = rng.integers(0, 50, size=(40, 30))
            num_peaks = int(rng.integers(1, 15))
            threshold = float(rng.integers(0, 50))
            peaks = find_peaks(votes, num_peaks=num_peaks, threshold=threshold, nhood_size=(3, 3))
            assert len(peaks) <= num_peaks
            assert all(p.votes > threshold for p in peaks)
            assert all(votes[p.rho_index, p.theta_index] == p.votes for p in peaks)

    def test_resolved_values(self):
        """Test that the effective threshold and window are exposed."""
        votes = np.zeros((285, 180), dtype=np.int64)
        votes[10, 10] = 8
        detector = PeakDetector()
        assert detector.resolve_threshold(votes) == 4.0
        assert detector.resolve_nhood_size(votes.shape) == (7, 5)
        detector = PeakDetector(threshold=2, nhood_size=(3, 3))
        assert detector.resolve_threshold(votes) == 2.0
        assert detector.resolve_nhood_size(votes.shape) == (3, 3)

    def test_non_2d_rejected(self):
        """Test that the accumulator must be 2-D."""
        with pytest.raises(ValueError):
            PeakDetector().find_peaks(np.zeros(10))
