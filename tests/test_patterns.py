"""
Tests for motion pattern analysis
"""

import math
import unittest

from motion_tracking.analysis import (
    PatternAnalyzer,
    detect_periodicity,
    is_directional,
    velocity_stats,
)
from motion_tracking.models import BoundingBox, MotionRegion, MotionVector


def moving_region(vx, vy, x=0, y=0):
    bbox = BoundingBox(x, y, 10, 10)
    return MotionRegion(
        id=f"region_{x}_{y}",
        bbox=bbox,
        center=bbox.center,
        area=100,
        velocity=MotionVector.from_components(vx, vy, 0.8),
        timestamp=0,
        confidence=0.8,
    )


class TestVelocityStats(unittest.TestCase):
    """Test velocity statistics."""

    def test_empty(self):
        """Test no regions gives zeros."""
        stats = velocity_stats([])

        self.assertEqual(stats.average, 0.0)
        self.assertEqual(stats.maximum, 0.0)
        self.assertEqual(stats.distribution, [0] * 10)

    def test_histogram(self):
        """Test magnitudes are binned relative to the maximum."""
        stats = velocity_stats([1.0, 5.0, 10.0])

        self.assertAlmostEqual(stats.average, 16.0 / 3)
        self.assertEqual(stats.maximum, 10.0)
        self.assertEqual(stats.distribution[1], 1)
        self.assertEqual(stats.distribution[5], 1)
        self.assertEqual(stats.distribution[9], 1)
        self.assertEqual(sum(stats.distribution), 3)

    def test_all_zero(self):
        """Test zero maximum puts everything in the first bin."""
        stats = velocity_stats([0.0, 0.0, 0.0])

        self.assertEqual(stats.distribution[0], 3)


class TestDirectional(unittest.TestCase):
    """Test directional coherence."""

    def test_aligned(self):
        """Test aligned vectors are directional."""
        self.assertTrue(is_directional([0.0, 0.1, -0.1]))

    def test_single_angle(self):
        """Test one vector is never directional."""
        self.assertFalse(is_directional([0.0]))

    def test_spread(self):
        """Test opposing vectors are not directional."""
        angles = [0.0, math.pi / 2, math.pi, -math.pi / 2]

        self.assertFalse(is_directional(angles))

    def test_wraparound(self):
        """Test angles either side of +-pi count as aligned."""
        self.assertTrue(is_directional([math.pi - 0.05, -math.pi + 0.05]))


class TestPeriodicity(unittest.TestCase):
    """Test FFT periodicity detection."""

    def test_sinusoid(self):
        """Test a sinusoidal motion series is periodic."""
        timestamps = [i * 100 for i in range(32)]
        totals = [10 + 5 * math.sin(2 * math.pi * i / 8) for i in range(32)]

        pattern = detect_periodicity(timestamps, totals)

        self.assertTrue(pattern.detected)
        self.assertAlmostEqual(pattern.period, 0.8, places=6)
        self.assertGreaterEqual(pattern.confidence, 0.5)

    def test_too_few_samples(self):
        """Test short series are not analysed."""
        pattern = detect_periodicity([0, 100, 200], [1.0, 5.0, 1.0])

        self.assertFalse(pattern.detected)
        self.assertIsNone(pattern.period)

    def test_constant_series(self):
        """Test a flat series has no period."""
        timestamps = [i * 100 for i in range(32)]

        self.assertFalse(detect_periodicity(timestamps, [3.0] * 32).detected)

    def test_linear_trend(self):
        """Test a steady ramp has no period."""
        timestamps = [i * 100 for i in range(32)]

        self.assertFalse(detect_periodicity(timestamps, [float(i) for i in range(32)]).detected)


class TestPatternAnalyzer(unittest.TestCase):
    """Test per-frame analysis."""

    def setUp(self):
        self.analyzer = PatternAnalyzer()

    def test_totals_and_centers(self):
        """Test total motion and centers come from the regions."""
        regions = [moving_region(3, 4, x=0), moving_region(6, 8, x=50)]

        result = self.analyzer.analyze(regions, 100, frame_count=20)

        self.assertAlmostEqual(result.total_motion, 15.0)
        self.assertEqual(result.motion_centers, [(5.0, 5.0, 5.0), (55.0, 5.0, 10.0)])
        self.assertEqual(result.timestamp, 100)

    def test_dominant_direction(self):
        """Test direction of the magnitude-weighted sum in degrees."""
        regions = [moving_region(0, 10), moving_region(0, 5, x=50)]

        result = self.analyzer.analyze(regions, 0, frame_count=20)

        self.assertAlmostEqual(result.dominant_direction, 90.0)

    def test_directional_flag(self):
        """Test coherent motion is directional, not random."""
        regions = [moving_region(5, 0, x=i * 20) for i in range(4)]

        result = self.analyzer.analyze(regions, 0, frame_count=20)

        self.assertTrue(result.patterns.directional)
        self.assertFalse(result.patterns.random)

    def test_random_flag(self):
        """Test scattered motion over many regions is random."""
        regions = [
            moving_region(5, 0, x=0),
            moving_region(0, 5, x=20),
            moving_region(-5, 0, x=40),
            moving_region(0, -5, x=60),
        ]

        result = self.analyzer.analyze(regions, 0, frame_count=20)

        self.assertFalse(result.patterns.directional)
        self.assertTrue(result.patterns.random)

    def test_few_regions_not_random(self):
        """Test three scattered regions are not yet random."""
        regions = [moving_region(5, 0), moving_region(-5, 0, x=20), moving_region(0, 5, x=40)]

        result = self.analyzer.analyze(regions, 0, frame_count=20)

        self.assertFalse(result.patterns.random)

    def test_sudden_anomaly(self):
        """Test fast motion right after start is sudden."""
        result = self.analyzer.analyze([moving_region(25, 0)], 0, frame_count=5)

        self.assertTrue(result.anomalies.sudden)
        self.assertFalse(result.anomalies.unusual)
        self.assertIn("sudden", result.anomalies.description)

    def test_sudden_only_at_start(self):
        """Test the same motion later in the session is not sudden."""
        result = self.analyzer.analyze([moving_region(25, 0)], 0, frame_count=50)

        self.assertFalse(result.anomalies.sudden)
        self.assertIsNone(result.anomalies.description)

    def test_unusual_anomaly(self):
        """Test very fast motion is unusual."""
        result = self.analyzer.analyze([moving_region(60, 0)], 0, frame_count=50)

        self.assertTrue(result.anomalies.unusual)
        self.assertIn("fast", result.anomalies.description)

    def test_oscillatory(self):
        """Test repeated direction reversals are oscillatory."""
        result = None
        for i in range(6):
            vx = 5 if i % 2 == 0 else -5
            result = self.analyzer.analyze([moving_region(vx, 0)], i * 100, frame_count=20 + i)

        self.assertTrue(result.patterns.oscillatory)

    def test_steady_not_oscillatory(self):
        """Test constant direction is not oscillatory."""
        result = None
        for i in range(6):
            result = self.analyzer.analyze([moving_region(5, 0)], i * 100, frame_count=20 + i)

        self.assertFalse(result.patterns.oscillatory)

    def test_periodic_through_analyzer(self):
        """Test periodic motion is reported once enough frames are seen."""
        result = None
        for i in range(32):
            speed = 10 + 5 * math.sin(2 * math.pi * i / 8)
            result = self.analyzer.analyze([moving_region(speed, 0)], i * 100, frame_count=20 + i)

        self.assertTrue(result.patterns.periodic.detected)
        self.assertAlmostEqual(result.patterns.periodic.period, 0.8, places=6)

    def test_reset(self):
        """Test reset clears the rolling window."""
        self.analyzer.analyze([moving_region(5, 0)], 0, frame_count=20)

        self.analyzer.reset()

        self.assertEqual(self.analyzer.sample_count, 0)


if __name__ == "__main__":
    unittest.main()
