"""
Tests for detection algorithms
"""

import unittest

import numpy as np

from motion_tracking.config import MotionDetectionSettings
from motion_tracking.detection import DETECTOR_REGISTRY, Detector, build_detector
from motion_tracking.detection.background import (
    BackgroundSubtractionDetector,
    GaussianBackground,
    GaussianMixtureDetector,
    RunningMeanBackground,
)
from motion_tracking.detection.differencing import (
    EdgeBasedDetector,
    FrameDifferenceDetector,
    TemporalDifferenceDetector,
)
from motion_tracking.detection.edges import sobel_magnitude
from motion_tracking.detection.hybrid import AIEnhancedDetector, HybridDetector
from motion_tracking.detection.optical_flow import (
    OpticalFlowDetector,
    estimate_block_flow,
    search_offsets,
)
from motion_tracking.models import BoundingBox, MotionAlgorithm
from motion_tracking.regions import compactness


def blank(size=64):
    return np.zeros((size, size), dtype=np.float32)


def with_square(x=20, y=20, side=10, value=255.0, size=64):
    frame = blank(size)
    frame[y : y + side, x : x + side] = value
    return frame


def settings(**overrides):
    values = {"minimum_object_size": 50, "morphological_ops": False}
    values.update(overrides)
    return MotionDetectionSettings(**values)


class TestRunningMeanBackground(unittest.TestCase):
    """Test running mean model."""

    def test_seed_returns_none(self):
        """Test first frame seeds the model."""
        model = RunningMeanBackground()

        self.assertIsNone(model.foreground_mask(blank(), 0.05, 25))
        self.assertTrue(model.is_seeded)

    def test_update_blends(self):
        """Test mean moves toward the frame by the learning rate."""
        model = RunningMeanBackground()
        model.seed(blank())

        model.update(np.full((64, 64), 100.0, dtype=np.float32), 0.1)

        self.assertAlmostEqual(float(model.mean[0, 0]), 10.0, places=4)

    def test_reset(self):
        """Test reset clears the model."""
        model = RunningMeanBackground()
        model.seed(blank())

        model.reset()

        self.assertFalse(model.is_seeded)


class TestBackgroundSubtractionDetector(unittest.TestCase):
    """Test background subtraction detection."""

    def test_cold_start(self):
        """Test first frame yields nothing, even with content."""
        detector = BackgroundSubtractionDetector(settings())

        self.assertEqual(detector.detect((with_square(),), 0), [])

    def test_static_scene(self):
        """Test identical frames yield nothing."""
        detector = BackgroundSubtractionDetector(settings())
        detector.detect((blank(),), 0)

        self.assertEqual(detector.detect((blank(),), 100), [])

    def test_detects_new_object(self):
        """Test an object appearing on a static scene is detected."""
        detector = BackgroundSubtractionDetector(settings())
        detector.detect((blank(),), 0)

        regions = detector.detect((with_square(),), 100)

        self.assertEqual(len(regions), 1)
        self.assertEqual(regions[0].bbox, BoundingBox(20, 20, 10, 10))
        self.assertEqual(regions[0].area, 100)
        self.assertTrue(regions[0].id.startswith("bgsub_100_"))

    def test_reset_reapplies_cold_start(self):
        """Test reset makes the next frame a seeding frame."""
        detector = BackgroundSubtractionDetector(settings())
        detector.detect((blank(),), 0)

        detector.reset()

        self.assertEqual(detector.detect((with_square(),), 100), [])

    def test_threshold_update(self):
        """Test update_settings keeps the learned background."""
        detector = BackgroundSubtractionDetector(settings())
        detector.detect((blank(),), 0)

        detector.update_settings(settings(threshold=250))

        self.assertTrue(detector.model.is_seeded)
        self.assertEqual(detector.detect((with_square(value=200.0),), 100), [])


class TestGaussianMixture(unittest.TestCase):
    """Test Gaussian background detection."""

    def test_seed_and_static(self):
        """Test first frame seeds and an identical frame yields nothing."""
        detector = GaussianMixtureDetector(settings())

        self.assertEqual(detector.detect((blank(),), 0), [])
        self.assertEqual(detector.detect((blank(),), 100), [])

    def test_detects_outlier(self):
        """Test pixels far outside the variance are foreground."""
        detector = GaussianMixtureDetector(settings())
        detector.detect((blank(),), 0)

        regions = detector.detect((with_square(),), 100)

        self.assertEqual(len(regions), 1)
        self.assertEqual(regions[0].bbox, BoundingBox(20, 20, 10, 10))

    def test_foreground_not_absorbed(self):
        """Test foreground pixels leave the model untouched."""
        model = GaussianBackground()
        model.foreground_mask(blank(), 0.05)

        model.foreground_mask(with_square(), 0.05)

        self.assertEqual(float(model.mean[25, 25]), 0.0)
        self.assertEqual(float(model.variance[25, 25]), 100.0)

    def test_variance_floor(self):
        """Test background variance never drops below the floor."""
        model = GaussianBackground()
        model.foreground_mask(blank(), 0.5)

        for _ in range(20):
            model.foreground_mask(blank(), 0.5)

        self.assertAlmostEqual(float(model.variance.min()), 10.0, places=4)


class TestFrameDifference(unittest.TestCase):
    """Test two- and three-frame differencing."""

    def test_needs_two_frames(self):
        """Test a single frame yields nothing."""
        detector = FrameDifferenceDetector(settings())

        self.assertEqual(detector.detect((with_square(),), 0), [])

    def test_identical_frames(self):
        """Test identical frames yield nothing."""
        detector = FrameDifferenceDetector(settings())
        frame = with_square()

        self.assertEqual(detector.detect((frame, frame.copy()), 100), [])

    def test_change_detected(self):
        """Test a new object is detected."""
        detector = FrameDifferenceDetector(settings())

        regions = detector.detect((blank(), with_square()), 100)

        self.assertEqual(len(regions), 1)
        self.assertEqual(regions[0].bbox, BoundingBox(20, 20, 10, 10))

    def test_thin_strip_filtered(self):
        """Test the detector drops noise strips before returning regions."""
        detector = FrameDifferenceDetector(settings())
        frame = with_square()
        frame[40:42, 0:60] = 255.0

        regions = detector.detect((blank(), frame), 100)

        self.assertEqual([r.bbox for r in regions], [BoundingBox(20, 20, 10, 10)])

    def test_temporal_needs_three_frames(self):
        """Test temporal difference waits for three frames."""
        detector = TemporalDifferenceDetector(settings())

        self.assertEqual(detector.detect((blank(), with_square()), 100), [])

    def test_temporal_suppresses_flicker(self):
        """Test a change present only in the newest frame is ignored."""
        detector = TemporalDifferenceDetector(settings())

        self.assertEqual(detector.detect((blank(), blank(), with_square()), 200), [])

    def test_temporal_sustained_change(self):
        """Test a change across both frame pairs is detected."""
        detector = TemporalDifferenceDetector(settings())
        history = (blank(), with_square(value=100.0), with_square(value=200.0))

        regions = detector.detect(history, 200)

        self.assertEqual(len(regions), 1)
        self.assertEqual(regions[0].bbox, BoundingBox(20, 20, 10, 10))


class TestEdgeBased(unittest.TestCase):
    """Test edge-map differencing."""

    def test_sobel_border_and_range(self):
        """Test the edge map is clipped and has a zero border."""
        edges = sobel_magnitude(with_square(x=0, y=0, side=20))

        self.assertLessEqual(float(edges.max()), 255.0)
        self.assertEqual(float(edges[0, :].max()), 0.0)
        self.assertEqual(float(edges[:, 0].max()), 0.0)

    def test_flat_frame_has_no_edges(self):
        """Test a uniform frame has no gradient."""
        self.assertEqual(float(sobel_magnitude(blank()).max()), 0.0)

    def test_identical_frames(self):
        """Test identical frames yield nothing."""
        detector = EdgeBasedDetector(settings())
        frame = with_square()

        self.assertEqual(detector.detect((frame, frame.copy()), 100), [])

    def test_new_edges_detected(self):
        """Test a new object's outline is detected."""
        detector = EdgeBasedDetector(settings())

        regions = detector.detect((blank(), with_square(side=20)), 100)

        self.assertGreaterEqual(len(regions), 1)
        for region in regions:
            self.assertTrue(region.bbox.overlaps(BoundingBox(20, 20, 20, 20)))


class TestOpticalFlow(unittest.TestCase):
    """Test block-matching optical flow."""

    def setUp(self):
        rng = np.random.default_rng(0)
        self.texture = rng.uniform(0, 255, size=(64, 64)).astype(np.float32)

    def test_search_offsets(self):
        """Test offsets are symmetric and include zero."""
        self.assertEqual(search_offsets(4, 2), [-4, -2, 0, 2, 4])
        self.assertIn(0, search_offsets(5, 3))

    def test_identical_frames_zero_flow(self):
        """Test identical frames produce zero flow everywhere."""
        flow = estimate_block_flow(self.texture, self.texture.copy(), 8, 8, 2)

        self.assertEqual(flow.shape, (8, 8))
        self.assertTrue(np.all(flow.magnitude == 0))
        self.assertTrue(np.allclose(flow.confidence, 1.0))

    def test_uniform_frames_zero_flow(self):
        """Test textureless frames prefer the zero offset."""
        flow = estimate_block_flow(blank(), blank(), 16, 16, 2)

        self.assertTrue(np.all(flow.magnitude == 0))

    def test_horizontal_shift(self):
        """Test a 4 px shift to the right is recovered."""
        shifted = np.roll(self.texture, 4, axis=1)

        flow = estimate_block_flow(self.texture, shifted, 8, 8, 2)

        # Last column would have to look outside the frame
        self.assertTrue(np.all(flow.dx[:, :-1] == 4))
        self.assertTrue(np.all(flow.dy[:, :-1] == 0))
        self.assertTrue(np.allclose(flow.confidence[:, :-1], 1.0))

    def test_partial_tiling(self):
        """Test frames not divisible by the block size are tiled fully inside."""
        frame = np.zeros((40, 50), dtype=np.float32)

        flow = estimate_block_flow(frame, frame, 16, 4, 2)

        self.assertEqual(flow.shape, (2, 3))

    def test_detector_regions(self):
        """Test moving blocks become regions carrying their flow vector."""
        detector = OpticalFlowDetector(
            settings(minimum_object_size=1, optical_flow={"block_size": 8, "search_range": 8})
        )
        shifted = np.roll(self.texture, 4, axis=1)

        regions = detector.detect((self.texture, shifted), 100)
        interior = [r for r in regions if r.bbox.right <= 56]

        self.assertEqual(len(interior), 56)
        for region in interior:
            self.assertEqual(region.velocity.x, 4.0)
            self.assertEqual(region.area, 64)
            self.assertEqual(region.bbox.width, 8)

    def test_detector_filters_small_blocks(self):
        """Test blocks below the minimum object size are dropped."""
        detector = OpticalFlowDetector(
            settings(minimum_object_size=100, optical_flow={"block_size": 8, "search_range": 8})
        )
        shifted = np.roll(self.texture, 4, axis=1)

        self.assertEqual(detector.detect((self.texture, shifted), 100), [])

    def test_detector_static(self):
        """Test identical frames yield no regions."""
        detector = OpticalFlowDetector(settings())

        self.assertEqual(detector.detect((self.texture, self.texture.copy()), 100), [])

    def test_detector_needs_two_frames(self):
        """Test a single frame yields nothing."""
        detector = OpticalFlowDetector(settings())

        self.assertEqual(detector.detect((self.texture,), 0), [])
        self.assertIsNone(detector.last_flow)


class TestCompositeDetectors(unittest.TestCase):
    """Test hybrid and AI-enhanced detectors."""

    def test_hybrid_cold_start(self):
        """Test the first frame only seeds the background constituent."""
        detector = HybridDetector(settings())
        try:
            self.assertEqual(detector.detect((blank(),), 0), [])
        finally:
            detector.close()

    def test_hybrid_detects_object(self):
        """Test constituents agree on a new object."""
        detector = HybridDetector(settings())
        try:
            detector.detect((blank(),), 0)
            regions = detector.detect((blank(), with_square()), 100)
        finally:
            detector.close()

        self.assertGreaterEqual(len(regions), 1)
        self.assertTrue(all(r.confidence > 0.4 for r in regions))
        self.assertTrue(
            any(r.bbox.overlaps(BoundingBox(20, 20, 10, 10)) for r in regions)
        )

    def test_hybrid_reset_propagates(self):
        """Test reset clears every constituent."""
        detector = HybridDetector(settings())
        try:
            detector.detect((blank(),), 0)
            detector.reset()
            background = detector.detectors[0]
            self.assertFalse(background.model.is_seeded)
        finally:
            detector.close()

    def test_ai_enhanced_static(self):
        """Test a static scene yields nothing."""
        detector = AIEnhancedDetector(settings())
        try:
            detector.detect((blank(),), 0)
            self.assertEqual(detector.detect((blank(), blank()), 100), [])
        finally:
            detector.close()

    def test_ai_enhanced_heuristics_hold(self):
        """Test every returned region is moving, compact and confident."""
        detector = AIEnhancedDetector(settings(minimum_object_size=1))
        try:
            detector.detect((blank(),), 0)
            regions = detector.detect((blank(), with_square(side=16)), 100)
        finally:
            detector.close()

        for region in regions:
            self.assertGreaterEqual(region.velocity.magnitude, 1.0)
            self.assertGreaterEqual(compactness(region), 0.2)
            self.assertGreater(region.confidence, 0.4)

    def test_close_is_idempotent(self):
        """Test closing twice is harmless."""
        detector = HybridDetector(settings())
        detector.detect((blank(),), 0)

        detector.close()
        detector.close()


class TestRegistry(unittest.TestCase):
    """Test detector registry."""

    def test_every_algorithm_registered(self):
        """Test build_detector covers all algorithms."""
        for algorithm in MotionAlgorithm:
            detector = build_detector(settings(algorithm=algorithm))
            try:
                self.assertEqual(detector.algorithm, algorithm)
                self.assertIsInstance(detector, Detector)
            finally:
                detector.close()

        self.assertEqual(set(DETECTOR_REGISTRY), set(MotionAlgorithm))


if __name__ == "__main__":
    unittest.main()
