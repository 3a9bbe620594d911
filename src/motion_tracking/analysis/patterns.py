"""
Pattern Analyzer - per-frame motion statistics and coarse pattern flags.

Frame-level statistics come from the current region set alone. Periodic
and oscillatory patterns need a short memory, so the analyzer keeps a
rolling window of (timestamp, total motion, dominant direction) samples.

All flags are triage heuristics with fixed thresholds.
"""

import logging
import math
from collections import deque

import numpy as np

from ..models import (
    MotionAnalysisResult,
    MotionAnomalies,
    MotionPatterns,
    MotionRegion,
    PeriodicPattern,
    VelocityStats,
)
from ..utils.constants import (
    DIRECTIONAL_ANGLE_TOLERANCE_DEG,
    DIRECTIONAL_MIN_FRACTION,
    OSCILLATION_MIN_REVERSALS,
    OSCILLATION_REVERSAL_DEG,
    OSCILLATION_WINDOW,
    PATTERN_WINDOW_SIZE,
    PERIODIC_MIN_POWER_SHARE,
    PERIODIC_MIN_SAMPLES,
    RANDOM_MIN_REGIONS,
    SUDDEN_FRAME_WINDOW,
    SUDDEN_VELOCITY,
    UNUSUAL_VELOCITY,
    VELOCITY_HISTOGRAM_BINS,
)

logger = logging.getLogger(__name__)


def angle_difference(a: float, b: float) -> float:
    """Absolute difference of two angles in radians, wrapped to [0, pi]."""
    return abs((a - b + math.pi) % (2 * math.pi) - math.pi)


def velocity_stats(magnitudes: list[float]) -> VelocityStats:
    """Average, maximum and a histogram over [0, max]."""
    distribution = [0] * VELOCITY_HISTOGRAM_BINS
    if not magnitudes:
        return VelocityStats(average=0.0, maximum=0.0, distribution=distribution)

    maximum = max(magnitudes)
    last_bin = VELOCITY_HISTOGRAM_BINS - 1
    for magnitude in magnitudes:
        index = (
            min(int(magnitude / maximum * VELOCITY_HISTOGRAM_BINS), last_bin)
            if maximum > 0
            else 0
        )
        distribution[index] += 1

    return VelocityStats(
        average=sum(magnitudes) / len(magnitudes),
        maximum=maximum,
        distribution=distribution,
    )


def is_directional(angles: list[float]) -> bool:
    """
    True when at least 70% of angles lie within 45 degrees of their circular mean.

    Needs at least two angles.
    """
    if len(angles) < 2:
        return False

    mean_angle = math.atan2(
        sum(math.sin(a) for a in angles), sum(math.cos(a) for a in angles)
    )
    tolerance = math.radians(DIRECTIONAL_ANGLE_TOLERANCE_DEG)
    aligned = sum(1 for a in angles if angle_difference(a, mean_angle) <= tolerance)
    return aligned / len(angles) >= DIRECTIONAL_MIN_FRACTION


def detect_periodicity(
    timestamps: list[int], totals: list[float]
) -> PeriodicPattern:
    """
    Dominant frequency of the total-motion series.

    The linear trend is removed, then the series goes through a real FFT.
    A period is reported when the strongest non-DC bin holds at least half
    of the non-DC power. Timestamps are milliseconds; the period is seconds.
    """
    if len(totals) < PERIODIC_MIN_SAMPLES:
        return PeriodicPattern()

    series = np.asarray(totals, dtype=np.float64)
    index = np.arange(len(series), dtype=np.float64)
    slope, intercept = np.polyfit(index, series, 1)
    detrended = series - (slope * index + intercept)

    power = np.abs(np.fft.rfft(detrended)) ** 2
    non_dc = power[1:]
    total_power = float(non_dc.sum())
    if total_power <= 1e-12:
        return PeriodicPattern()

    peak = int(np.argmax(non_dc)) + 1
    share = float(power[peak] / total_power)
    interval = float(np.mean(np.diff(timestamps))) / 1000
    if share < PERIODIC_MIN_POWER_SHARE or interval <= 0:
        return PeriodicPattern()

    frequency = peak / (len(series) * interval)
    return PeriodicPattern(detected=True, period=1 / frequency, confidence=share)


def count_reversals(directions_deg: list[float]) -> int:
    """Successive direction changes sharper than the reversal angle."""
    limit = math.radians(OSCILLATION_REVERSAL_DEG)
    reversals = 0
    for previous, current in zip(directions_deg, directions_deg[1:]):
        if angle_difference(math.radians(current), math.radians(previous)) > limit:
            reversals += 1
    return reversals


class PatternAnalyzer:
    """Builds a MotionAnalysisResult per frame."""

    def __init__(self, window_size: int = PATTERN_WINDOW_SIZE):
        self._samples: deque[tuple[int, float, float]] = deque(maxlen=window_size)

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    def analyze(
        self, regions: list[MotionRegion], timestamp: int, frame_count: int
    ) -> MotionAnalysisResult:
        """
        Analyze one frame's regions.

        Args:
            regions: Filtered regions of the frame
            timestamp: Frame timestamp in milliseconds
            frame_count: Frames processed in this session, including this one

        Returns:
            MotionAnalysisResult for the frame
        """
        magnitudes = [r.velocity.magnitude for r in regions]
        total_motion = sum(magnitudes)

        sum_x = sum(r.velocity.magnitude * math.cos(r.velocity.angle) for r in regions)
        sum_y = sum(r.velocity.magnitude * math.sin(r.velocity.angle) for r in regions)
        dominant_direction = math.degrees(math.atan2(sum_y, sum_x))

        self._samples.append((timestamp, total_motion, dominant_direction))

        # Zero vectors carry no direction
        moving_angles = [r.velocity.angle for r in regions if r.velocity.magnitude > 0]
        directional = is_directional(moving_angles)

        patterns = MotionPatterns(
            oscillatory=self._is_oscillatory(),
            directional=directional,
            random=not directional and len(regions) > RANDOM_MIN_REGIONS,
            periodic=self._periodicity(),
        )

        return MotionAnalysisResult(
            timestamp=timestamp,
            total_motion=total_motion,
            motion_centers=[(r.center[0], r.center[1], r.velocity.magnitude) for r in regions],
            dominant_direction=dominant_direction,
            velocity=velocity_stats(magnitudes),
            patterns=patterns,
            anomalies=self._anomalies(magnitudes, frame_count),
        )

    def _periodicity(self) -> PeriodicPattern:
        timestamps = [s[0] for s in self._samples]
        totals = [s[1] for s in self._samples]
        return detect_periodicity(timestamps, totals)

    def _is_oscillatory(self) -> bool:
        moving = [s[2] for s in self._samples if s[1] > 0][-OSCILLATION_WINDOW:]
        return count_reversals(moving) >= OSCILLATION_MIN_REVERSALS

    def _anomalies(self, magnitudes: list[float], frame_count: int) -> MotionAnomalies:
        sudden = frame_count < SUDDEN_FRAME_WINDOW and any(
            m > SUDDEN_VELOCITY for m in magnitudes
        )
        unusual = any(m > UNUSUAL_VELOCITY for m in magnitudes)

        notes = []
        if sudden:
            notes.append("sudden motion at session start")
        if unusual:
            notes.append("unusually fast motion")

        if notes:
            logger.debug(f"Motion anomalies: {', '.join(notes)}")

        return MotionAnomalies(
            sudden=sudden,
            unusual=unusual,
            description="; ".join(notes) if notes else None,
        )

    def reset(self) -> None:
        self._samples.clear()
