"""
Motion data models - vectors, regions, per-frame analysis and events.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MotionAlgorithm(str, Enum):
    """Detection strategies selectable through settings."""

    BACKGROUND_SUBTRACTION = "background_subtraction"
    OPTICAL_FLOW = "optical_flow"
    FRAME_DIFFERENCE = "frame_difference"
    GAUSSIAN_MIXTURE = "gaussian_mixture"
    TEMPORAL_DIFFERENCE = "temporal_difference"
    EDGE_BASED = "edge_based"
    AI_ENHANCED = "ai_enhanced"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class MotionVector:
    """
    Displacement or velocity vector.

    Attributes:
        x: Horizontal component
        y: Vertical component (image coordinates, down is positive)
        magnitude: Euclidean length
        angle: Direction in radians (atan2(y, x))
        confidence: Estimate quality, 0-1
    """

    x: float = 0.0
    y: float = 0.0
    magnitude: float = 0.0
    angle: float = 0.0
    confidence: float = 0.0

    @classmethod
    def from_components(
        cls, x: float, y: float, confidence: float = 0.0
    ) -> "MotionVector":
        """Build a vector deriving magnitude and angle from x/y."""
        return cls(
            x=float(x),
            y=float(y),
            magnitude=math.hypot(x, y),
            angle=math.atan2(y, x),
            confidence=float(confidence),
        )


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in pixels (x, y is the top-left corner)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height > 0 else math.inf

    def overlaps(self, other: "BoundingBox") -> bool:
        """True if the boxes intersect. Touching edges count as overlap."""
        return not (
            self.right < other.x
            or other.right < self.x
            or self.bottom < other.y
            or other.bottom < self.y
        )

    def union(self, other: "BoundingBox") -> "BoundingBox":
        """Smallest box containing both boxes."""
        x1 = min(self.x, other.x)
        y1 = min(self.y, other.y)
        x2 = max(self.right, other.right)
        y2 = max(self.bottom, other.bottom)
        return BoundingBox(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class MotionRegion:
    """
    A discrete region of motion found in one frame.

    Created fresh each frame by region extraction or merging and never
    mutated afterwards.

    Attributes:
        id: Identifier, unique within the frame
        bbox: Bounding box
        center: (x, y) center of the bounding box
        area: Pixel count
        velocity: Motion vector (zero for mask-based detections)
        timestamp: Frame timestamp in milliseconds
        confidence: Detection confidence, 0-1
    """

    id: str
    bbox: BoundingBox
    center: tuple[float, float]
    area: float
    velocity: MotionVector
    timestamp: int
    confidence: float


@dataclass
class VelocityStats:
    """Velocity statistics over a region set."""

    average: float = 0.0
    maximum: float = 0.0
    distribution: list[int] = field(default_factory=list)


@dataclass
class PeriodicPattern:
    """Result of periodicity analysis over recent frames."""

    detected: bool = False
    period: float | None = None  # seconds
    confidence: float | None = None


@dataclass
class MotionPatterns:
    oscillatory: bool = False
    directional: bool = False
    random: bool = False
    periodic: PeriodicPattern = field(default_factory=PeriodicPattern)


@dataclass
class MotionAnomalies:
    sudden: bool = False
    unusual: bool = False
    description: str | None = None


@dataclass
class MotionAnalysisResult:
    """
    Aggregate statistics for one frame's regions.

    These are coarse triage heuristics, not statistically validated detectors.
    """

    timestamp: int
    total_motion: float
    motion_centers: list[tuple[float, float, float]]  # (x, y, intensity)
    dominant_direction: float  # degrees
    velocity: VelocityStats
    patterns: MotionPatterns
    anomalies: MotionAnomalies


@dataclass
class MotionEvent:
    """
    Emitted once per frame containing at least one motion region.

    The reading/correlation lists are placeholders filled in by external
    collaborators (sensor correlation, recorders). The engine leaves them empty.
    """

    id: str
    timestamp: int
    regions: list[MotionRegion]
    algorithm: MotionAlgorithm
    confidence: float
    duration: float = 0.0
    analysis: MotionAnalysisResult | None = None
    emf_readings: list[Any] = field(default_factory=list)
    audio_readings: list[Any] = field(default_factory=list)
    environmental_readings: list[Any] = field(default_factory=list)
    correlations: list[Any] = field(default_factory=list)
