"""
Optical Flow - block-matching motion vectors between two grayscale frames.

The previous frame is tiled into fixed-size blocks. For every block, each
offset in a bounded search window is scored by the sum of absolute
differences (SAD) against the current frame; the lowest SAD wins. The
search is vectorised over the whole grid, one pass per offset.

Regions come straight from the grid: a block whose flow is fast and
confident enough becomes a region, so no connected-component step is needed.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from ..models import BoundingBox, MotionAlgorithm, MotionRegion, MotionVector
from ..regions import filter_regions
from ..utils.constants import FLOW_MIN_CONFIDENCE
from .registry import register

logger = logging.getLogger(__name__)


@dataclass
class FlowField:
    """
    Per-block flow estimates, each array shaped (rows, cols).

    dx/dy are in pixels per frame; angle in radians.
    """

    dx: np.ndarray
    dy: np.ndarray
    magnitude: np.ndarray
    angle: np.ndarray
    confidence: np.ndarray
    block_size: int

    @property
    def shape(self) -> tuple[int, int]:
        return self.magnitude.shape

    def vector_at(self, row: int, col: int) -> MotionVector:
        return MotionVector(
            x=float(self.dx[row, col]),
            y=float(self.dy[row, col]),
            magnitude=float(self.magnitude[row, col]),
            angle=float(self.angle[row, col]),
            confidence=float(self.confidence[row, col]),
        )


def search_offsets(search_range: int, step: int) -> list[int]:
    """Offsets symmetric around zero, zero always included."""
    positive = list(range(step, search_range + 1, step))
    return [-k for k in reversed(positive)] + [0] + positive


def estimate_block_flow(
    previous: np.ndarray,
    current: np.ndarray,
    block_size: int = 16,
    search_range: int = 16,
    search_step: int = 2,
) -> FlowField:
    """
    Block-matching flow from previous to current.

    Offsets that would read outside the current frame are invalid. On equal
    SAD the zero offset wins, otherwise the first minimum in scan order
    (dy outer, dx inner), so identical frames always produce zero flow.

    Args:
        previous: float32 (H, W) earlier frame
        current: float32 (H, W) newer frame
        block_size: Block edge in pixels
        search_range: Maximum displacement searched in each direction
        search_step: Offset stride

    Returns:
        FlowField covering the full-block tiling of the frame
    """
    height, width = previous.shape
    rows, cols = height // block_size, width // block_size

    if rows == 0 or cols == 0:
        empty = np.zeros((rows, cols), dtype=np.float32)
        return FlowField(empty, empty, empty, empty, empty, block_size)

    grid_h, grid_w = rows * block_size, cols * block_size
    reference = previous[:grid_h, :grid_w].astype(np.float32, copy=False)

    # Out-of-frame pixels are infinite so any window touching them loses
    padded = np.pad(
        current.astype(np.float32, copy=False),
        search_range,
        mode="constant",
        constant_values=np.inf,
    )

    offsets = search_offsets(search_range, search_step)
    candidates = [(dy, dx) for dy in offsets for dx in offsets]
    errors = np.empty((len(candidates), rows, cols), dtype=np.float32)

    for index, (dy, dx) in enumerate(candidates):
        top = search_range + dy
        left = search_range + dx
        window = padded[top : top + grid_h, left : left + grid_w]
        sad = np.abs(reference - window)
        errors[index] = sad.reshape(rows, block_size, cols, block_size).sum(axis=(1, 3))

    zero_index = candidates.index((0, 0))
    best = errors.argmin(axis=0)
    min_error = np.take_along_axis(errors, best[np.newaxis], axis=0)[0]
    best = np.where(errors[zero_index] <= min_error, zero_index, best)
    best_error = np.take_along_axis(errors, best[np.newaxis], axis=0)[0]

    offset_dy = np.array([c[0] for c in candidates], dtype=np.float32)
    offset_dx = np.array([c[1] for c in candidates], dtype=np.float32)
    dy = offset_dy[best]
    dx = offset_dx[best]

    confidence = np.maximum(
        0.0, 1.0 - best_error / (block_size * block_size * 255.0)
    ).astype(np.float32)

    return FlowField(
        dx=dx,
        dy=dy,
        magnitude=np.hypot(dx, dy),
        angle=np.arctan2(dy, dx),
        confidence=confidence,
        block_size=block_size,
    )


def flow_to_regions(
    flow: FlowField,
    timestamp: int,
    motion_threshold: float,
    min_confidence: float = FLOW_MIN_CONFIDENCE,
    prefix: str = "flow",
) -> list[MotionRegion]:
    """One region per block whose magnitude and confidence clear the limits."""
    moving = (flow.magnitude > motion_threshold) & (flow.confidence > min_confidence)
    size = flow.block_size

    regions = []
    for row, col in zip(*np.nonzero(moving)):
        vector = flow.vector_at(row, col)
        bbox = BoundingBox(x=int(col) * size, y=int(row) * size, width=size, height=size)
        regions.append(
            MotionRegion(
                id=f"{prefix}_{timestamp}_{col}_{row}",
                bbox=bbox,
                center=bbox.center,
                area=size * size,
                velocity=vector,
                timestamp=timestamp,
                confidence=vector.confidence,
            )
        )

    return regions


@register(MotionAlgorithm.OPTICAL_FLOW)
class OpticalFlowDetector:
    """Block-matching optical flow detector."""

    algorithm = MotionAlgorithm.OPTICAL_FLOW
    frames_required = 2
    region_prefix = "flow"

    def __init__(self, settings):
        self.settings = settings
        self.last_flow: FlowField | None = None
        logger.debug("Initializing optical flow computation")

    def update_settings(self, settings) -> None:
        self.settings = settings

    def detect(
        self, history: Sequence[np.ndarray], timestamp: int
    ) -> list[MotionRegion]:
        if len(history) < self.frames_required:
            return []

        params = self.settings.optical_flow
        self.last_flow = estimate_block_flow(
            history[-2],
            history[-1],
            block_size=params.block_size,
            search_range=params.search_range,
            search_step=params.search_step,
        )
        regions = flow_to_regions(
            self.last_flow, timestamp, params.motion_threshold, prefix=self.region_prefix
        )
        return filter_regions(
            regions, self.settings.minimum_object_size, self.settings.maximum_object_size
        )

    def reset(self) -> None:
        self.last_flow = None

    def close(self) -> None:
        pass
