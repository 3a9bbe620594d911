"""
Region Extraction - Binary change mask to candidate motion regions.

Morphological opening removes speckle noise, then 8-connected component
labeling turns each blob into a region.
"""

import logging

import cv2
import numpy as np

from ..models import BoundingBox, MotionRegion, MotionVector
from ..utils.constants import COMPONENT_CONFIDENCE

logger = logging.getLogger(__name__)


def threshold_mask(difference: np.ndarray, threshold: float) -> np.ndarray:
    """Binary uint8 mask (0/255) of pixels whose difference exceeds threshold."""
    return np.where(difference > threshold, 255, 0).astype(np.uint8)


def morphological_open(mask: np.ndarray, kernel_size: int) -> np.ndarray:
    """Erode then dilate with a square kernel to suppress isolated pixels."""
    if kernel_size <= 1:
        return mask
    kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (kernel_size, kernel_size))
    return cv2.morphologyEx(mask, cv2.MORPH_OPEN, kernel)


def reduce_noise(gray: np.ndarray, sigma: float) -> np.ndarray:
    """Gaussian blur applied to grayscale frames before detection."""
    return cv2.GaussianBlur(gray, (0, 0), sigmaX=sigma, sigmaY=sigma)


def extract_regions(
    mask: np.ndarray,
    timestamp: int,
    min_size: int,
    max_size: int,
    morphology_kernel: int | None = None,
    prefix: str = "region",
) -> list[MotionRegion]:
    """
    Label connected components and convert them to motion regions.

    Args:
        mask: Binary uint8 mask (non-zero = change)
        timestamp: Frame timestamp in milliseconds
        min_size: Minimum component pixel count
        max_size: Maximum component pixel count
        morphology_kernel: Opening kernel size, None to skip the opening
        prefix: Region id prefix (keeps ids unique when detectors are combined)

    Returns:
        Regions in raster-scan order of their first pixel
    """
    if morphology_kernel is not None:
        mask = morphological_open(mask, morphology_kernel)

    if not mask.any():
        return []

    num_labels, _, stats, _ = cv2.connectedComponentsWithStats(
        mask, connectivity=8
    )

    regions = []
    # Label 0 is the background
    for label in range(1, num_labels):
        x, y, w, h, area = (int(v) for v in stats[label])
        if area < min_size or area > max_size:
            continue

        bbox = BoundingBox(x=x, y=y, width=w, height=h)
        regions.append(
            MotionRegion(
                id=f"{prefix}_{timestamp}_{label}",
                bbox=bbox,
                center=bbox.center,
                area=area,
                velocity=MotionVector(confidence=COMPONENT_CONFIDENCE),
                timestamp=timestamp,
                confidence=COMPONENT_CONFIDENCE,
            )
        )

    logger.debug(
        f"{num_labels - 1} component(s), {len(regions)} within size limits"
    )
    return regions
