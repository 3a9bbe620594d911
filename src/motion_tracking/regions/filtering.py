"""
Region Filtering and Merging.

Every detector filters its own regions. Merging then collapses
overlapping regions so one physical object does not register as several
competing regions when multiple algorithms or flow blocks fire on it. The
engine checks the limits once more after merging; a merged area never
exceeds its union box, so overlapping detections are not counted twice.
"""

import math

from ..models import MotionRegion, MotionVector
from ..utils.constants import (
    MAX_ASPECT_RATIO,
    MIN_ASPECT_RATIO,
    MIN_REGION_CONFIDENCE,
)


def passes_filter(region: MotionRegion, min_size: int, max_size: int) -> bool:
    """Check size, aspect ratio and confidence limits for one region."""
    if region.area < min_size or region.area > max_size:
        return False

    if region.bbox.width <= 0 or region.bbox.height <= 0:
        return False

    # Very thin/wide strips are usually noise
    aspect_ratio = region.bbox.aspect_ratio
    if aspect_ratio < MIN_ASPECT_RATIO or aspect_ratio > MAX_ASPECT_RATIO:
        return False

    return region.confidence >= MIN_REGION_CONFIDENCE


def filter_regions(
    regions: list[MotionRegion], min_size: int, max_size: int
) -> list[MotionRegion]:
    """Drop regions outside the size, aspect ratio or confidence limits."""
    return [r for r in regions if passes_filter(r, min_size, max_size)]


def merge_regions(regions: list[MotionRegion]) -> list[MotionRegion]:
    """
    Merge overlapping regions.

    Each group starts from the first unused region and keeps absorbing any
    unused region that overlaps the group's growing union box until nothing
    changes. Order of the output follows the first member of each group.
    """
    if len(regions) <= 1:
        return list(regions)

    merged = []
    used = [False] * len(regions)

    for i, region in enumerate(regions):
        if used[i]:
            continue

        used[i] = True
        group = [region]
        union = region.bbox

        changed = True
        while changed:
            changed = False
            for j, other in enumerate(regions):
                if used[j]:
                    continue
                if union.overlaps(other.bbox):
                    union = union.union(other.bbox)
                    group.append(other)
                    used[j] = True
                    changed = True

        merged.append(combine_regions(group))

    return merged


def combine_regions(group: list[MotionRegion]) -> MotionRegion:
    """
    Combine regions into one.

    Bounding box is the union, velocity the area-weighted average and
    confidence the mean of the constituents. Area is the constituent sum
    capped at the union box area.
    """
    if len(group) == 1:
        return group[0]

    union = group[0].bbox
    for region in group[1:]:
        union = union.union(region.bbox)

    total_area = sum(r.area for r in group)
    if total_area > 0:
        vx = sum(r.velocity.x * r.area for r in group) / total_area
        vy = sum(r.velocity.y * r.area for r in group) / total_area
    else:
        vx = vy = 0.0
    area = min(total_area, union.width * union.height)
    confidence = sum(r.confidence for r in group) / len(group)
    timestamp = max(r.timestamp for r in group)

    return MotionRegion(
        id=f"merged_{timestamp}_{group[0].id}",
        bbox=union,
        center=union.center,
        area=area,
        velocity=MotionVector(
            x=vx,
            y=vy,
            magnitude=math.hypot(vx, vy),
            angle=math.atan2(vy, vx),
            confidence=confidence,
        ),
        timestamp=timestamp,
        confidence=confidence,
    )


def compactness(region: MotionRegion) -> float:
    """4*pi*area / perimeter^2, with the perimeter taken from the bounding box."""
    perimeter = 2 * (region.bbox.width + region.bbox.height)
    if perimeter <= 0:
        return 0.0
    return (4 * math.pi * region.area) / (perimeter * perimeter)
