"""
Region-to-tracker association.

The default is greedy nearest neighbour: trackers, in creation order, each
claim the closest region not yet claimed within an adaptive radius. It is
order-dependent; swap in a global assignment through the Associator
protocol if that matters.
"""

import math
from typing import Protocol

from ..models import MotionRegion, ObjectTracker


class Associator(Protocol):
    """Matches this frame's regions to existing trackers."""

    def associate(
        self, trackers: list[ObjectTracker], regions: list[MotionRegion]
    ) -> dict[str, int]:
        """
        Returns:
            Mapping of tracker id -> index into regions. Each region index
            appears at most once.
        """
        ...


class GreedyNearestNeighborAssociator:
    """Nearest unused region within max(min_radius, 2 * |velocity|)."""

    def __init__(self, min_radius: float = 50.0):
        self.min_radius = min_radius

    def search_radius(self, tracker: ObjectTracker) -> float:
        return max(self.min_radius, tracker.velocity.magnitude * 2)

    def associate(
        self, trackers: list[ObjectTracker], regions: list[MotionRegion]
    ) -> dict[str, int]:
        matches: dict[str, int] = {}
        used: set[int] = set()

        for tracker in trackers:
            best_index = None
            best_distance = self.search_radius(tracker)

            for index, region in enumerate(regions):
                if index in used:
                    continue
                distance = math.dist(tracker.position, region.center)
                if distance < best_distance:
                    best_distance = distance
                    best_index = index

            if best_index is not None:
                matches[tracker.id] = best_index
                used.add(best_index)

        return matches
