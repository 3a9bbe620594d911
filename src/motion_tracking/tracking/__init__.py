"""
Multi-target tracking - association, kinematics and prediction.
"""

from .associator import Associator, GreedyNearestNeighborAssociator
from .manager import TrackerManager

__all__ = ["Associator", "GreedyNearestNeighborAssociator", "TrackerManager"]
