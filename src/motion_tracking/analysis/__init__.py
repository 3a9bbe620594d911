"""
Motion pattern analysis.
"""

from .patterns import PatternAnalyzer, detect_periodicity, is_directional, velocity_stats

__all__ = ["PatternAnalyzer", "detect_periodicity", "is_directional", "velocity_stats"]
