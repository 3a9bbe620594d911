"""
Frame model - a timestamped pixel buffer handed to the engine.
"""

from dataclasses import dataclass

import cv2
import numpy as np

from ..utils.errors import FrameError


@dataclass(frozen=True)
class Frame:
    """
    A single video frame.

    Attributes:
        pixels: Pixel buffer. (H, W) grayscale, (H, W, 3) BGR as produced by
                OpenCV, or (H, W, 4) RGBA as produced by canvas capture.
        timestamp: Capture time in milliseconds
    """

    pixels: np.ndarray
    timestamp: int

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def grayscale(self) -> np.ndarray:
        """Return luminance as a float32 (H, W) array."""
        return to_grayscale(self.pixels)


def to_grayscale(pixels: np.ndarray) -> np.ndarray:
    """
    Convert a pixel buffer to float32 luminance (0.299 R + 0.587 G + 0.114 B).

    Raises:
        FrameError: If the buffer is not a 2-D, 3-channel or 4-channel image
    """
    pixels = np.asarray(pixels)
    if pixels.ndim < 2 or pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise FrameError(f"Frame must be a non-empty image, got shape {pixels.shape}")

    if pixels.dtype not in (np.uint8, np.float32):
        pixels = pixels.astype(np.float32)

    if pixels.ndim == 2:
        return pixels.astype(np.float32, copy=False)

    if pixels.ndim == 3 and pixels.shape[2] == 3:
        gray = cv2.cvtColor(pixels, cv2.COLOR_BGR2GRAY)
    elif pixels.ndim == 3 and pixels.shape[2] == 4:
        gray = cv2.cvtColor(pixels, cv2.COLOR_RGBA2GRAY)
    else:
        raise FrameError(f"Unsupported frame shape: {pixels.shape}")

    return gray.astype(np.float32, copy=False)
