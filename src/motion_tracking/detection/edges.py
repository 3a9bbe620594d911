"""
Edge Extraction - Sobel gradient magnitude.
"""

import cv2
import numpy as np


def sobel_magnitude(gray: np.ndarray) -> np.ndarray:
    """
    Gradient magnitude of a grayscale frame.

    Uses 3x3 Sobel kernels, clips to 255 and zeroes the one-pixel border
    where the kernel does not fit.

    Args:
        gray: float32 (H, W) frame

    Returns:
        float32 (H, W) edge map in [0, 255]
    """
    gx = cv2.Sobel(gray, cv2.CV_32F, 1, 0, ksize=3)
    gy = cv2.Sobel(gray, cv2.CV_32F, 0, 1, ksize=3)
    edges = np.minimum(cv2.magnitude(gx, gy), 255.0)

    edges[0, :] = 0
    edges[-1, :] = 0
    edges[:, 0] = 0
    edges[:, -1] = 0
    return edges
