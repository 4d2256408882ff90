"""Sobel gradient-magnitude edge detection."""

import logging
from typing import Iterator

import cv2
import numpy as np

from window_detection.models import EdgePoint, PixelBuffer

logger = logging.getLogger(__name__)


def gradient_magnitude(buffer: PixelBuffer) -> np.ndarray:
    """Compute the Sobel gradient magnitude of the buffer's luminance.

    Uses the 3x3 kernels [-1 0 1; -2 0 2; -1 0 1] (horizontal) and
    [-1 -2 -1; 0 0 0; 1 2 1] (vertical). Border pixels have no full 3x3
    neighborhood and are set to zero.

    Args:
        buffer: Grayscale pixel buffer.

    Returns:
        float64 array of shape (height, width).
    """
    gray = buffer.luminance.astype(np.float64)

    gx = cv2.Sobel(gray, cv2.CV_64F, 1, 0, ksize=3)
    gy = cv2.Sobel(gray, cv2.CV_64F, 0, 1, ksize=3)
    magnitude = np.sqrt(gx * gx + gy * gy)

    # 1-pixel inset
    magnitude[0, :] = 0.0
    magnitude[-1, :] = 0.0
    magnitude[:, 0] = 0.0
    magnitude[:, -1] = 0.0

    return magnitude


def detect_edges(buffer: PixelBuffer, threshold: float) -> Iterator[EdgePoint]:
    """Yield every interior pixel whose gradient magnitude exceeds ``threshold``.

    Points are produced in raster order (row by row, left to right). The
    generator is lazy; call again for a fresh pass.

    Args:
        buffer: Grayscale pixel buffer.
        threshold: Minimum magnitude (exclusive) for a pixel to count as an edge.

    Yields:
        EdgePoint for each edge pixel.
    """
    if buffer.width < 3 or buffer.height < 3:
        return

    magnitude = gradient_magnitude(buffer)
    ys, xs = np.nonzero(magnitude > threshold)

    logger.debug(f"Edge detection (threshold={threshold}): {len(xs)} edge points")

    for x, y in zip(xs.tolist(), ys.tolist()):
        yield EdgePoint(x=x, y=y, magnitude=float(magnitude[y, x]))
