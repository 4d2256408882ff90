"""Luminance conversion for pixel buffers."""

import logging

import numpy as np

from window_detection.models import PixelBuffer

logger = logging.getLogger(__name__)

# ITU-R BT.601 luma weights for R, G, B
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def convert_to_grayscale(buffer: PixelBuffer) -> PixelBuffer:
    """Replace each pixel's RGB triplet with its luminance, in place.

    Luminance is rounded to the nearest integer and written to all three color
    channels. Alpha is left untouched.

    Args:
        buffer: Pixel buffer to convert.

    Returns:
        The same buffer, for chaining.
    """
    rgb = buffer.data[:, :, :3].astype(np.float64)
    gray = np.rint(rgb @ LUMA_WEIGHTS)
    gray = np.clip(gray, 0, 255).astype(np.uint8)

    buffer.data[:, :, 0] = gray
    buffer.data[:, :, 1] = gray
    buffer.data[:, :, 2] = gray

    logger.debug(
        f"Converted {buffer.width}x{buffer.height} buffer to grayscale "
        f"(mean luminance {float(gray.mean()):.1f})"
    )

    return buffer
