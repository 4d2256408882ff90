"""Image loading and grayscale preprocessing."""

from window_detection.preprocessing.grayscale import convert_to_grayscale
from window_detection.preprocessing.loader import load_image, render_to_buffer, sample_image

__all__ = [
    "convert_to_grayscale",
    "load_image",
    "render_to_buffer",
    "sample_image",
]
