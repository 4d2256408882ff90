"""Debug helpers."""

from window_detection.utils.debug import draw_detections, save_debug_image

__all__ = [
    "draw_detections",
    "save_debug_image",
]
