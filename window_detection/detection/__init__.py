"""Edge, contour, polygon and scoring stages of window detection."""

from window_detection.detection.contours import ContourExtractor, extract_contours
from window_detection.detection.edges import detect_edges, gradient_magnitude
from window_detection.detection.polygon import approximate_polygon
from window_detection.detection.scoring import (
    classify_and_score,
    classify_shape,
    is_rectangular,
    is_valid_window_candidate,
)

__all__ = [
    "ContourExtractor",
    "extract_contours",
    "detect_edges",
    "gradient_magnitude",
    "approximate_polygon",
    "classify_and_score",
    "classify_shape",
    "is_rectangular",
    "is_valid_window_candidate",
]
