"""Automatic rectangular window detection for photographs."""

from window_detection.models import (
    DetectionCandidate,
    DetectionResult,
    ImageLoadError,
    Shape,
    StrategyParams,
    WindowCoordinates,
    WindowDetectionError,
)
from window_detection.pipeline import (
    DEFAULT_STRATEGIES,
    DetectorConfig,
    WindowDetector,
    detect_windows,
    detect_windows_async,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_STRATEGIES",
    "DetectionCandidate",
    "DetectionResult",
    "DetectorConfig",
    "ImageLoadError",
    "Shape",
    "StrategyParams",
    "WindowCoordinates",
    "WindowDetectionError",
    "WindowDetector",
    "detect_windows",
    "detect_windows_async",
]
