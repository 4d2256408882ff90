"""Data types shared by the window detection pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple

import numpy as np

# (x, y) in pixel space
Point = Tuple[float, float]


class WindowDetectionError(Exception):
    """Base class for window detection errors."""


class ImageLoadError(WindowDetectionError):
    """Raised when the image source cannot be decoded into a pixel buffer."""


class Shape(str, Enum):
    """Shape label assigned to a detected quad."""

    RECTANGLE = "rectangle"
    SQUARE = "square"
    UNKNOWN = "unknown"


@dataclass
class PixelBuffer:
    """RGBA sample array owned by a single detection call.

    ``data`` has shape (height, width, 4) and dtype uint8.
    """

    width: int
    height: int
    data: np.ndarray

    CHANNELS = 4

    def __post_init__(self) -> None:
        expected = (self.height, self.width, self.CHANNELS)
        if self.data.shape != expected:
            raise ValueError(
                f"Pixel data shape {self.data.shape} does not match {expected}"
            )
        if self.data.dtype != np.uint8:
            raise ValueError(f"Pixel data must be uint8, got {self.data.dtype}")

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def luminance(self) -> np.ndarray:
        """Red channel, which holds luminance once the buffer is grayscale."""
        return self.data[:, :, 0]


@dataclass(frozen=True)
class EdgePoint:
    """A pixel whose gradient magnitude exceeded the edge threshold."""

    x: int
    y: int
    magnitude: float


@dataclass(frozen=True)
class StrategyParams:
    """Parameters for one detection attempt."""

    edge_threshold: float
    contour_min_size: int
    confidence_threshold: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StrategyParams":
        return cls(
            edge_threshold=float(data["edge_threshold"]),
            contour_min_size=int(data["contour_min_size"]),
            confidence_threshold=float(data["confidence_threshold"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "edge_threshold": self.edge_threshold,
            "contour_min_size": self.contour_min_size,
            "confidence_threshold": self.confidence_threshold,
        }


@dataclass
class Quad:
    """Four corners ordered top-left, top-right, bottom-right, bottom-left."""

    top_left: Point
    top_right: Point
    bottom_right: Point
    bottom_left: Point

    @classmethod
    def from_points(cls, points: List[Point]) -> "Quad":
        if len(points) != 4:
            raise ValueError(f"A quad needs exactly 4 points, got {len(points)}")
        tl, tr, br, bl = (tuple(float(v) for v in p) for p in points)
        return cls(top_left=tl, top_right=tr, bottom_right=br, bottom_left=bl)

    @property
    def points(self) -> List[Point]:
        return [self.top_left, self.top_right, self.bottom_right, self.bottom_left]

    def to_array(self) -> np.ndarray:
        return np.array(self.points, dtype=np.float32)


@dataclass
class DetectionCandidate:
    """A scored quad in pixel space, before validity filtering."""

    quad: Quad
    confidence: float
    shape: Shape
    area: float = field(default=0.0)
    perimeter: float = field(default=0.0)
    relative_area: float = field(default=0.0)
    aspect_ratio: float = field(default=1.0)
    regularity: float = field(default=0.0)


@dataclass
class NormalizedPoint:
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass
class WindowCoordinates:
    """Window corners in resolution-independent [0, 1] coordinates."""

    top_left: NormalizedPoint
    top_right: NormalizedPoint
    bottom_left: NormalizedPoint
    bottom_right: NormalizedPoint

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            "topLeft": self.top_left.to_dict(),
            "topRight": self.top_right.to_dict(),
            "bottomLeft": self.bottom_left.to_dict(),
            "bottomRight": self.bottom_right.to_dict(),
        }


@dataclass
class DetectionResult:
    """A detected window as handed to the caller."""

    coordinates: WindowCoordinates
    confidence: float
    shape: Shape

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coordinates": self.coordinates.to_dict(),
            "confidence": self.confidence,
            "shape": self.shape.value,
        }


def default_window_coordinates() -> WindowCoordinates:
    """Centered placeholder window used when nothing was detected."""
    return WindowCoordinates(
        top_left=NormalizedPoint(0.25, 0.25),
        top_right=NormalizedPoint(0.75, 0.25),
        bottom_left=NormalizedPoint(0.25, 0.75),
        bottom_right=NormalizedPoint(0.75, 0.75),
    )
