"""Shape classification, confidence scoring and validity checks for quads.

Confidence blends three terms:
- size (60%): logarithmic in the quad's share of the image area; quads
  covering less than 5% of the image are rejected outright
- regularity (30%): how close the four interior angles are to 90 degrees
- aspect (10%): mild penalty for extremely elongated shapes
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

from window_detection.models import DetectionCandidate, Point, Quad, Shape

logger = logging.getLogger(__name__)

# Maximum deviation from 90 degrees allowed at any corner
ANGLE_TOLERANCE = 30.0

# Aspect ratio below which a quad is labelled a square
SQUARE_ASPECT_LIMIT = 1.2

# Quads smaller than this share of the image are never windows
MIN_RELATIVE_AREA = 0.05

SIZE_WEIGHT = 0.6
REGULARITY_WEIGHT = 0.3
ASPECT_WEIGHT = 0.1

# Aspect ratios outside (min, max) get the reduced aspect score
PLAUSIBLE_ASPECT = (0.3, 3.0)
ELONGATED_ASPECT_SCORE = 0.5

# Border band, as a fraction of the smaller image dimension
EDGE_MARGIN_RATIO = 0.05

# Quads thinner than this are rejected by the validity gate
MAX_VALID_ASPECT = 5.0


def _distance(p1: Point, p2: Point) -> float:
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def vertex_angle(prev: Point, vertex: Point, nxt: Point) -> float:
    """Angle in degrees at ``vertex`` between the edges to ``prev`` and ``nxt``.

    A zero-length edge has no direction; it yields 0 degrees, the maximum
    possible deviation from a right angle.
    """
    v1 = (prev[0] - vertex[0], prev[1] - vertex[1])
    v2 = (nxt[0] - vertex[0], nxt[1] - vertex[1])

    mag1 = math.hypot(*v1)
    mag2 = math.hypot(*v2)
    if mag1 == 0.0 or mag2 == 0.0:
        return 0.0

    cos_angle = (v1[0] * v2[0] + v1[1] * v2[1]) / (mag1 * mag2)
    return math.degrees(math.acos(max(-1.0, min(1.0, cos_angle))))


def interior_angles(points: Sequence[Point]) -> List[float]:
    """Interior angle at each vertex of a closed polygon, in degrees."""
    n = len(points)
    return [
        vertex_angle(points[i - 1], points[i], points[(i + 1) % n])
        for i in range(n)
    ]


def is_rectangular(points: Sequence[Point], tolerance: float = ANGLE_TOLERANCE) -> bool:
    """True if four points form a quad whose every corner is within ``tolerance`` of 90 degrees."""
    if len(points) != 4:
        return False
    return all(abs(angle - 90.0) < tolerance for angle in interior_angles(points))


def polygon_area(points: Sequence[Point]) -> float:
    """Area of a simple polygon via the shoelace formula."""
    n = len(points)
    total = 0.0
    for i in range(n):
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % n]
        total += x1 * y2 - x2 * y1
    return abs(total) / 2.0


def polygon_perimeter(points: Sequence[Point]) -> float:
    n = len(points)
    return sum(_distance(points[i], points[(i + 1) % n]) for i in range(n))


def side_lengths(quad: Quad) -> Tuple[float, float]:
    """(width, height) measured along the top and left edges."""
    width = _distance(quad.top_left, quad.top_right)
    height = _distance(quad.top_left, quad.bottom_left)
    return width, height


def aspect_ratio(quad: Quad) -> float:
    """Longer side over shorter side; infinite for a quad with a zero-length side."""
    width, height = side_lengths(quad)
    shorter = min(width, height)
    if shorter == 0.0:
        return math.inf
    return max(width, height) / shorter


def classify_shape(quad: Quad) -> Shape:
    ratio = aspect_ratio(quad)
    if math.isinf(ratio):
        return Shape.UNKNOWN
    return Shape.SQUARE if ratio < SQUARE_ASPECT_LIMIT else Shape.RECTANGLE


def size_score(relative_area: float) -> float:
    return min(1.0, math.log(relative_area * 20 + 1) / math.log(21))


def regularity_score(points: Sequence[Point]) -> float:
    """1.0 for perfect right angles, falling linearly with mean deviation."""
    deviations = [abs(angle - 90.0) for angle in interior_angles(points)]
    mean_deviation = sum(deviations) / len(deviations)
    return max(0.0, 1.0 - mean_deviation / 90.0)


def aspect_score(ratio: float) -> float:
    low, high = PLAUSIBLE_ASPECT
    return 1.0 if low < ratio < high else ELONGATED_ASPECT_SCORE


def classify_and_score(
    quad: Quad,
    total_image_area: float,
) -> Optional[DetectionCandidate]:
    """Classify a quad and compute its confidence.

    Args:
        quad: Candidate corners in pixel space.
        total_image_area: Image width * height in pixels.

    Returns:
        DetectionCandidate, or None if the quad is not rectangular enough or
        covers less than 5% of the image.
    """
    points = quad.points

    if not is_rectangular(points):
        return None

    shape = classify_shape(quad)
    if shape is Shape.UNKNOWN:
        return None

    area = polygon_area(points)
    relative_area = area / total_image_area if total_image_area > 0 else 0.0
    if relative_area < MIN_RELATIVE_AREA:
        return None

    ratio = aspect_ratio(quad)
    regularity = regularity_score(points)

    confidence = (
        size_score(relative_area) * SIZE_WEIGHT
        + regularity * REGULARITY_WEIGHT
        + aspect_score(ratio) * ASPECT_WEIGHT
    )
    confidence = max(0.0, min(1.0, confidence))

    return DetectionCandidate(
        quad=quad,
        confidence=confidence,
        shape=shape,
        area=area,
        perimeter=polygon_perimeter(points),
        relative_area=relative_area,
        aspect_ratio=ratio,
        regularity=regularity,
    )


def is_valid_window_candidate(quad: Quad, width: int, height: int) -> bool:
    """Reject quads touching the image border band or implausibly thin.

    Args:
        quad: Corners in pixel space.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        False if any corner lies within 5% of the smaller image dimension from
        an edge, or if the aspect ratio exceeds 5.
    """
    margin = min(width, height) * EDGE_MARGIN_RATIO

    for x, y in quad.points:
        if x < margin or x > width - margin or y < margin or y > height - margin:
            return False

    return aspect_ratio(quad) <= MAX_VALID_ASPECT
