"""Four-corner polygon approximation of contours."""

from typing import List, Sequence, Tuple

# Distance from a bounding-box corner within which a point counts as that corner
CORNER_BAND = 10


def approximate_polygon(
    points: Sequence[Tuple[float, float]],
    band: float = CORNER_BAND,
) -> List[Tuple[float, float]]:
    """Reduce a point cloud to its four bounding-box corner points.

    Every point lying within ``band`` pixels of a bounding-box corner replaces
    that corner's current pick, so the last such point in scan order wins. The
    first point seeds all four corners. Suited to near-axis-aligned outlines;
    corners of rotated quadrilaterals are not recovered reliably.

    Args:
        points: Contour points as (x, y).
        band: Corner band width in pixels.

    Returns:
        [top_left, top_right, bottom_right, bottom_left], or the input points
        unchanged if there are four or fewer.
    """
    if len(points) <= 4:
        return [tuple(p) for p in points]

    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    top_left = top_right = bottom_left = bottom_right = tuple(points[0])

    for point in points:
        x, y = point
        near_left = x <= min_x + band
        near_right = x >= max_x - band
        near_top = y <= min_y + band
        near_bottom = y >= max_y - band

        if near_left and near_top:
            top_left = (x, y)
        if near_right and near_top:
            top_right = (x, y)
        if near_left and near_bottom:
            bottom_left = (x, y)
        if near_right and near_bottom:
            bottom_right = (x, y)

    return [top_left, top_right, bottom_right, bottom_left]
