"""Connected edge component extraction via stack-based flood fill."""

import logging
from typing import Iterable, List, Tuple

from window_detection.models import EdgePoint

logger = logging.getLogger(__name__)

Contour = List[Tuple[int, int]]


class ContourExtractor:
    """Groups edge points into 4-connected components.

    The edge mask and visited set are allocated once for the image size and
    reused for every extraction, so one extractor serves all strategy passes of
    a detection call. Not safe to share between threads.
    """

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._size = width * height
        self._mask = bytearray(self._size)
        self._visited = bytearray(self._size)

    def _reset(self) -> None:
        zeros = bytes(self._size)
        self._mask[:] = zeros
        self._visited[:] = zeros

    def _flood_fill(self, start: int) -> Contour:
        width, height = self.width, self.height
        mask, visited = self._mask, self._visited

        contour: Contour = []
        stack = [start]
        push = stack.append

        while stack:
            index = stack.pop()

            # A pixel may be stacked more than once; it is claimed on first pop
            if visited[index] or not mask[index]:
                continue
            visited[index] = 1

            y, x = divmod(index, width)
            contour.append((x, y))

            # Right, left, down, up; only claimable pixels are stacked
            n = index + 1
            if x + 1 < width and mask[n] and not visited[n]:
                push(n)
            n = index - 1
            if x > 0 and mask[n] and not visited[n]:
                push(n)
            n = index + width
            if y + 1 < height and mask[n] and not visited[n]:
                push(n)
            n = index - width
            if y > 0 and mask[n] and not visited[n]:
                push(n)

        return contour

    def extract(self, edge_points: Iterable[EdgePoint], min_size: int) -> List[Contour]:
        """Find all connected components with at least ``min_size`` pixels.

        Args:
            edge_points: Edge points inside the image bounds.
            min_size: Minimum number of pixels for a component to be kept.

        Returns:
            Contours in raster order of their first pixel. Each contour lists
            its pixels in flood-fill visiting order.
        """
        self._reset()
        width = self.width

        # Edge mask, with seeds in raster order
        seeds = []
        for point in edge_points:
            index = point.y * width + point.x
            if not self._mask[index]:
                self._mask[index] = 1
                seeds.append(index)
        seeds.sort()

        contours: List[Contour] = []
        discarded = 0

        # One fill per unclaimed seed
        for index in seeds:
            if self._visited[index]:
                continue
            contour = self._flood_fill(index)
            if len(contour) >= min_size:
                contours.append(contour)
            else:
                discarded += 1

        logger.debug(
            f"Contour extraction (min_size={min_size}): {len(contours)} kept, "
            f"{discarded} discarded from {len(seeds)} edge pixels"
        )

        return contours


def extract_contours(
    edge_points: Iterable[EdgePoint],
    width: int,
    height: int,
    min_size: int,
) -> List[Contour]:
    """Extract connected edge components from an image of the given size."""
    return ContourExtractor(width, height).extract(edge_points, min_size)
