"""Debug visualization and output utilities."""

import logging
from pathlib import Path
from typing import List, Optional, Union

import cv2
import numpy as np

from window_detection.models import DetectionResult, PixelBuffer

logger = logging.getLogger(__name__)

_BEST_COLOR = (0, 255, 0)
_ALTERNATIVE_COLOR = (255, 200, 0)


def save_debug_image(
    image: np.ndarray,
    output_path: Union[str, Path],
    description: Optional[str] = None,
    quality: int = 95
) -> Path:
    """Save a debug image as JPEG.

    Args:
        image: Image array as float32 RGB [0,1], uint8 RGB/RGBA, or uint8 grayscale
        output_path: Path to save debug image; the suffix is forced to .jpg
        description: Optional description to log
        quality: JPEG quality (0-100)

    Returns:
        Path the image was written to.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if image.dtype in (np.float32, np.float64):
        img_uint8 = (np.clip(image, 0.0, 1.0) * 255).astype(np.uint8)
    else:
        img_uint8 = image

    if img_uint8.ndim == 2:
        img_bgr = cv2.cvtColor(img_uint8, cv2.COLOR_GRAY2BGR)
    elif img_uint8.shape[2] == 3:
        img_bgr = cv2.cvtColor(img_uint8, cv2.COLOR_RGB2BGR)
    elif img_uint8.shape[2] == 4:
        img_bgr = cv2.cvtColor(img_uint8, cv2.COLOR_RGBA2BGR)
    else:
        raise ValueError(f"Unsupported number of channels: {img_uint8.shape[2]}")

    if output_path.suffix.lower() not in ['.jpg', '.jpeg']:
        output_path = output_path.with_suffix('.jpg')

    cv2.imwrite(str(output_path), img_bgr, [cv2.IMWRITE_JPEG_QUALITY, quality])

    if description:
        logger.debug(f"Saved debug image: {output_path} - {description}")
    else:
        logger.debug(f"Saved debug image: {output_path}")

    return output_path


def draw_detections(
    image: Union[PixelBuffer, np.ndarray],
    results: List[DetectionResult],
) -> np.ndarray:
    """Draw detected window outlines on a copy of an image.

    The best result is drawn in green, alternatives in yellow, each labelled
    with its rank, shape and confidence.

    Args:
        image: PixelBuffer or uint8 RGB/RGBA array.
        results: Detection results with normalized coordinates.

    Returns:
        uint8 RGB array with the overlay.
    """
    data = image.data if isinstance(image, PixelBuffer) else image
    canvas = np.ascontiguousarray(data[:, :, :3]).copy()
    height, width = canvas.shape[:2]
    thickness = max(2, min(width, height) // 200)

    for rank, result in enumerate(results, 1):
        coords = result.coordinates
        corners = np.array(
            [
                [coords.top_left.x * width, coords.top_left.y * height],
                [coords.top_right.x * width, coords.top_right.y * height],
                [coords.bottom_right.x * width, coords.bottom_right.y * height],
                [coords.bottom_left.x * width, coords.bottom_left.y * height],
            ],
            dtype=np.int32,
        )
        color = _BEST_COLOR if rank == 1 else _ALTERNATIVE_COLOR

        cv2.polylines(canvas, [corners.reshape(-1, 1, 2)], True, color, thickness)
        for corner in corners:
            cv2.circle(canvas, (int(corner[0]), int(corner[1])), thickness * 3, color, -1)

        label = f"#{rank} {result.shape.value} {result.confidence:.2f}"
        origin = (int(corners[0][0]), max(15, int(corners[0][1]) - 8))
        cv2.putText(canvas, label, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2)

    return canvas
