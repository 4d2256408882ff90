"""Tests for debug overlay utilities."""

import numpy as np

from window_detection.models import DetectionResult, NormalizedPoint, Shape, WindowCoordinates
from window_detection.utils.debug import draw_detections, save_debug_image


def _result() -> DetectionResult:
    coords = WindowCoordinates(
        top_left=NormalizedPoint(0.25, 0.25),
        top_right=NormalizedPoint(0.75, 0.25),
        bottom_left=NormalizedPoint(0.25, 0.75),
        bottom_right=NormalizedPoint(0.75, 0.75),
    )
    return DetectionResult(coordinates=coords, confidence=0.8, shape=Shape.SQUARE)


def test_draw_detections_marks_outline() -> None:
    image = np.zeros((200, 200, 4), dtype=np.uint8)
    overlay = draw_detections(image, [_result()])

    assert overlay.shape == (200, 200, 3)
    # Top edge of the best result is drawn in green
    assert tuple(overlay[50, 100]) == (0, 255, 0)
    assert not image.any()


def test_draw_detections_without_results() -> None:
    image = np.full((50, 60, 3), 7, dtype=np.uint8)
    overlay = draw_detections(image, [])
    np.testing.assert_array_equal(overlay, image)


def test_save_debug_image_forces_jpeg(tmp_path) -> None:
    image = np.zeros((20, 30, 3), dtype=np.float32)
    out = save_debug_image(image, tmp_path / "nested" / "overlay.png")

    assert out.suffix == ".jpg"
    assert out.exists()
