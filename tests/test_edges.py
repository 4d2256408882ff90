"""Tests for Sobel edge detection."""

import numpy as np
import pytest

from window_detection.detection.edges import detect_edges, gradient_magnitude

from synthetic import buffer_from_gray


def _vertical_step(width: int = 10, height: int = 10, split: int = 5, value: int = 100):
    gray = np.zeros((height, width), dtype=np.uint8)
    gray[:, split:] = value
    return buffer_from_gray(gray)


class TestGradientMagnitude:

    def test_step_edge_magnitude(self) -> None:
        magnitude = gradient_magnitude(_vertical_step())

        # Full Sobel response on both sides of the step: (1 + 2 + 1) * 100
        assert magnitude[5, 4] == pytest.approx(400.0)
        assert magnitude[5, 5] == pytest.approx(400.0)
        assert magnitude[5, 3] == pytest.approx(0.0)
        assert magnitude[5, 6] == pytest.approx(0.0)

    def test_border_is_zero(self) -> None:
        magnitude = gradient_magnitude(_vertical_step())
        assert np.all(magnitude[0, :] == 0)
        assert np.all(magnitude[-1, :] == 0)
        assert np.all(magnitude[:, 0] == 0)
        assert np.all(magnitude[:, -1] == 0)

    def test_diagonal_uses_both_kernels(self) -> None:
        gray = np.zeros((5, 5), dtype=np.uint8)
        gray[2:, 2:] = 100
        magnitude = gradient_magnitude(buffer_from_gray(gray))

        # Only the (2, 2) neighbor of (1, 1) is bright: gx = gy = 100
        assert magnitude[1, 1] == pytest.approx(100 * np.sqrt(2))


class TestDetectEdges:

    def test_points_in_raster_order(self) -> None:
        points = list(detect_edges(_vertical_step(), threshold=30))

        assert len(points) == 16
        assert [(p.x, p.y) for p in points[:4]] == [(4, 1), (5, 1), (4, 2), (5, 2)]
        assert all(p.magnitude == pytest.approx(400.0) for p in points)

    def test_threshold_is_exclusive(self) -> None:
        assert list(detect_edges(_vertical_step(), threshold=400)) == []
        assert len(list(detect_edges(_vertical_step(), threshold=399.9))) == 16

    def test_border_pixels_excluded(self) -> None:
        gray = np.zeros((8, 8), dtype=np.uint8)
        gray[:, 0] = 200
        points = list(detect_edges(buffer_from_gray(gray), threshold=30))

        assert points
        assert all(0 < p.x < 7 and 0 < p.y < 7 for p in points)

    def test_uniform_image_has_no_edges(self) -> None:
        gray = np.full((30, 40), 128, dtype=np.uint8)
        assert list(detect_edges(buffer_from_gray(gray), threshold=1)) == []

    def test_restartable_and_deterministic(self) -> None:
        buffer = _vertical_step()
        first = list(detect_edges(buffer, threshold=30))
        second = list(detect_edges(buffer, threshold=30))
        assert first == second

    def test_lower_threshold_finds_more(self) -> None:
        gray = np.zeros((20, 20), dtype=np.uint8)
        gray[:, 10:] = 100
        gray[10:, :] += 10
        buffer = buffer_from_gray(gray)

        strict = list(detect_edges(buffer, threshold=100))
        relaxed = list(detect_edges(buffer, threshold=20))
        assert len(relaxed) > len(strict)

    def test_tiny_buffer_yields_nothing(self) -> None:
        gray = np.array([[0, 255], [255, 0]], dtype=np.uint8)
        assert list(detect_edges(buffer_from_gray(gray), threshold=0)) == []
