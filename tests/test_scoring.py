"""Tests for shape classification, confidence scoring and validity checks."""

import math

import pytest

from window_detection.detection.scoring import (
    aspect_score,
    classify_and_score,
    classify_shape,
    interior_angles,
    is_rectangular,
    is_valid_window_candidate,
    polygon_area,
    polygon_perimeter,
    regularity_score,
    size_score,
    vertex_angle,
)
from window_detection.models import Quad, Shape
from window_detection.pipeline import DEFAULT_STRATEGIES

IMAGE_W, IMAGE_H = 800, 600
IMAGE_AREA = IMAGE_W * IMAGE_H


def _rect(x1, y1, x2, y2) -> Quad:
    return Quad.from_points([(x1, y1), (x2, y1), (x2, y2), (x1, y2)])


class TestGeometry:

    def test_right_angle(self) -> None:
        assert vertex_angle((1, 0), (0, 0), (0, 1)) == pytest.approx(90.0)

    def test_zero_length_edge_is_maximally_irregular(self) -> None:
        assert vertex_angle((0, 0), (0, 0), (5, 5)) == 0.0

    def test_rectangle_angles(self) -> None:
        angles = interior_angles(_rect(0, 0, 40, 10).points)
        assert angles == pytest.approx([90.0] * 4)

    def test_shoelace_area_and_perimeter(self) -> None:
        points = _rect(10, 10, 110, 60).points
        assert polygon_area(points) == pytest.approx(5000.0)
        assert polygon_perimeter(points) == pytest.approx(300.0)

    def test_area_independent_of_winding(self) -> None:
        points = _rect(0, 0, 10, 10).points
        assert polygon_area(points) == polygon_area(list(reversed(points)))

    def test_is_rectangular_tolerance(self) -> None:
        assert is_rectangular(_rect(0, 0, 100, 50).points)
        # Parallelogram with 45 degree corners
        assert not is_rectangular([(0, 0), (100, 0), (150, 50), (50, 50)])
        assert not is_rectangular([(0, 0), (1, 0), (1, 1)])


class TestShapeLabel:

    def test_aspect_exactly_at_limit_is_rectangle(self) -> None:
        assert classify_shape(_rect(0, 0, 120, 100)) is Shape.RECTANGLE

    def test_aspect_just_below_limit_is_square(self) -> None:
        assert classify_shape(_rect(0, 0, 119.999, 100)) is Shape.SQUARE

    def test_tall_rectangle(self) -> None:
        assert classify_shape(_rect(0, 0, 100, 300)) is Shape.RECTANGLE

    def test_degenerate_is_unknown(self) -> None:
        quad = Quad.from_points([(0, 0), (0, 0), (10, 10), (0, 10)])
        assert classify_shape(quad) is Shape.UNKNOWN


class TestScores:

    def test_size_score_curve(self) -> None:
        assert size_score(1.0) == pytest.approx(1.0)
        assert size_score(0.5) == pytest.approx(math.log(11) / math.log(21))
        assert size_score(0.05) < size_score(0.1) < size_score(0.5)

    def test_regularity_perfect(self) -> None:
        assert regularity_score(_rect(0, 0, 10, 20).points) == pytest.approx(1.0)

    def test_aspect_score(self) -> None:
        assert aspect_score(1.5) == 1.0
        assert aspect_score(3.0) == 0.5
        assert aspect_score(4.0) == 0.5


class TestClassifyAndScore:

    def test_large_rectangle(self) -> None:
        candidate = classify_and_score(_rect(100, 100, 700, 500), IMAGE_AREA)

        assert candidate is not None
        assert candidate.shape is Shape.RECTANGLE
        assert candidate.relative_area == pytest.approx(0.5)
        assert candidate.aspect_ratio == pytest.approx(1.5)
        expected = 0.6 * math.log(11) / math.log(21) + 0.3 + 0.1
        assert candidate.confidence == pytest.approx(expected)
        assert candidate.perimeter == pytest.approx(2000.0)

    def test_near_right_angles_are_regular_and_accepted(self) -> None:
        quad = Quad.from_points([(200, 150), (600, 160), (610, 450), (190, 440)])
        assert all(abs(a - 90) < 5 for a in interior_angles(quad.points))
        assert polygon_area(quad.points) >= 0.1 * IMAGE_AREA

        candidate = classify_and_score(quad, IMAGE_AREA)

        assert candidate is not None
        assert candidate.regularity > 0.9
        assert candidate.confidence > DEFAULT_STRATEGIES[0].confidence_threshold

    @pytest.mark.parametrize("side", [50, 100, 150])
    def test_small_area_rejected(self, side) -> None:
        # 150 * 150 / 480000 = 0.047
        assert classify_and_score(_rect(300, 200, 300 + side, 200 + side), IMAGE_AREA) is None

    def test_area_at_minimum_accepted(self) -> None:
        # 240 * 100 / 480000 = 0.05
        assert classify_and_score(_rect(100, 100, 340, 200), IMAGE_AREA) is not None

    def test_skewed_quad_rejected(self) -> None:
        quad = Quad.from_points([(100, 100), (500, 100), (700, 400), (300, 400)])
        assert classify_and_score(quad, IMAGE_AREA) is None

    def test_degenerate_quad_rejected_without_error(self) -> None:
        quad = Quad.from_points([(100, 100), (100, 100), (100, 100), (100, 100)])
        assert classify_and_score(quad, IMAGE_AREA) is None

        collapsed = Quad.from_points([(100, 100), (500, 100), (500, 100), (100, 400)])
        assert classify_and_score(collapsed, IMAGE_AREA) is None

    def test_elongated_gets_aspect_penalty(self) -> None:
        candidate = classify_and_score(_rect(50, 200, 750, 420), IMAGE_AREA)
        assert candidate is not None
        assert candidate.aspect_ratio > 3
        expected = (
            0.6 * math.log(candidate.relative_area * 20 + 1) / math.log(21)
            + 0.3 * 1.0
            + 0.1 * 0.5
        )
        assert candidate.confidence == pytest.approx(expected)

    def test_confidence_in_unit_range(self) -> None:
        candidate = classify_and_score(_rect(0, 0, IMAGE_W, IMAGE_H), IMAGE_AREA)
        assert candidate is not None
        assert 0.0 <= candidate.confidence <= 1.0


class TestIsValidWindowCandidate:
    """Margin is 5% of min(800, 600) = 30 px."""

    def test_centered_window_is_valid(self) -> None:
        assert is_valid_window_candidate(_rect(100, 100, 700, 500), IMAGE_W, IMAGE_H)

    @pytest.mark.parametrize("quad", [
        _rect(20, 100, 700, 500),
        _rect(100, 20, 700, 500),
        _rect(100, 100, 790, 500),
        _rect(100, 100, 700, 580),
        Quad.from_points([(0, 0), (700, 100), (700, 500), (100, 500)]),
    ])
    def test_corner_in_margin_is_invalid(self, quad) -> None:
        assert not is_valid_window_candidate(quad, IMAGE_W, IMAGE_H)

    def test_margin_boundary_is_valid(self) -> None:
        assert is_valid_window_candidate(_rect(30, 30, 770, 570), IMAGE_W, IMAGE_H)

    def test_margin_applies_regardless_of_confidence(self) -> None:
        quad = _rect(10, 10, 790, 590)
        candidate = classify_and_score(quad, IMAGE_AREA)
        assert candidate is not None and candidate.confidence > 0.9
        assert not is_valid_window_candidate(quad, IMAGE_W, IMAGE_H)

    def test_too_thin_is_invalid(self) -> None:
        # 600 x 100, aspect 6
        assert not is_valid_window_candidate(_rect(100, 250, 700, 350), IMAGE_W, IMAGE_H)

    def test_aspect_five_is_valid(self) -> None:
        assert is_valid_window_candidate(_rect(100, 250, 600, 350), IMAGE_W, IMAGE_H)


def test_point_alias_shared_with_models() -> None:
    from window_detection import models
    from window_detection.detection import scoring

    assert scoring.Point is models.Point
