"""Window detection pipeline and multi-strategy orchestration."""

import asyncio
import json
import logging
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from window_detection.detection.contours import ContourExtractor
from window_detection.detection.edges import detect_edges
from window_detection.detection.polygon import approximate_polygon
from window_detection.detection.scoring import classify_and_score, is_valid_window_candidate
from window_detection.models import (
    DetectionCandidate,
    DetectionResult,
    NormalizedPoint,
    PixelBuffer,
    Quad,
    StrategyParams,
    WindowCoordinates,
)
from window_detection.preprocessing.grayscale import convert_to_grayscale
from window_detection.preprocessing.loader import ImageSource, sample_image

logger = logging.getLogger(__name__)

# Moderate first, then relaxed, then strict
DEFAULT_STRATEGIES: Tuple[StrategyParams, ...] = (
    StrategyParams(edge_threshold=30, contour_min_size=50, confidence_threshold=0.2),
    StrategyParams(edge_threshold=20, contour_min_size=30, confidence_threshold=0.15),
    StrategyParams(edge_threshold=40, contour_min_size=80, confidence_threshold=0.25),
)

Dimensions = Union[Mapping[str, int], Sequence[int]]


def load_strategies(path: Union[str, Path]) -> Tuple[StrategyParams, ...]:
    """Read a JSON list of strategy objects from a file.

    Each entry needs ``edge_threshold``, ``contour_min_size`` and
    ``confidence_threshold``.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return _parse_strategies(data)


def _parse_strategies(data: object) -> Tuple[StrategyParams, ...]:
    if not isinstance(data, list) or not data:
        raise ValueError("Strategies must be a non-empty JSON list")
    try:
        return tuple(StrategyParams.from_dict(entry) for entry in data)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid strategy entry: {e}") from e


@dataclass
class DetectorConfig:
    """All tunable parameters in one place."""

    strategies: Tuple[StrategyParams, ...] = field(default=DEFAULT_STRATEGIES)
    early_exit_confidence: float = 0.4
    max_results: int = 3

    def __post_init__(self) -> None:
        self.strategies = tuple(self.strategies)
        if not self.strategies:
            raise ValueError("At least one detection strategy is required")
        if self.max_results < 1:
            raise ValueError(f"max_results must be positive, got {self.max_results}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DetectorConfig":
        """Build a config from WINDOW_DETECT_* environment variables.

        WINDOW_DETECT_STRATEGIES holds a JSON strategy list,
        WINDOW_DETECT_EARLY_EXIT the early-exit confidence and
        WINDOW_DETECT_MAX_RESULTS the result cap. Unset variables keep defaults.
        """
        env = os.environ if environ is None else environ
        kwargs: Dict[str, object] = {}

        raw_strategies = env.get("WINDOW_DETECT_STRATEGIES", "").strip()
        if raw_strategies:
            try:
                kwargs["strategies"] = _parse_strategies(json.loads(raw_strategies))
            except json.JSONDecodeError as e:
                raise ValueError(f"WINDOW_DETECT_STRATEGIES is not valid JSON: {e}") from e

        early_exit = env.get("WINDOW_DETECT_EARLY_EXIT", "").strip()
        if early_exit:
            kwargs["early_exit_confidence"] = float(early_exit)

        max_results = env.get("WINDOW_DETECT_MAX_RESULTS", "").strip()
        if max_results:
            kwargs["max_results"] = int(max_results)

        return cls(**kwargs)


class OrchestratorState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"


PassRunner = Callable[[StrategyParams], List[DetectionResult]]


class StrategyOrchestrator:
    """Runs detection passes under escalating strategies and keeps the best set.

    A result set replaces the best one when it has more results, or when its
    top confidence is higher. Iteration stops as soon as the best set's top
    confidence exceeds ``early_exit_confidence``.
    """

    def __init__(
        self,
        strategies: Sequence[StrategyParams] = DEFAULT_STRATEGIES,
        early_exit_confidence: float = 0.4,
        max_results: int = 3,
    ) -> None:
        if not strategies:
            raise ValueError("At least one detection strategy is required")
        self.strategies = tuple(strategies)
        self.early_exit_confidence = early_exit_confidence
        self.max_results = max_results
        self.state = OrchestratorState.IDLE
        self.strategy_index: Optional[int] = None

    @staticmethod
    def _is_better(results: List[DetectionResult], best: List[DetectionResult]) -> bool:
        if len(results) > len(best):
            return True
        best_top = best[0].confidence if best else 0.0
        return bool(results) and results[0].confidence > best_top

    def run(self, run_pass: PassRunner) -> List[DetectionResult]:
        """Run ``run_pass`` for each strategy until the early-exit condition holds.

        Args:
            run_pass: Callable producing the ranked results of one strategy pass.

        Returns:
            Best result set, sorted by descending confidence, at most
            ``max_results`` long. Empty if nothing was found.
        """
        best: List[DetectionResult] = []

        for index, strategy in enumerate(self.strategies):
            self.state = OrchestratorState.RUNNING
            self.strategy_index = index

            results = run_pass(strategy)
            logger.debug(
                f"Strategy {index + 1}/{len(self.strategies)} {strategy.to_dict()}: "
                f"{len(results)} result(s)"
                + (f", top confidence {results[0].confidence:.3f}" if results else "")
            )

            if self._is_better(results, best):
                best = results

            if best and best[0].confidence > self.early_exit_confidence:
                logger.debug(f"Early exit after strategy {index + 1}")
                break

        self.state = OrchestratorState.DONE

        ranked = sorted(best, key=lambda r: r.confidence, reverse=True)
        return ranked[:self.max_results]


def find_candidates(
    buffer: PixelBuffer,
    strategy: StrategyParams,
    extractor: Optional[ContourExtractor] = None,
) -> List[DetectionCandidate]:
    """Run edges, contours, approximation and scoring for one strategy.

    Returns:
        Candidates above the strategy's confidence threshold, best first.
    """
    if extractor is None:
        extractor = ContourExtractor(buffer.width, buffer.height)

    # Step 1: edges and connected components
    edges = detect_edges(buffer, strategy.edge_threshold)
    contours = extractor.extract(edges, strategy.contour_min_size)

    # Step 2: four-corner approximation, rectangularity and confidence
    candidates: List[DetectionCandidate] = []
    for contour in contours:
        corners = approximate_polygon(contour)
        if len(corners) != 4:
            continue

        candidate = classify_and_score(Quad.from_points(corners), buffer.area)
        if candidate is not None and candidate.confidence > strategy.confidence_threshold:
            candidates.append(candidate)

    # Step 3: best first
    candidates.sort(key=lambda c: c.confidence, reverse=True)
    return candidates


def to_detection_result(candidate: DetectionCandidate, width: int, height: int) -> DetectionResult:
    """Convert a pixel-space candidate into normalized window coordinates."""

    def _norm(point: Tuple[float, float]) -> NormalizedPoint:
        return NormalizedPoint(x=point[0] / width, y=point[1] / height)

    quad = candidate.quad
    coordinates = WindowCoordinates(
        top_left=_norm(quad.top_left),
        top_right=_norm(quad.top_right),
        bottom_left=_norm(quad.bottom_left),
        bottom_right=_norm(quad.bottom_right),
    )
    return DetectionResult(
        coordinates=coordinates,
        confidence=candidate.confidence,
        shape=candidate.shape,
    )


def run_strategy_pass(
    buffer: PixelBuffer,
    strategy: StrategyParams,
    extractor: Optional[ContourExtractor] = None,
    max_results: int = 3,
) -> List[DetectionResult]:
    """One full detection pass: candidates, validity gate, normalization."""
    candidates = find_candidates(buffer, strategy, extractor)[:max_results]

    return [
        to_detection_result(c, buffer.width, buffer.height)
        for c in candidates
        if is_valid_window_candidate(c.quad, buffer.width, buffer.height)
    ]


def parse_dimensions(dimensions: Dimensions) -> Tuple[int, int]:
    """Accept ``{"width": w, "height": h}`` or ``(w, h)``; both must be positive."""
    if isinstance(dimensions, Mapping):
        width, height = dimensions["width"], dimensions["height"]
    else:
        width, height = dimensions

    width, height = int(width), int(height)
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    return width, height


class WindowDetector:
    """Detects rectangular windows in a photograph."""

    def __init__(self, config: Optional[DetectorConfig] = None) -> None:
        """Initialize detector with configuration.

        Args:
            config: Detector configuration. If None, uses defaults.
        """
        self.config = config or DetectorConfig()
        self.step_times: dict = {}

    def detect_buffer(self, buffer: PixelBuffer) -> List[DetectionResult]:
        """Run grayscale conversion and the strategy search on a loaded buffer.

        The buffer is converted to grayscale in place.
        """
        # Grayscale once; every strategy reads the same luminance
        step_start = time.time()
        convert_to_grayscale(buffer)
        self.step_times['grayscale'] = time.time() - step_start

        # Scratch buffers shared by all strategy passes of this call
        extractor = ContourExtractor(buffer.width, buffer.height)
        orchestrator = StrategyOrchestrator(
            self.config.strategies,
            early_exit_confidence=self.config.early_exit_confidence,
            max_results=self.config.max_results,
        )

        # Escalating strategy search
        step_start = time.time()
        results = orchestrator.run(
            lambda strategy: run_strategy_pass(
                buffer, strategy, extractor, self.config.max_results
            )
        )
        self.step_times['search'] = time.time() - step_start
        logger.debug(f"Strategy search time: {self.step_times['search']:.3f}s")

        return results

    def detect(self, source: ImageSource, dimensions: Dimensions) -> List[DetectionResult]:
        """Detect windows in an image.

        Args:
            source: Image bytes, path, data URL, PIL image or numpy array.
            dimensions: Canvas size ``{"width", "height"}`` or ``(width, height)``
                the image is sampled into; results are normalized against it.

        Returns:
            Up to ``max_results`` DetectionResults, best first. Empty if no
            window was found.

        Raises:
            ImageLoadError: If the image cannot be decoded.
        """
        width, height = parse_dimensions(dimensions)

        step_start = time.time()
        buffer = sample_image(source, width, height)
        self.step_times['load'] = time.time() - step_start

        results = self.detect_buffer(buffer)

        if results:
            logger.info(
                f"Detected {len(results)} window candidate(s), best: "
                f"{results[0].shape.value} confidence={results[0].confidence:.3f}"
            )
        else:
            logger.info("No window detected")

        return results


def detect_windows(
    source: ImageSource,
    dimensions: Dimensions,
    config: Optional[DetectorConfig] = None,
) -> List[DetectionResult]:
    """Convenience function: detect windows with a fresh detector."""
    return WindowDetector(config).detect(source, dimensions)


async def detect_windows_async(
    source: ImageSource,
    dimensions: Dimensions,
    config: Optional[DetectorConfig] = None,
) -> List[DetectionResult]:
    """Run :func:`detect_windows` in a worker thread.

    Wrap in ``asyncio.wait_for`` to bound the wait; the worker itself is not
    interrupted.
    """
    return await asyncio.to_thread(detect_windows, source, dimensions, config)
