"""Command-line interface for window detection."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from window_detection.models import ImageLoadError, default_window_coordinates
from window_detection.pipeline import DetectorConfig, WindowDetector, load_strategies
from window_detection.preprocessing.loader import load_image, render_to_buffer
from window_detection.utils.debug import draw_detections, save_debug_image

# Load environment variables from .env
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)

logger = logging.getLogger(__name__)


def _build_config(strategies_path: Optional[str]) -> DetectorConfig:
    config = DetectorConfig.from_env()
    if strategies_path:
        config.strategies = load_strategies(strategies_path)
    return config


@click.group()
@click.version_option(version='0.1.0')
def main() -> None:
    """Window Detect - find rectangular windows in photographs."""
    pass


@main.command()
@click.argument('image_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--width', type=click.IntRange(min=1), help='Canvas width (defaults to image width)')
@click.option('--height', type=click.IntRange(min=1), help='Canvas height (defaults to image height)')
@click.option(
    '--strategies',
    'strategies_path',
    type=click.Path(exists=True, dir_okay=False),
    help='JSON file with the strategy list to use instead of the defaults'
)
@click.option('--json', 'as_json', is_flag=True, help='Print results as JSON')
@click.option(
    '--debug',
    'debug_dir',
    type=click.Path(file_okay=False),
    help='Directory for a debug overlay image'
)
@click.option(
    '--fallback',
    is_flag=True,
    help='Report the default centered window when nothing is detected'
)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def detect(
    image_path: str,
    width: Optional[int],
    height: Optional[int],
    strategies_path: Optional[str],
    as_json: bool,
    debug_dir: Optional[str],
    fallback: bool,
    verbose: bool
) -> None:
    """Detect windows in IMAGE_PATH and print the ranked candidates."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = _build_config(strategies_path)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='strategies') from e

    try:
        img = load_image(image_path)
    except ImageLoadError as e:
        logger.warning(f"Could not load {image_path}: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    canvas_w = width or img.width
    canvas_h = height or img.height

    buffer = render_to_buffer(img, canvas_w, canvas_h)
    original = buffer.data.copy()

    detector = WindowDetector(config)
    results = detector.detect_buffer(buffer)

    if debug_dir:
        overlay = draw_detections(original, results)
        out = save_debug_image(
            overlay,
            Path(debug_dir) / f"{Path(image_path).stem}_windows.jpg",
            "Detected windows overlay"
        )
        logger.info(f"Debug overlay saved to: {out}")

    if as_json:
        payload = {
            "image": str(image_path),
            "width": canvas_w,
            "height": canvas_h,
            "results": [r.to_dict() for r in results],
        }
        if not results and fallback:
            payload["fallback"] = default_window_coordinates().to_dict()
        click.echo(json.dumps(payload, indent=2))
        return

    if not results:
        click.echo("No window detected.")
        if fallback:
            coords = default_window_coordinates().to_dict()
            click.echo(f"Default window: {json.dumps(coords)}")
        return

    for rank, result in enumerate(results, 1):
        tag = "best" if rank == 1 else "alternative"
        click.echo(
            f"#{rank} ({tag}) {result.shape.value} "
            f"confidence={result.confidence:.3f}"
        )
        for name, point in result.coordinates.to_dict().items():
            click.echo(f"    {name}: ({point['x']:.4f}, {point['y']:.4f})")


@main.command()
@click.option(
    '--strategies',
    'strategies_path',
    type=click.Path(exists=True, dir_okay=False),
    help='JSON file with a strategy list'
)
def strategies(strategies_path: Optional[str]) -> None:
    """Show the active detection strategies in escalation order."""
    try:
        config = _build_config(strategies_path)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='strategies') from e

    for idx, strategy in enumerate(config.strategies, 1):
        click.echo(
            f"Strategy {idx}: edge_threshold={strategy.edge_threshold:g} "
            f"contour_min_size={strategy.contour_min_size} "
            f"confidence_threshold={strategy.confidence_threshold:g}"
        )
    click.echo(f"Early exit above confidence {config.early_exit_confidence:g}, "
               f"max {config.max_results} result(s)")


if __name__ == '__main__':
    main()
