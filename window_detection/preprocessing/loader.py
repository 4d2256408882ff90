"""Image loading and sampling into a fixed-size pixel buffer.

Sources may be encoded bytes, a file path, a ``data:`` URL, a PIL image or a
numpy array. The decoded image is scaled to fit the requested canvas while
preserving its aspect ratio and centered on a transparent black background.
"""

import base64
import binascii
import io
import logging
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import ExifTags, Image

from window_detection.models import ImageLoadError, PixelBuffer

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, memoryview, str, Path, Image.Image, np.ndarray]

_HEIF_EXTENSIONS = ('.heic', '.heif')
_RAW_EXTENSIONS = ('.dng', '.cr2', '.nef', '.arw')

# EXIF orientation -> transpose operations applied in order
_ORIENTATION_OPS = {
    2: (Image.Transpose.FLIP_LEFT_RIGHT,),
    3: (Image.Transpose.ROTATE_180,),
    4: (Image.Transpose.ROTATE_180, Image.Transpose.FLIP_LEFT_RIGHT),
    5: (Image.Transpose.ROTATE_270, Image.Transpose.FLIP_LEFT_RIGHT),
    6: (Image.Transpose.ROTATE_270,),
    7: (Image.Transpose.ROTATE_90, Image.Transpose.FLIP_LEFT_RIGHT),
    8: (Image.Transpose.ROTATE_90,),
}

_ORIENTATION_TAG = next(
    (tag for tag, name in ExifTags.TAGS.items() if name == 'Orientation'), None
)


def _apply_exif_orientation(img: Image.Image) -> Image.Image:
    """Apply EXIF orientation to PIL Image."""
    if _ORIENTATION_TAG is None:
        return img

    try:
        orientation = img.getexif().get(_ORIENTATION_TAG)
    except (AttributeError, KeyError, IndexError, ValueError) as e:
        logger.debug(f"Could not read EXIF orientation: {e}")
        return img

    ops = _ORIENTATION_OPS.get(orientation)
    if not ops:
        return img

    for op in ops:
        img = img.transpose(op)

    logger.debug(f"Applied EXIF orientation: {orientation}")
    return img


def _open_encoded(stream: io.IOBase, label: str) -> Image.Image:
    try:
        img = Image.open(stream)
        img.load()
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise ImageLoadError(f"Failed to decode image {label}: {e}") from e
    return img


def _load_heif(path: Path) -> Image.Image:
    try:
        from pillow_heif import register_heif_opener
        register_heif_opener()
    except ImportError as e:
        raise ImageLoadError(
            "pillow-heif is required for HEIC support. "
            "Install with: pip install pillow-heif"
        ) from e

    with path.open('rb') as fh:
        return _open_encoded(fh, str(path))


def _load_raw(path: Path) -> Image.Image:
    try:
        import rawpy
    except ImportError as e:
        raise ImageLoadError(
            "rawpy is required for DNG/RAW support. "
            "Install with: pip install rawpy"
        ) from e

    try:
        with rawpy.imread(str(path)) as raw:
            # Demosaic with camera white balance, 8-bit sRGB output
            rgb = raw.postprocess(use_camera_wb=True, output_bps=8)
    except (rawpy.LibRawError, OSError) as e:
        raise ImageLoadError(f"Failed to decode RAW image {path}: {e}") from e

    return Image.fromarray(rgb)


def _load_path(path: Path) -> Image.Image:
    if not path.is_file():
        raise ImageLoadError(f"Image file not found: {path}")

    ext = path.suffix.lower()
    if ext in _HEIF_EXTENSIONS:
        return _load_heif(path)
    if ext in _RAW_EXTENSIONS:
        return _load_raw(path)

    with path.open('rb') as fh:
        return _open_encoded(fh, str(path))


def _load_data_url(url: str) -> Image.Image:
    header, sep, payload = url.partition(',')
    if not sep or ';base64' not in header:
        raise ImageLoadError("Only base64 data URLs are supported")

    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageLoadError(f"Invalid base64 payload in data URL: {e}") from e

    return _open_encoded(io.BytesIO(raw), "from data URL")


def _array_to_image(arr: np.ndarray) -> Image.Image:
    if arr.ndim not in (2, 3) or (arr.ndim == 3 and arr.shape[2] not in (3, 4)):
        raise ImageLoadError(f"Unsupported array shape for an image: {arr.shape}")

    if arr.dtype != np.uint8:
        # Float arrays are expected in [0, 1]
        arr = (np.clip(arr.astype(np.float32), 0.0, 1.0) * 255).round().astype(np.uint8)

    return Image.fromarray(np.ascontiguousarray(arr))


def load_image(source: ImageSource) -> Image.Image:
    """Decode an image source into an RGBA PIL image.

    Args:
        source: Encoded bytes, file path, ``data:`` URL, PIL image, or numpy
            array of shape (H, W), (H, W, 3) or (H, W, 4).

    Returns:
        RGBA PIL image with EXIF orientation applied.

    Raises:
        ImageLoadError: If the source cannot be decoded.
    """
    if isinstance(source, Image.Image):
        img = source
    elif isinstance(source, np.ndarray):
        img = _array_to_image(source)
    elif isinstance(source, (bytes, bytearray, memoryview)):
        img = _apply_exif_orientation(_open_encoded(io.BytesIO(bytes(source)), "from bytes"))
    elif isinstance(source, str) and source.startswith('data:'):
        img = _apply_exif_orientation(_load_data_url(source))
    elif isinstance(source, (str, Path)):
        img = _apply_exif_orientation(_load_path(Path(source)))
    else:
        raise ImageLoadError(f"Unsupported image source type: {type(source).__name__}")

    if img.width <= 0 or img.height <= 0:
        raise ImageLoadError(f"Image has no pixels ({img.width}x{img.height})")

    logger.debug(f"Decoded image: {img.width}x{img.height} mode={img.mode}")

    return img.convert('RGBA')


def fit_rect(
    image_size: Tuple[int, int],
    canvas_size: Tuple[int, int],
) -> Tuple[float, float, float, float]:
    """Compute the centered, aspect-preserving placement of an image on a canvas.

    Returns:
        (offset_x, offset_y, scaled_width, scaled_height)
    """
    img_w, img_h = image_size
    width, height = canvas_size

    scale = min(width / img_w, height / img_h)
    scaled_w = img_w * scale
    scaled_h = img_h * scale

    return (width - scaled_w) / 2, (height - scaled_h) / 2, scaled_w, scaled_h


def render_to_buffer(img: Image.Image, width: int, height: int) -> PixelBuffer:
    """Draw an image, scaled to fit and centered, onto a new transparent canvas."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Canvas dimensions must be positive, got {width}x{height}")

    offset_x, offset_y, scaled_w, scaled_h = fit_rect(img.size, (width, height))
    target_size = (max(1, int(round(scaled_w))), max(1, int(round(scaled_h))))

    rgba = img.convert('RGBA')
    if rgba.size != target_size:
        rgba = rgba.resize(target_size, Image.Resampling.BILINEAR)
        logger.debug(
            f"Scaled image from {img.width}x{img.height} to "
            f"{target_size[0]}x{target_size[1]}"
        )

    canvas = Image.new('RGBA', (width, height), (0, 0, 0, 0))
    canvas.paste(rgba, (int(round(offset_x)), int(round(offset_y))))

    data = np.array(canvas, dtype=np.uint8)
    return PixelBuffer(width=width, height=height, data=data)


def sample_image(source: ImageSource, width: int, height: int) -> PixelBuffer:
    """Load an image source into a pixel buffer of exactly ``width`` x ``height``.

    Args:
        source: Any source accepted by :func:`load_image`.
        width: Canvas width in pixels.
        height: Canvas height in pixels.

    Returns:
        PixelBuffer owned by the caller.

    Raises:
        ImageLoadError: If the source cannot be decoded.
        ValueError: If the dimensions are not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Canvas dimensions must be positive, got {width}x{height}")

    img = load_image(source)
    buffer = render_to_buffer(img, width, height)

    logger.info(f"Sampled image into {width}x{height} buffer")

    return buffer
