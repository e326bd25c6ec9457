"""Save processed laser bitmaps and render them for the terminal.

Output is strictly black/white, so formats that support it are written
as 1-bit images.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image

from laser_prep.core.braille import braille_from_array
from laser_prep.core.dither import Algorithm
from laser_prep.core.processor import ProcessedImage

logger = logging.getLogger(__name__)

# suffix -> Pillow format; all of them accept 1-bit images
OUTPUT_FORMATS: dict[str, str] = {
    ".png": "PNG",
    ".bmp": "BMP",
    ".gif": "GIF",
    ".tif": "TIFF",
    ".tiff": "TIFF",
}


def default_output_path(input_path: Path, algorithm: Algorithm | str) -> Path:
    """Generate default output path from input: <stem>_laser_<algorithm>.png."""
    algo = Algorithm(algorithm).value
    return input_path.parent / f"{input_path.stem}_laser_{algo}.png"


def to_bitmap(result: ProcessedImage) -> Image.Image:
    """Collapse the RGBA result to a 1-bit Pillow image (white = 1)."""
    red = np.asarray(result.image, dtype=np.uint8)[..., 0]
    return Image.fromarray(red > 127)


def save_output(result: ProcessedImage, output_path: Path) -> Path:
    """Save the result in the format determined by the file extension."""
    suffix = output_path.suffix.lower()
    if suffix not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format: {suffix}")

    fmt = OUTPUT_FORMATS[suffix]
    img = to_bitmap(result)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    img.save(str(output_path), format=fmt)
    logger.info("Saved %dx%d %s to %s", result.width, result.height, fmt, output_path)
    return output_path


def to_braille_lines(
    result: ProcessedImage,
    size: tuple[int, int] | None = None,
) -> list[str]:
    """Render the result as braille text; burned (black) pixels are dots.

    If ``size`` is given the bitmap is first resized with nearest
    neighbour sampling, which keeps every pixel black or white.
    """
    img = result.image
    if size is not None and size != img.size:
        img = img.resize(size, Image.Resampling.NEAREST)
    red = np.asarray(img, dtype=np.uint8)[..., 0]
    return braille_from_array((red == 0).astype(np.uint8))
