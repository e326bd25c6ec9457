"""Terminal size detection and preview sizing."""

from __future__ import annotations

import shutil

from laser_prep.core.braille import CELL_HEIGHT, CELL_WIDTH


def get_terminal_size(
    fallback_width: int = 80,
    fallback_height: int = 24,
) -> tuple[int, int]:
    """Get current terminal size in columns and rows.

    Returns (width, height). Falls back to provided defaults
    if terminal size cannot be determined.
    """
    try:
        size = shutil.get_terminal_size(fallback=(fallback_width, fallback_height))
        return size.columns, size.lines
    except (ValueError, OSError):
        return fallback_width, fallback_height


def fit_to_terminal(
    img_width: int,
    img_height: int,
    max_width: int | None = None,
    max_height: int | None = None,
) -> tuple[int, int]:
    """Pixel size for a braille preview that fits the terminal.

    Each braille cell shows 2x4 pixels, so a preview of C columns and
    R rows holds 2C x 4R pixels. The image is only ever shrunk.

    Args:
        img_width: image width in pixels.
        img_height: image height in pixels.
        max_width: maximum character columns (defaults to terminal width).
        max_height: maximum character rows (defaults to terminal height - 4 for UI).

    Returns:
        (pixel_width, pixel_height) tuple.
    """
    if max_width is None or max_height is None:
        tw, th = get_terminal_size()
        if max_width is None:
            max_width = tw
        if max_height is None:
            max_height = max(th - 4, 10)  # Leave room for UI chrome

    max_px_w = max(1, max_width) * CELL_WIDTH
    max_px_h = max(1, max_height) * CELL_HEIGHT

    ratio = min(max_px_w / img_width, max_px_h / img_height, 1.0)
    return max(1, int(img_width * ratio)), max(1, int(img_height * ratio))
