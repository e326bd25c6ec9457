"""Grayscale conversion and tone conditioning.

RGBA → luminance → brightness → contrast → clamp → invert.
"""

from __future__ import annotations

import numpy as np

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = (0.299, 0.587, 0.114)

CONTRAST_PIVOT = 128.0


def luminance(rgba: np.ndarray) -> np.ndarray:
    """Compute luminance from an (H, W, 4) uint8 array.

    Returns a float64 array of shape (H, W). Alpha is ignored.
    """
    r = rgba[..., 0].astype(np.float64)
    g = rgba[..., 1].astype(np.float64)
    b = rgba[..., 2].astype(np.float64)
    return LUMA_WEIGHTS[0] * r + LUMA_WEIGHTS[1] * g + LUMA_WEIGHTS[2] * b


def contrast_factor(contrast: int) -> float:
    """Classic photographic contrast factor for contrast in -100..100.

    Contrast is clamped first; the formula has a pole at 259.
    """
    contrast = max(-100, min(100, contrast))
    return (259 * (contrast + 255)) / (255 * (259 - contrast))


def condition(
    rgba: np.ndarray,
    brightness: int = 0,
    contrast: int = 0,
    inverted: bool = False,
) -> np.ndarray:
    """Build the luminance map the quantizer works on.

    brightness: -100 to 100 (scaled x2.55 onto pixel values)
    contrast: -100 to 100 (scaled around 128)

    Returns a fresh float32 array of shape (H, W) with values in [0, 255].
    """
    gray = luminance(rgba)

    # Brightness before contrast
    if brightness != 0:
        gray = gray + brightness * 2.55

    factor = contrast_factor(contrast)
    gray = factor * (gray - CONTRAST_PIVOT) + CONTRAST_PIVOT

    gray = np.clip(gray, 0.0, 255.0)

    if inverted:
        gray = 255.0 - gray

    return gray.astype(np.float32)
