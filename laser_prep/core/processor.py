"""Laser engraving image pipeline.

RGBA → grayscale → brightness/contrast → invert → quantize → RGBA.
"""

from __future__ import annotations

import hashlib
import logging
import math
import time
from dataclasses import dataclass, replace

import numpy as np
from PIL import Image

from laser_prep.core.dither import Algorithm, CancelCheck, quantize
from laser_prep.core.errors import InvalidDimensionsError, InvalidSettingsError
from laser_prep.core.tone import condition

logger = logging.getLogger(__name__)

THRESHOLD_RANGE = (0, 255)
BRIGHTNESS_RANGE = (-100, 100)
CONTRAST_RANGE = (-100, 100)
SCALE_RANGE = (0.1, 1.0)
MIN_GRID_SIZE = 2


def _clamp(value, bounds):
    lo, hi = bounds
    return max(lo, min(hi, value))


def _require_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidSettingsError(f"{name} must be an integer, got {value!r}")
    return int(value)


@dataclass(frozen=True)
class LaserSettings:
    """Processing settings that affect output."""

    algorithm: Algorithm = Algorithm.ATKINSON
    threshold: int = 128  # 0 to 255, threshold algorithm only
    brightness: int = 0  # -100 to 100
    contrast: int = 0  # -100 to 100
    inverted: bool = False
    scale: float = 1.0  # 0.1 to 1.0, applied before processing
    grid_size: int = 6  # halftone cell size in pixels

    def hash(self) -> str:
        """Deterministic hash for cache keying."""
        data = (
            f"{Algorithm(self.algorithm).value}:{self.threshold}:"
            f"{self.brightness}:{self.contrast}:{self.inverted}:"
            f"{self.scale}:{self.grid_size}"
        )
        return hashlib.md5(data.encode()).hexdigest()[:12]

    def normalized(self) -> LaserSettings:
        """Return a copy with every numeric field clamped into range.

        Unknown algorithms and non-numeric values raise InvalidSettingsError.
        """
        try:
            algorithm = Algorithm(self.algorithm)
        except ValueError:
            valid = ", ".join(a.value for a in Algorithm)
            raise InvalidSettingsError(
                f"Unknown algorithm {self.algorithm!r} (expected one of: {valid})"
            ) from None

        if isinstance(self.scale, bool) or not isinstance(
            self.scale, (int, float, np.number)
        ):
            raise InvalidSettingsError(f"scale must be a number, got {self.scale!r}")
        scale = float(self.scale)
        if math.isnan(scale):
            raise InvalidSettingsError("scale must not be NaN")

        return replace(
            self,
            algorithm=algorithm,
            threshold=_clamp(_require_int("threshold", self.threshold), THRESHOLD_RANGE),
            brightness=_clamp(
                _require_int("brightness", self.brightness), BRIGHTNESS_RANGE
            ),
            contrast=_clamp(_require_int("contrast", self.contrast), CONTRAST_RANGE),
            inverted=bool(self.inverted),
            scale=_clamp(scale, SCALE_RANGE),
            grid_size=max(MIN_GRID_SIZE, _require_int("grid_size", self.grid_size)),
        )


@dataclass
class ProcessedImage:
    """Result of processing a single image."""

    image: Image.Image  # RGBA, pure black/white, opaque
    width: int
    height: int
    settings: LaserSettings
    elapsed_ms: float = 0.0

    @property
    def pixels(self) -> bytes:
        return self.image.tobytes()


def _as_rgba(pixels, width: int, height: int) -> np.ndarray:
    """Validate dimensions and view the input as an (H, W, 4) uint8 array."""
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise InvalidDimensionsError(f"{name} must be an integer, got {value!r}")
        if value <= 0:
            raise InvalidDimensionsError(f"{name} must be positive, got {value}")

    if isinstance(pixels, np.ndarray):
        if pixels.dtype != np.uint8:
            raise InvalidDimensionsError(
                f"Pixel array must be uint8 RGBA, got dtype {pixels.dtype}"
            )
        flat = pixels.reshape(-1)
    else:
        flat = np.frombuffer(pixels, dtype=np.uint8)

    expected = width * height * 4
    if flat.size != expected:
        raise InvalidDimensionsError(
            f"Buffer has {flat.size} bytes, expected {expected} "
            f"for {width}x{height} RGBA"
        )
    return flat.reshape(height, width, 4)


def _to_rgba(decisions: np.ndarray) -> np.ndarray:
    """Spread 0/255 decisions across R, G, B and force alpha opaque."""
    h, w = decisions.shape
    out = np.empty((h, w, 4), dtype=np.uint8)
    out[..., :3] = decisions[..., np.newaxis]
    out[..., 3] = 255
    return out


def _process_array(
    rgba: np.ndarray,
    settings: LaserSettings,
    should_cancel: CancelCheck | None,
) -> np.ndarray:
    lum = condition(rgba, settings.brightness, settings.contrast, settings.inverted)
    decisions = quantize(
        lum,
        settings.algorithm,
        threshold_value=settings.threshold,
        grid_size=settings.grid_size,
        should_cancel=should_cancel,
    )
    return _to_rgba(decisions)


def process(
    pixels,
    width: int,
    height: int,
    settings: LaserSettings | None = None,
    should_cancel: CancelCheck | None = None,
) -> bytes:
    """Convert an RGBA buffer into a black/white laser-ready RGBA buffer.

    Args:
        pixels: row-major RGBA bytes (bytes, bytearray, memoryview or a
                uint8 numpy array), length width * height * 4. Never mutated.
        width: image width in pixels.
        height: image height in pixels.
        settings: processing settings; out-of-range numbers are clamped.
        should_cancel: optional callable polled between rows. When it
                returns True, ProcessingCancelled is raised.

    Returns:
        New RGBA bytes of the same length, R=G=B in {0, 255}, A=255.

    Raises:
        InvalidDimensionsError: bad width/height or buffer length.
        InvalidSettingsError: unknown algorithm or non-numeric setting.
        ProcessingCancelled: should_cancel returned True.
    """
    rgba = _as_rgba(pixels, width, height)
    settings = (settings or LaserSettings()).normalized()

    start = time.perf_counter()
    out = _process_array(rgba, settings, should_cancel)
    logger.debug(
        "Processed %dx%d with %s in %.1f ms",
        width,
        height,
        settings.algorithm.value,
        (time.perf_counter() - start) * 1000.0,
    )
    return out.tobytes()


def scaled_size(width: int, height: int, scale: float) -> tuple[int, int]:
    """Target size for the pre-processing downsample (floored, at least 1px)."""
    return max(1, math.floor(width * scale)), max(1, math.floor(height * scale))


def process_image(
    image: Image.Image,
    settings: LaserSettings | None = None,
    should_cancel: CancelCheck | None = None,
) -> ProcessedImage:
    """Downsample by settings.scale, then run the laser pipeline."""
    settings = (settings or LaserSettings()).normalized()

    rgba_img = image.convert("RGBA")
    w, h = scaled_size(rgba_img.width, rgba_img.height, settings.scale)
    if (w, h) != rgba_img.size:
        rgba_img = rgba_img.resize((w, h), Image.Resampling.LANCZOS)

    start = time.perf_counter()
    rgba = np.asarray(rgba_img, dtype=np.uint8)
    out = _process_array(rgba, settings, should_cancel)
    elapsed_ms = (time.perf_counter() - start) * 1000.0
    logger.debug(
        "Processed image %dx%d (scale %.2f) with %s in %.1f ms",
        w,
        h,
        settings.scale,
        settings.algorithm.value,
        elapsed_ms,
    )

    return ProcessedImage(
        image=Image.fromarray(out),
        width=w,
        height=h,
        settings=settings,
        elapsed_ms=elapsed_ms,
    )
