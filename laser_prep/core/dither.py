"""Monochrome quantizers: threshold, error diffusion and halftone dots.

Every quantizer takes a float luminance map of shape (H, W) and returns a
uint8 array of the same shape holding only 0 (burn) and 255 (leave).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

import numpy as np

from laser_prep.core.errors import ProcessingCancelled

# Error diffusion always splits at the midpoint, whatever the threshold setting
DIFFUSION_MIDPOINT = 128.0

# Dots may grow 20% past the cell edge so neighbours overlap
HALFTONE_OVERLAP = 1.2

CancelCheck = Callable[[], bool]


class Algorithm(str, Enum):
    THRESHOLD = "threshold"
    FLOYD_STEINBERG = "floyd-steinberg"
    ATKINSON = "atkinson"
    BURKES = "burkes"
    SIERRA = "sierra"
    HALFTONE = "halftone"

    @property
    def is_error_diffusion(self) -> bool:
        return self in KERNELS


@dataclass(frozen=True)
class DiffusionKernel:
    """Error distribution pattern.

    Each tap is (dx, dy, weight), relative to the pixel being quantized.
    Taps only ever point right on the current row or down to later rows.
    """

    name: str
    taps: tuple[tuple[int, int, float], ...]

    @property
    def total_weight(self) -> float:
        return sum(weight for _, _, weight in self.taps)


def _kernel(name: str, divisor: int, taps: list[tuple[int, int, int]]) -> DiffusionKernel:
    return DiffusionKernel(
        name=name,
        taps=tuple((dx, dy, numerator / divisor) for dx, dy, numerator in taps),
    )


FLOYD_STEINBERG = _kernel(
    "floyd-steinberg",
    16,
    [(1, 0, 7), (-1, 1, 3), (0, 1, 5), (1, 1, 1)],
)

# Atkinson passes on only 6/8 of the error
ATKINSON = _kernel(
    "atkinson",
    8,
    [(1, 0, 1), (2, 0, 1), (-1, 1, 1), (0, 1, 1), (1, 1, 1), (0, 2, 1)],
)

BURKES = _kernel(
    "burkes",
    32,
    [
        (1, 0, 8), (2, 0, 4),
        (-2, 1, 2), (-1, 1, 4), (0, 1, 8), (1, 1, 4), (2, 1, 2),
    ],
)

SIERRA = _kernel(
    "sierra",
    32,
    [
        (1, 0, 5), (2, 0, 3),
        (-2, 1, 2), (-1, 1, 4), (0, 1, 5), (1, 1, 4), (2, 1, 2),
        (-1, 2, 2), (0, 2, 3), (1, 2, 2),
    ],
)

KERNELS: dict[Algorithm, DiffusionKernel] = {
    Algorithm.FLOYD_STEINBERG: FLOYD_STEINBERG,
    Algorithm.ATKINSON: ATKINSON,
    Algorithm.BURKES: BURKES,
    Algorithm.SIERRA: SIERRA,
}


def _check_cancel(should_cancel: CancelCheck | None) -> None:
    if should_cancel is not None and should_cancel():
        raise ProcessingCancelled("Processing cancelled")


def threshold(
    lum: np.ndarray,
    cutoff: int = 128,
    should_cancel: CancelCheck | None = None,
) -> np.ndarray:
    """Hard threshold: 255 where lum >= cutoff, else 0."""
    _check_cancel(should_cancel)
    return np.where(lum >= cutoff, 255, 0).astype(np.uint8)


def diffuse_error(
    lum: np.ndarray,
    x: int,
    y: int,
    error: float,
    kernel: DiffusionKernel,
) -> None:
    """Add ``error`` times each tap weight to the neighbours of (x, y).

    Taps outside the image are dropped, not wrapped or clamped to the edge.
    """
    h, w = lum.shape
    for dx, dy, weight in kernel.taps:
        nx = x + dx
        ny = y + dy
        if 0 <= nx < w and 0 <= ny < h:
            lum[ny, nx] += error * weight


def error_diffusion(
    lum: np.ndarray,
    kernel: DiffusionKernel,
    should_cancel: CancelCheck | None = None,
) -> np.ndarray:
    """Dither a luminance map by diffusing quantization error.

    Pixels are visited strictly row by row, left to right. Each quantized
    value is written back into ``lum`` and the error is added to the
    unvisited neighbours named by ``kernel``; taps that fall outside the
    image are dropped. Accumulated values are not clamped, they are only
    compared against the midpoint.

    Args:
        lum: 2D float array, mutated in place.
        kernel: error distribution pattern.
        should_cancel: optional callable polled once per row.

    Returns:
        2D uint8 array of 0/255 decisions.
    """
    h, w = lum.shape
    out = np.empty((h, w), dtype=np.uint8)

    for y in range(h):
        _check_cancel(should_cancel)
        row = lum[y]
        for x in range(w):
            old = float(row[x])
            new = 0 if old < DIFFUSION_MIDPOINT else 255
            row[x] = new
            out[y, x] = new
            err = old - new
            if err != 0.0:
                diffuse_error(lum, x, y, err, kernel)

    return out


def halftone(
    lum: np.ndarray,
    grid_size: int = 6,
    should_cancel: CancelCheck | None = None,
) -> np.ndarray:
    """Render a dot screen: one black dot per grid cell, sized by darkness.

    Cells at the right and bottom edges may be partial; their average only
    covers in-bounds pixels but their centre stays at origin + grid_size/2.
    """
    h, w = lum.shape
    size = grid_size
    max_radius = size / 2 * HALFTONE_OVERLAP
    out = np.empty((h, w), dtype=np.uint8)

    # Distance of every cell position from the cell centre
    offsets = np.arange(size, dtype=np.float64) - size / 2
    dist = np.hypot(offsets[np.newaxis, :], offsets[:, np.newaxis])

    for y0 in range(0, h, size):
        _check_cancel(should_cancel)
        for x0 in range(0, w, size):
            cell = lum[y0 : y0 + size, x0 : x0 + size]
            ch, cw = cell.shape
            avg = float(cell.mean(dtype=np.float64))
            radius = ((255.0 - avg) / 255.0) * max_radius
            out[y0 : y0 + ch, x0 : x0 + cw] = np.where(
                dist[:ch, :cw] <= radius, 0, 255
            )

    return out


def quantize(
    lum: np.ndarray,
    algorithm: Algorithm,
    *,
    threshold_value: int = 128,
    grid_size: int = 6,
    should_cancel: CancelCheck | None = None,
) -> np.ndarray:
    """Reduce a luminance map to black/white with the selected algorithm.

    Error-diffusion algorithms mutate ``lum``.
    """
    algorithm = Algorithm(algorithm)
    if algorithm == Algorithm.THRESHOLD:
        return threshold(lum, threshold_value, should_cancel)
    if algorithm == Algorithm.HALFTONE:
        return halftone(lum, grid_size, should_cancel)
    return error_diffusion(lum, KERNELS[algorithm], should_cancel)
