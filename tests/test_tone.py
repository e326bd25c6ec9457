"""Tests for grayscale conversion and tone conditioning."""

import numpy as np
import pytest

from laser_prep.core.tone import (
    CONTRAST_PIVOT,
    condition,
    contrast_factor,
    luminance,
)


def _solid(r, g, b, a=255, width=3, height=2):
    arr = np.empty((height, width, 4), dtype=np.uint8)
    arr[...] = (r, g, b, a)
    return arr


class TestLuminance:
    def test_weights(self):
        assert luminance(_solid(255, 0, 0))[0, 0] == pytest.approx(76.245)
        assert luminance(_solid(0, 255, 0))[0, 0] == pytest.approx(149.685)
        assert luminance(_solid(0, 0, 255))[0, 0] == pytest.approx(29.07)

    def test_gray_is_unchanged(self):
        assert luminance(_solid(77, 77, 77))[0, 0] == pytest.approx(77.0)

    def test_alpha_ignored(self):
        opaque = luminance(_solid(10, 200, 90, a=255))
        clear = luminance(_solid(10, 200, 90, a=0))
        np.testing.assert_array_equal(opaque, clear)

    def test_shape(self):
        assert luminance(_solid(1, 2, 3, width=5, height=4)).shape == (4, 5)


class TestContrastFactor:
    def test_zero_is_identity(self):
        assert contrast_factor(0) == 1.0

    def test_positive_steepens(self):
        assert contrast_factor(50) > 1.0

    def test_negative_flattens(self):
        assert 0.0 < contrast_factor(-50) < 1.0

    def test_out_of_range_is_clamped(self):
        assert contrast_factor(259) == contrast_factor(100)
        assert contrast_factor(100) == pytest.approx(2.2677, abs=1e-4)
        assert contrast_factor(-500) == contrast_factor(-100)


class TestCondition:
    def test_defaults_pass_through(self):
        lum = condition(_solid(128, 128, 128))
        assert lum.dtype == np.float32
        assert np.all(lum == 128.0)

    def test_brightness_scaled(self):
        lum = condition(_solid(100, 100, 100), brightness=20)
        assert lum[0, 0] == pytest.approx(151.0)

    def test_brightness_before_contrast(self):
        lum = condition(_solid(100, 100, 100), brightness=10, contrast=50)
        assert lum[0, 0] == pytest.approx(124.2944, abs=1e-3)

        # Contrast first would give a different value
        swapped = contrast_factor(50) * (100.0 - CONTRAST_PIVOT) + CONTRAST_PIVOT + 25.5
        assert abs(float(lum[0, 0]) - swapped) > 10.0

    def test_contrast_pivots_on_midpoint(self):
        lum = condition(_solid(128, 128, 128), contrast=80)
        assert lum[0, 0] == pytest.approx(128.0)

    def test_clamped_before_invert(self):
        bright = condition(_solid(250, 250, 250), brightness=100)
        assert bright[0, 0] == 255.0
        dark = condition(_solid(250, 250, 250), brightness=100, inverted=True)
        assert dark[0, 0] == 0.0

    def test_inverted(self):
        lum = condition(_solid(40, 40, 40), inverted=True)
        assert lum[0, 0] == pytest.approx(215.0)

    def test_range(self):
        rng = np.random.default_rng(5)
        rgba = rng.integers(0, 256, size=(9, 9, 4), dtype=np.uint8)
        lum = condition(rgba, brightness=-60, contrast=90)
        assert lum.min() >= 0.0
        assert lum.max() <= 255.0

    def test_input_not_mutated(self):
        rgba = _solid(12, 34, 56)
        before = rgba.copy()
        condition(rgba, brightness=30, contrast=-20, inverted=True)
        np.testing.assert_array_equal(rgba, before)
