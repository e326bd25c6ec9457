"""Tests for the output writer."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from laser_prep.core.dither import Algorithm
from laser_prep.core.processor import LaserSettings, ProcessedImage, process_image
from laser_prep.core.writer import (
    default_output_path,
    save_output,
    to_bitmap,
    to_braille_lines,
)


def _make_result(width=16, height=8, algorithm=Algorithm.THRESHOLD):
    """Left half black, right half white."""
    img = Image.new("RGB", (width, height), (255, 255, 255))
    img.paste((0, 0, 0), (0, 0, width // 2, height))
    return process_image(img, LaserSettings(algorithm=algorithm))


class TestDefaultOutputPath:
    def test_name(self):
        path = default_output_path(Path("/photos/cat.jpg"), Algorithm.BURKES)
        assert path == Path("/photos/cat_laser_burkes.png")

    def test_string_algorithm(self):
        path = default_output_path(Path("dog.webp"), "floyd-steinberg")
        assert path.name == "dog_laser_floyd-steinberg.png"


class TestToBitmap:
    def test_one_bit(self):
        bitmap = to_bitmap(_make_result())
        assert bitmap.mode == "1"
        assert bitmap.size == (16, 8)
        assert bitmap.getpixel((0, 0)) == 0
        assert bitmap.getpixel((15, 0)) == 255


class TestSaveOutput:
    @pytest.mark.parametrize("suffix", [".png", ".bmp", ".gif", ".tif"])
    def test_formats(self, tmp_path, suffix):
        out = tmp_path / f"out{suffix}"
        result = _make_result()
        assert save_output(result, out) == out
        assert out.exists()

        with Image.open(out) as img:
            assert img.size == (16, 8)
            px = np.asarray(img.convert("L"))
        assert px[0, 0] == 0
        assert px[0, 15] == 255

    def test_creates_parent_dirs(self, tmp_path):
        out = tmp_path / "nested" / "dir" / "out.png"
        save_output(_make_result(), out)
        assert out.exists()

    def test_unsupported_format(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported output format"):
            save_output(_make_result(), tmp_path / "out.jpg")


class TestBrailleLines:
    def test_full_size(self):
        lines = to_braille_lines(_make_result())
        assert len(lines) == 2
        assert all(len(line) == 8 for line in lines)
        # Black half is all dots, white half is blank
        assert lines[0][:4] == "⣿⣿⣿⣿"
        assert lines[0][4:] == "⠀⠀⠀⠀"

    def test_resized(self):
        lines = to_braille_lines(_make_result(), size=(8, 4))
        assert lines == ["⣿⣿⠀⠀"]

    def test_accepts_result_instance(self):
        result = _make_result(algorithm=Algorithm.HALFTONE)
        assert isinstance(result, ProcessedImage)
        assert to_braille_lines(result)
