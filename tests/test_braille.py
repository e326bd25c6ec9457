"""Tests for braille encoding of bitmaps."""

import numpy as np

from laser_prep.core.braille import braille_char, braille_from_array


class TestBrailleChar:
    def test_empty(self):
        dots = np.zeros((4, 2), dtype=bool)
        assert braille_char(dots) == "⠀"

    def test_full(self):
        dots = np.ones((4, 2), dtype=bool)
        assert braille_char(dots) == "⣿"

    def test_top_left(self):
        dots = np.zeros((4, 2), dtype=bool)
        dots[0, 0] = True
        assert braille_char(dots) == "⠁"

    def test_bottom_right(self):
        dots = np.zeros((4, 2), dtype=bool)
        dots[3, 1] = True
        assert braille_char(dots) == "⢀"


class TestBrailleFromArray:
    def test_single_cell(self):
        lines = braille_from_array(np.ones((4, 2), dtype=np.uint8))
        assert lines == ["⣿"]

    def test_grid(self):
        lines = braille_from_array(np.ones((8, 4), dtype=np.uint8))
        assert len(lines) == 2
        assert all(len(line) == 2 for line in lines)

    def test_padding(self):
        lines = braille_from_array(np.ones((5, 3), dtype=np.uint8))
        assert len(lines) == 2
        assert all(len(line) == 2 for line in lines)
        # Only the one real pixel in the corner cell is raised
        assert lines[1][1] == "⠁"
