"""Tests for glyph layer encoding."""

import numpy as np
import pytest

from gd_image_to_text.core.dither import floyd_steinberg
from gd_image_to_text.core.encoder import encode
from gd_image_to_text.core.palette import quantize_pixel, visual_width


def _pixels(rows):
    return np.array(rows, dtype=np.uint8)


class TestEncode:
    def test_white_grayscale(self):
        buf = np.full((2, 2, 3), 255, dtype=np.uint8)
        assert encode(buf, grayscale=True) == ["OO\nOO"]

    def test_black_pixel_gets_placeholder_and_padding(self):
        buf = np.zeros((1, 1, 3), dtype=np.uint8)
        layers = encode(buf)
        assert layers == ["  ", "  ", "  "]
        for layer in layers:
            assert visual_width(layer) == 1.0

    def test_layer_count(self):
        buf = np.full((3, 4, 3), 63, dtype=np.uint8)
        assert len(encode(buf)) == 3
        assert len(encode(buf, grayscale=True)) == 1

    def test_channels_split_into_layers(self):
        buf = _pixels([[[255, 209, 63], [209, 63, 48]]])
        r, g, b = encode(buf)
        assert r == "Oo"
        assert g == "o="
        assert b == "=.."

    def test_grayscale_averages_channels(self):
        # (255 + 255 + 0) // 3 = 170, nearest level 209
        buf = _pixels([[[255, 255, 0]]])
        assert encode(buf, grayscale=True) == ["o"]

    def test_trailing_blanks_trimmed(self):
        buf = _pixels([
            [[255, 0, 0], [0, 0, 0], [0, 0, 0]],
            [[255, 0, 0], [255, 0, 0], [255, 0, 0]],
        ])
        red = encode(buf)[0]
        assert red == "O\nOOO"

    def test_inner_blanks_kept(self):
        buf = _pixels([[[255, 0, 0], [0, 0, 0], [48, 0, 0]]])
        assert encode(buf)[0] == "O  .."

    def test_first_row_padded_when_all_rows_short(self):
        buf = _pixels([
            [[255, 0, 0], [0, 0, 0], [0, 0, 0]],
            [[0, 0, 0], [209, 0, 0], [0, 0, 0]],
        ])
        red, green, _ = encode(buf)
        first, second = red.split("\n")
        assert first == "O    "
        assert visual_width(first) == 3.0
        assert second == "  o"
        # An all-blank layer keeps one placeholder per row, first row padded
        assert green.split("\n") == ["      ", " "]

    def test_no_padding_when_some_row_is_full(self):
        buf = _pixels([
            [[255, 0, 0], [0, 0, 0]],
            [[255, 0, 0], [255, 0, 0]],
        ])
        assert encode(buf)[0] == "O\nOO"


class TestLayerInvariants:
    @pytest.mark.parametrize("h, w", [(1, 1), (1, 5), (4, 1), (3, 7), (9, 12)])
    @pytest.mark.parametrize("grayscale", [False, True])
    def test_rows_and_widths(self, h, w, grayscale):
        rng = np.random.default_rng(h * 100 + w)
        buf = rng.integers(0, 256, size=(h, w, 3), dtype=np.uint8)
        floyd_steinberg(buf, quantize_pixel)

        for layer in encode(buf, grayscale):
            rows = layer.split("\n")
            assert len(rows) == h
            assert not layer.endswith("\n")
            assert all(row for row in rows)
            widths = [visual_width(row) for row in rows]
            assert max(widths) == w
            assert all(width <= w for width in widths)
