"""Turn a dithered pixel buffer into glyph text layers.

One layer per colour channel (R, G, B), or a single layer holding the
channel average in grayscale mode. Each layer is one text object in the
level, so rows are joined with newlines and carry no trailing newline.
"""

from __future__ import annotations

import numpy as np

from gd_image_to_text.core.palette import BLANK, glyph_for, visual_width

PLACEHOLDER = " "  # Keeps an all-blank row from collapsing to nothing


def _finish_row(glyphs: list[str]) -> str:
    """Join a row and strip the trailing blanks."""
    trimmed = "".join(glyphs).rstrip(" ")
    return trimmed or PLACEHOLDER


def _pad_first_row(rows: list[str], width: int) -> None:
    """Widen the first row with half-cell blanks up to ``width`` cells.

    Text objects are laid out from their widest row, so a layer whose rows
    were all trimmed short would otherwise shift relative to the others.
    """
    missing = width - visual_width(rows[0])
    if missing > 0:
        rows[0] += BLANK.glyph[0] * int(missing * 2)


def encode(buffer: np.ndarray, grayscale: bool = False) -> list[str]:
    """Encode a quantized RGB buffer as glyph layers.

    Args:
        buffer: dithered array of shape (height, width, 3), dtype uint8.
        grayscale: emit one averaged layer instead of one per channel.

    Returns:
        List of 1 (grayscale) or 3 layer strings, each with exactly
        ``height`` newline-separated rows.
    """
    h, w = buffer.shape[:2]
    n_layers = 1 if grayscale else 3
    rows: list[list[str]] = [[] for _ in range(n_layers)]
    max_width = [0.0] * n_layers

    for pixel_row in buffer.tolist():
        lines: list[list[str]] = [[] for _ in range(n_layers)]
        for r, g, b in pixel_row:
            if grayscale:
                lines[0].append(glyph_for((r + g + b) // 3))
            else:
                lines[0].append(glyph_for(r))
                lines[1].append(glyph_for(g))
                lines[2].append(glyph_for(b))

        for i, glyphs in enumerate(lines):
            row = _finish_row(glyphs)
            max_width[i] = max(max_width[i], visual_width(row))
            rows[i].append(row)

    layers = []
    for i in range(n_layers):
        if rows[i] and max_width[i] < w:
            _pad_first_row(rows[i], w)
        layers.append("\n".join(rows[i]))
    return layers
