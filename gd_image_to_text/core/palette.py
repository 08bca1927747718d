"""The fixed five-level tone palette and its glyphs.

Levels are ordered light → dark. Each channel value is quantized to the
nearest level, and each level is drawn with one glyph in the level font.
Measured glyph coverage in that font:

    O   1.00
    o   0.82
    =   0.25
    ..  0.19
        0.00
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PaletteEntry:
    value: int  # quantized channel value, 0-255
    glyph: str


# Ordered by tone fraction; nearest-level ties go to the earlier entry.
PALETTE: tuple[PaletteEntry, ...] = (
    PaletteEntry(int(1.00 * 255), "O"),
    PaletteEntry(int(0.82 * 255), "o"),
    PaletteEntry(int(0.25 * 255), "="),
    PaletteEntry(int(0.19 * 255), ".."),
    PaletteEntry(int(0.00 * 255), "  "),
)

BLANK = PALETTE[-1]

# Characters drawn at half the advance of a full glyph.
HALF_WIDTH_CHARS = frozenset(". ")


def _nearest_entry(value: int) -> PaletteEntry:
    # min() keeps the first of equally distant entries
    return min(PALETTE, key=lambda entry: abs(entry.value - value))


# Every channel value resolved once, so lookups are O(1).
_LOOKUP: tuple[PaletteEntry, ...] = tuple(_nearest_entry(v) for v in range(256))


def nearest_level(value: int) -> int:
    """Return the palette value closest to a 0-255 channel value."""
    return _LOOKUP[value].value


def quantize_pixel(pixel) -> tuple[int, int, int]:
    """Quantize each channel of an RGB pixel to its nearest palette level."""
    r, g, b = pixel
    return _LOOKUP[r].value, _LOOKUP[g].value, _LOOKUP[b].value


def glyph_for(value: int) -> str:
    """Glyph for a channel value (exact for already-quantized values)."""
    return _LOOKUP[value].glyph


def char_width(ch: str) -> float:
    return 0.5 if ch in HALF_WIDTH_CHARS else 1.0


def visual_width(text: str) -> float:
    """Rendered width of a row of glyphs, in full-glyph cells."""
    return sum(char_width(ch) for ch in text)
