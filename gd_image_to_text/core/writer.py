"""Save fitted layers as a .gmd level and render PNG previews.

The preview draws every layer with Pillow in its channel colour and adds
them together, the same way the tinted text objects blend in game.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from gd_image_to_text.core.fitter import FitResult
from gd_image_to_text.core.level import LevelSettings, build_gmd, build_level_string

DEFAULT_FONT_SIZE = 14
CHAR_WIDTH_RATIO = 0.6  # Approximate char width / font size for monospace

# Tint per layer: red, green, blue. Grayscale uses white.
LAYER_COLORS = ((255, 0, 0), (0, 255, 0), (0, 0, 255))
GRAY_COLOR = (255, 255, 255)

# Tried in order; the game font is not available outside the game.
PREVIEW_FONTS = (
    "DejaVuSansMono.ttf",
    "LiberationMono-Regular.ttf",
    "Menlo.ttc",
    "consola.ttf",
)


def _preview_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    for name in PREVIEW_FONTS:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            pass
    return ImageFont.load_default(size)


def render_layer(
    layer: str,
    color: tuple[int, int, int],
    size: tuple[int, int],
    font: ImageFont.FreeTypeFont | ImageFont.ImageFont,
    font_size: int,
) -> Image.Image:
    """Draw one layer's rows onto a black canvas of the given pixel size."""
    img = Image.new("RGB", size, (0, 0, 0))
    draw = ImageDraw.Draw(img)
    char_h = font_size + 2
    for row_idx, line in enumerate(layer.split("\n")):
        draw.text((0, row_idx * char_h), line, fill=color, font=font)
    return img


def render_preview(
    layers: list[str],
    grayscale: bool = False,
    font_size: int = DEFAULT_FONT_SIZE,
) -> Image.Image:
    """Render layers to a single RGB preview image.

    Args:
        layers: encoded layers from the fitter.
        grayscale: draw the first layer in white instead of tinting by channel.
        font_size: pixel size for the monospace font.

    Returns:
        PIL Image with the layers blended additively.
    """
    if not layers:
        raise ValueError("No layers to render")

    font = _preview_font(font_size)
    char_w = int(font_size * CHAR_WIDTH_RATIO)
    char_h = font_size + 2
    rows = [layer.split("\n") for layer in layers]
    max_line_len = max(len(line) for layer_rows in rows for line in layer_rows)
    size = (max(max_line_len * char_w, 1), max(max(len(r) for r in rows) * char_h, 1))

    if grayscale:
        return render_layer(layers[0], GRAY_COLOR, size, font, font_size)

    total = np.zeros((size[1], size[0], 3), dtype=np.uint16)
    for layer, color in zip(layers, LAYER_COLORS):
        total += np.array(render_layer(layer, color, size, font, font_size), dtype=np.uint16)
    return Image.fromarray(np.clip(total, 0, 255).astype(np.uint8))


def save_preview(
    result: FitResult,
    output_path: Path,
    grayscale: bool = False,
    font_size: int = DEFAULT_FONT_SIZE,
) -> None:
    """Render the fitted layers and save them as an image file."""
    render_preview(result.layers, grayscale, font_size).save(str(output_path))


def save_gmd(
    result: FitResult,
    output_path: Path,
    grayscale: bool = False,
    settings: LevelSettings | None = None,
) -> None:
    """Write the fitted layers as an importable .gmd level file."""
    settings = settings or LevelSettings()
    level_string = build_level_string(result.layers, grayscale, settings)
    output_path.write_text(build_gmd(level_string, settings.name), encoding="utf-8")
