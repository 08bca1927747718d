"""Build the level string and .gmd document holding the text layers.

Each layer becomes one text object. In colour mode the three objects sit on
separate z-layers tinted red, green and blue with additive blending, so the
glyph coverage of each channel mixes back into the original colour.
"""

from __future__ import annotations

import base64
import gzip
from dataclasses import dataclass
from xml.sax.saxutils import escape

import numpy as np

TOOL_NAME = "gd-image-to-text"
TOOL_VERSION = "1.0.0"

TEXT_OBJECT_ID = 914

# Colour channels of the level. The ones the layers use are
# 1 = white, 2 = red, 3 = green, 4 = blue, all with blending on.
_COLORS = (
    "1_255_2_0_3_0_4_-1_5_1_6_2_7_1_8_1_11_255_12_255_13_255_15_1_18_0",
    "1_125_2_255_3_0_4_-1_5_0_6_1005_7_1_8_1_11_255_12_255_13_255_15_1_18_0",
    "1_0_2_0_3_0_4_-1_5_0_6_1000_7_1_8_1_11_255_12_255_13_255_15_1_18_0",
    "1_255_2_255_3_255_4_-1_5_0_6_1002_7_1_8_1_11_255_12_255_13_255_15_1_18_0",
    "1_0_2_255_3_0_4_-1_5_1_6_3_7_1_8_1_11_255_12_255_13_255_15_1_18_0",
    "1_0_2_102_3_255_4_-1_5_0_6_1009_7_1_8_1_11_255_12_255_13_255_15_1_18_0",
    "1_255_2_255_3_255_4_-1_5_1_6_1_7_1_8_1_11_255_12_255_13_255_15_1_18_0",
    "1_0_2_0_3_0_4_-1_5_0_6_1001_7_1_8_1_11_255_12_255_13_255_15_1_18_0",
    "1_0_2_255_3_255_4_-1_5_0_6_1006_7_1_8_1_11_255_12_255_13_255_15_1_18_0",
    "1_0_2_0_3_255_4_-1_5_1_6_4_7_1_8_1_11_255_12_255_13_255_15_1_18_0",
)

# Font 10 (kA18,9) and a 0.5x speed mini ship.
_SETTINGS = (
    "kA2,1,kA3,1,kA4,1,kA6,0,kA7,0,kA8,0,kA9,0,kA10,0,kA11,0,"
    "kA13,0,kA15,0,kA16,0,kA17,0,kA18,9,kS39,0"
)

# Colour triggers re-applying channels 1-4 at level start.
_TRIGGERS = (
    "1,899,2,0,3,165,7,255,8,255,9,255,10,0,17,1",
    "1,899,2,0,3,135,7,255,8,0,9,0,23,2,10,0,17,1",
    "1,899,2,0,3,105,7,0,8,255,9,0,23,3,10,0,17,1",
    "1,899,2,0,3,75,7,0,8,0,9,255,23,4,10,0,17,1",
)

LEVEL_HEADER = ";".join(
    ["kS38," + "|".join(_COLORS) + "," + _SETTINGS, *_TRIGGERS]
)


@dataclass(frozen=True)
class LevelSettings:
    """Placement of the text objects in the level."""

    object_scale: float = 0.075
    x: float = 285.0
    y: float = 150.0
    name: str = "Image to text level"


def b64(data: bytes | str) -> str:
    """URL-safe base64 with padding, as the game expects."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.urlsafe_b64encode(data).decode("ascii")


def format_number(value: float) -> str:
    """Shortest plain decimal, no exponent and no trailing ".0".

    0.075 -> "0.075", 285.0 -> "285", 1e-05 -> "0.00001".
    """
    return np.format_float_positional(float(value), trim="-")


def text_object(layer: str, index: int, grayscale: bool, settings: LevelSettings) -> str:
    """Serialize one layer as a text object.

    Layers go on z-layers B4, B3, B2 (-3, -1, 1) and use colour channel 1
    in grayscale mode or 2/3/4 for red/green/blue.
    """
    z_layer = index * 2 - 3
    color = 1 if grayscale else index + 2
    x, y = format_number(settings.x), format_number(settings.y)
    scale = format_number(settings.object_scale)
    return (
        f"1,{TEXT_OBJECT_ID},2,{x},3,{y},31,{b64(layer)},32,{scale},"
        f"21,{color},24,{z_layer}"
    )


def build_level_string(
    layers: list[str], grayscale: bool, settings: LevelSettings | None = None
) -> str:
    """Level header followed by one text object per layer."""
    settings = settings or LevelSettings()
    if grayscale:
        layers = layers[:1]
    objects = [
        text_object(layer, i, grayscale, settings) for i, layer in enumerate(layers)
    ]
    return ";".join([LEVEL_HEADER, *objects])


def encode_level(level_string: str) -> str:
    """Gzip and base64 a level string for the k4 key."""
    return b64(gzip.compress(level_string.encode("utf-8")))


def decode_level(encoded: str) -> str:
    """Inverse of encode_level."""
    return gzip.decompress(base64.urlsafe_b64decode(encoded)).decode("utf-8")


def build_gmd(level_string: str, name: str = "Image to text level") -> str:
    """Wrap an encoded level in a .gmd document."""
    description = f"Generated using {TOOL_NAME} {TOOL_VERSION}"
    # The description key is stored base64'd twice.
    description = b64(b64(description))
    return (
        "<d>\n"
        "\t<k>kCEK</k><i>4</i>\n"
        f"\t<k>k2</k><s>{escape(name)}</s>\n"
        f"\t<k>k3</k><s>{description}</s>\n"
        f"\t<k>k4</k><s>{encode_level(level_string)}</s>\n"
        "\t<k>k13</k><t/>\n"
        "\t<k>k21</k><i>2</i>\n"
        "\t<k>k50</k><i>35</i>\n"
        "</d>"
    )
