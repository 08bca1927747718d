"""Fit an image into the text-object character budget.

Resample → dither → encode → measure, shrinking the resolution until the
longest layer fits the capacity of a single text batch.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable

import numpy as np
from PIL import Image

from gd_image_to_text.core.dither import floyd_steinberg
from gd_image_to_text.core.encoder import encode
from gd_image_to_text.core.palette import quantize_pixel

# Characters a single batch node renders; longer text objects don't show up.
DEFAULT_CAPACITY = 16384


class InvalidSizeError(ValueError):
    """A requested resolution, capacity or source image is empty."""


class UnfittableImageError(ValueError):
    """Shrinking the image reached zero pixels without fitting the budget."""


@dataclass(frozen=True)
class FitSettings:
    """Settings that affect the encoded layers."""

    size: tuple[int, int] | None = None  # (width, height) in glyphs
    grayscale: bool = False
    capacity: int = DEFAULT_CAPACITY


@dataclass(frozen=True)
class FitAttempt:
    """One measured resolution."""

    index: int
    width: int
    height: int
    char_count: int
    fits: bool


@dataclass
class FitResult:
    """Accepted layers and the resolution they were encoded at."""

    layers: list[str]
    width: int
    height: int
    char_count: int
    attempts: list[FitAttempt] = field(default_factory=list)


def initial_size(
    image_size: tuple[int, int], size: tuple[int, int] | None = None
) -> tuple[int, int]:
    """Starting resolution for the search.

    Glyphs are about twice as tall as they are wide, so without an explicit
    size the image height is halved to keep the aspect ratio in game.
    """
    if size is not None:
        return size
    width, height = image_size
    return width, max(1, height // 2)


def shrink(size: tuple[int, int], char_count: int, capacity: int) -> tuple[int, int]:
    """Scale both dimensions by sqrt(capacity / char_count), truncating.

    Raises:
        UnfittableImageError: if either dimension truncates to zero.
    """
    scale = math.sqrt(capacity / char_count)
    width, height = int(size[0] * scale), int(size[1] * scale)
    if width <= 0 or height <= 0:
        raise UnfittableImageError(
            f"Image cannot fit in {capacity} characters: "
            f"{size[0]}x{size[1]} would shrink to {width}x{height}"
        )
    return width, height


def render_layers(
    image: Image.Image, size: tuple[int, int], grayscale: bool
) -> list[str]:
    """Resample, dither and encode the image at one resolution.

    Nearest-neighbour keeps hard edges and adds no in-between colours for
    the dither to fight against. Every call works on a fresh buffer.
    """
    resized = image.resize(size, Image.Resampling.NEAREST)
    buffer = np.array(resized.convert("RGB"), dtype=np.uint8)
    floyd_steinberg(buffer, quantize_pixel)
    return encode(buffer, grayscale)


def fit(
    image: Image.Image,
    settings: FitSettings,
    on_attempt: Callable[[FitAttempt], None] | None = None,
) -> FitResult:
    """Find the largest tried resolution whose layers fit the capacity.

    Args:
        image: RGB source image.
        settings: target size override, grayscale flag and capacity.
        on_attempt: callback invoked after every measured resolution.

    Returns:
        FitResult with the accepted layers and resolution.

    Raises:
        InvalidSizeError: empty source image, size override or capacity.
        UnfittableImageError: the resolution shrank to zero.
    """
    if image.width <= 0 or image.height <= 0:
        raise InvalidSizeError(f"Source image is empty: {image.width}x{image.height}")
    if settings.capacity <= 0:
        raise InvalidSizeError(f"Capacity must be positive, got {settings.capacity}")

    size = initial_size(image.size, settings.size)
    if size[0] <= 0 or size[1] <= 0:
        raise InvalidSizeError(f"Invalid size: {size[0]}x{size[1]}")

    attempts: list[FitAttempt] = []
    while True:
        layers = render_layers(image, size, settings.grayscale)
        char_count = max(len(layer) for layer in layers)
        fits = char_count <= settings.capacity

        attempt = FitAttempt(len(attempts), size[0], size[1], char_count, fits)
        attempts.append(attempt)
        if on_attempt:
            on_attempt(attempt)

        if fits:
            return FitResult(
                layers=layers,
                width=size[0],
                height=size[1],
                char_count=char_count,
                attempts=attempts,
            )
        size = shrink(size, char_count, settings.capacity)
