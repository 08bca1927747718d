"""Floyd-Steinberg error diffusion dithering."""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np

Pixel = Sequence[int]
Quantizer = Callable[[Pixel], Sequence[int]]

# (dx, dy, weight in sixteenths). Error pushed outside the image is dropped,
# not redistributed to the remaining neighbours.
DIFFUSION: tuple[tuple[int, int, int], ...] = (
    (1, 0, 7),   # right
    (-1, 1, 5),  # below-left
    (0, 1, 3),   # below
    (1, 1, 1),   # below-right
)


def floyd_steinberg(buffer: np.ndarray, quantize: Quantizer) -> np.ndarray:
    """Dither an RGB buffer in place.

    Pixels are visited row by row, left to right. Each pixel is replaced by
    ``quantize(pixel)`` and the per-channel difference is spread over the
    not-yet-visited neighbours listed in ``DIFFUSION``. Later pixels read
    the error already written into them, so the visiting order is part of
    the result: a different order (columns, tiles, threads) is a different
    algorithm. The buffer must not be shared with another pass while this
    runs.

    Args:
        buffer: array of shape (height, width, 3), dtype uint8.
        quantize: maps an (r, g, b) pixel to its quantized (r, g, b).

    Returns:
        The same buffer, for chaining.
    """
    h, w = buffer.shape[:2]
    if h == 0 or w == 0:
        return buffer

    # Plain lists are much faster than element-wise ndarray access here.
    img = buffer.tolist()

    for y in range(h):
        row = img[y]
        for x in range(w):
            old = row[x]
            r, g, b = quantize(old)
            errors = (old[0] - r, old[1] - g, old[2] - b)
            old[0], old[1], old[2] = int(r), int(g), int(b)
            if not any(errors):
                continue

            for dx, dy, weight in DIFFUSION:
                nx, ny = x + dx, y + dy
                if nx < 0 or nx >= w or ny >= h:
                    continue
                neighbour = img[ny][nx]
                for c in range(3):
                    value = neighbour[c] + errors[c] * weight / 16
                    if value <= 0:
                        neighbour[c] = 0
                    elif value >= 255:
                        neighbour[c] = 255
                    else:
                        neighbour[c] = int(value)

    buffer[...] = np.asarray(img, dtype=np.uint8)
    return buffer
