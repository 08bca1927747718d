"""Load a source image from a still image, animation, video or URL.

Transparency is flattened onto black by multiplying alpha into the colour
channels, so the rest of the pipeline only ever sees opaque RGB.
"""

from __future__ import annotations

import os
import shutil
import tempfile
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from gd_image_to_text.core.level import TOOL_VERSION

VIDEO_SUFFIXES = (".mp4", ".avi", ".mov", ".mkv", ".webm")


@dataclass
class SourceImage:
    """An opaque RGB image ready for fitting."""

    image: Image.Image  # RGB PIL image
    path: Path  # Local file, or just the file name for a URL
    format: str  # "image" or "video"
    frame: int
    remote: bool = False

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


def detect_format(path: Path) -> str:
    """Detect source kind from file extension."""
    if path.suffix.lower() in VIDEO_SUFFIXES:
        return "video"
    return "image"


def premultiply_alpha(img: Image.Image) -> Image.Image:
    """Multiply alpha into colour, i.e. composite onto a black background."""
    rgba = np.array(img.convert("RGBA"), dtype=np.uint16)
    alpha = rgba[:, :, 3:4]
    rgb = (rgba[:, :, :3] * alpha) // 255
    return Image.fromarray(rgb.astype(np.uint8))


def _read_still(path: Path, frame: int) -> Image.Image:
    try:
        img = Image.open(path)
    except UnidentifiedImageError as e:
        raise ValueError(f"Cannot decode image: {path}") from e

    with img:
        n_frames = getattr(img, "n_frames", 1)
        if not 0 <= frame < n_frames:
            raise ValueError(f"Frame {frame} out of range (image has {n_frames})")
        if frame:
            img.seek(frame)
        return premultiply_alpha(img)


def _read_video_frame(path: Path, frame: int) -> Image.Image:
    cap = cv2.VideoCapture(str(path))
    if not cap.isOpened():
        raise ValueError(f"Cannot open video: {path}")
    try:
        if frame:
            cap.set(cv2.CAP_PROP_POS_FRAMES, frame)
        ret, bgr = cap.read()
    finally:
        cap.release()
    if not ret:
        raise ValueError(f"Frame {frame} not found in {path}")
    rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
    return Image.fromarray(rgb)


def is_url(path: str) -> bool:
    """Check if the input looks like an HTTP(S) URL."""
    parsed = urlparse(str(path))
    return parsed.scheme in ("http", "https")


def url_filename(url: str) -> str:
    """File name at the end of a URL path, e.g. "cat.png"."""
    return Path(unquote(urlparse(url).path)).name or "image"


def download_image(url: str) -> Path:
    """Fetch a URL into a temp file named after the URL's extension.

    The caller owns the file and deletes it once decoded.

    Raises:
        ValueError: if the URL is unreachable or returns nothing.
    """
    suffix = Path(url_filename(url)).suffix.lower() or ".png"
    fd, name = tempfile.mkstemp(prefix="gd-image-", suffix=suffix)
    tmp_path = Path(name)
    req = urllib.request.Request(
        url, headers={"User-Agent": f"gd-image-to-text/{TOOL_VERSION}"}
    )

    try:
        with os.fdopen(fd, "wb") as out, urllib.request.urlopen(req, timeout=30) as resp:
            shutil.copyfileobj(resp, out)
    except urllib.error.URLError as e:
        tmp_path.unlink(missing_ok=True)
        raise ValueError(f"Failed to download {url}: {e}") from e
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise

    if tmp_path.stat().st_size == 0:
        tmp_path.unlink(missing_ok=True)
        raise ValueError(f"Downloaded file is empty: {url}")
    return tmp_path


def _decode(path: Path, frame: int) -> tuple[Image.Image, str]:
    fmt = detect_format(path)
    if fmt == "video":
        return _read_video_frame(path, frame), fmt
    return _read_still(path, frame), fmt


def load_image(path: str | Path, frame: int = 0) -> SourceImage:
    """Load an image file (or one frame of a video/animation) as opaque RGB.

    Accepts local paths or HTTP(S) URLs. A URL is downloaded to a temp file
    that is removed again after decoding; the result's ``path`` is then the
    URL's file name rather than a location on disk.

    Raises:
        FileNotFoundError: local file does not exist.
        ValueError: undecodable input, failed download or bad frame index.
    """
    if frame < 0:
        raise ValueError(f"Frame index must be non-negative, got {frame}")

    path_str = str(path)
    if is_url(path_str):
        tmp_path = download_image(path_str)
        try:
            img, fmt = _decode(tmp_path, frame)
        finally:
            tmp_path.unlink(missing_ok=True)
        return SourceImage(
            image=img,
            path=Path(url_filename(path_str)),
            format=fmt,
            frame=frame,
            remote=True,
        )

    local_path = Path(path_str)
    if not local_path.exists():
        raise FileNotFoundError(f"File not found: {local_path}")
    img, fmt = _decode(local_path, frame)
    return SourceImage(image=img, path=local_path, format=fmt, frame=frame)
