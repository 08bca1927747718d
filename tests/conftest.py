"""Shared fixtures."""

import functools
import tempfile
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer

import pytest
from PIL import Image


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format, *args):
        pass


@pytest.fixture
def image_server(tmp_path):
    """Serve cat.png (4x2, solid orange) and notes.png (not an image) over HTTP.

    Yields the base URL, without a trailing slash.
    """
    root = tmp_path / "www"
    root.mkdir()
    Image.new("RGB", (4, 2), (255, 128, 0)).save(str(root / "cat.png"))
    (root / "notes.png").write_text("not an image")

    handler = functools.partial(_QuietHandler, directory=str(root))
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join()


@pytest.fixture
def temp_dir(tmp_path, monkeypatch):
    """Redirect tempfile to an empty directory the test can inspect."""
    path = tmp_path / "tmp"
    path.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(path))
    return path
