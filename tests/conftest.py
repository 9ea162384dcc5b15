"""
Test Configuration
==================

Fixtures that write small bitmaps with Pillow for the converter tests.
"""

import struct

import pytest
from PIL import Image

from jumbotron_nab import converter


@pytest.fixture
def make_bitmap(tmp_path):
    """Factory writing an image to ``tmp_path`` and returning its path.

    ``pixels`` maps (x, y) to an RGB tuple painted over the fill color.
    """

    def _make(name="frame.bmp", size=(64, 32), mode="RGB", color=(0, 0, 0), pixels=None, fmt="BMP"):
        img = Image.new(mode, size, color)
        for xy, value in (pixels or {}).items():
            img.putpixel(xy, value)
        path = tmp_path / name
        img.save(path, fmt)
        return path

    return _make


@pytest.fixture
def buffer_log(monkeypatch):
    """Record every PixelBuffer the converter creates."""
    created = []

    class RecordingBuffer(converter.PixelBuffer):
        def __init__(self, size=converter.BUFFER_SIZE):
            super().__init__(size)
            self.entered = False
            created.append(self)

        def __enter__(self):
            self.entered = True
            return super().__enter__()

    monkeypatch.setattr(converter, "PixelBuffer", RecordingBuffer)
    return created


@pytest.fixture
def write_raw_bitmap(tmp_path):
    """Factory writing a BMP with a hand-built BITMAPINFOHEADER.

    Covers headers Pillow will not save itself, such as 16 bits per pixel
    or dimensions past the decompression bomb limit.
    """

    def _write(width, height, bits, data=b"", name="raw.bmp"):
        info = struct.pack("<IiiHHIIiiII", 40, width, height, 1, bits, 0, len(data), 2835, 2835, 0, 0)
        head = b"BM" + struct.pack("<IHHI", 14 + len(info) + len(data), 0, 0, 14 + len(info))
        path = tmp_path / name
        path.write_bytes(head + info + data)
        return path

    return _write
