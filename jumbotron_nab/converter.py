# converter.py
# Turn a 64x32 24-bit .bmp into the C array body the Jumbotron driver expects.
# Requires: pip install pillow

import logging
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, NamedTuple, Optional

from PIL import Image

logger = logging.getLogger(__name__)

JUMBOTRON_WIDTH = 64
JUMBOTRON_HEIGHT = 32
PIXEL_SIZE = 3  # blue, green, red on disk
BITS_PER_PIXEL = PIXEL_SIZE * 8
STRIDE = JUMBOTRON_WIDTH * PIXEL_SIZE
BUFFER_SIZE = JUMBOTRON_HEIGHT * STRIDE

COLUMN_SEPARATOR = ", "
ROW_SEPARATOR = ",\n\t"

EXPECTED_FORMAT = (
    f"Expected a single frame {JUMBOTRON_WIDTH}px by {JUMBOTRON_HEIGHT}px "
    f"bitmap (.bmp) with {BITS_PER_PIXEL} bits per pixel."
)

# file header (14) + the bit count of either DIB header flavour
_HEADER_PROBE = 30
_BGR = struct.Struct("<3B")


class ConversionError(Exception):
    """Base class for everything the converter raises."""


class FormatMismatch(ConversionError, ValueError):
    """The image is not a single 64x32 frame at 24 bits per pixel."""


class PixelCountMismatch(FormatMismatch):
    """The pixel sequence ran out before every row was filled."""


class IOFailure(ConversionError, OSError):
    """The file could not be opened, read or decoded."""


class Rgb24(NamedTuple):
    red: int
    green: int
    blue: int

    def __str__(self):
        return f"0x{self.red:02X}, 0x{self.green:02X}, 0x{self.blue:02X}"


class PixelBuffer:
    """Zero-filled scratch buffer, released when the ``with`` block exits.

    Entering hands out a writable memoryview over the bytes. Anything still
    holding that view after exit gets ``ValueError`` on access.
    """

    def __init__(self, size=BUFFER_SIZE):
        self.size = size
        self._data = None
        self._view = None

    def __enter__(self) -> memoryview:
        self._data = bytearray(self.size)
        self._view = memoryview(self._data)
        return self._view

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    @property
    def released(self) -> bool:
        return self._view is None

    def release(self):
        if self._view is not None:
            self._view.release()
        self._view = None
        self._data = None


def read_color(buffer, offset: int) -> Rgb24:
    """Read one BGR triple at ``offset`` and hand it back as RGB."""
    blue, green, red = _BGR.unpack_from(buffer, offset)
    return Rgb24(red, green, blue)


def iter_pixels(buffer, width=JUMBOTRON_WIDTH, height=JUMBOTRON_HEIGHT) -> Iterator[Rgb24]:
    """Yield colors x-major: every y of column 0, then column 1, and so on.

    The buffer is written row by row but read with (x * height + y)
    offsets, i.e. as if it were stored transposed. Since that index counts
    up by one, records come out in storage order. The driver data has
    always been produced this way; keep the arithmetic as is.
    """
    for x in range(width):
        for y in range(height):
            offset = (x * height + y) * PIXEL_SIZE
            if offset + PIXEL_SIZE > len(buffer):
                return
            yield read_color(buffer, offset)


def render_block(colors: Iterable[Rgb24], width=JUMBOTRON_WIDTH, height=JUMBOTRON_HEIGHT) -> str:
    """Lay ``width * height`` colors out as a brace wrapped block, one row per line."""
    colors = iter(colors)
    parts = ["{\n\t"]
    count = 0
    for y in range(height):
        for x in range(width):
            color = next(colors, None)
            if color is None:
                raise PixelCountMismatch(
                    f"Expected {width * height} pixels but only {count} could be read."
                )
            parts.append(str(color))
            parts.append(ROW_SEPARATOR if x == width - 1 else COLUMN_SEPARATOR)
            count += 1
    return "".join(parts).rstrip(",\t") + "}"


def bits_per_pixel(header: bytes) -> int:
    """Bit count from a BMP file's DIB header (core or info flavour)."""
    (dib_size,) = struct.unpack_from("<I", header, 14)
    # BITMAPCOREHEADER keeps the field 4 bytes earlier
    offset = 24 if dib_size == 12 else 28
    (bits,) = struct.unpack_from("<H", header, offset)
    return bits


def check_frame(image, bits: int):
    frames = getattr(image, "n_frames", 1)
    width, height = image.size
    if (
        frames != 1
        or width != JUMBOTRON_WIDTH
        or height != JUMBOTRON_HEIGHT
        or bits != BITS_PER_PIXEL
        or image.mode != "RGB"
    ):
        logger.warning(
            "Rejected image: %d frame(s), %dx%d, %d bpp, mode %s",
            frames, width, height, bits, image.mode,
        )
        raise FormatMismatch(
            f"{EXPECTED_FORMAT} Got {frames} frame(s), {width}px by {height}px "
            f"with {bits} bits per pixel."
        )


def copy_pixels(image: Image.Image, buffer):
    """Copy the frame into ``buffer`` top row first, BGR, ``STRIDE`` bytes a row."""
    data = image.tobytes("raw", "BGR")
    if len(data) != len(buffer):
        raise FormatMismatch(
            f"{EXPECTED_FORMAT} Decoded {len(data)} bytes of pixel data, "
            f"expected {len(buffer)}."
        )
    buffer[:] = data


def bitmap_to_c_array(path) -> str:
    """Convert the bitmap at ``path`` to the Jumbotron's C array body.

    Raises FormatMismatch for anything that is not a single 64x32 24-bit
    frame, and IOFailure when the file cannot be read or decoded.
    """
    try:
        with open(path, "rb") as fp:
            header = fp.read(_HEADER_PROBE)
            fp.seek(0)
            with Image.open(fp, formats=["BMP"]) as image:
                bits = bits_per_pixel(header)
                logger.debug("Opened %s: %dx%d, mode %s, %d bpp", path, *image.size, image.mode, bits)
                check_frame(image, bits)
                with PixelBuffer(BUFFER_SIZE) as buffer:
                    copy_pixels(image, buffer)
                    text = render_block(iter_pixels(buffer))
    except ConversionError:
        raise
    except OSError as e:
        raise IOFailure(str(e)) from e
    except struct.error as e:
        raise IOFailure(f"Malformed bitmap header: {e}") from e
    except Image.DecompressionBombError as e:
        raise IOFailure(str(e)) from e

    logger.info("Converted %s (%d pixels)", path, JUMBOTRON_WIDTH * JUMBOTRON_HEIGHT)
    return text


class ConversionState(Enum):
    IDLE = "idle"
    DECODING = "decoding"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ConversionResult:
    path: str
    state: ConversionState = ConversionState.IDLE
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state is ConversionState.SUCCEEDED


def convert(path) -> ConversionResult:
    """Run one conversion and report how it ended instead of raising."""
    result = ConversionResult(path=str(path))
    result.state = ConversionState.DECODING
    try:
        text = bitmap_to_c_array(path)
    except ConversionError as e:
        result.state = ConversionState.FAILED
        result.error = f"An error occurred reading {path}: {e}"
        return result

    result.text = text
    result.state = ConversionState.SUCCEEDED
    return result
