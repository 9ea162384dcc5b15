"""Convert 64x32 24-bit bitmaps into C array text for the Jumbotron display."""

from jumbotron_nab.converter import (
    BITS_PER_PIXEL,
    JUMBOTRON_HEIGHT,
    JUMBOTRON_WIDTH,
    ConversionError,
    ConversionResult,
    ConversionState,
    FormatMismatch,
    IOFailure,
    PixelCountMismatch,
    Rgb24,
    bitmap_to_c_array,
    convert,
)

__version__ = "1.0.0"
