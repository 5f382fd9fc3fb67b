"""4-bit indexed BMP writer."""

# Reference: 4bpp BMP stream (all fields little-endian)
# Section             | Size          | Notes
# --------------------|---------------|----------------------------------------------
# File header         | 14 bytes      | "BM", file size, 2x reserved, pixel offset
# Info header         | 40 bytes      | BITMAPINFOHEADER, height > 0 means bottom-up
# Color table         | 4 x N bytes   | blue, green, red, reserved per entry
# Pixel rows          | stride x H    | bottom row first, 2 pixels per byte,
#                     |               | even x in the high nibble, rows padded to 4 bytes

from __future__ import annotations

import struct
from typing import Sequence

from .raster import Color, ConversionError, IndexedRaster

BITS_PER_PIXEL = 4
MAX_BMP4_COLORS = 1 << BITS_PER_PIXEL
FILE_HEADER = struct.Struct("<2sIHHI")
INFO_HEADER = struct.Struct("<IiiHHIIiiII")
BI_RGB = 0


def row_stride(width: int) -> int:
    """Bytes per stored pixel row, padded to a 32-bit boundary."""
    return ((width * BITS_PER_PIXEL + 31) // 32) * 4


def pack_row(indices: bytes, stride: int) -> bytes:
    row = bytearray(stride)
    for x, index in enumerate(indices):
        if x % 2 == 0:
            row[x // 2] |= index << 4
        else:
            row[x // 2] |= index
    return bytes(row)


def encode_palette(palette: Sequence[Color]) -> bytes:
    return b"".join(bytes((b, g, r, 0)) for r, g, b in palette)


def encode_bitmap(indexed: IndexedRaster, palette: Sequence[Color]) -> bytes:
    """Serialize ``indexed`` and ``palette`` into a 4bpp BMP byte stream.

    Indices come straight from the quantizer; no color re-matching happens
    here. Raises :class:`ConversionError` when the palette does not fit a
    4-bit color table or an index points past its end.
    """
    color_count = len(palette)
    if color_count == 0 or color_count > MAX_BMP4_COLORS:
        raise ConversionError(
            f"A 4-bit bitmap needs 1 to {MAX_BMP4_COLORS} palette colors, got {color_count}"
        )
    if indexed.indices and max(indexed.indices) >= color_count:
        raise ConversionError(
            f"Index {max(indexed.indices)} is outside the {color_count}-color palette"
        )

    width, height = indexed.width, indexed.height
    stride = row_stride(width)
    image_size = stride * height
    color_table = encode_palette(palette)
    pixel_offset = FILE_HEADER.size + INFO_HEADER.size + len(color_table)

    file_header = FILE_HEADER.pack(b"BM", pixel_offset + image_size, 0, 0, pixel_offset)
    info_header = INFO_HEADER.pack(
        INFO_HEADER.size,
        width,
        height,
        1,  # planes
        BITS_PER_PIXEL,
        BI_RGB,
        image_size,
        0,  # x pixels per meter
        0,  # y pixels per meter
        color_count,
        color_count,
    )

    rows = [pack_row(indexed.row(y), stride) for y in range(height - 1, -1, -1)]
    return file_header + info_header + color_table + b"".join(rows)
