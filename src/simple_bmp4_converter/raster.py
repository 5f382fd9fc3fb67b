"""Raster value types shared by every conversion stage.

A :class:`Raster` is a decoded RGB image (3 bytes per pixel, row-major, no
padding). An :class:`IndexedRaster` holds one palette index per pixel. Both are
immutable; every stage builds a new value instead of editing its input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from PIL import Image

Color = Tuple[int, int, int]
Palette = Tuple[Color, ...]


class ConversionError(Exception):
    """Custom exception for conversion errors."""


class DimensionError(ConversionError, ValueError):
    """Raised for non-positive sizes or buffers that do not match their size."""


def check_dimensions(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise DimensionError(f"Dimensions must be positive, got {width}x{height}")


@dataclass(frozen=True)
class Raster:
    """Decoded RGB image."""

    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        check_dimensions(self.width, self.height)
        expected = self.width * self.height * 3
        if len(self.data) != expected:
            raise DimensionError(
                f"RGB buffer for {self.width}x{self.height} must be {expected} bytes, "
                f"got {len(self.data)}"
            )

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def pixel(self, x: int, y: int) -> Color:
        offset = (y * self.width + x) * 3
        r, g, b = self.data[offset : offset + 3]
        return r, g, b

    def iter_colors(self):
        """Yield every pixel as an ``(r, g, b)`` tuple in row-major order."""
        data = self.data
        for offset in range(0, len(data), 3):
            yield data[offset], data[offset + 1], data[offset + 2]


@dataclass(frozen=True)
class IndexedRaster:
    """Image stored as one palette index per pixel."""

    width: int
    height: int
    indices: bytes

    def __post_init__(self) -> None:
        check_dimensions(self.width, self.height)
        expected = self.width * self.height
        if len(self.indices) != expected:
            raise DimensionError(
                f"Index buffer for {self.width}x{self.height} must be {expected} bytes, "
                f"got {len(self.indices)}"
            )

    def index_at(self, x: int, y: int) -> int:
        return self.indices[y * self.width + x]

    def row(self, y: int) -> bytes:
        start = y * self.width
        return self.indices[start : start + self.width]


def raster_from_image(image: Image.Image) -> Raster:
    """Build a :class:`Raster` from any Pillow image (alpha is dropped)."""

    if image.mode != "RGB":
        image = image.convert("RGB")
    width, height = image.size
    return Raster(width, height, image.tobytes())


def image_from_indexed(indexed: IndexedRaster, palette: Palette) -> Image.Image:
    """Render an indexed raster back to an RGB Pillow image for previews."""

    if any(index >= len(palette) for index in set(indexed.indices)):
        raise ConversionError("Indexed raster references a missing palette entry")
    image = Image.frombytes("P", (indexed.width, indexed.height), indexed.indices)
    image.putpalette([component for color in palette for component in color])
    return image.convert("RGB")
