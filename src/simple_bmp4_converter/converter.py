"""Core conversion pipeline for the simple BMP4 converter.

raw RGB raster -> (optional) crop -> resize -> quantize -> 4bpp BMP bytes
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Tuple

from PIL import Image, UnidentifiedImageError

from .bmp import MAX_BMP4_COLORS, encode_bitmap
from .crop import crop_to_aspect
from .quantize import NUM_COLORS, quantize
from .raster import (
    ConversionError,
    IndexedRaster,
    Palette,
    Raster,
    check_dimensions,
    image_from_indexed,
    raster_from_image,
)
from .resize import resize_raster

logger = logging.getLogger(__name__)

TARGET_WIDTH = 720
TARGET_HEIGHT = 576


@dataclass
class ConvertOptions:
    """Options for cropping, resizing and palette selection."""

    width: int = TARGET_WIDTH
    height: int = TARGET_HEIGHT
    crop: bool = False  # crop to the target aspect ratio before resizing
    adaptive: bool = False  # median-cut palette instead of the fixed one
    colors: int = NUM_COLORS

    def validate(self) -> None:
        check_dimensions(self.width, self.height)
        if not self.adaptive and self.colors != NUM_COLORS:
            raise ConversionError(
                f"The fixed palette always has {NUM_COLORS} colors; use --adaptive for --colors"
            )
        if self.colors < 1 or self.colors > MAX_BMP4_COLORS:
            raise ConversionError(f"Colors must be between 1 and {MAX_BMP4_COLORS}")


def prepare_indexed_raster(
    raster: Raster, options: ConvertOptions | None
) -> Tuple[Palette, IndexedRaster]:
    options = options or ConvertOptions()
    options.validate()

    if options.crop:
        cropped = crop_to_aspect(raster, options.width, options.height)
        if cropped is not None:
            raster = cropped

    raster = resize_raster(raster, options.width, options.height)
    return quantize(raster, options.colors, options.adaptive)


def convert_raster_to_bmp(raster: Raster, options: ConvertOptions | None = None) -> bytes:
    palette, indexed = prepare_indexed_raster(raster, options)
    return encode_bitmap(indexed, palette)


def convert_image_to_bmp(image: Image.Image, options: ConvertOptions | None = None) -> bytes:
    """Convert an in-memory Pillow image to 4bpp BMP bytes."""

    return convert_raster_to_bmp(raster_from_image(image), options)


def convert_image_to_preview(
    image: Image.Image, options: ConvertOptions | None = None
) -> Image.Image:
    """Convert an in-memory image into an RGB preview of the quantized result."""

    palette, indexed = prepare_indexed_raster(raster_from_image(image), options)
    return image_from_indexed(indexed, palette)


def load_raster(source: str | Path | BinaryIO) -> Raster:
    """Decode a PNG, JPEG or any other Pillow-readable image into a raster."""

    name = source if isinstance(source, (str, Path)) else getattr(source, "name", "<stream>")
    try:
        with Image.open(source) as img:
            logger.debug("decoded %s (%s %dx%d)", name, img.format, img.width, img.height)
            return raster_from_image(img)
    except FileNotFoundError as exc:
        raise ConversionError(f"Input file not found: {name}") from exc
    except Image.DecompressionBombError as exc:
        raise ConversionError(f"Image too large: {name}") from exc
    except UnidentifiedImageError as exc:
        raise ConversionError(f"Unsupported image format: {name}") from exc
    except OSError as exc:
        raise ConversionError(f"Failed to read image: {name}") from exc


def convert_file_to_bmp(
    source: str | Path | BinaryIO, options: ConvertOptions | None = None
) -> bytes:
    return convert_raster_to_bmp(load_raster(source), options)
