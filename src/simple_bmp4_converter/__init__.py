"""Simple image to 4bpp BMP converter.

This package converts decoded RGB images into 16-color indexed BMP data:
optional aspect crop, nearest-neighbour resize, fixed or median-cut palette,
then a 4-bit BMP stream. It can be invoked through the CLI (``python -m
simple_bmp4_converter``) or imported to convert a single image into bytes.
"""

from .bmp import encode_bitmap, row_stride
from .converter import (
    TARGET_HEIGHT,
    TARGET_WIDTH,
    ConvertOptions,
    convert_file_to_bmp,
    convert_image_to_bmp,
    convert_image_to_preview,
    convert_raster_to_bmp,
    load_raster,
)
from .crop import crop_to_aspect
from .quantize import FIXED_PALETTE, NUM_COLORS, build_median_cut_palette, quantize
from .raster import (
    ConversionError,
    DimensionError,
    IndexedRaster,
    Raster,
    image_from_indexed,
    raster_from_image,
)
from .resize import resize_raster

__all__ = [
    "FIXED_PALETTE",
    "NUM_COLORS",
    "TARGET_HEIGHT",
    "TARGET_WIDTH",
    "ConversionError",
    "ConvertOptions",
    "DimensionError",
    "IndexedRaster",
    "Raster",
    "build_median_cut_palette",
    "convert_file_to_bmp",
    "convert_image_to_bmp",
    "convert_image_to_preview",
    "convert_raster_to_bmp",
    "crop_to_aspect",
    "encode_bitmap",
    "image_from_indexed",
    "load_raster",
    "quantize",
    "raster_from_image",
    "resize_raster",
    "row_stride",
]
